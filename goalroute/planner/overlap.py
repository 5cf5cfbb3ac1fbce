"""Path overlap between a return leg and the outbound leg of a round trip."""

from __future__ import annotations

import math

from goalroute.domain.constants import OVERLAP_BUFFER_DEG, OVERLAP_SAMPLE_POINTS
from goalroute.domain.models import Geometry


def sample_points(geometry: Geometry, count: int = OVERLAP_SAMPLE_POINTS) -> Geometry:
    """Pick ``count`` points evenly spaced by index, endpoints included."""
    if len(geometry) <= count:
        return list(geometry)
    if count == 1:
        return [geometry[0]]
    last = len(geometry) - 1
    return [geometry[round(i * last / (count - 1))] for i in range(count)]


def _nearest_distance_deg(point: tuple[float, float], geometry: Geometry) -> float:
    px, py = point
    return min(math.hypot(px - x, py - y) for x, y in geometry)


def path_overlap(
    return_geometry: Geometry,
    outbound_geometry: Geometry,
    *,
    samples: int = OVERLAP_SAMPLE_POINTS,
    buffer_deg: float = OVERLAP_BUFFER_DEG,
) -> float:
    """Fraction of sampled return points lying within ``buffer_deg`` of an outbound point."""
    if not return_geometry or not outbound_geometry:
        return 0.0
    sampled = sample_points(return_geometry, samples)
    close = sum(1 for p in sampled if _nearest_distance_deg(p, outbound_geometry) <= buffer_deg)
    return close / len(sampled)
