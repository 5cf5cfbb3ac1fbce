"""Offline route adapter: straight-line geometry stretched by a street detour factor.

Used when no Mapbox token is configured. Alternatives are a straight path and
a path bowed to the right of the straight line, so round trips have a return
leg that does not retrace the outbound one.
"""

from __future__ import annotations

import math

from goalroute.domain.constants import STRAIGHT_LINE_DETOUR_FACTOR
from goalroute.domain.models import Geometry, RouteLeg
from goalroute.planner.geo import haversine
from goalroute.tools.interfaces import Found, NotFound, RouteInput, RouteResponse

WALKING_SPEED_KMH = 5.0
_PATH_POINTS = 25
_BOW_FRACTION = 0.25
_BOW_DISTANCE_FACTOR = 1.08


def estimate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    return haversine(lat1, lng1, lat2, lng2) * STRAIGHT_LINE_DETOUR_FACTOR


def _straight(params: RouteInput) -> Geometry:
    return [
        (
            params.origin_lng + (params.dest_lng - params.origin_lng) * i / (_PATH_POINTS - 1),
            params.origin_lat + (params.dest_lat - params.origin_lat) * i / (_PATH_POINTS - 1),
        )
        for i in range(_PATH_POINTS)
    ]


def _bowed(params: RouteInput) -> Geometry:
    dx = params.dest_lng - params.origin_lng
    dy = params.dest_lat - params.origin_lat
    # Right-hand perpendicular, scaled to a fraction of the straight span.
    px, py = dy * _BOW_FRACTION, -dx * _BOW_FRACTION
    points = []
    for x, y in _straight(params):
        t = len(points) / (_PATH_POINTS - 1)
        bulge = math.sin(math.pi * t)
        points.append((x + px * bulge, y + py * bulge))
    return points


def _leg(geometry: Geometry, distance_km: float) -> RouteLeg:
    return RouteLeg(
        distance_km=round(distance_km, 4),
        duration_sec=round(distance_km / WALKING_SPEED_KMH * 3600, 1),
        geometry=geometry,
    )


def estimate_route(params: RouteInput) -> RouteResponse:
    if params.mode != "walking":
        return NotFound(reason=f"unsupported mode: {params.mode}")
    distance = estimate_distance(params.origin_lat, params.origin_lng, params.dest_lat, params.dest_lng)
    routes = [_leg(_straight(params), distance)]
    if params.alternatives and distance > 0:
        routes.append(_leg(_bowed(params), distance * _BOW_DISTANCE_FACTOR))
    return Found(routes=routes)
