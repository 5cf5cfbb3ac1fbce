"""Candidate destination streams.

Every stream is lazy, finite and restartable: iterating it twice yields the
same candidates, so a search can be replayed against a fake evaluator.
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable, Iterator
from typing import Optional

from goalroute.domain.constants import (
    FIXED_BEARING_COUNT,
    RANDOM_DISK_BUDGET,
    RANDOM_DISK_RADIUS_FACTOR,
    STRAIGHT_LINE_DETOUR_FACTOR,
)
from goalroute.domain.enums import CandidateStrategy, SearchStrategy
from goalroute.domain.models import Candidate, Coordinates, GoalPlan
from goalroute.planner.geo import project


class FixedBearingStream:
    """Deterministic sweep of evenly spaced bearings at one radius."""

    def __init__(self, origin: Coordinates, radius_km: float, bearings: int = FIXED_BEARING_COUNT):
        if bearings <= 0:
            raise ValueError("bearings must be positive")
        self.origin = origin
        self.radius_km = radius_km
        self.bearings = bearings

    def __iter__(self) -> Iterator[Candidate]:
        step = 360.0 / self.bearings
        for i in range(self.bearings):
            bearing_deg = i * step
            yield Candidate(
                origin=self.origin,
                destination=project(self.origin, self.radius_km, bearing_deg),
                strategy=CandidateStrategy.FIXED_BEARING,
                radius_km=self.radius_km,
                bearing_deg=bearing_deg,
            )

    def __len__(self) -> int:
        return self.bearings


class RandomDiskStream:
    """Uniform-area samples inside a disk around the origin."""

    def __init__(
        self,
        origin: Coordinates,
        max_radius_km: float,
        count: int,
        seed: Optional[int] = None,
    ):
        self.origin = origin
        self.max_radius_km = max_radius_km
        self.count = count
        self.seed = seed if seed is not None else random.randrange(2**32)

    def __iter__(self) -> Iterator[Candidate]:
        rng = random.Random(self.seed)
        for _ in range(self.count):
            angle = rng.uniform(0, 2 * math.pi)
            radius = math.sqrt(rng.uniform(0, 1)) * self.max_radius_km
            bearing_deg = math.degrees(angle)
            yield Candidate(
                origin=self.origin,
                destination=project(self.origin, radius, bearing_deg),
                strategy=CandidateStrategy.RANDOM_DISK,
                radius_km=radius,
                bearing_deg=bearing_deg,
            )

    def __len__(self) -> int:
        return self.count


class ChainedStream:
    def __init__(self, *streams: Iterable[Candidate]):
        self.streams = streams

    def __iter__(self) -> Iterator[Candidate]:
        for stream in self.streams:
            yield from stream

    def __len__(self) -> int:
        return sum(len(s) for s in self.streams)  # type: ignore[arg-type]


def fixed_bearing_radius_km(plan: GoalPlan) -> float:
    return plan.per_leg_target_km / STRAIGHT_LINE_DETOUR_FACTOR


def random_disk_radius_km(plan: GoalPlan) -> float:
    return plan.per_leg_target_km * RANDOM_DISK_RADIUS_FACTOR[plan.goal.trip_type]


def build_candidate_stream(
    plan: GoalPlan,
    origin: Coordinates,
    strategy: SearchStrategy,
    *,
    seed: Optional[int] = None,
) -> Iterable[Candidate]:
    fixed = FixedBearingStream(origin, fixed_bearing_radius_km(plan))
    randomized = RandomDiskStream(
        origin,
        random_disk_radius_km(plan),
        count=RANDOM_DISK_BUDGET[plan.goal.trip_type],
        seed=seed,
    )
    if strategy == SearchStrategy.FIXED_BEARING:
        return fixed
    if strategy == SearchStrategy.RANDOM_DISK:
        return randomized
    return ChainedStream(fixed, randomized)


def manual_candidate(origin: Coordinates, point: Coordinates) -> Candidate:
    return Candidate(origin=origin, destination=point, strategy=CandidateStrategy.MANUAL)
