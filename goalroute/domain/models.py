"""Pydantic domain models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from goalroute.domain.enums import (
    ActivityKind,
    CandidateStrategy,
    GoalKind,
    Pace,
    SearchStatus,
    TripType,
)

# GeoJSON order: (lng, lat).
Geometry = list[tuple[float, float]]


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    def as_lnglat(self) -> tuple[float, float]:
        return (self.lng, self.lat)


class PlanningGoal(BaseModel):
    """What the user asked for. Never mutated after submission."""

    model_config = ConfigDict(frozen=True)

    activity_kind: ActivityKind = ActivityKind.WALK
    goal_kind: GoalKind = GoalKind.STEP_COUNT
    step_count: Optional[int] = None
    distance_km: Optional[float] = None
    pace: Pace = Pace.MODERATE
    trip_type: TripType = TripType.ONE_WAY
    height_m: float
    weight_kg: float

    @property
    def is_round_trip(self) -> bool:
        return self.trip_type == TripType.ROUND_TRIP


class ToleranceBand(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_km: float
    max_km: float

    @classmethod
    def around(cls, target_km: float, tolerance: float) -> "ToleranceBand":
        return cls(min_km=target_km * (1 - tolerance), max_km=target_km * (1 + tolerance))

    def contains(self, distance_km: float) -> bool:
        return self.min_km <= distance_km <= self.max_km


class GoalPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    goal: PlanningGoal
    stride_m: float
    target_distance_km: float
    per_leg_target_km: float
    tolerance_band: ToleranceBand
    relaxed_band: ToleranceBand
    target_steps: int
    duration_min: int
    calories: int


class Candidate(BaseModel):
    origin: Coordinates
    destination: Coordinates
    strategy: CandidateStrategy
    radius_km: float = 0.0
    bearing_deg: Optional[float] = None


class RouteLeg(BaseModel):
    distance_km: float
    duration_sec: float = 0.0
    geometry: Geometry = Field(default_factory=list)
    waypoint: Optional[Coordinates] = None


class RouteEvaluation(BaseModel):
    candidate: Candidate
    outbound_leg: RouteLeg
    return_leg: Optional[RouteLeg] = None
    total_distance_km: float
    abs_difference_km: float
    within_strict: bool
    within_relaxed: bool
    return_overlap: Optional[float] = None
    return_alternatives_considered: int = 0


class RouteSummary(BaseModel):
    distance_km: float
    duration_min: int
    calories: int
    steps: int


class SearchOutcome(BaseModel):
    status: SearchStatus
    evaluation: Optional[RouteEvaluation] = None
    attempts_used: int = 0
    summary: Optional[RouteSummary] = None
    reason: Optional[str] = None

    @property
    def has_route(self) -> bool:
        return self.status in (SearchStatus.ACCEPTED, SearchStatus.BEST_EFFORT)


class AttemptLimiterState(BaseModel):
    attempt_count: int = 0
    max_attempts: int = 3
    locked: bool = False
    has_reset: bool = False
    last_click_at: Optional[float] = None
