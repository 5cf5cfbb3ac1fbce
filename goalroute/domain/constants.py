"""Activity coefficient tables and search constants."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from goalroute.domain.enums import ActivityKind, Pace, SearchStrategy, TripType


class ActivityProfile(BaseModel):
    """Per-pace coefficients for one activity kind."""

    model_config = ConfigDict(frozen=True)

    kind: ActivityKind
    stride_coefficients: dict[Pace, float]
    speeds_kmh: dict[Pace, float]
    calorie_coefficients: dict[Pace, float]

    def stride_coefficient(self, pace: Pace) -> float:
        return self.stride_coefficients[pace]

    def speed_kmh(self, pace: Pace) -> float:
        return self.speeds_kmh[pace]

    def calorie_coefficient(self, pace: Pace) -> float:
        return self.calorie_coefficients[pace]


WALK_PROFILE = ActivityProfile(
    kind=ActivityKind.WALK,
    stride_coefficients={Pace.SLOW: 0.415, Pace.MODERATE: 0.415, Pace.FAST: 0.415},
    speeds_kmh={Pace.SLOW: 4.0, Pace.MODERATE: 5.0, Pace.FAST: 6.0},
    calorie_coefficients={Pace.SLOW: 0.35, Pace.MODERATE: 0.50, Pace.FAST: 0.70},
)

RUN_PROFILE = ActivityProfile(
    kind=ActivityKind.RUN,
    stride_coefficients={Pace.SLOW: 0.65, Pace.MODERATE: 0.9, Pace.FAST: 1.1},
    speeds_kmh={Pace.SLOW: 8.0, Pace.MODERATE: 11.0, Pace.FAST: 15.0},
    calorie_coefficients={Pace.SLOW: 0.75, Pace.MODERATE: 1.00, Pace.FAST: 1.30},
)

ACTIVITY_PROFILES: dict[ActivityKind, ActivityProfile] = {
    ActivityKind.WALK: WALK_PROFILE,
    ActivityKind.RUN: RUN_PROFILE,
}


def get_activity_profile(kind: ActivityKind) -> ActivityProfile:
    return ACTIVITY_PROFILES[kind]


# Tolerance bands, as fractions of the total target distance.
STRICT_TOLERANCE = 0.05
RELAXED_TOLERANCE = 0.08

# Equirectangular projection: km per degree of latitude.
KM_PER_DEGREE = 111.32

# Street paths are longer than the straight line between their endpoints.
STRAIGHT_LINE_DETOUR_FACTOR = 1.4

FIXED_BEARING_COUNT = 8
RANDOM_DISK_RADIUS_FACTOR: dict[TripType, float] = {
    TripType.ONE_WAY: 1.2,
    TripType.ROUND_TRIP: 1.0,
}

FIXED_BEARING_BUDGET = 8
RANDOM_DISK_BUDGET: dict[TripType, int] = {
    TripType.ONE_WAY: 10,
    TripType.ROUND_TRIP: 15,
}
HYBRID_BUDGET = 15
MAX_PARALLEL_ATTEMPTS = 6


def attempt_budget(strategy: SearchStrategy, trip_type: TripType) -> int:
    if strategy == SearchStrategy.FIXED_BEARING:
        return FIXED_BEARING_BUDGET
    if strategy == SearchStrategy.RANDOM_DISK:
        return RANDOM_DISK_BUDGET[trip_type]
    return HYBRID_BUDGET


# Round-trip return-leg overlap.
OVERLAP_SAMPLE_POINTS = 30
OVERLAP_BUFFER_M = 20.0
OVERLAP_BUFFER_DEG = OVERLAP_BUFFER_M / 111_320.0
OVERLAP_REROUTE_THRESHOLD = 0.4
LATERAL_WAYPOINT_KM = 0.2

# Interactive reselection.
DEFAULT_MAX_MANUAL_ATTEMPTS = 3
CLICK_DEBOUNCE_MS = 600

SESSION_TTL_SECONDS = 300.0
