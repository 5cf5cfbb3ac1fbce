"""Domain enums."""

from enum import Enum


class ActivityKind(str, Enum):
    WALK = "walk"
    RUN = "run"


class GoalKind(str, Enum):
    STEP_COUNT = "step_count"
    DISTANCE_KM = "distance_km"


class Pace(str, Enum):
    SLOW = "slow"
    MODERATE = "moderate"
    FAST = "fast"


class TripType(str, Enum):
    ONE_WAY = "one-way"
    ROUND_TRIP = "round-trip"


class CandidateStrategy(str, Enum):
    FIXED_BEARING = "fixed_bearing"
    RANDOM_DISK = "random_disk"
    MANUAL = "manual"


class SearchStrategy(str, Enum):
    FIXED_BEARING = "fixed_bearing"
    RANDOM_DISK = "random_disk"
    HYBRID = "hybrid"


class SearchStatus(str, Enum):
    ACCEPTED = "accepted"
    BEST_EFFORT = "best_effort"
    EXHAUSTED = "exhausted"


class ResetMode(str, Enum):
    LOCK_AND_START_DEFAULT = "lock_and_start_default"
    FULL_REARM = "full_rearm"
