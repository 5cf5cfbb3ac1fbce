"""Duration, calorie and step estimates shared by planning and route summaries."""

from __future__ import annotations

import math

from goalroute.domain.constants import get_activity_profile
from goalroute.domain.models import PlanningGoal, RouteSummary


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def stride_length_m(goal: PlanningGoal) -> float:
    profile = get_activity_profile(goal.activity_kind)
    return profile.stride_coefficient(goal.pace) * goal.height_m


def estimate_duration_min(distance_km: float, goal: PlanningGoal) -> int:
    speed = get_activity_profile(goal.activity_kind).speed_kmh(goal.pace)
    return round_half_up(distance_km / speed * 60)


def estimate_calories(distance_km: float, goal: PlanningGoal) -> int:
    coefficient = get_activity_profile(goal.activity_kind).calorie_coefficient(goal.pace)
    return round_half_up(distance_km * goal.weight_kg * coefficient)


def estimate_steps(distance_km: float, goal: PlanningGoal) -> int:
    return round_half_up(distance_km * 1000 / stride_length_m(goal))


def summarize_route(distance_km: float, goal: PlanningGoal) -> RouteSummary:
    return RouteSummary(
        distance_km=round(distance_km, 3),
        duration_min=estimate_duration_min(distance_km, goal),
        calories=estimate_calories(distance_km, goal),
        steps=estimate_steps(distance_km, goal),
    )
