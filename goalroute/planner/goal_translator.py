"""Translate a step or distance goal into a target distance and tolerance bands."""

from __future__ import annotations

from goalroute.domain.constants import RELAXED_TOLERANCE, STRICT_TOLERANCE
from goalroute.domain.enums import GoalKind
from goalroute.domain.exceptions import InvalidGoal
from goalroute.domain.models import GoalPlan, PlanningGoal, ToleranceBand
from goalroute.planner.effort import (
    estimate_calories,
    estimate_duration_min,
    estimate_steps,
    stride_length_m,
)


def _validate(goal: PlanningGoal) -> None:
    if goal.height_m <= 0:
        raise InvalidGoal(f"height_m must be positive, got {goal.height_m}")
    if goal.weight_kg <= 0:
        raise InvalidGoal(f"weight_kg must be positive, got {goal.weight_kg}")
    if goal.goal_kind == GoalKind.STEP_COUNT:
        if goal.step_count is None or goal.step_count <= 0:
            raise InvalidGoal(f"step_count must be positive, got {goal.step_count}")
    elif goal.distance_km is None or goal.distance_km <= 0:
        raise InvalidGoal(f"distance_km must be positive, got {goal.distance_km}")


def total_distance_km(goal: PlanningGoal) -> float:
    if goal.goal_kind == GoalKind.STEP_COUNT:
        return goal.step_count * stride_length_m(goal) / 1000
    return float(goal.distance_km)


def plan_goal(goal: PlanningGoal) -> GoalPlan:
    """Derive the target distance, tolerance bands and effort estimates for a goal.

    The tolerance bands always apply to the total distance, out and back
    included; ``per_leg_target_km`` is what candidate generation aims for.
    """
    _validate(goal)
    target = total_distance_km(goal)
    per_leg = target / 2 if goal.is_round_trip else target
    return GoalPlan(
        goal=goal,
        stride_m=stride_length_m(goal),
        target_distance_km=target,
        per_leg_target_km=per_leg,
        tolerance_band=ToleranceBand.around(target, STRICT_TOLERANCE),
        relaxed_band=ToleranceBand.around(target, RELAXED_TOLERANCE),
        target_steps=estimate_steps(target, goal),
        duration_min=estimate_duration_min(target, goal),
        calories=estimate_calories(target, goal),
    )
