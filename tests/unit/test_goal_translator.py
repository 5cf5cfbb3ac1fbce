"""Goal translation: target distance, tolerance bands and estimates."""

from __future__ import annotations

import pytest

from goalroute.domain.enums import ActivityKind, GoalKind, Pace, TripType
from goalroute.domain.exceptions import InvalidGoal
from goalroute.domain.models import PlanningGoal
from goalroute.planner.goal_translator import plan_goal


def _goal(**overrides) -> PlanningGoal:
    base = {
        "activity_kind": ActivityKind.WALK,
        "goal_kind": GoalKind.STEP_COUNT,
        "step_count": 10_000,
        "pace": Pace.MODERATE,
        "trip_type": TripType.ONE_WAY,
        "height_m": 1.70,
        "weight_kg": 70.0,
    }
    base.update(overrides)
    return PlanningGoal(**base)


def test_ten_thousand_steps_one_way_walk():
    plan = plan_goal(_goal())

    assert plan.stride_m == pytest.approx(0.7055)
    assert plan.target_distance_km == pytest.approx(7.055)
    assert plan.per_leg_target_km == pytest.approx(7.055)
    assert plan.tolerance_band.min_km == pytest.approx(6.70225)
    assert plan.tolerance_band.max_km == pytest.approx(7.40775)
    assert plan.duration_min == 85
    assert plan.calories == 247
    assert plan.target_steps == 10_000


def test_round_trip_band_applies_to_total_distance():
    plan = plan_goal(_goal(step_count=6000, height_m=1.75, trip_type=TripType.ROUND_TRIP))

    assert plan.stride_m == pytest.approx(0.72625)
    assert plan.target_distance_km == pytest.approx(4.3575)
    assert plan.per_leg_target_km == pytest.approx(2.17875)
    assert plan.tolerance_band.min_km == pytest.approx(4.139, abs=1e-3)
    assert plan.tolerance_band.max_km == pytest.approx(4.575, abs=1e-3)
    assert plan.tolerance_band.contains(2.10 + 2.05)
    assert not plan.tolerance_band.contains(2.5 + 2.5)


def test_distance_goal_uses_distance_directly():
    plan = plan_goal(_goal(goal_kind=GoalKind.DISTANCE_KM, step_count=None, distance_km=5.0))

    assert plan.target_distance_km == 5.0
    assert plan.relaxed_band.min_km == pytest.approx(4.6)
    assert plan.relaxed_band.max_km == pytest.approx(5.4)


def test_run_stride_depends_on_pace():
    slow = plan_goal(_goal(activity_kind=ActivityKind.RUN, pace=Pace.SLOW))
    fast = plan_goal(_goal(activity_kind=ActivityKind.RUN, pace=Pace.FAST))

    assert slow.stride_m == pytest.approx(0.65 * 1.70)
    assert fast.stride_m == pytest.approx(1.1 * 1.70)
    assert fast.target_distance_km > slow.target_distance_km


def test_walk_stride_is_the_same_for_every_pace():
    strides = {plan_goal(_goal(pace=pace)).stride_m for pace in Pace}
    assert len(strides) == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"height_m": 0},
        {"height_m": -1.7},
        {"weight_kg": 0},
        {"step_count": 0},
        {"step_count": None},
        {"goal_kind": GoalKind.DISTANCE_KM, "step_count": None, "distance_km": None},
        {"goal_kind": GoalKind.DISTANCE_KM, "distance_km": -2.0},
    ],
)
def test_invalid_goals_are_rejected(overrides):
    with pytest.raises(InvalidGoal):
        plan_goal(_goal(**overrides))


def test_plan_is_deterministic():
    goal = _goal(trip_type=TripType.ROUND_TRIP)
    assert plan_goal(goal) == plan_goal(goal)
