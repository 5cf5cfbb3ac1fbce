"""Search sessions: the goal, its default search result and the manual-attempt gate.

A session is keyed by a signature of the goal and the origin rounded to three
decimals (about 100 m), so reopening the destination screen for the same walk
finds the same session until it expires.
"""

from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel, Field

from goalroute.domain.models import AttemptLimiterState, Coordinates, GoalPlan, PlanningGoal, SearchOutcome
from goalroute.infrastructure.cache import make_cache_key

_ORIGIN_PRECISION = 3


def session_signature(goal: PlanningGoal, origin: Coordinates) -> str:
    return make_cache_key(
        "session",
        goal.model_dump(mode="json"),
        round(origin.lat, _ORIGIN_PRECISION),
        round(origin.lng, _ORIGIN_PRECISION),
    )


class SearchSession(BaseModel):
    signature: str
    goal: PlanningGoal
    origin: Coordinates
    plan: GoalPlan
    default_outcome: SearchOutcome
    current_outcome: Optional[SearchOutcome] = None
    limiter: AttemptLimiterState = Field(default_factory=AttemptLimiterState)
    created_at: float = Field(default_factory=time.time)

    @property
    def displayed_outcome(self) -> SearchOutcome:
        return self.current_outcome or self.default_outcome


__all__ = ["SearchSession", "session_signature"]
