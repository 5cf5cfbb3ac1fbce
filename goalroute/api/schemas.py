"""API request/response models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from goalroute.domain.models import AttemptLimiterState, Coordinates, PlanningGoal, SearchOutcome

_SIGNATURE_PATTERN = r"^[a-f0-9]{32}$"


class GoalRequest(BaseModel):
    goal: PlanningGoal
    origin: Coordinates
    client_id: Optional[str] = Field(
        default=None,
        max_length=64,
        pattern=r"^[A-Za-z0-9_-]+$",
        description="A newer default search from the same client cancels its previous one",
    )


class ManualRouteRequest(BaseModel):
    signature: str = Field(pattern=_SIGNATURE_PATTERN, description="Session signature from /routes/default")
    point: Coordinates = Field(description="Destination picked on the map")


class ResetRequest(BaseModel):
    signature: str = Field(pattern=_SIGNATURE_PATTERN)


class HealthResponse(BaseModel):
    status: str = "ok"


class SessionResponse(BaseModel):
    signature: str
    outcome: Optional[SearchOutcome] = Field(default=None, description="Route currently on display")
    limiter: AttemptLimiterState
    debounced: bool = Field(default=False, description="Click ignored inside the debounce window")


class ErrorResponse(BaseModel):
    detail: str
    error: str = ""
