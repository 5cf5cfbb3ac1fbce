"""Routing tool protocol and I/O schemas."""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

from goalroute.domain.models import RouteLeg
from goalroute.shared.exceptions import ToolError


class RouteInput(BaseModel):
    origin_lat: float
    origin_lng: float
    dest_lat: float
    dest_lng: float
    mode: str = "walking"
    alternatives: bool = False


class Found(BaseModel):
    kind: Literal["found"] = "found"
    routes: list[RouteLeg] = Field(min_length=1)

    @property
    def primary(self) -> RouteLeg:
        return self.routes[0]


class NotFound(BaseModel):
    kind: Literal["not_found"] = "not_found"
    reason: str = ""


class RateLimited(BaseModel):
    kind: Literal["rate_limited"] = "rate_limited"
    retry_after_s: Optional[float] = None


class Error(BaseModel):
    kind: Literal["error"] = "error"
    detail: str = ""


RouteResponse = Annotated[
    Union[Found, NotFound, RateLimited, Error],
    Field(discriminator="kind"),
]


@runtime_checkable
class RouteTool(Protocol):
    def estimate_route(self, params: RouteInput) -> RouteResponse: ...


__all__ = [
    "RouteInput",
    "Found",
    "NotFound",
    "RateLimited",
    "Error",
    "RouteResponse",
    "RouteTool",
    "ToolError",
]
