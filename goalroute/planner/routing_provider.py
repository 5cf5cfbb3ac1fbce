"""Routing provider: the single seam between the evaluator and a routing tool."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Optional, Protocol

from goalroute.adapters.tool_factory import describe_active_tools, get_route_tool
from goalroute.domain.models import Coordinates
from goalroute.infrastructure.logging import StructuredLogger
from goalroute.security.redact import redact_sensitive
from goalroute.shared.exceptions import ProviderUnavailable, ToolError
from goalroute.tools.interfaces import Error, Found, NotFound, RateLimited, RouteInput, RouteResponse, RouteTool

_logger = logging.getLogger("goalroute.routing")

_MAX_EVENTS = 50


class RoutingProvider(Protocol):
    def get_route(
        self, origin: Coordinates, destination: Coordinates, *, alternatives: bool = False
    ) -> RouteResponse: ...


class ToolRoutingProvider:
    """Adapts a routing tool module to RoutingProvider and keeps failure diagnostics."""

    def __init__(
        self,
        tool: Optional[RouteTool] = None,
        *,
        mode: Optional[str] = None,
        trace: Optional[StructuredLogger] = None,
    ):
        self._mode = mode
        self._tool = tool
        self._trace = trace
        self._lock = threading.Lock()
        self._counts = {"calls": 0, "found": 0, "not_found": 0, "rate_limited": 0, "error": 0}
        self._events: deque[dict[str, Any]] = deque(maxlen=_MAX_EVENTS)

    @property
    def tool(self) -> RouteTool:
        if self._tool is None:
            self._tool = get_route_tool(self._mode)
        return self._tool

    def ensure_ready(self) -> None:
        """Raise ProviderUnavailable when no tool can be wired (e.g. missing token)."""
        _ = self.tool

    def get_route(
        self, origin: Coordinates, destination: Coordinates, *, alternatives: bool = False
    ) -> RouteResponse:
        params = RouteInput(
            origin_lat=origin.lat,
            origin_lng=origin.lng,
            dest_lat=destination.lat,
            dest_lng=destination.lng,
            alternatives=alternatives,
        )
        try:
            response = self.tool.estimate_route(params)
        except ProviderUnavailable:
            raise
        except ToolError as exc:
            response = Error(detail=redact_sensitive(str(exc)))
        except Exception as exc:  # adapter bug or unexpected payload
            _logger.exception("routing tool raised unexpectedly")
            response = Error(detail=f"{type(exc).__name__}: {redact_sensitive(str(exc))}")
        self._record(response, alternatives)
        return response

    def _record(self, response: RouteResponse, alternatives: bool) -> None:
        with self._lock:
            self._counts["calls"] += 1
            self._counts[response.kind] += 1
            if not isinstance(response, Found):
                detail = response.reason if isinstance(response, NotFound) else (
                    response.detail if isinstance(response, Error) else ""
                )
                self._events.append({"kind": response.kind, "detail": detail})
        if isinstance(response, Error):
            _logger.warning("routing provider error: %s", response.detail)
        elif isinstance(response, RateLimited):
            _logger.warning("routing provider rate limited (retry_after=%s)", response.retry_after_s)
        if self._trace is not None:
            self._trace.tool_call("route", result=response.kind, alternatives=alternatives)

    def diagnostics(self) -> dict[str, Any]:
        with self._lock:
            return {
                **describe_active_tools(self._mode),
                "counts": dict(self._counts),
                "recent_failures": list(self._events),
            }


def build_routing_provider(mode: Optional[str] = None, *, trace: Optional[StructuredLogger] = None) -> ToolRoutingProvider:
    return ToolRoutingProvider(mode=mode, trace=trace)


__all__ = ["RoutingProvider", "ToolRoutingProvider", "build_routing_provider"]
