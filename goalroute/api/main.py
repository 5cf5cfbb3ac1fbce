"""FastAPI application for goal-based route matching."""

from __future__ import annotations

import logging
import os
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from goalroute import __version__
from goalroute.api.schemas import (
    ErrorResponse,
    GoalRequest,
    HealthResponse,
    ManualRouteRequest,
    ResetRequest,
    SessionResponse,
)
from goalroute.application.route_service import get_route_service
from goalroute.domain.exceptions import InvalidGoal, ManualAttemptsLocked, SessionNotFound
from goalroute.domain.models import GoalPlan
from goalroute.infrastructure.cache import route_cache
from goalroute.infrastructure.config import get_env_bool
from goalroute.security.key_manager import get_key_manager
from goalroute.shared.exceptions import ProviderUnavailable

_api_logger = logging.getLogger("goalroute.api")

load_dotenv()

app = FastAPI(
    title="goalroute",
    version=__version__,
    docs_url="/docs" if get_env_bool("ENABLE_DOCS") else None,
    redoc_url=None,
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-client POST throttle (single-process, in memory).

    Every default search can cost up to 30 Directions calls, so clients are
    capped before they reach the provider's own quota.
    """

    def __init__(self, app, max_requests: int = 60, window_seconds: int = 60):
        super().__init__(app)
        self._max = max_requests
        self._window = window_seconds
        self._counters: dict[str, list[float]] = {}

    async def dispatch(self, request: Request, call_next):
        if request.method != "POST":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        hits = [t for t in self._counters.get(client_ip, []) if now - t < self._window]
        if len(hits) >= self._max:
            return JSONResponse(status_code=429, content={"detail": "Too many requests, retry later"})
        hits.append(now)
        self._counters[client_ip] = hits
        return await call_next(request)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    RateLimitMiddleware,
    max_requests=int(os.getenv("RATE_LIMIT_MAX", "60")),
    window_seconds=int(os.getenv("RATE_LIMIT_WINDOW", "60")),
)

_cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _error(status_code: int, exc: Exception) -> JSONResponse:
    detail = get_key_manager().scrub_text(str(exc))
    body = ErrorResponse(detail=detail, error=type(exc).__name__)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(InvalidGoal)
async def _invalid_goal(request: Request, exc: InvalidGoal):
    return _error(422, exc)


@app.exception_handler(ProviderUnavailable)
async def _provider_unavailable(request: Request, exc: ProviderUnavailable):
    _api_logger.warning("routing provider unavailable: %s", get_key_manager().scrub_text(str(exc)))
    return _error(503, exc)


@app.exception_handler(ManualAttemptsLocked)
async def _attempts_locked(request: Request, exc: ManualAttemptsLocked):
    return _error(409, exc)


@app.exception_handler(SessionNotFound)
async def _session_not_found(request: Request, exc: SessionNotFound):
    return _error(404, exc)


@app.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")


@app.get("/diagnostics")
def diagnostics():
    """Provider state, cache hit rate and session count (guard this in production)."""
    service = get_route_service()
    return {
        **service.diagnostics(),
        "cache": {"route": route_cache.stats},
        "sessions": {"active": service.store.active_count},
    }


@app.post("/plan", response_model=GoalPlan)
def plan(req: GoalRequest):
    return get_route_service().plan_goal(req.goal)


@app.post("/routes/default", response_model=SessionResponse)
def default_route(req: GoalRequest):
    session = get_route_service().open_session(req.goal, req.origin, caller=req.client_id)
    return SessionResponse(signature=session.signature, outcome=session.displayed_outcome, limiter=session.limiter)


@app.post("/routes/manual", response_model=SessionResponse)
def manual_route(req: ManualRouteRequest):
    service = get_route_service()
    outcome = service.click(req.signature, req.point)
    return SessionResponse(
        signature=req.signature,
        outcome=outcome,
        limiter=service.limiter_status(req.signature),
        debounced=outcome is None,
    )


@app.post("/routes/reset", response_model=SessionResponse)
def reset_route(req: ResetRequest):
    session = get_route_service().reset(req.signature)
    return SessionResponse(signature=session.signature, outcome=session.displayed_outcome, limiter=session.limiter)


@app.get("/sessions/{signature}/limiter")
def limiter_status(signature: str):
    limiter = get_route_service().limiter_status(signature)
    return {
        **limiter.model_dump(mode="json"),
        "remaining_attempts": max(0, limiter.max_attempts - limiter.attempt_count),
        "can_click": not limiter.locked,
    }
