"""Runtime engine settings resolved from the environment."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

from goalroute.domain.constants import (
    CLICK_DEBOUNCE_MS,
    DEFAULT_MAX_MANUAL_ATTEMPTS,
    MAX_PARALLEL_ATTEMPTS,
    SESSION_TTL_SECONDS,
)
from goalroute.domain.enums import ResetMode, SearchStrategy
from goalroute.infrastructure.config import get_env_float, get_env_int
from goalroute.security.key_manager import MAPBOX_TOKEN_ENV


def _is_configured(value: str | None) -> bool:
    return bool(value and value.strip())


def resolve_route_provider_default() -> str:
    mode = str(os.getenv("ROUTING_PROVIDER") or "").strip().lower()
    if mode in {"real", "mock", "auto"}:
        return mode
    if _is_configured(os.getenv(MAPBOX_TOKEN_ENV)):
        return "real"
    return "mock"


def _resolve_enum(enum_cls, env_name: str, default):
    raw = str(os.getenv(env_name) or "").strip().lower()
    try:
        return enum_cls(raw) if raw else default
    except ValueError:
        return default


class EngineSettings(BaseModel):
    route_provider: str = Field(default="mock")
    search_strategy: SearchStrategy = Field(default=SearchStrategy.HYBRID)
    max_workers: int = Field(default=1, ge=1, le=MAX_PARALLEL_ATTEMPTS)
    search_deadline_s: float = Field(default=45.0, gt=0)
    leg_timeout_s: float = Field(default=8.0, gt=0)
    max_manual_attempts: int = Field(default=DEFAULT_MAX_MANUAL_ATTEMPTS, ge=1)
    reset_mode: ResetMode = Field(default=ResetMode.LOCK_AND_START_DEFAULT)
    click_debounce_ms: int = Field(default=CLICK_DEBOUNCE_MS, ge=0)
    session_ttl_s: float = Field(default=SESSION_TTL_SECONDS, gt=0)


def load_engine_settings() -> EngineSettings:
    max_workers = get_env_int("SEARCH_MAX_WORKERS", 1)
    return EngineSettings(
        route_provider=resolve_route_provider_default(),
        search_strategy=_resolve_enum(SearchStrategy, "SEARCH_STRATEGY", SearchStrategy.HYBRID),
        max_workers=max(1, min(MAX_PARALLEL_ATTEMPTS, max_workers)),
        search_deadline_s=get_env_float("SEARCH_DEADLINE_SECONDS", 45.0),
        leg_timeout_s=get_env_float("ROUTE_LEG_TIMEOUT_SECONDS", 8.0),
        max_manual_attempts=max(1, get_env_int("MANUAL_MAX_ATTEMPTS", DEFAULT_MAX_MANUAL_ATTEMPTS)),
        reset_mode=_resolve_enum(ResetMode, "LIMITER_RESET_MODE", ResetMode.LOCK_AND_START_DEFAULT),
        click_debounce_ms=max(0, get_env_int("CLICK_DEBOUNCE_MS", CLICK_DEBOUNCE_MS)),
        session_ttl_s=get_env_float("SESSION_TTL_SECONDS", SESSION_TTL_SECONDS),
    )


__all__ = ["EngineSettings", "load_engine_settings", "resolve_route_provider_default"]
