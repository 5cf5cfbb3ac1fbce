"""Concrete routing tool selection and wiring."""

from __future__ import annotations

import logging
from typing import Any

from goalroute.adapters.route import mock as mock_route
from goalroute.config.settings import resolve_route_provider_default
from goalroute.security.key_manager import MAPBOX_TOKEN_ENV, get_key_manager
from goalroute.shared.exceptions import ProviderUnavailable

_logger = logging.getLogger("goalroute.tools")


def _has_mapbox_token() -> bool:
    return get_key_manager().has_key(MAPBOX_TOKEN_ENV)


def get_route_tool(mode: str | None = None):
    """Return the routing adapter module for ``mode`` (real | mock | auto).

    ``real`` without a token raises ProviderUnavailable instead of silently
    falling back, so the caller sees the configuration error before any
    attempt is spent.
    """
    mode = (mode or resolve_route_provider_default()).strip().lower()
    if mode == "mock":
        return mock_route
    if _has_mapbox_token():
        from goalroute.adapters.route import real as real_route

        return real_route
    if mode == "real":
        raise ProviderUnavailable(f"ROUTING_PROVIDER=real requires {MAPBOX_TOKEN_ENV}")
    _logger.info("No Mapbox token configured, using offline mock router")
    return mock_route


def describe_active_tools(mode: str | None = None) -> dict[str, Any]:
    resolved = (mode or resolve_route_provider_default()).strip().lower()
    has_token = _has_mapbox_token()
    if resolved == "mock" or not has_token:
        source = "mock"
    else:
        source = "mapbox"
    return {
        "route_provider": resolved,
        "route_source": source,
        "mapbox_token_configured": has_token,
        "ready": resolved != "real" or has_token,
    }


__all__ = ["get_route_tool", "describe_active_tools"]
