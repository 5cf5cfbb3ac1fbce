"""Mapbox Directions adapter (walking profile).

Environment: MAPBOX_ACCESS_TOKEN
Docs: https://docs.mapbox.com/api/navigation/directions/
"""

from __future__ import annotations

import logging
from typing import Any

from goalroute.domain.models import RouteLeg
from goalroute.infrastructure.cache import make_cache_key, route_cache
from goalroute.infrastructure.config import get_env_float
from goalroute.security.http_client import SecureHttpClient
from goalroute.security.key_manager import get_key_manager
from goalroute.shared.exceptions import ToolError, UpstreamHTTPError
from goalroute.tools.interfaces import Error, Found, NotFound, RateLimited, RouteInput, RouteResponse

_DIRECTIONS_URL = "https://api.mapbox.com/directions/v5/mapbox/{profile}/{coordinates}"
_PROFILES = {"walking": "walking"}
_NOT_FOUND_CODES = {"NoRoute", "NoSegment"}
_NOT_FOUND_STATUSES = {404, 422}
_UNAUTHORIZED_STATUSES = {401, 403}

_logger = logging.getLogger("goalroute.adapters.mapbox")

_http = SecureHttpClient(
    tool_name="mapbox_route",
    max_retries=1,
    timeout=get_env_float("ROUTE_LEG_TIMEOUT_SECONDS", 8.0),
)


def _get_token() -> str:
    token = get_key_manager().get_mapbox_token(required=False)
    if not token:
        raise ToolError("mapbox_route", "MAPBOX_ACCESS_TOKEN is not set")
    return token


def _parse_route(raw: Any) -> RouteLeg | None:
    if not isinstance(raw, dict):
        return None
    try:
        distance_m = float(raw["distance"])
        duration_s = float(raw.get("duration") or 0.0)
    except (KeyError, TypeError, ValueError):
        return None
    geometry_obj = raw.get("geometry")
    coords = (geometry_obj.get("coordinates") or []) if isinstance(geometry_obj, dict) else []
    geometry = []
    for point in coords:
        if isinstance(point, (list, tuple)) and len(point) >= 2:
            geometry.append((float(point[0]), float(point[1])))
    if distance_m < 0:
        return None
    return RouteLeg(distance_km=distance_m / 1000, duration_sec=duration_s, geometry=geometry)


def parse_directions(data: Any) -> RouteResponse:
    """Map a Directions JSON body onto the strict response variant."""
    if not isinstance(data, dict):
        return Error(detail="directions body is not an object")
    code = data.get("code")
    if code in _NOT_FOUND_CODES:
        return NotFound(reason=str(data.get("message") or code))
    if code != "Ok":
        return Error(detail=f"directions code={code}: {data.get('message', '')}")
    routes = [leg for leg in (_parse_route(r) for r in data.get("routes") or []) if leg is not None]
    if not routes:
        return NotFound(reason="no usable route in response")
    return Found(routes=routes)


def estimate_route(params: RouteInput) -> RouteResponse:
    """Ask Mapbox for a walking route; Found answers are cached for 30 minutes."""
    profile = _PROFILES.get(params.mode)
    if profile is None:
        return NotFound(reason=f"unsupported mode: {params.mode}")

    cache_key = make_cache_key(
        "route",
        round(params.origin_lat, 5), round(params.origin_lng, 5),
        round(params.dest_lat, 5), round(params.dest_lng, 5),
        params.mode, params.alternatives,
    )
    cached = route_cache.get(cache_key)
    if cached is not None:
        return cached

    coordinates = f"{params.origin_lng},{params.origin_lat};{params.dest_lng},{params.dest_lat}"
    request_params = {
        "geometries": "geojson",
        "overview": "full",
        "alternatives": "true" if params.alternatives else "false",
        "access_token": _get_token(),
    }
    try:
        data = _http.get(
            _DIRECTIONS_URL.format(profile=profile, coordinates=coordinates),
            params=request_params,
        )
    except UpstreamHTTPError as exc:
        if exc.status_code == 429:
            return RateLimited()
        if exc.status_code in _NOT_FOUND_STATUSES:
            return NotFound(reason=str(exc))
        if exc.status_code in _UNAUTHORIZED_STATUSES:
            return Error(detail="mapbox rejected the access token")
        return Error(detail=str(exc))
    except ToolError as exc:
        _logger.warning("mapbox directions request failed: %s", exc)
        return Error(detail=str(exc))

    result = parse_directions(data)
    if isinstance(result, Found):
        route_cache.set(cache_key, result)
    return result
