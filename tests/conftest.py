"""Global pytest fixtures: keep every test offline and isolated."""

import pytest

_ENV_VARS = (
    "MAPBOX_ACCESS_TOKEN",
    "ROUTING_PROVIDER",
    "SEARCH_STRATEGY",
    "SEARCH_MAX_WORKERS",
    "SEARCH_DEADLINE_SECONDS",
    "MANUAL_MAX_ATTEMPTS",
    "LIMITER_RESET_MODE",
    "CLICK_DEBOUNCE_MS",
    "SESSION_TTL_SECONDS",
    "REDIS_URL",
)


@pytest.fixture(autouse=True)
def no_real_apis(monkeypatch):
    """Disable Mapbox and Redis so tests never leave the process."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    from goalroute.application.route_service import reset_route_service
    from goalroute.infrastructure.cache import route_cache
    from goalroute.infrastructure.session_store import reset_session_store
    from goalroute.security.key_manager import get_key_manager

    get_key_manager().reload("MAPBOX_ACCESS_TOKEN")
    reset_session_store()
    reset_route_service()
    route_cache.clear()
    yield
    reset_route_service()
    reset_session_store()
