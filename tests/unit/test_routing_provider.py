"""Routing provider wiring, failure diagnostics and tool selection."""

from __future__ import annotations

import pytest

import goalroute.adapters.tool_factory as tool_factory
from goalroute.adapters.route import mock as mock_route
from goalroute.adapters.route import real as real_route
from goalroute.domain.models import Coordinates
from goalroute.planner.routing_provider import ToolRoutingProvider, build_routing_provider
from goalroute.security.key_manager import get_key_manager
from goalroute.shared.exceptions import ProviderUnavailable, ToolError
from goalroute.tools.interfaces import Error, Found, NotFound, RateLimited

A = Coordinates(lat=35.6762, lng=139.6503)
B = Coordinates(lat=35.6812, lng=139.7671)


def _set_token(monkeypatch, value="pk.eyJ-unit-test-token"):
    monkeypatch.setenv("MAPBOX_ACCESS_TOKEN", value)
    get_key_manager().reload("MAPBOX_ACCESS_TOKEN")


def test_mock_is_default_without_token():
    assert tool_factory.get_route_tool() is mock_route
    assert tool_factory.get_route_tool("auto") is mock_route


def test_real_selected_when_token_present(monkeypatch):
    _set_token(monkeypatch)
    assert tool_factory.get_route_tool() is real_route
    assert tool_factory.get_route_tool("mock") is mock_route


def test_real_mode_without_token_is_unavailable():
    with pytest.raises(ProviderUnavailable):
        tool_factory.get_route_tool("real")

    provider = build_routing_provider("real")
    with pytest.raises(ProviderUnavailable):
        provider.ensure_ready()


def test_describe_active_tools(monkeypatch):
    assert tool_factory.describe_active_tools()["route_source"] == "mock"
    assert tool_factory.describe_active_tools("real")["ready"] is False

    _set_token(monkeypatch)
    info = tool_factory.describe_active_tools()
    assert info["route_provider"] == "real"
    assert info["route_source"] == "mapbox"
    assert info["ready"] is True


def test_provider_passes_coordinates_and_records_success():
    seen = []

    class _Tool:
        @staticmethod
        def estimate_route(params):
            seen.append(params)
            return mock_route.estimate_route(params)

    provider = ToolRoutingProvider(_Tool)
    result = provider.get_route(A, B, alternatives=True)

    assert isinstance(result, Found)
    assert seen[0].origin_lat == A.lat and seen[0].dest_lng == B.lng
    assert seen[0].alternatives is True
    assert provider.diagnostics()["counts"]["found"] == 1


def test_tool_exceptions_become_error_responses():
    class _Broken:
        @staticmethod
        def estimate_route(_params):
            raise RuntimeError("backend down")

    class _Failing:
        @staticmethod
        def estimate_route(_params):
            raise ToolError("mapbox_route", "network error: access_token=sk.secret")

    assert isinstance(ToolRoutingProvider(_Broken).get_route(A, B), Error)
    result = ToolRoutingProvider(_Failing).get_route(A, B)
    assert isinstance(result, Error)
    assert "sk.secret" not in result.detail


def test_diagnostics_keep_recent_failures():
    responses = iter([NotFound(reason="ferry only"), RateLimited(retry_after_s=1.0), Error(detail="503")])

    class _Tool:
        @staticmethod
        def estimate_route(_params):
            return next(responses)

    provider = ToolRoutingProvider(_Tool)
    for _ in range(3):
        provider.get_route(A, B)

    diagnostics = provider.diagnostics()
    assert diagnostics["counts"] == {"calls": 3, "found": 0, "not_found": 1, "rate_limited": 1, "error": 1}
    assert [e["kind"] for e in diagnostics["recent_failures"]] == ["not_found", "rate_limited", "error"]
    assert diagnostics["recent_failures"][0]["detail"] == "ferry only"
