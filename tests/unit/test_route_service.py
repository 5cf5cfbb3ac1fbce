"""Route matching service: default search, manual picks and sessions."""

from __future__ import annotations

import io
import threading

import pytest

from goalroute.adapters.route import mock as mock_route
from goalroute.application.route_service import SESSION_LOCK_STRIPES, RouteMatchingService
from goalroute.application.session import session_signature
from goalroute.config.settings import EngineSettings
from goalroute.domain.enums import ResetMode, SearchStatus, SearchStrategy, TripType
from goalroute.domain.exceptions import InvalidGoal, ManualAttemptsLocked, SessionNotFound
from goalroute.domain.models import Coordinates, PlanningGoal
from goalroute.infrastructure.logging import StructuredLogger
from goalroute.infrastructure.session_store import SessionStore
from goalroute.planner.geo import project
from goalroute.planner.routing_provider import ToolRoutingProvider
from goalroute.shared.exceptions import ProviderUnavailable
from goalroute.tools.interfaces import NotFound

ORIGIN = Coordinates(lat=41.3874, lng=2.1686)
ONE_WAY = PlanningGoal(step_count=10_000, height_m=1.70, weight_kg=70.0)  # 7.055 km
ROUND_TRIP = PlanningGoal(step_count=6000, height_m=1.75, weight_kg=70.0, trip_type=TripType.ROUND_TRIP)

ACCEPTED_POINT = project(ORIGIN, 7.055 / 1.4, 45)
BEST_EFFORT_POINT = project(ORIGIN, 7.5 / 1.4 / 0.9989, 120)
FAR_POINT = project(ORIGIN, 1.0, 0)


class FakeClock:
    def __init__(self):
        self.now = 5000.0

    def __call__(self):
        return self.now


class CountingTool:
    def __init__(self):
        self.calls = 0

    def estimate_route(self, params):
        self.calls += 1
        return mock_route.estimate_route(params)


def _service(tool=None, clock=None, **settings):
    base = {"route_provider": "mock", "search_strategy": SearchStrategy.FIXED_BEARING}
    base.update(settings)
    return RouteMatchingService(
        EngineSettings(**base),
        provider=ToolRoutingProvider(tool or CountingTool()),
        store=SessionStore(ttl=300),
        trace=StructuredLogger(trace_id="svc", output=io.StringIO()),
        clock=clock or FakeClock(),
    )


def test_plan_goal_rejects_invalid_goal():
    with pytest.raises(InvalidGoal):
        _service().plan_goal(ONE_WAY.model_copy(update={"weight_kg": 0}))


def test_default_one_way_search_is_accepted_with_mock_router():
    outcome = _service().search_default_route(ONE_WAY, ORIGIN)

    assert outcome.status == SearchStatus.ACCEPTED
    assert outcome.attempts_used == 1
    assert 6.70225 <= outcome.evaluation.total_distance_km <= 7.40775
    assert outcome.summary.steps == pytest.approx(10_000, rel=0.05)


def test_default_round_trip_avoids_retracing_outbound():
    outcome = _service(search_strategy=SearchStrategy.HYBRID).search_default_route(ROUND_TRIP, ORIGIN, seed=3)

    evaluation = outcome.evaluation
    assert outcome.status == SearchStatus.ACCEPTED
    assert evaluation.return_leg is not None
    assert evaluation.return_overlap < 0.4
    assert evaluation.return_leg.distance_km > evaluation.outbound_leg.distance_km


def test_real_provider_without_token_fails_before_any_attempt():
    service = RouteMatchingService(
        EngineSettings(route_provider="real"),
        store=SessionStore(),
        trace=StructuredLogger(output=io.StringIO()),
    )
    with pytest.raises(ProviderUnavailable):
        service.search_default_route(ONE_WAY, ORIGIN)
    assert service.provider.diagnostics()["counts"]["calls"] == 0


class BlockingFirstCall(CountingTool):
    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def estimate_route(self, params):
        if self.calls == 0:
            self.calls += 1
            self.entered.set()
            self.release.wait(timeout=5)
            return mock_route.estimate_route(params)
        return super().estimate_route(params)


def test_new_default_search_cancels_the_previous_one():
    tool = BlockingFirstCall()
    service = _service(tool)
    results = {}
    first = threading.Thread(target=lambda: results.setdefault("first", service.search_default_route(ONE_WAY, ORIGIN)))
    first.start()
    assert tool.entered.wait(timeout=5)

    results["second"] = service.search_default_route(ONE_WAY, ORIGIN)
    tool.release.set()
    first.join(timeout=5)

    assert results["second"].status == SearchStatus.ACCEPTED
    assert results["first"].status == SearchStatus.EXHAUSTED
    assert results["first"].reason == "cancelled"


def test_default_searches_from_different_users_run_side_by_side():
    tool = BlockingFirstCall()
    service = _service(tool)
    madrid = Coordinates(lat=40.4168, lng=-3.7038)
    results = {}
    first = threading.Thread(target=lambda: results.setdefault("a", service.open_session(ONE_WAY, ORIGIN)))
    first.start()
    assert tool.entered.wait(timeout=5)

    results["b"] = service.open_session(ONE_WAY, madrid)
    tool.release.set()
    first.join(timeout=5)

    assert results["b"].default_outcome.status == SearchStatus.ACCEPTED
    assert results["a"].default_outcome.status == SearchStatus.ACCEPTED
    calls = tool.calls
    reopened = service.open_session(ONE_WAY, ORIGIN)
    assert reopened.default_outcome.status == SearchStatus.ACCEPTED
    assert tool.calls == calls


def test_superseded_default_search_is_not_stored():
    tool = BlockingFirstCall()
    service = _service(tool)
    other_goal = ONE_WAY.model_copy(update={"step_count": 9000})
    results = {}
    first = threading.Thread(
        target=lambda: results.setdefault("a", service.open_session(ONE_WAY, ORIGIN, caller="phone-1"))
    )
    first.start()
    assert tool.entered.wait(timeout=5)

    service.open_session(other_goal, ORIGIN, caller="phone-1")
    tool.release.set()
    first.join(timeout=5)

    assert results["a"].default_outcome.status == SearchStatus.EXHAUSTED
    assert results["a"].default_outcome.reason == "cancelled"
    assert service.store.get(session_signature(ONE_WAY, ORIGIN)) is None

    calls = tool.calls
    reopened = service.open_session(ONE_WAY, ORIGIN, caller="phone-1")
    assert tool.calls > calls
    assert reopened.default_outcome.status == SearchStatus.ACCEPTED


def test_session_locks_stay_fixed_as_sessions_accumulate():
    service = _service()
    for i in range(100):
        service.open_session(ONE_WAY, Coordinates(lat=ORIGIN.lat + i * 0.01, lng=ORIGIN.lng))

    assert len(service._session_locks) == SESSION_LOCK_STRIPES
    assert service.store.active_count == 100


def test_session_ttl_setting_reaches_shared_store():
    service = RouteMatchingService(
        EngineSettings(route_provider="mock", session_ttl_s=42),
        provider=ToolRoutingProvider(CountingTool()),
        trace=StructuredLogger(trace_id="svc", output=io.StringIO()),
    )

    assert service.store.ttl == 42.0


def test_manual_route_statuses():
    service = _service()

    assert service.attempt_manual_route(ONE_WAY, ORIGIN, ACCEPTED_POINT).status == SearchStatus.ACCEPTED
    assert service.attempt_manual_route(ONE_WAY, ORIGIN, BEST_EFFORT_POINT).status == SearchStatus.BEST_EFFORT
    far = service.attempt_manual_route(ONE_WAY, ORIGIN, FAR_POINT)
    assert far.status == SearchStatus.EXHAUSTED
    assert far.evaluation is None
    assert far.attempts_used == 1


def test_manual_route_without_path_is_exhausted():
    class NoRoute:
        @staticmethod
        def estimate_route(_params):
            return NotFound(reason="island")

    outcome = _service(NoRoute).attempt_manual_route(ONE_WAY, ORIGIN, ACCEPTED_POINT)
    assert outcome.status == SearchStatus.EXHAUSTED
    assert outcome.attempts_used == 1


def test_open_session_is_reused_for_nearby_origin():
    tool = CountingTool()
    service = _service(tool)

    session = service.open_session(ONE_WAY, ORIGIN)
    calls_after_first = tool.calls
    again = service.open_session(ONE_WAY, Coordinates(lat=ORIGIN.lat + 0.00002, lng=ORIGIN.lng))

    assert again.signature == session.signature
    assert tool.calls == calls_after_first
    assert session.default_outcome.status == SearchStatus.ACCEPTED
    assert session.limiter.max_attempts == 3


def test_session_limiter_locks_after_three_valid_clicks_and_reset_keeps_lock():
    clock = FakeClock()
    service = _service(clock=clock)
    signature = service.open_session(ONE_WAY, ORIGIN).signature

    for _ in range(3):
        outcome = service.click(signature, ACCEPTED_POINT)
        assert outcome.status == SearchStatus.ACCEPTED
        clock.now += 1.0

    status = service.limiter_status(signature)
    assert status.attempt_count == 3
    assert status.locked
    with pytest.raises(ManualAttemptsLocked):
        service.click(signature, ACCEPTED_POINT)

    session = service.reset(signature)
    assert session.limiter.locked
    assert session.limiter.attempt_count == 3
    assert session.limiter.has_reset
    assert session.displayed_outcome == session.default_outcome


def test_click_debounce_and_failed_clicks_do_not_count():
    clock = FakeClock()
    service = _service(clock=clock)
    signature = service.open_session(ONE_WAY, ORIGIN).signature

    assert service.click(signature, FAR_POINT).status == SearchStatus.EXHAUSTED
    clock.now += 0.2
    assert service.click(signature, ACCEPTED_POINT) is None
    clock.now += 1.0
    manual = service.click(signature, ACCEPTED_POINT)

    status = service.limiter_status(signature)
    assert status.attempt_count == 1
    session = service.reset(signature)
    assert session.current_outcome is None
    assert manual.evaluation.candidate.destination == ACCEPTED_POINT


def test_full_rearm_reset_allows_more_clicks():
    clock = FakeClock()
    service = _service(clock=clock, reset_mode=ResetMode.FULL_REARM, max_manual_attempts=1)
    signature = service.open_session(ONE_WAY, ORIGIN).signature

    service.click(signature, ACCEPTED_POINT)
    assert service.limiter_status(signature).locked

    service.reset(signature)
    clock.now += 1.0
    assert service.click(signature, ACCEPTED_POINT).status == SearchStatus.ACCEPTED


def test_unknown_session():
    service = _service()
    with pytest.raises(SessionNotFound):
        service.click("0" * 32, ACCEPTED_POINT)
    with pytest.raises(SessionNotFound):
        service.limiter_status("missing")
