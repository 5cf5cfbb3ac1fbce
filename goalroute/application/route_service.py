"""Single entrypoint for goal planning, default route search and manual reselection."""

from __future__ import annotations

import logging
import threading
import time
import zlib
from collections.abc import Callable
from typing import Any, Optional

from goalroute.application.attempt_limiter import AttemptLimiter
from goalroute.application.session import SearchSession, session_signature
from goalroute.config.settings import EngineSettings, load_engine_settings
from goalroute.domain.constants import attempt_budget
from goalroute.domain.enums import SearchStatus
from goalroute.domain.exceptions import CandidateRejected, ManualAttemptsLocked, SessionNotFound
from goalroute.domain.models import AttemptLimiterState, Coordinates, GoalPlan, PlanningGoal, SearchOutcome
from goalroute.infrastructure.logging import StructuredLogger, get_logger
from goalroute.infrastructure.session_store import get_session_store
from goalroute.planner import goal_translator
from goalroute.planner.candidates import build_candidate_stream, manual_candidate
from goalroute.planner.effort import summarize_route
from goalroute.planner.evaluator import RouteEvaluator
from goalroute.planner.routing_provider import ToolRoutingProvider, build_routing_provider
from goalroute.planner.search import CancellationToken, search

_logger = logging.getLogger("goalroute.service")

# Sessions hash onto a fixed pool of locks, so the pool never grows with traffic.
SESSION_LOCK_STRIPES = 64


class RouteMatchingService:
    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        provider: Optional[ToolRoutingProvider] = None,
        store=None,
        trace: Optional[StructuredLogger] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or load_engine_settings()
        self.provider = provider or build_routing_provider(self.settings.route_provider)
        self._store = store
        self._trace = trace
        self._clock = clock
        self._search_lock = threading.Lock()
        self._active_tokens: dict[str, CancellationToken] = {}
        self._session_locks = [threading.Lock() for _ in range(SESSION_LOCK_STRIPES)]

    @property
    def store(self):
        return self._store if self._store is not None else get_session_store(self.settings.session_ttl_s)

    @property
    def trace(self) -> StructuredLogger:
        return self._trace or get_logger()

    def plan_goal(self, goal: PlanningGoal) -> GoalPlan:
        return goal_translator.plan_goal(goal)

    def _supersede(self, key: str) -> CancellationToken:
        token = CancellationToken()
        with self._search_lock:
            previous = self._active_tokens.get(key)
            if previous is not None:
                previous.cancel()
            self._active_tokens[key] = token
        return token

    def _release(self, key: str, token: CancellationToken) -> None:
        with self._search_lock:
            if self._active_tokens.get(key) is token:
                del self._active_tokens[key]

    def search_default_route(
        self,
        goal: PlanningGoal,
        origin: Coordinates,
        *,
        seed: Optional[int] = None,
        caller: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SearchOutcome:
        """Run the automatic search.

        A newer search from the same ``caller`` (or, without one, for the same
        goal and origin) cancels the one still in flight. Searches under other
        keys are never touched.
        """
        plan = self.plan_goal(goal)
        self.provider.ensure_ready()
        key = caller or session_signature(goal, origin)
        token = cancel_token or self._supersede(key)
        strategy = self.settings.search_strategy
        try:
            return search(
                plan,
                build_candidate_stream(plan, origin, strategy, seed=seed),
                RouteEvaluator(self.provider, plan),
                budget=attempt_budget(strategy, goal.trip_type),
                max_workers=self.settings.max_workers,
                deadline_s=self.settings.search_deadline_s,
                cancel_token=token,
                logger=self.trace,
                name=f"default_route:{strategy.value}",
            )
        finally:
            if cancel_token is None:
                self._release(key, token)

    def attempt_manual_route(
        self, goal: PlanningGoal, origin: Coordinates, clicked_point: Coordinates
    ) -> SearchOutcome:
        plan = self.plan_goal(goal)
        self.provider.ensure_ready()
        evaluator = RouteEvaluator(self.provider, plan)
        try:
            evaluation = evaluator.evaluate(manual_candidate(origin, clicked_point))
        except CandidateRejected as exc:
            return SearchOutcome(status=SearchStatus.EXHAUSTED, attempts_used=1, reason=str(exc))

        if evaluation.within_strict:
            status = SearchStatus.ACCEPTED
        elif evaluation.within_relaxed:
            status = SearchStatus.BEST_EFFORT
        else:
            return SearchOutcome(
                status=SearchStatus.EXHAUSTED,
                attempts_used=1,
                reason=f"route of {evaluation.total_distance_km:.2f} km is outside tolerance",
            )
        return SearchOutcome(
            status=status,
            evaluation=evaluation,
            attempts_used=1,
            summary=summarize_route(evaluation.total_distance_km, goal),
        )

    # -- sessions -----------------------------------------------------------

    def _lock_for(self, signature: str) -> threading.Lock:
        return self._session_locks[zlib.crc32(signature.encode()) % SESSION_LOCK_STRIPES]

    def _load(self, signature: str) -> SearchSession:
        data = self.store.get(signature)
        if data is None:
            raise SessionNotFound(signature)
        return SearchSession.model_validate(data)

    def _save(self, session: SearchSession) -> None:
        self.store.save(session.signature, session.model_dump(mode="json"))

    def _limiter(self, session: SearchSession, **callbacks: Any) -> AttemptLimiter:
        return AttemptLimiter(
            session.limiter.max_attempts,
            reset_mode=self.settings.reset_mode,
            debounce_ms=self.settings.click_debounce_ms,
            clock=self._clock,
            state=session.limiter,
            **callbacks,
        )

    def open_session(
        self,
        goal: PlanningGoal,
        origin: Coordinates,
        *,
        seed: Optional[int] = None,
        caller: Optional[str] = None,
    ) -> SearchSession:
        """Return the live session for this goal and origin, searching only when none exists.

        A search cancelled by a newer one from the same caller is returned but
        not stored, so the next open searches again.
        """
        signature = session_signature(goal, origin)
        existing = self.store.get(signature)
        if existing is not None:
            return SearchSession.model_validate(existing)

        # The search runs outside the session lock so a newer search can supersede it.
        outcome = self.search_default_route(goal, origin, seed=seed, caller=caller)
        session = SearchSession(
            signature=signature,
            goal=goal,
            origin=origin,
            plan=self.plan_goal(goal),
            default_outcome=outcome,
            limiter=AttemptLimiterState(max_attempts=self.settings.max_manual_attempts),
        )
        if outcome.reason == "cancelled":
            _logger.info("default search for session %s superseded, not stored", signature[:8])
            return session
        with self._lock_for(signature):
            existing = self.store.get(signature)
            if existing is not None:
                return SearchSession.model_validate(existing)
            self._save(session)
            return session

    def click(self, signature: str, point: Coordinates) -> Optional[SearchOutcome]:
        """Gate a manual destination pick; None means the click was debounced."""
        with self._lock_for(signature):
            session = self._load(signature)
            limiter = self._limiter(session)
            if limiter.is_locked:
                raise ManualAttemptsLocked(
                    f"no manual attempts left ({limiter.attempt_count}/{session.limiter.max_attempts})"
                )
            outcome = limiter.valid_click(
                point, lambda p: self.attempt_manual_route(session.goal, session.origin, p)
            )
            session.limiter = limiter.state
            if outcome is not None and outcome.has_route:
                session.current_outcome = outcome
            self._save(session)
            return outcome

    def reset(self, signature: str) -> SearchSession:
        with self._lock_for(signature):
            session = self._load(signature)

            def show_default() -> None:
                session.current_outcome = None

            limiter = self._limiter(session, on_reset_start_default=show_default)
            limiter.reset()
            session.limiter = limiter.state
            self._save(session)
            _logger.info("session %s reset (locked=%s)", signature[:8], session.limiter.locked)
            return session

    def limiter_status(self, signature: str) -> AttemptLimiterState:
        return self._load(signature).limiter

    def diagnostics(self) -> dict[str, Any]:
        return {
            "provider": self.provider.diagnostics(),
            "search_strategy": self.settings.search_strategy.value,
            "max_workers": self.settings.max_workers,
            "leg_timeout_s": self.settings.leg_timeout_s,
            "session_backend": getattr(self.store, "backend", "memory"),
        }


_service: Optional[RouteMatchingService] = None
_service_lock = threading.Lock()


def get_route_service() -> RouteMatchingService:
    global _service
    with _service_lock:
        if _service is None:
            _service = RouteMatchingService()
        return _service


def reset_route_service() -> None:
    global _service
    with _service_lock:
        _service = None


def plan_goal(goal: PlanningGoal) -> GoalPlan:
    return get_route_service().plan_goal(goal)


def search_default_route(goal: PlanningGoal, origin: Coordinates) -> SearchOutcome:
    return get_route_service().search_default_route(goal, origin)


def attempt_manual_route(goal: PlanningGoal, origin: Coordinates, clicked_point: Coordinates) -> SearchOutcome:
    return get_route_service().attempt_manual_route(goal, origin, clicked_point)


__all__ = [
    "RouteMatchingService",
    "attempt_manual_route",
    "get_route_service",
    "plan_goal",
    "reset_route_service",
    "search_default_route",
]
