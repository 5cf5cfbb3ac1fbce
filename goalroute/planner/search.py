"""Tolerance search loop over a candidate stream."""

from __future__ import annotations

import concurrent.futures
import threading
import time
from collections import deque
from collections.abc import Callable, Iterable
from itertools import islice
from typing import Optional

from goalroute.domain.constants import MAX_PARALLEL_ATTEMPTS, RELAXED_TOLERANCE
from goalroute.domain.enums import SearchStatus
from goalroute.domain.exceptions import CandidateRejected
from goalroute.domain.models import Candidate, GoalPlan, RouteEvaluation, SearchOutcome
from goalroute.infrastructure.logging import StructuredLogger, get_logger
from goalroute.planner.effort import summarize_route
from goalroute.shared.exceptions import ProviderUnavailable

Evaluate = Callable[[Candidate], RouteEvaluation]

_POLL_INTERVAL_S = 0.05


class CancellationToken:
    """Set by a newer search to make an in-flight one stop and discard late results."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _BestSoFar:
    """Single-writer accumulator; only the thread running ``search`` touches it."""

    def __init__(self, plan: GoalPlan, trace: StructuredLogger, search_name: str):
        self.plan = plan
        self.trace = trace
        self.search_name = search_name
        self.best: Optional[RouteEvaluation] = None
        self.attempts = 0

    def rejected(self, candidate: Candidate, exc: CandidateRejected) -> None:
        self.attempts += 1
        self.trace.attempt(
            self.search_name, self.attempts,
            strategy=candidate.strategy.value, result=type(exc).__name__,
        )

    def evaluated(self, evaluation: RouteEvaluation) -> Optional[SearchOutcome]:
        self.attempts += 1
        self.trace.attempt(
            self.search_name, self.attempts,
            strategy=evaluation.candidate.strategy.value,
            distance_km=round(evaluation.total_distance_km, 4),
            within_strict=evaluation.within_strict,
        )
        if self.best is None or evaluation.abs_difference_km < self.best.abs_difference_km:
            self.best = evaluation
        if evaluation.within_strict:
            return self._outcome(SearchStatus.ACCEPTED, evaluation)
        return None

    def finish(self, reason: Optional[str] = None) -> SearchOutcome:
        if reason is not None:
            self.trace.warning(self.search_name, f"search stopped early: {reason}", attempts_used=self.attempts)
        if reason is None and self.best is not None:
            if self.best.abs_difference_km <= self.plan.target_distance_km * RELAXED_TOLERANCE:
                return self._outcome(SearchStatus.BEST_EFFORT, self.best)
        return SearchOutcome(
            status=SearchStatus.EXHAUSTED,
            attempts_used=self.attempts,
            reason=reason or "budget",
        )

    def _outcome(self, status: SearchStatus, evaluation: RouteEvaluation) -> SearchOutcome:
        return SearchOutcome(
            status=status,
            evaluation=evaluation,
            attempts_used=self.attempts,
            summary=summarize_route(evaluation.total_distance_km, self.plan.goal),
        )


def search(
    plan: GoalPlan,
    candidates: Iterable[Candidate],
    evaluate: Evaluate,
    *,
    budget: int,
    max_workers: int = 1,
    deadline_s: Optional[float] = None,
    cancel_token: Optional[CancellationToken] = None,
    logger: Optional[StructuredLogger] = None,
    clock: Callable[[], float] = time.monotonic,
    name: str = "default_route",
) -> SearchOutcome:
    """Evaluate up to ``budget`` candidates and stop at the first strict match.

    Candidates rejected by the provider (no route, throttled) still use an
    attempt. ProviderUnavailable propagates and aborts the search. Results are
    always consumed in candidate order by the calling thread, also when
    ``max_workers`` > 1 evaluates several candidates concurrently.
    """
    trace = logger or get_logger()
    tracker = _BestSoFar(plan, trace, name)
    deadline_at = clock() + deadline_s if deadline_s is not None else None
    workers = max(1, min(MAX_PARALLEL_ATTEMPTS, max_workers))
    trace.search_start(name, budget=budget, max_workers=workers, target_km=round(plan.target_distance_km, 4))

    def interrupted() -> Optional[str]:
        if cancel_token is not None and cancel_token.cancelled:
            return "cancelled"
        if deadline_at is not None and clock() >= deadline_at:
            return "deadline"
        return None

    selected = islice(candidates, max(0, budget))
    try:
        if workers == 1:
            outcome = _run_sequential(selected, evaluate, tracker, interrupted)
        else:
            outcome = _run_parallel(selected, evaluate, tracker, interrupted, workers, deadline_at, clock)
    except ProviderUnavailable as exc:
        trace.error(name, str(exc), attempts_used=tracker.attempts)
        raise
    trace.search_end(name, status=outcome.status.value, attempts_used=outcome.attempts_used, reason=outcome.reason)
    return outcome


def _run_sequential(selected, evaluate: Evaluate, tracker: _BestSoFar, interrupted) -> SearchOutcome:
    for candidate in selected:
        reason = interrupted()
        if reason:
            return tracker.finish(reason)
        try:
            evaluation = evaluate(candidate)
        except CandidateRejected as exc:
            tracker.rejected(candidate, exc)
            continue
        reason = interrupted()
        if reason:
            # Late result of a superseded or overdue search is discarded.
            return tracker.finish(reason)
        accepted = tracker.evaluated(evaluation)
        if accepted is not None:
            return accepted
    return tracker.finish()


def _run_parallel(
    selected,
    evaluate: Evaluate,
    tracker: _BestSoFar,
    interrupted,
    workers: int,
    deadline_at: Optional[float],
    clock: Callable[[], float],
) -> SearchOutcome:
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=workers, thread_name_prefix="goalroute-search")
    pending: deque[tuple[Candidate, concurrent.futures.Future]] = deque()
    source = iter(selected)

    def fill() -> None:
        while len(pending) < workers:
            candidate = next(source, None)
            if candidate is None:
                return
            pending.append((candidate, pool.submit(evaluate, candidate)))

    try:
        fill()
        while pending:
            candidate, future = pending.popleft()
            while not future.done():
                reason = interrupted()
                if reason:
                    future.cancel()
                    return tracker.finish(reason)
                wait_s = _POLL_INTERVAL_S
                if deadline_at is not None:
                    wait_s = max(0.0, min(wait_s, deadline_at - clock()))
                concurrent.futures.wait([future], timeout=wait_s)
            reason = interrupted()
            if reason:
                return tracker.finish(reason)
            try:
                evaluation = future.result()
            except CandidateRejected as exc:
                tracker.rejected(candidate, exc)
                fill()
                continue
            accepted = tracker.evaluated(evaluation)
            if accepted is not None:
                return accepted
            fill()
        return tracker.finish()
    finally:
        for _, future in pending:
            future.cancel()
        pool.shutdown(wait=False, cancel_futures=True)


__all__ = ["CancellationToken", "Evaluate", "search"]
