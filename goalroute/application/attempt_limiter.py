"""Manual reselection gate: a few attempts, then locked until reset."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Optional

from goalroute.domain.constants import CLICK_DEBOUNCE_MS, DEFAULT_MAX_MANUAL_ATTEMPTS
from goalroute.domain.enums import ResetMode
from goalroute.domain.models import AttemptLimiterState, Coordinates, SearchOutcome

_logger = logging.getLogger("goalroute.limiter")

Resolve = Callable[[Coordinates], SearchOutcome]


class AttemptLimiter:
    """Counts manual clicks that produced a usable route.

    Only outcomes with a route (accepted or best effort) consume an attempt.
    Clicks arriving while locked, or within the debounce window of the
    previous gated click, are ignored without calling ``resolve``.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_MANUAL_ATTEMPTS,
        *,
        reset_mode: ResetMode = ResetMode.LOCK_AND_START_DEFAULT,
        debounce_ms: int = CLICK_DEBOUNCE_MS,
        clock: Callable[[], float] = time.monotonic,
        on_lock: Optional[Callable[[], None]] = None,
        on_reset_start_default: Optional[Callable[[], None]] = None,
        state: Optional[AttemptLimiterState] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._reset_mode = reset_mode
        self._debounce_s = debounce_ms / 1000.0
        self._clock = clock
        self._on_lock = on_lock
        self._on_reset_start_default = on_reset_start_default
        self._state = state.model_copy() if state is not None else AttemptLimiterState(max_attempts=max_attempts)

    @property
    def state(self) -> AttemptLimiterState:
        return self._state.model_copy()

    @property
    def attempt_count(self) -> int:
        return self._state.attempt_count

    @property
    def is_locked(self) -> bool:
        return self._state.locked

    @property
    def remaining_attempts(self) -> int:
        return max(0, self._state.max_attempts - self._state.attempt_count)

    @property
    def can_click(self) -> bool:
        return not self._state.locked

    def _debounced(self, now: float) -> bool:
        last = self._state.last_click_at
        return last is not None and (now - last) < self._debounce_s

    def valid_click(self, point: Coordinates, resolve: Resolve) -> Optional[SearchOutcome]:
        if self._state.locked:
            return None
        now = self._clock()
        if self._debounced(now):
            return None
        self._state.last_click_at = now

        outcome = resolve(point)
        if not outcome.has_route:
            return outcome

        self._state.attempt_count += 1
        if self._state.attempt_count >= self._state.max_attempts:
            self._state.attempt_count = self._state.max_attempts
            self._state.locked = True
            _logger.info("manual attempts exhausted (%d), limiter locked", self._state.max_attempts)
            if self._on_lock is not None:
                self._on_lock()
        return outcome

    def reset(self) -> None:
        if self._on_reset_start_default is not None:
            self._on_reset_start_default()
        if self._reset_mode == ResetMode.FULL_REARM:
            self._state.attempt_count = 0
            self._state.locked = False
        else:
            self._state.attempt_count = self._state.max_attempts
            self._state.locked = True
        self._state.has_reset = True
        self._state.last_click_at = None


__all__ = ["AttemptLimiter", "Resolve"]
