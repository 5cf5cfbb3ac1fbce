"""Structured search logging: one JSON object per line, secrets scrubbed."""

from __future__ import annotations

import json
import sys
import time
import uuid
from typing import Any, Optional

from goalroute.security.key_manager import get_key_manager


class StructuredLogger:
    def __init__(self, trace_id: Optional[str] = None, output=None):
        self.trace_id = trace_id or str(uuid.uuid4())[:8]
        self._output = output or sys.stderr
        self._timers: dict[str, float] = {}

    def _scrub(self, text: str) -> str:
        return get_key_manager().scrub_text(text)

    def _emit(self, data: dict[str, Any]) -> None:
        data["trace_id"] = self.trace_id
        data["timestamp"] = time.time()
        try:
            line = self._scrub(json.dumps(data, ensure_ascii=False, default=str))
            self._output.write(line + "\n")
            self._output.flush()
        except (OSError, ValueError, TypeError) as exc:
            fallback = {
                "event": "logger_internal_error",
                "trace_id": self.trace_id,
                "timestamp": time.time(),
                "error": str(exc),
            }
            sys.stderr.write(json.dumps(fallback, ensure_ascii=False, default=str) + "\n")

    def search_start(self, search: str, **extra: Any) -> None:
        self._timers[search] = time.time()
        self._emit({"event": "search_start", "search": search, **extra})

    def attempt(self, search: str, attempt: int, **extra: Any) -> None:
        self._emit({"event": "attempt", "search": search, "attempt": attempt, **extra})

    def search_end(self, search: str, *, status: str, attempts_used: int, **extra: Any) -> None:
        start = self._timers.pop(search, time.time())
        self._emit({
            "event": "search_end",
            "search": search,
            "status": status,
            "attempts_used": attempts_used,
            "duration_ms": round((time.time() - start) * 1000, 1),
            **extra,
        })

    def tool_call(self, tool_name: str, **extra: Any) -> None:
        self._emit({"event": "tool_call", "tool": tool_name, **extra})

    def warning(self, search: str, message: str, **extra: Any) -> None:
        self._emit({"event": "warning", "search": search, "message": self._scrub(message), **extra})

    def error(self, search: str, error: str, **extra: Any) -> None:
        self._emit({"event": "error", "search": search, "error": self._scrub(error), **extra})


_logger: Optional[StructuredLogger] = None


def get_logger(trace_id: Optional[str] = None) -> StructuredLogger:
    global _logger
    if _logger is None or (trace_id and _logger.trace_id != trace_id):
        _logger = StructuredLogger(trace_id=trace_id)
    return _logger
