"""Search-session store with in-memory default and optional Redis backend.

Entries expire after SESSION_TTL_SECONDS (five minutes by default), which is
long enough to survive navigation away from the destination screen and back.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from typing import Any, Optional

import redis

from goalroute.domain.constants import SESSION_TTL_SECONDS
from goalroute.security.redact import redact_sensitive

_logger = logging.getLogger("goalroute.session")

_MAX_SESSIONS = 1000
_DEFAULT_PREFIX = "goalroute:session:"


class SessionStore:
    """Thread-safe in-memory session store."""

    backend = "memory"

    def __init__(self, ttl: float = SESSION_TTL_SECONDS, max_sessions: int = _MAX_SESSIONS):
        self._store: dict[str, tuple[dict[str, Any], float]] = {}
        self._ttl = ttl
        self._max_sessions = max_sessions
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, session_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            entry = self._store.get(session_id)
            if entry is None:
                return None
            data, expire_at = entry
            if time.time() > expire_at:
                del self._store[session_id]
                return None
            return data

    def save(self, session_id: str, state: dict[str, Any]) -> None:
        with self._lock:
            if session_id not in self._store and len(self._store) >= self._max_sessions:
                self._cleanup_expired()
            if session_id not in self._store and len(self._store) >= self._max_sessions:
                oldest = min(self._store, key=lambda k: self._store[k][1])
                del self._store[oldest]
            self._store[session_id] = (state, time.time() + self._ttl)

    def _cleanup_expired(self) -> None:
        now = time.time()
        expired = [k for k, (_, exp) in self._store.items() if now > exp]
        for key in expired:
            del self._store[key]

    @property
    def active_count(self) -> int:
        now = time.time()
        with self._lock:
            return sum(1 for _, (_, exp) in self._store.items() if now <= exp)


class RedisSessionStore:
    """Redis-backed session store for multi-instance deployments."""

    backend = "redis"

    def __init__(self, redis_url: str, ttl: float = SESSION_TTL_SECONDS, prefix: str = _DEFAULT_PREFIX):
        self._ttl = max(1, int(ttl))
        self._prefix = prefix
        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._client.ping()

    @property
    def ttl(self) -> float:
        return float(self._ttl)

    def _key(self, session_id: str) -> str:
        return f"{self._prefix}{session_id}"

    def get(self, session_id: str) -> Optional[dict[str, Any]]:
        raw = self._client.get(self._key(session_id))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            self._client.delete(self._key(session_id))
            return None

    def save(self, session_id: str, state: dict[str, Any]) -> None:
        payload = json.dumps(state, ensure_ascii=False, default=str)
        self._client.setex(self._key(session_id), self._ttl, payload)

    @property
    def active_count(self) -> int:
        return len(self._client.keys(f"{self._prefix}*"))


def _build_store(ttl: Optional[float] = None):
    if ttl is None:
        ttl = float(os.getenv("SESSION_TTL_SECONDS", str(SESSION_TTL_SECONDS)))
    max_sessions = int(os.getenv("SESSION_MAX_SESSIONS", str(_MAX_SESSIONS)))
    redis_url = os.getenv("REDIS_URL")

    if redis_url:
        try:
            store = RedisSessionStore(redis_url=redis_url, ttl=ttl)
            _logger.info("Session store initialized with Redis backend")
            return store
        except redis.RedisError as exc:
            _logger.warning(
                "Failed to initialize Redis session store, fallback to memory store: %s",
                redact_sensitive(str(exc)),
            )

    return SessionStore(ttl=ttl, max_sessions=max_sessions)


_global_lock = threading.Lock()
_global_store = None


def get_session_store(ttl: Optional[float] = None):
    """Shared store; ttl only applies when the store is first built."""
    global _global_store
    with _global_lock:
        if _global_store is None:
            _global_store = _build_store(ttl)
        return _global_store


def reset_session_store() -> None:
    global _global_store
    with _global_lock:
        _global_store = None
