"""Helpers for redacting sensitive values in logs and error strings."""

from __future__ import annotations

import re

_REDACTED = "***REDACTED***"

_QUERY_VALUE_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:access_token|key|api[_-]?key|token|secret|password)\s*=\s*)(?P<value>[^&\s\"']+)"
)
_JSON_KV_RE = re.compile(
    r"(?i)(?P<prefix>[\"']?(?:access_token|api[_-]?key|token|secret|password)[\"']?\s*:\s*[\"']?)(?P<value>[^\"',\s}]+)"
)
_BEARER_RE = re.compile(r"(?i)(?P<prefix>\bbearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)")
_DSN_CREDENTIAL_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:redis|rediss|postgres(?:ql)?)://)(?P<creds>[^@/\s]+)@"
)
_MAPBOX_TOKEN_RE = re.compile(r"\b(?:pk|sk|tk)\.eyJ[A-Za-z0-9_-]{8,}\.[A-Za-z0-9_-]{8,}\b")


def _replace_value(pattern: re.Pattern[str], text: str) -> str:
    return pattern.sub(lambda m: f"{m.group('prefix')}{_REDACTED}", text)


def redact_sensitive(text: str) -> str:
    """Redact tokens and credentials while preserving surrounding context."""
    if not text:
        return text

    redacted = str(text)
    for pattern in (_QUERY_VALUE_RE, _JSON_KV_RE, _BEARER_RE):
        redacted = _replace_value(pattern, redacted)
    redacted = _MAPBOX_TOKEN_RE.sub(_REDACTED, redacted)
    redacted = _DSN_CREDENTIAL_RE.sub(lambda m: f"{m.group('prefix')}{_REDACTED}@", redacted)
    return redacted
