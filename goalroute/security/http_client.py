"""Single exit point for outbound HTTP calls.

- scrubs tokens from every error message
- applies a per-request timeout and a small retry budget
- retries only on timeouts, network errors and 5xx answers
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx

from goalroute.security.key_manager import get_key_manager
from goalroute.shared.exceptions import ToolError, UpstreamHTTPError


class SecureHttpClient:
    def __init__(
        self,
        *,
        timeout: float = 8.0,
        max_retries: int = 1,
        tool_name: str = "http",
    ):
        self._timeout = timeout
        self._max_retries = max_retries
        self._tool_name = tool_name
        self._km = get_key_manager()

    @property
    def timeout(self) -> float:
        return self._timeout

    def get(
        self,
        url: str,
        *,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """GET ``url`` and decode the JSON body.

        4xx answers raise UpstreamHTTPError straight away; the caller decides
        what a 404 or 429 means.
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 2):
            try:
                resp = httpx.get(url, params=params, headers=headers, timeout=self._timeout)
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                safe_msg = self._km.scrub_text(str(e))
                last_error = UpstreamHTTPError(self._tool_name, status, safe_msg)
                if status < 500:
                    raise last_error from None
            except httpx.TimeoutException:
                last_error = ToolError(
                    self._tool_name, f"request timed out after {self._timeout}s (attempt {attempt})"
                )
            except httpx.HTTPError as e:
                last_error = ToolError(self._tool_name, f"network error: {self._km.scrub_text(str(e))}")
            except ValueError as e:
                raise ToolError(
                    self._tool_name, f"invalid JSON body: {self._km.scrub_text(str(e))}"
                ) from None

            if attempt <= self._max_retries:
                time.sleep(0.5 * attempt)

        raise last_error  # type: ignore[misc]
