"""Shared (non-domain) exceptions."""

from __future__ import annotations


class ToolError(Exception):
    """Tool invocation failed."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"[{tool}] {message}")


class UpstreamHTTPError(ToolError):
    """Upstream API answered with a non-success HTTP status."""

    def __init__(self, tool: str, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(tool, f"HTTP {status_code}: {message}")


class ExternalServiceError(Exception):
    """External service call failed."""


class ProviderUnavailable(ExternalServiceError):
    """Routing provider cannot serve requests (missing token, network failure)."""


class KeyMissingError(Exception):
    """Required key is missing."""

    def __init__(self, name: str):
        self.key_name = name
        super().__init__(f"Missing required API key: {name} (configure it in .env)")
