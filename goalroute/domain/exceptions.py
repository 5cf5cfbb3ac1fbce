"""Domain semantic exceptions."""


class DomainError(Exception):
    """Base domain exception."""


class InvalidGoal(DomainError):
    """Raised when a planning goal cannot produce a target distance."""


class CandidateRejected(DomainError):
    """A single candidate could not be evaluated; the search moves on."""


class RouteNotFound(CandidateRejected):
    """The routing provider has no walkable path for a candidate."""


class ProviderRateLimited(CandidateRejected):
    """The routing provider throttled the request for a candidate."""


class ManualAttemptsLocked(DomainError):
    """No manual reselection attempts remain for the session."""


class SessionNotFound(DomainError):
    """The search session is unknown or has expired."""

    def __init__(self, signature: str):
        self.signature = signature
        super().__init__(f"Search session not found or expired: {signature}")
