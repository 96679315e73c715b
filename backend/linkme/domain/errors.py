"""Domain-level exceptions shared by proximity, profiles, connections and chat."""

from __future__ import annotations


class LinkMeError(Exception):
    """Base class for domain errors."""

    reason: str = "unknown"

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason:
            self.reason = reason


class InvalidInput(LinkMeError):
    """Rejected before any store access."""

    reason = "invalid_input"


class NoVisibleProfile(LinkMeError):
    """Filtering outcome: the user has nothing visible in this context."""

    reason = "no_visible_profile"


class DataUnavailable(LinkMeError):
    """The storage collaborator is unreachable, timed out or errored."""

    reason = "data_unavailable"


class ConnectionNotFound(LinkMeError):
    reason = "not_found"


class ConnectionForbidden(LinkMeError):
    reason = "forbidden"


class InvalidTransition(LinkMeError):
    """Status change attempted from a terminal state."""

    reason = "invalid_transition"


class DuplicateConnection(LinkMeError):
    reason = "conflict"


class ConnectionAlreadyPending(DuplicateConnection):
    reason = "already_pending"


class ConnectionAlreadyAccepted(DuplicateConnection):
    reason = "already_accepted"


class GateClosed(LinkMeError):
    """Message send attempted on a connection that is not accepted."""

    reason = "gate_closed"


class RateLimited(LinkMeError):
    reason = "rate_limited"
