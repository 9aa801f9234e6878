"""UserSync exception hierarchy."""

from __future__ import annotations


class UserSyncError(Exception):
    """Base exception for all UserSync errors."""


class StoreError(UserSyncError):
    """User store operation failed."""


class ConditionFailedError(StoreError):
    """Conditional write rejected: the target record does not exist."""

    def __init__(self, key: dict, message: str = "") -> None:
        self.key = key
        super().__init__(message or f"Conditional update rejected for key={key!r}")


class QueueError(UserSyncError):
    """Message queue receive or delete failed."""


class InvalidEventError(UserSyncError):
    """Inbound user event is malformed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class QueryError(UserSyncError):
    """Base for errors surfaced to read-endpoint callers."""


class InvalidInputError(QueryError):
    """Required query parameter missing or empty."""


class UserNotFoundError(QueryError):
    """No user record matched the query."""


class LookupFailedError(QueryError):
    """Underlying store failure while looking up a user."""
