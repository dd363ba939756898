"""Exception types raised by the store, the reconciler and the transport."""

from __future__ import annotations

_STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request, please make sure you follow the documentation for proper syntax",
    401: "Problem authenticating the user",
    403: "User was authenticated, but access denied due to lack of permission or rate limiting",
    500: "The remote service returned an internal error",
    503: "Pocket's sync server is down for scheduled maintenance",
}


class ReaderError(Exception):
    """Base class for all Pocket Reader errors."""


class NotFound(ReaderError):
    """An entry id is no longer present in the store."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"No entry with id {entry_id!r}")
        self.entry_id = entry_id


class StaleWrite(ReaderError):
    """An incoming field is older than the stored one and was dropped."""

    def __init__(self, entry_id: str, field: str) -> None:
        super().__init__(f"Stale write to {field!r} of entry {entry_id!r}")
        self.entry_id = entry_id
        self.field = field


class SyncTransportFailure(ReaderError):
    """Network or authentication failure while talking to the remote service."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    @classmethod
    def from_status(cls, status: int) -> SyncTransportFailure:
        message = _STATUS_MESSAGES.get(status, f"Unexpected HTTP status {status}")
        return cls(message, status=status)

    @property
    def is_auth_error(self) -> bool:
        return self.status in (401, 403)


class MalformedEntry(ReaderError):
    """An entry lacks data needed for the requested action."""

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(f"Entry {entry_id!r} is malformed: {reason}")
        self.entry_id = entry_id
        self.reason = reason


__all__ = [
    "MalformedEntry",
    "NotFound",
    "ReaderError",
    "StaleWrite",
    "SyncTransportFailure",
]
