from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when a record or setting is invalid and must not be persisted."""


class NotFoundError(DomainError):
    """Raised when a record identity is unknown to the local store."""


class PersistenceError(DomainError):
    """Local store write/read failure. In-memory state may be inconsistent."""


class RemoteError(Exception):
    """Base for failures reported by the remote sync peer."""


class RemoteUnavailable(RemoteError):
    """Network down or quota exceeded. Retry later, local edits keep queuing."""

    def __init__(self, message: str = "Remote peer unavailable", *, quota: bool = False):
        super().__init__(message)
        self.quota = quota


class RemoteConflict(RemoteError):
    """Push rejected because the remote version diverged.

    ``server_record`` carries the server's current ChangeRecord when the peer
    returned it with the rejection.
    """

    def __init__(self, identity: str, server_record: Optional[Any] = None):
        super().__init__(f"Version conflict for record {identity}")
        self.identity = identity
        self.server_record = server_record


class RemoteFatal(RemoteError):
    """Unexpected remote error, surfaced to the user."""


class RemoteTimeout(RemoteFatal):
    """A remote operation did not finish within the configured interval."""


class SyncSuperseded(Exception):
    """A newer sync request took over; the current session stops quietly."""
