from __future__ import annotations

from typing import Iterator, Optional, Protocol

from ..core.enums import Availability
from .model import ChangeRecord, PullPage, SyncCursor


class RemotePeer(Protocol):
    """Logical contract of the remote sync backend.

    Implementations raise ``RemoteUnavailable`` for network/quota problems,
    ``RemoteConflict`` when a push hits a diverged version, and
    ``RemoteFatal`` for anything else.
    """

    def check_availability(self) -> Availability:
        raise NotImplementedError

    def ensure_container(self) -> None:
        """Create the record zone if absent (idempotent)."""

        raise NotImplementedError

    def subscribe_to_changes(self) -> None:
        raise NotImplementedError

    def pull_changes(self, cursor: Optional[SyncCursor]) -> PullPage:
        raise NotImplementedError

    def push_record(self, change: ChangeRecord) -> str:
        """Store ``change`` remotely; returns the new version token."""

        raise NotImplementedError

    def fetch_record(self, identity: str) -> Optional[ChangeRecord]:
        raise NotImplementedError

    def pull_all(self) -> Iterator[ChangeRecord]:
        """Every remote record, lazily. Restartable from scratch only."""

        raise NotImplementedError
