from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import SyncState

_DESCRIPTIONS = {
    SyncState.UNKNOWN: "Checking...",
    SyncState.AVAILABLE: "Synced",
    SyncState.UNAVAILABLE: "Cloud unavailable",
    SyncState.RESTRICTED: "Access restricted",
    SyncState.ERROR: "Error",
}


@dataclass(frozen=True)
class SyncStatus:
    """Observable sync status exposed to presentation."""

    state: SyncState = SyncState.UNKNOWN
    progress: float = 0.0
    last_sync_at: Optional[datetime] = None
    last_error: Optional[str] = None
    message: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.state in (SyncState.AVAILABLE, SyncState.SYNCING)

    @property
    def description(self) -> str:
        if self.state is SyncState.SYNCING:
            return f"Syncing {int(self.progress * 100)}%"
        if self.state is SyncState.ERROR and self.last_error:
            return f"Error: {self.last_error}"
        return _DESCRIPTIONS.get(self.state, self.state.value)

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "progress": round(self.progress, 4),
            "last_sync_at": self.last_sync_at.isoformat() if self.last_sync_at else None,
            "last_error": self.last_error,
            "message": self.message,
            "description": self.description,
        }
