from __future__ import annotations

from typing import Optional, Protocol

from .model import SyncCursor


class CursorRepository(Protocol):
    def load(self, name: str) -> Optional[SyncCursor]:
        raise NotImplementedError

    def compare_and_set(self, name: str, *, expected: Optional[SyncCursor], new: SyncCursor) -> bool:
        """Store ``new`` only if the stored cursor still equals ``expected``."""

        raise NotImplementedError

    def clear(self, name: str) -> None:
        raise NotImplementedError
