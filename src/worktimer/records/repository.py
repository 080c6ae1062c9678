from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import WorkRecord


class WorkRecordRepository(Protocol):
    def get(self, identity: str) -> Optional[WorkRecord]:
        raise NotImplementedError

    def save(self, record: WorkRecord) -> None:
        """Insert or replace the row keyed by ``record.identity``."""

        raise NotImplementedError

    def delete(self, identity: str) -> bool:
        """Physically remove a row (only used for confirmed tombstones)."""

        raise NotImplementedError

    def list_range(self, *, start: date, end: date, include_deleted: bool = False) -> Sequence[WorkRecord]:
        raise NotImplementedError

    def list_dirty(self) -> Sequence[WorkRecord]:
        raise NotImplementedError

    def list_all(self, *, include_deleted: bool = False) -> Sequence[WorkRecord]:
        raise NotImplementedError
