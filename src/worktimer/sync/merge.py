from __future__ import annotations

import logging
from typing import Optional

from ..core.enums import MergeOutcome
from ..records.model import LIVE, Deleted, WorkRecord
from ..records.service import LocalStore
from .model import ChangeRecord

logger = logging.getLogger(__name__)


def to_change_record(record: WorkRecord, *, remote_version: Optional[str] = None) -> ChangeRecord:
    return ChangeRecord(
        identity=record.identity,
        date=record.date,
        type=record.type,
        modified_at=record.last_modified,
        start_time=record.start_time,
        end_time=record.end_time,
        break_seconds=record.break_seconds,
        bonus_amount=record.bonus_amount,
        total_hours=record.total_hours,
        overtime_seconds=record.overtime_seconds,
        note=record.note,
        created_at=record.created_at,
        remote_version=remote_version if remote_version is not None else record.remote_version,
        is_deleted=record.is_deleted,
    )


def record_from_change(change: ChangeRecord, *, base: Optional[WorkRecord] = None) -> WorkRecord:
    """Local record carrying the remote state. Remote deletions arrive confirmed."""
    created = change.created_at or (base.created_at if base else change.modified_at)
    return WorkRecord(
        identity=change.identity,
        date=change.date,
        type=change.type,
        start_time=change.start_time,
        end_time=change.end_time,
        break_seconds=change.break_seconds,
        bonus_amount=change.bonus_amount,
        total_hours=change.total_hours,
        overtime_seconds=change.overtime_seconds,
        note=change.note,
        created_at=created,
        last_modified=change.modified_at,
        remote_version=change.remote_version,
        state=Deleted(tombstone_confirmed=True) if change.is_deleted else LIVE,
        dirty=False,
    )


class RecordMerger:
    """Last-writer-wins merge of one remote change into the local store.

    The remote state replaces the local one only when its ``modified_at`` is
    strictly newer than the local ``last_modified``; on a tie the local record
    stays. Re-applying a change is therefore a no-op.
    """

    def __init__(self, store: LocalStore):
        self._store = store

    def merge(self, change: ChangeRecord) -> MergeOutcome:
        with self._store.transaction():
            local = self._store.get(change.identity)
            if local is not None and change.modified_at <= local.last_modified:
                logger.debug(
                    "Discarded remote change %s (remote %s <= local %s)",
                    change.identity,
                    change.modified_at.isoformat(),
                    local.last_modified.isoformat(),
                )
                return MergeOutcome.DISCARDED

            merged = record_from_change(change, base=local)
            # The sender may have used another policy for the derived fields
            merged = self._store.calculator.calculate(merged, self._store.current_policy(), touch=False)
            self._store.apply_remote(merged)
            return MergeOutcome.INSERTED if local is None else MergeOutcome.UPDATED
