from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterator, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_BREAK_SECONDS
from ..core.enums import WorkDayType
from ..core.exceptions import NotFoundError, PersistenceError, ValidationError
from ..policy.model import Policy
from .calculator.base import WorkRecordCalculator
from .calculator.standard_calculator import StandardWorkRecordCalculator
from .model import Deleted, WorkRecord, new_identity
from .repository import WorkRecordRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {"date", "type", "start_time", "end_time", "break_seconds", "bonus_amount", "note"}


def validate(record: WorkRecord) -> None:
    """Reject states that must never be persisted from an edit.

    A Work record without both times is an in-progress draft and is accepted;
    the calculator leaves its derived fields at zero.
    """
    if record.break_seconds < 0:
        raise ValidationError("Break duration must not be negative")
    if record.bonus_amount < 0:
        raise ValidationError("Bonus amount must not be negative")
    if not record.type.is_work_day:
        return
    if record.start_time is not None and record.end_time is not None:
        if record.end_time <= record.start_time:
            raise ValidationError("End time must be after start time")
        span = (record.end_time - record.start_time).total_seconds()
        if record.break_seconds > span:
            raise ValidationError("Break duration exceeds the worked interval")


class LocalStore:
    """Local Store Adapter and single owner of the record collection.

    Every mutation (user edits and merge writes) runs under one re-entrant
    lock; ``transaction()`` lets callers hold it across read-compare-write
    sequences such as a merge page.
    """

    def __init__(
        self,
        records: WorkRecordRepository,
        policy: Callable[[], Policy],
        *,
        calculator: Optional[WorkRecordCalculator] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._records = records
        self._policy = policy
        self._calculator = calculator or StandardWorkRecordCalculator()
        self._clock = clock
        self._lock = threading.RLock()

    @property
    def calculator(self) -> WorkRecordCalculator:
        return self._calculator

    def current_policy(self) -> Policy:
        return self._policy()

    @contextmanager
    def transaction(self) -> Iterator["LocalStore"]:
        with self._lock:
            yield self

    # --- reads -----------------------------------------------------------

    def get(self, identity: str) -> Optional[WorkRecord]:
        return self._records.get(identity)

    def require(self, identity: str) -> WorkRecord:
        record = self._records.get(identity)
        if record is None or record.is_deleted:
            raise NotFoundError(f"Record {identity} not found")
        return record

    def query_by_date_range(self, start: date, end: date) -> list[WorkRecord]:
        if end < start:
            raise ValidationError("End date must not be before start date")
        return [r for r in self._records.list_range(start=start, end=end) if r.is_live]

    def list_live(self) -> list[WorkRecord]:
        return [r for r in self._records.list_all() if r.is_live]

    def all_dirty(self) -> list[WorkRecord]:
        return list(self._records.list_dirty())

    def count_all(self) -> int:
        return len(self._records.list_all(include_deleted=True))

    # --- edits -----------------------------------------------------------

    def create(
        self,
        *,
        day: date,
        type: WorkDayType = WorkDayType.WORK,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        break_seconds: Optional[float] = None,
        bonus_amount: float = 0.0,
        note: Optional[str] = None,
        identity: Optional[str] = None,
    ) -> WorkRecord:
        if isinstance(day, datetime):
            day = day.date()
        if break_seconds is None:
            break_seconds = DEFAULT_BREAK_SECONDS if type.is_work_day else 0.0
        now = self._clock()
        record = WorkRecord(
            identity=identity or new_identity(),
            date=day,
            type=type,
            start_time=start_time,
            end_time=end_time,
            break_seconds=float(break_seconds),
            bonus_amount=float(bonus_amount or 0),
            note=(note or "").strip() or None,
            created_at=now,
            last_modified=now,
        )
        return self.upsert(record)

    def update(self, identity: str, **changes) -> WorkRecord:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Field(s) not editable: {', '.join(sorted(unknown))}")
        if isinstance(changes.get("date"), datetime):
            changes["date"] = changes["date"].date()
        if "note" in changes:
            changes["note"] = (changes["note"] or "").strip() or None
        with self._lock:
            current = self.require(identity)
            return self.upsert(replace(current, **changes))

    def upsert(self, record: WorkRecord) -> WorkRecord:
        """Validate, recompute derived fields, mark dirty and persist."""
        validate(record)
        with self._lock:
            existing = self._records.get(record.identity)
            if existing is not None and existing.is_deleted:
                raise ValidationError("Deleted records cannot be edited")
            if existing is not None:
                record = replace(record, created_at=existing.created_at, remote_version=existing.remote_version)
            record = self._calculator.calculate(record, self._policy(), now=self._clock(), touch=True)
            record = replace(record, dirty=True)
            self._save(record)
            logger.debug("Saved record %s (%s, %s)", record.identity, record.date, record.type.value)
            return record

    def soft_delete(self, identity: str) -> WorkRecord:
        with self._lock:
            current = self.require(identity)
            record = replace(current, state=Deleted(tombstone_confirmed=False), dirty=True, last_modified=self._clock())
            self._save(record)
            logger.info("Soft-deleted record %s", identity)
            return record

    # --- sync-side writes -----------------------------------------------

    def apply_remote(self, record: WorkRecord) -> WorkRecord:
        """Persist a merged remote state as-is (no validation, not dirty)."""
        with self._lock:
            self._save(record)
            return record

    def mark_uploaded(self, identity: str, version: str, *, expected_last_modified: datetime) -> Optional[WorkRecord]:
        """Record a successful push.

        The dirty flag is cleared only when the record was not edited again
        while the push was in flight.
        """
        with self._lock:
            current = self._records.get(identity)
            if current is None:
                return None
            changes: dict = {"remote_version": version}
            if current.last_modified == expected_last_modified:
                changes["dirty"] = False
                if isinstance(current.state, Deleted):
                    changes["state"] = Deleted(tombstone_confirmed=True)
            updated = replace(current, **changes)
            self._save(updated)
            return updated

    def confirm_tombstone(self, identity: str) -> bool:
        """Mark a deleted record's removal as known to the remote peer."""
        with self._lock:
            current = self._records.get(identity)
            if current is None or not current.awaiting_tombstone_confirmation:
                return False
            self._save(replace(current, state=Deleted(tombstone_confirmed=True), dirty=False))
            return True

    def recompute_all(self, policy: Optional[Policy] = None) -> int:
        """Bring every live record's derived fields in line with ``policy``."""
        policy = policy or self._policy()
        changed = 0
        with self._lock:
            for record in self._records.list_all():
                recomputed = self._calculator.calculate(record, policy, touch=False)
                if (recomputed.total_hours, recomputed.overtime_seconds) != (record.total_hours, record.overtime_seconds):
                    self._save(recomputed)
                    changed += 1
        logger.info("Recomputed derived fields for %d record(s)", changed)
        return changed

    def purge_confirmed_tombstones(self) -> int:
        purged = 0
        with self._lock:
            for record in self._records.list_all(include_deleted=True):
                if isinstance(record.state, Deleted) and record.state.tombstone_confirmed:
                    if self._records.delete(record.identity):
                        purged += 1
        return purged

    def _save(self, record: WorkRecord) -> None:
        try:
            self._records.save(record)
        except PersistenceError:
            logger.error("Local save failed for record %s", record.identity, exc_info=True)
            raise
