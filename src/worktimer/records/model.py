from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Union

from ..common.datetime_utils import now_utc
from ..core.constants import DEFAULT_BREAK_SECONDS
from ..core.enums import WorkDayType


@dataclass(frozen=True)
class Live:
    """The record is visible to listings and reports."""


@dataclass(frozen=True)
class Deleted:
    """Soft-deleted. Kept locally until the remote peer confirms the tombstone."""

    tombstone_confirmed: bool = False


RecordState = Union[Live, Deleted]

LIVE = Live()


def new_identity() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class WorkRecord:
    """Domain entity: one day's (or partial day's) time-tracking entry.

    ``total_hours`` and ``overtime_seconds`` are derived; only the calculator
    writes them. Instances are immutable, mutations go through
    ``dataclasses.replace`` at the local store boundary.
    """

    identity: str
    date: date
    type: WorkDayType = WorkDayType.WORK
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    break_seconds: float = DEFAULT_BREAK_SECONDS
    bonus_amount: float = 0.0
    total_hours: float = 0.0
    overtime_seconds: int = 0
    note: Optional[str] = None
    created_at: datetime = field(default_factory=now_utc)
    last_modified: datetime = field(default_factory=now_utc)
    remote_version: Optional[str] = None
    state: RecordState = LIVE
    dirty: bool = True

    @property
    def is_deleted(self) -> bool:
        return isinstance(self.state, Deleted)

    @property
    def is_live(self) -> bool:
        return not self.is_deleted

    @property
    def awaiting_tombstone_confirmation(self) -> bool:
        return isinstance(self.state, Deleted) and not self.state.tombstone_confirmed

    @property
    def worked_seconds(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() - self.break_seconds

    @property
    def is_valid(self) -> bool:
        if self.type.is_work_day:
            if self.start_time is None or self.end_time is None:
                return False
            span = (self.end_time - self.start_time).total_seconds()
            return self.end_time > self.start_time and 0 <= self.break_seconds <= span and self.bonus_amount >= 0
        return True
