from __future__ import annotations

from enum import Enum


class WorkDayType(str, Enum):
    """Kind of day a record represents. Values are stored and sent on the wire."""

    WORK = "work"
    VACATION = "vacation"
    HALF_DAY_VACATION = "half_day_vacation"
    SICK_LEAVE = "sick_leave"
    COMPENSATORY = "compensatory"
    TRAINING = "training"
    HOLIDAY = "holiday"

    @property
    def is_work_day(self) -> bool:
        return self is WorkDayType.WORK

    @property
    def is_vacation(self) -> bool:
        return self in (WorkDayType.VACATION, WorkDayType.HALF_DAY_VACATION)

    @property
    def counts_standard_day(self) -> bool:
        """Types whose standard hours depend on the working-day schedule."""
        return self in (WorkDayType.WORK, WorkDayType.COMPENSATORY)


class Availability(str, Enum):
    """Account/availability answer from the remote peer."""

    UNKNOWN = "UNKNOWN"
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    RESTRICTED = "RESTRICTED"


class SyncState(str, Enum):
    UNKNOWN = "UNKNOWN"
    AVAILABLE = "AVAILABLE"
    UNAVAILABLE = "UNAVAILABLE"
    RESTRICTED = "RESTRICTED"
    SYNCING = "SYNCING"
    ERROR = "ERROR"


class MergeOutcome(str, Enum):
    INSERTED = "INSERTED"
    UPDATED = "UPDATED"
    DISCARDED = "DISCARDED"


class TimerState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FINISHED = "FINISHED"
