from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Optional

from ..common.datetime_utils import now_local, parse_iso_datetime
from ..core.constants import TIMER_SETTINGS_KEY
from ..core.enums import TimerState, WorkDayType
from ..core.exceptions import ValidationError
from ..policy.repository import SettingsRepository
from ..records.model import WorkRecord
from ..records.service import LocalStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerSnapshot:
    state: TimerState = TimerState.NOT_STARTED
    record_identity: Optional[str] = None
    started_at: Optional[datetime] = None
    total_pause_seconds: float = 0.0
    pause_started_at: Optional[datetime] = None

    def elapsed_seconds(self, now: datetime) -> float:
        """Worked time so far, pauses excluded."""
        if self.started_at is None:
            return 0.0
        pause = self.total_pause_seconds
        if self.state is TimerState.PAUSED and self.pause_started_at is not None:
            pause += (now - self.pause_started_at).total_seconds()
        return max(0.0, (now - self.started_at).total_seconds() - pause)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "record_identity": self.record_identity,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "total_pause_seconds": self.total_pause_seconds,
            "pause_started_at": self.pause_started_at.isoformat() if self.pause_started_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimerSnapshot":
        return cls(
            state=TimerState(data.get("state", TimerState.NOT_STARTED.value)),
            record_identity=data.get("record_identity"),
            started_at=parse_iso_datetime(data.get("started_at")),
            total_pause_seconds=float(data.get("total_pause_seconds") or 0),
            pause_started_at=parse_iso_datetime(data.get("pause_started_at")),
        )


class WorkTimer:
    """Day stopwatch that writes its result into a Work record.

    ``start_day`` opens a Work record with only a start time; ``end_day``
    closes it, using the accumulated pause time as the break.
    """

    def __init__(
        self,
        store: LocalStore,
        settings: Optional[SettingsRepository] = None,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._settings = settings
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot = self._load()

    def _load(self) -> TimerSnapshot:
        if self._settings is None:
            return TimerSnapshot()
        raw = self._settings.load(TIMER_SETTINGS_KEY)
        if not raw:
            return TimerSnapshot()
        try:
            return TimerSnapshot.from_dict(raw)
        except (TypeError, ValueError):
            logger.warning("Stored timer state is unreadable, starting fresh", exc_info=True)
            return TimerSnapshot()

    def _commit(self, snapshot: TimerSnapshot) -> TimerSnapshot:
        if self._settings is not None:
            self._settings.save(TIMER_SETTINGS_KEY, snapshot.to_dict())
        previous = self._snapshot.state
        self._snapshot = snapshot
        if previous is not snapshot.state:
            logger.info("Timer %s -> %s", previous.value, snapshot.state.value)
        return snapshot

    @property
    def snapshot(self) -> TimerSnapshot:
        return self._snapshot

    @property
    def state(self) -> TimerState:
        return self._snapshot.state

    def elapsed_seconds(self) -> float:
        return self._snapshot.elapsed_seconds(self._clock())

    def remaining_seconds(self) -> float:
        standard = self._store.current_policy().standard_daily_hours * 3600
        return max(0.0, standard - self.elapsed_seconds())

    def start_day(self) -> WorkRecord:
        with self._lock:
            if self._snapshot.state in (TimerState.RUNNING, TimerState.PAUSED):
                raise ValidationError("A work day is already in progress")
            now = self._clock()
            record = self._store.create(day=now.date(), type=WorkDayType.WORK, start_time=now, break_seconds=0.0)
            self._commit(TimerSnapshot(state=TimerState.RUNNING, record_identity=record.identity, started_at=now))
            return record

    def pause(self) -> TimerSnapshot:
        with self._lock:
            if self._snapshot.state is not TimerState.RUNNING:
                return self._snapshot
            return self._commit(replace(self._snapshot, state=TimerState.PAUSED, pause_started_at=self._clock()))

    def resume(self) -> TimerSnapshot:
        with self._lock:
            current = self._snapshot
            if current.state is not TimerState.PAUSED or current.pause_started_at is None:
                return current
            paused = (self._clock() - current.pause_started_at).total_seconds()
            return self._commit(
                replace(
                    current,
                    state=TimerState.RUNNING,
                    total_pause_seconds=current.total_pause_seconds + paused,
                    pause_started_at=None,
                )
            )

    def end_day(self) -> WorkRecord:
        with self._lock:
            current = self._snapshot
            if current.state not in (TimerState.RUNNING, TimerState.PAUSED) or current.record_identity is None:
                raise ValidationError("No work day in progress")
            now = self._clock()
            pause = current.total_pause_seconds
            if current.state is TimerState.PAUSED and current.pause_started_at is not None:
                pause += (now - current.pause_started_at).total_seconds()
            record = self._store.update(current.record_identity, end_time=now, break_seconds=pause)
            self._commit(replace(current, state=TimerState.FINISHED, total_pause_seconds=pause, pause_started_at=None))
            logger.info("Work day %s closed: %.2fh", record.identity, record.total_hours)
            return record

    def reset(self) -> TimerSnapshot:
        with self._lock:
            return self._commit(TimerSnapshot())

    def toggle(self) -> TimerSnapshot:
        state = self._snapshot.state
        if state is TimerState.NOT_STARTED:
            self.start_day()
        elif state is TimerState.RUNNING:
            self.pause()
        elif state is TimerState.PAUSED:
            self.resume()
        else:
            self.reset()
        return self._snapshot
