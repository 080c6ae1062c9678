from __future__ import annotations

import copy
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Optional

from worktimer.core.enums import Availability, WorkDayType
from worktimer.core.exceptions import PersistenceError, RemoteConflict
from worktimer.records.model import WorkRecord
from worktimer.sync.model import ChangeRecord, PullPage, SyncCursor

T0 = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class InMemoryWorkRecords:
    def __init__(self):
        self.rows: dict[str, WorkRecord] = {}
        self.fail_saves_after: Optional[int] = None
        self.saves = 0

    def get(self, identity: str) -> Optional[WorkRecord]:
        return self.rows.get(identity)

    def save(self, record: WorkRecord) -> None:
        if self.fail_saves_after is not None and self.saves >= self.fail_saves_after:
            raise PersistenceError("disk full")
        self.saves += 1
        self.rows[record.identity] = record

    def delete(self, identity: str) -> bool:
        return self.rows.pop(identity, None) is not None

    def list_range(self, *, start: date, end: date, include_deleted: bool = False):
        return [
            r for r in self.list_all(include_deleted=include_deleted) if start <= r.date <= end
        ]

    def list_dirty(self):
        return sorted((r for r in self.rows.values() if r.dirty), key=lambda r: r.last_modified)

    def list_all(self, *, include_deleted: bool = False):
        items = [r for r in self.rows.values() if include_deleted or r.is_live]
        return sorted(items, key=lambda r: r.date)


class InMemoryCursors:
    def __init__(self):
        self.tokens: dict[str, SyncCursor] = {}
        self.history: list[str] = []

    def load(self, name: str) -> Optional[SyncCursor]:
        return self.tokens.get(name)

    def compare_and_set(self, name: str, *, expected: Optional[SyncCursor], new: SyncCursor) -> bool:
        if self.tokens.get(name) != expected:
            return False
        self.tokens[name] = new
        self.history.append(new.token)
        return True

    def clear(self, name: str) -> None:
        self.tokens.pop(name, None)


class InMemorySettings:
    def __init__(self):
        self.values: dict[str, Any] = {}

    def load(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self.values.get(key))

    def save(self, key: str, value: Any) -> None:
        self.values[key] = copy.deepcopy(value)


class FakeRemotePeer:
    """Scriptable remote peer.

    ``pages`` maps an incoming cursor token (None for the first call) to the
    page served for it. ``server`` holds the remote copy of each record.
    """

    def __init__(self):
        self.availability = Availability.AVAILABLE
        self.availability_error: Optional[Exception] = None
        self.bootstrap_error: Optional[Exception] = None
        self.pages: dict[Optional[str], PullPage] = {}
        self.page_errors: dict[Optional[str], Exception] = {}
        self.server: dict[str, ChangeRecord] = {}
        self.push_conflicts: dict[str, int] = {}
        self.push_error: Optional[Exception] = None
        self.calls: list[str] = []
        self._version = 0

    def check_availability(self) -> Availability:
        self.calls.append("check_availability")
        if self.availability_error is not None:
            raise self.availability_error
        return self.availability

    def ensure_container(self) -> None:
        self.calls.append("ensure_container")
        if self.bootstrap_error is not None:
            raise self.bootstrap_error

    def subscribe_to_changes(self) -> None:
        self.calls.append("subscribe_to_changes")

    def pull_changes(self, cursor: Optional[SyncCursor]) -> PullPage:
        token = cursor.token if cursor is not None else None
        self.calls.append(f"pull_changes:{token}")
        if token in self.page_errors:
            raise self.page_errors[token]
        return self.pages.get(token) or PullPage(records=[], next_cursor=cursor or SyncCursor("c0"))

    def push_record(self, change: ChangeRecord) -> str:
        self.calls.append(f"push_record:{change.identity}")
        if self.push_error is not None:
            raise self.push_error
        remaining = self.push_conflicts.get(change.identity, 0)
        if remaining > 0:
            self.push_conflicts[change.identity] = remaining - 1
            raise RemoteConflict(change.identity, self.server.get(change.identity))
        self._version += 1
        version = f"v{self._version}"
        self.server[change.identity] = replace(change, remote_version=version)
        return version

    def fetch_record(self, identity: str) -> Optional[ChangeRecord]:
        self.calls.append(f"fetch_record:{identity}")
        return self.server.get(identity)

    def pull_all(self) -> Iterator[ChangeRecord]:
        self.calls.append("pull_all")
        return iter(list(self.server.values()))


def change(identity: str, modified_at: datetime, **overrides) -> ChangeRecord:
    data = dict(
        identity=identity,
        date=date(2026, 3, 2),
        type=WorkDayType.WORK,
        modified_at=modified_at,
        start_time=datetime(2026, 3, 2, 9, 0),
        end_time=datetime(2026, 3, 2, 17, 30),
        break_seconds=1800.0,
        remote_version="r1",
    )
    data.update(overrides)
    return ChangeRecord(**data)
