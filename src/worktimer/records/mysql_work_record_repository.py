from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import as_utc
from ..core.enums import WorkDayType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LIVE, Deleted, RecordState, WorkRecord
from .repository import WorkRecordRepository

_COLUMNS = """
    identity, work_date, record_type, start_time, end_time, break_seconds, bonus_amount,
    total_hours, overtime_seconds, note, created_at, last_modified, remote_version,
    record_state, dirty
"""

_STATE_LIVE = "LIVE"
_STATE_DELETED = "DELETED"
_STATE_TOMBSTONED = "TOMBSTONED"


def _state_to_db(state: RecordState) -> str:
    if isinstance(state, Deleted):
        return _STATE_TOMBSTONED if state.tombstone_confirmed else _STATE_DELETED
    return _STATE_LIVE


def _state_from_db(value: str) -> RecordState:
    if value == _STATE_TOMBSTONED:
        return Deleted(tombstone_confirmed=True)
    if value == _STATE_DELETED:
        return Deleted(tombstone_confirmed=False)
    return LIVE


def _utc_naive(value: datetime) -> datetime:
    # DATETIME columns hold UTC without offset
    return as_utc(value).replace(tzinfo=None)


def _row_to_record(r: dict[str, Any]) -> WorkRecord:
    return WorkRecord(
        identity=str(r["identity"]),
        date=r["work_date"],
        type=WorkDayType(r["record_type"]),
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        break_seconds=float(r["break_seconds"] or 0),
        bonus_amount=float(r["bonus_amount"] or 0),
        total_hours=float(r["total_hours"] or 0),
        overtime_seconds=int(r["overtime_seconds"] or 0),
        note=r.get("note"),
        created_at=as_utc(r["created_at"]),
        last_modified=as_utc(r["last_modified"]),
        remote_version=r.get("remote_version"),
        state=_state_from_db(r["record_state"]),
        dirty=bool(r["dirty"]),
    )


class MySQLWorkRecordRepository(WorkRecordRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, identity: str) -> Optional[WorkRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_records WHERE identity=%s", (identity,))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def save(self, record: WorkRecord) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO work_records({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    work_date=VALUES(work_date),
                    record_type=VALUES(record_type),
                    start_time=VALUES(start_time),
                    end_time=VALUES(end_time),
                    break_seconds=VALUES(break_seconds),
                    bonus_amount=VALUES(bonus_amount),
                    total_hours=VALUES(total_hours),
                    overtime_seconds=VALUES(overtime_seconds),
                    note=VALUES(note),
                    last_modified=VALUES(last_modified),
                    remote_version=VALUES(remote_version),
                    record_state=VALUES(record_state),
                    dirty=VALUES(dirty)
                """,
                (
                    record.identity,
                    record.date,
                    record.type.value,
                    record.start_time,
                    record.end_time,
                    float(record.break_seconds),
                    float(record.bonus_amount),
                    float(record.total_hours),
                    int(record.overtime_seconds),
                    record.note,
                    _utc_naive(record.created_at),
                    _utc_naive(record.last_modified),
                    record.remote_version,
                    _state_to_db(record.state),
                    1 if record.dirty else 0,
                ),
            )

    def delete(self, identity: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM work_records WHERE identity=%s", (identity,))
            return cur.rowcount > 0

    def list_range(self, *, start: date, end: date, include_deleted: bool = False) -> Sequence[WorkRecord]:
        sql = f"SELECT {_COLUMNS} FROM work_records WHERE work_date BETWEEN %s AND %s"
        params: list[Any] = [start, end]
        if not include_deleted:
            sql += " AND record_state=%s"
            params.append(_STATE_LIVE)
        sql += " ORDER BY work_date, start_time"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_dirty(self) -> Sequence[WorkRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM work_records WHERE dirty=1 ORDER BY last_modified")
            return [_row_to_record(r) for r in fetchall(cur)]

    def list_all(self, *, include_deleted: bool = False) -> Sequence[WorkRecord]:
        sql = f"SELECT {_COLUMNS} FROM work_records"
        params: tuple = ()
        if not include_deleted:
            sql += " WHERE record_state=%s"
            params = (_STATE_LIVE,)
        sql += " ORDER BY work_date DESC, start_time DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_record(r) for r in fetchall(cur)]
