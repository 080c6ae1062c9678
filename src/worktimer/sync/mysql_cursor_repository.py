from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .cursor_repository import CursorRepository
from .model import SyncCursor


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class MySQLCursorRepository(CursorRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self, name: str) -> Optional[SyncCursor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT token FROM sync_cursors WHERE cursor_name=%s", (name,))
            r = fetchone(cur)
            return SyncCursor(str(r["token"])) if r else None

    def compare_and_set(self, name: str, *, expected: Optional[SyncCursor], new: SyncCursor) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            if expected is None:
                cur.execute(
                    "INSERT IGNORE INTO sync_cursors(cursor_name, token, updated_at) VALUES(%s,%s,%s)",
                    (name, new.token, _utcnow()),
                )
            else:
                cur.execute(
                    "UPDATE sync_cursors SET token=%s, updated_at=%s WHERE cursor_name=%s AND token=%s",
                    (new.token, _utcnow(), name, expected.token),
                )
            return cur.rowcount == 1

    def clear(self, name: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM sync_cursors WHERE cursor_name=%s", (name,))
