from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .core.constants import DEFAULT_REMOTE_TIMEOUT_SECONDS, STATUS_CHECK_INTERVAL_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .events import EventChannel
from .policy.mysql_settings_repository import MySQLSettingsRepository
from .policy.repository import SettingsRepository
from .policy.store import PolicyStore
from .records.mysql_work_record_repository import MySQLWorkRecordRepository
from .records.repository import WorkRecordRepository
from .records.service import LocalStore
from .reporting.service import ReportService
from .sync.cursor_repository import CursorRepository
from .sync.engine import SyncEngine
from .sync.http_peer import HttpRemotePeer
from .sync.mysql_cursor_repository import MySQLCursorRepository
from .sync.peer import RemotePeer
from .timer.service import WorkTimer


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    records_repo: WorkRecordRepository
    cursors_repo: CursorRepository
    settings_repo: SettingsRepository
    remote_peer: RemotePeer

    events: EventChannel

    policy_store: PolicyStore
    local_store: LocalStore
    sync_engine: SyncEngine
    report_service: ReportService
    work_timer: WorkTimer


def assemble(
    *,
    records_repo: WorkRecordRepository,
    cursors_repo: CursorRepository,
    settings_repo: SettingsRepository,
    remote_peer: RemotePeer,
    conn: Optional[DatabaseConnection] = None,
    status_check_interval: float = STATUS_CHECK_INTERVAL_SECONDS,
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
) -> Container:
    """Wire services over the given repositories and peer."""
    events = EventChannel()

    policy_store = PolicyStore(settings_repo, events=events)
    policy_store.load()
    local_store = LocalStore(records_repo, policy_store.get)
    sync_engine = SyncEngine(
        local_store,
        remote_peer,
        cursors_repo,
        events=events,
        status_check_interval=status_check_interval,
        remote_timeout=remote_timeout,
    )
    report_service = ReportService(local_store)
    work_timer = WorkTimer(local_store, settings_repo)

    return Container(
        conn=conn,
        records_repo=records_repo,
        cursors_repo=cursors_repo,
        settings_repo=settings_repo,
        remote_peer=remote_peer,
        events=events,
        policy_store=policy_store,
        local_store=local_store,
        sync_engine=sync_engine,
        report_service=report_service,
        work_timer=work_timer,
    )


def build_container(
    *,
    db_config: dict,
    remote_config: Optional[dict[str, Any]] = None,
    status_check_interval: float = STATUS_CHECK_INTERVAL_SECONDS,
    remote_timeout: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return assemble(
        records_repo=MySQLWorkRecordRepository(conn),
        cursors_repo=MySQLCursorRepository(conn),
        settings_repo=MySQLSettingsRepository(conn),
        remote_peer=HttpRemotePeer(remote_config or {}),
        conn=conn,
        status_check_interval=status_check_interval,
        remote_timeout=remote_timeout,
    )
