"""
Sync Engine: reconciles the local record store with the remote peer.

State machine::

    UNKNOWN -> AVAILABLE | UNAVAILABLE | RESTRICTED
    AVAILABLE -> SYNCING(progress) -> AVAILABLE | ERROR
    ERROR -> AVAILABLE (next successful sync)

A sync session pulls remote pages (merge, then compare-and-set the cursor)
and then pushes locally dirty records. A newer session supersedes an older
one; the older session stops at its next suspension point.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import (
    CURSOR_NAME,
    DEFAULT_REMOTE_TIMEOUT_SECONDS,
    MAX_CURSOR_RELOADS,
    REMOTE_WORKERS,
    STATUS_CHECK_INTERVAL_SECONDS,
)
from ..core.enums import Availability, MergeOutcome, SyncState
from ..core.exceptions import (
    PersistenceError,
    RemoteConflict,
    RemoteError,
    RemoteFatal,
    RemoteTimeout,
    RemoteUnavailable,
    SyncSuperseded,
)
from ..events import EventChannel, PolicyChanged, RemoteChangeDetected, SyncStatusChanged
from ..records.model import WorkRecord
from ..records.service import LocalStore
from .cursor_repository import CursorRepository
from .merge import RecordMerger, to_change_record
from .model import SyncReport
from .peer import RemotePeer
from .status import SyncStatus

logger = logging.getLogger(__name__)

_SESSION_SYNC = "sync"
_SESSION_RESTORE = "restore"
_POLL_SLICE_SECONDS = 0.05
_END = object()

_AVAILABILITY_STATES = {
    Availability.AVAILABLE: (SyncState.AVAILABLE, "Cloud available"),
    Availability.UNAVAILABLE: (SyncState.UNAVAILABLE, "No cloud account available"),
    Availability.RESTRICTED: (SyncState.RESTRICTED, "Cloud access restricted"),
    Availability.UNKNOWN: (SyncState.UNKNOWN, "Cannot determine cloud status"),
}


class SyncSession:
    """One sync or restore run. Cancelled when a newer request takes over."""

    def __init__(self, generation: int, kind: str):
        self.generation = generation
        self.kind = kind
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def raise_if_superseded(self) -> None:
        if self._cancelled.is_set():
            raise SyncSuperseded(f"{self.kind} session {self.generation} superseded")


class SyncEngine:
    def __init__(
        self,
        store: LocalStore,
        peer: RemotePeer,
        cursors: CursorRepository,
        *,
        events: Optional[EventChannel] = None,
        status_updates: Optional[EventChannel] = None,
        clock: Callable[[], datetime] = now_utc,
        status_check_interval: float = STATUS_CHECK_INTERVAL_SECONDS,
        remote_timeout: float = DEFAULT_REMOTE_TIMEOUT_SECONDS,
        cursor_name: str = CURSOR_NAME,
        remote_workers: int = REMOTE_WORKERS,
    ):
        self._store = store
        self._peer = peer
        self._cursors = cursors
        self._events = events
        self._status_updates = status_updates
        self._clock = clock
        self._status_check_interval = timedelta(seconds=float(status_check_interval))
        self._remote_timeout = float(remote_timeout)
        self._cursor_name = cursor_name
        self._merger = RecordMerger(store)

        self._lock = threading.RLock()
        self._status = SyncStatus()
        self._availability = Availability.UNKNOWN
        self._last_check_at: Optional[datetime] = None
        self._bootstrapped = False
        self._generation = 0
        self._active: Optional[SyncSession] = None

        self._remote_pool = ThreadPoolExecutor(max_workers=remote_workers, thread_name_prefix="worktimer-remote")
        self._background = ThreadPoolExecutor(max_workers=2, thread_name_prefix="worktimer-sync")

    # --- status ----------------------------------------------------------

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def availability(self) -> Availability:
        return self._availability

    @property
    def is_bootstrapped(self) -> bool:
        return self._bootstrapped

    def _set_status(self, **changes: Any) -> SyncStatus:
        with self._lock:
            previous = self._status
            self._status = replace(previous, **changes)
            current = self._status
        if current.state is not previous.state:
            logger.info("Sync state %s -> %s (%s)", previous.state.value, current.state.value, current.message or "")
        if self._status_updates is not None and current != previous:
            self._status_updates.publish(SyncStatusChanged(status=current))
        return current

    def check_availability(self, *, force: bool = False) -> SyncStatus:
        """Ask the peer for account status, at most once per check interval.

        Inside the interval the cached status is returned without a remote call.
        """
        with self._lock:
            now = self._clock()
            if not force and self._last_check_at is not None and now - self._last_check_at < self._status_check_interval:
                return self._status
            self._last_check_at = now

        try:
            availability = self._call_remote(None, self._peer.check_availability)
        except RemoteError as exc:
            self._handle_remote_error(exc)
            return self._status
        self._apply_availability(availability)
        return self._status

    def _apply_availability(self, availability: Availability) -> None:
        with self._lock:
            previous = self._availability
            self._availability = availability
            state, message = _AVAILABILITY_STATES[availability]
            if self._status.state is not SyncState.SYNCING:
                self._set_status(state=state, message=message)

        if availability is Availability.AVAILABLE and previous is not Availability.AVAILABLE and not self._bootstrapped:
            self._bootstrap()

    def _bootstrap(self) -> None:
        """Create the zone and subscribe. A failure waits for the next AVAILABLE transition."""
        try:
            self._call_remote(None, self._peer.ensure_container)
            self._call_remote(None, self._peer.subscribe_to_changes)
        except RemoteError as exc:
            logger.warning("Sync bootstrap failed, will retry on next availability: %s", exc)
            self._handle_remote_error(exc)
            with self._lock:
                if self._availability is Availability.AVAILABLE:
                    self._availability = Availability.UNKNOWN
            return
        with self._lock:
            self._bootstrapped = True
        logger.info("Remote zone ready and change subscription registered")

    # --- sessions --------------------------------------------------------

    def _begin_session(self, kind: str) -> Optional[SyncSession]:
        with self._lock:
            if kind == _SESSION_SYNC and self._active is not None and self._active.kind == _SESSION_RESTORE:
                return None
            if self._active is not None:
                self._active.cancel()
            self._generation += 1
            self._active = SyncSession(self._generation, kind)
            return self._active

    def _end_session(self, session: SyncSession) -> None:
        with self._lock:
            if self._active is session:
                self._active = None

    def _ready(self) -> bool:
        self.check_availability()
        with self._lock:
            return self._availability is Availability.AVAILABLE and self._bootstrapped

    def trigger_sync(self) -> SyncReport:
        """Pull remote changes, then push local ones. Never raises remote errors."""
        report = SyncReport()
        session = self._begin_session(_SESSION_SYNC)
        if session is None:
            logger.info("Sync request ignored while a full restore is running")
            report.skipped = True
            return report

        try:
            if not self._ready():
                report.skipped = True
                report.error = self._status.message
                return report

            self._set_status(state=SyncState.SYNCING, progress=0.0, message="Syncing...")
            self._pull(session, report)
            self._set_status(progress=0.5)
            self._push(session, report)
            session.raise_if_superseded()
            if not report.failed_pushes:
                report.purged = self._store.purge_confirmed_tombstones()
        except SyncSuperseded as exc:
            logger.info("%s", exc)
            report.superseded = True
            if not session.cancelled:
                # No newer session owns the status
                report.error = str(exc)
                self._fail(exc, "Sync interrupted by a concurrent update, please retry")
            return report
        except RemoteError as exc:
            report.error = str(exc)
            self._handle_remote_error(exc)
            return report
        except PersistenceError as exc:
            report.error = str(exc)
            self._fail(exc, "Local save failed, please retry")
            return report
        finally:
            self._end_session(session)

        if report.failed_pushes:
            report.error = f"{len(report.failed_pushes)} record(s) could not be uploaded"
            self._fail(RemoteConflict(report.failed_pushes[0]), report.error)
        else:
            self._set_status(
                state=SyncState.AVAILABLE,
                progress=1.0,
                last_sync_at=self._clock(),
                last_error=None,
                message="Sync complete",
            )
        logger.info(
            "Sync finished: pulled=%d inserted=%d updated=%d discarded=%d pushed=%d conflicts=%d purged=%d",
            report.pulled, report.inserted, report.updated, report.discarded, report.pushed, report.conflicts, report.purged,
        )
        return report

    def trigger_sync_async(self) -> "Future[SyncReport]":
        return self._background.submit(self.trigger_sync)

    def trigger_full_restore(self) -> SyncReport:
        """Merge every remote record from scratch. Does not use the change cursor."""
        report = SyncReport()
        session = self._begin_session(_SESSION_RESTORE)
        try:
            if not self._ready():
                report.skipped = True
                report.error = self._status.message
                return report

            self._set_status(state=SyncState.SYNCING, progress=0.0, message="Restoring...")
            estimate = self._store.count_all()
            iterator = self._call_remote(session, self._peer.pull_all)
            processed = 0
            while True:
                change = self._call_remote(session, next, iterator, _END)
                if change is _END:
                    break
                with self._store.transaction():
                    session.raise_if_superseded()
                    self._count(report, self._merger.merge(change))
                processed += 1
                report.pulled = processed
                # Total is unknown until the end, the denominator grows with what arrives
                self._set_status(progress=processed / max(estimate, processed + 1))
        except SyncSuperseded as exc:
            logger.info("%s", exc)
            report.superseded = True
            return report
        except RemoteError as exc:
            report.error = str(exc)
            self._handle_remote_error(exc)
            return report
        except PersistenceError as exc:
            report.error = str(exc)
            self._fail(exc, "Local save failed during restore, please retry")
            return report
        finally:
            self._end_session(session)

        self._set_status(
            state=SyncState.AVAILABLE,
            progress=1.0,
            last_sync_at=self._clock(),
            last_error=None,
            message="Restore complete",
        )
        logger.info("Full restore merged %d record(s)", report.pulled)
        return report

    def trigger_full_restore_async(self) -> "Future[SyncReport]":
        return self._background.submit(self.trigger_full_restore)

    # --- pull / push -----------------------------------------------------

    def _pull(self, session: SyncSession, report: SyncReport) -> None:
        cursor = self._cursors.load(self._cursor_name)
        reloads = 0
        while True:
            page = self._call_remote(session, self._peer.pull_changes, cursor)
            # Cursor commit strictly after the page is merged
            with self._store.transaction():
                session.raise_if_superseded()
                for change in page.records:
                    self._count(report, self._merger.merge(change))
                committed = self._cursors.compare_and_set(self._cursor_name, expected=cursor, new=page.next_cursor)
                if not committed:
                    # A session cancelled mid-commit got its page in first; continue from its cursor
                    reloads += 1
                    if reloads > MAX_CURSOR_RELOADS:
                        raise SyncSuperseded("change cursor keeps moving under this pull")
                    cursor = self._cursors.load(self._cursor_name)
            report.pulled += len(page.records)
            if not committed:
                logger.info("Change cursor moved during pull, continuing from %s", cursor)
                continue
            reloads = 0
            cursor = page.next_cursor
            logger.debug("Pulled page of %d change(s), has_more=%s", len(page.records), page.has_more)
            if not page.has_more:
                return

    def _push(self, session: SyncSession, report: SyncReport) -> None:
        dirty = self._store.all_dirty()
        total = len(dirty)
        for idx, record in enumerate(dirty, start=1):
            session.raise_if_superseded()
            self._push_one(session, record, report)
            self._set_status(progress=0.5 + 0.5 * idx / total)

    def _push_one(self, session: SyncSession, record: WorkRecord, report: SyncReport) -> None:
        try:
            version = self._call_remote(session, self._peer.push_record, to_change_record(record))
        except RemoteConflict as conflict:
            report.conflicts += 1
            self._resolve_conflict(session, record, conflict, report)
            return
        self._store.mark_uploaded(record.identity, version, expected_last_modified=record.last_modified)
        report.pushed += 1

    def _resolve_conflict(self, session: SyncSession, record: WorkRecord, conflict: RemoteConflict, report: SyncReport) -> None:
        """Merge the server version, then retry the push once if the local record still wins."""
        server = conflict.server_record
        if server is None:
            server = self._call_remote(session, self._peer.fetch_record, record.identity)

        server_version: Optional[str] = None
        if server is not None:
            outcome = self._merger.merge(server)
            if outcome is not MergeOutcome.DISCARDED:
                logger.info("Conflict on %s resolved in favour of the remote version", record.identity)
                self._count(report, outcome)
                return
            server_version = server.remote_version

        local = self._store.get(record.identity) or record
        try:
            version = self._call_remote(session, self._peer.push_record, to_change_record(local, remote_version=server_version))
        except RemoteConflict:
            logger.warning("Push of %s conflicted again, keeping it dirty until next sync", record.identity)
            report.failed_pushes.append(record.identity)
            return
        self._store.mark_uploaded(local.identity, version, expected_last_modified=local.last_modified)
        report.pushed += 1

    @staticmethod
    def _count(report: SyncReport, outcome: MergeOutcome) -> None:
        if outcome is MergeOutcome.INSERTED:
            report.inserted += 1
        elif outcome is MergeOutcome.UPDATED:
            report.updated += 1
        else:
            report.discarded += 1

    # --- remote calls and errors -----------------------------------------

    def _call_remote(self, session: Optional[SyncSession], fn: Callable[..., Any], *args: Any) -> Any:
        """Run a remote operation on the worker pool with a deadline.

        Waiting is cancellable: a superseded session stops waiting right away.
        """
        future = self._remote_pool.submit(fn, *args)
        deadline = time.monotonic() + self._remote_timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise RemoteTimeout(f"{getattr(fn, '__name__', 'remote call')} timed out after {self._remote_timeout:g}s")
            done, _ = wait([future], timeout=min(_POLL_SLICE_SECONDS, remaining), return_when=FIRST_COMPLETED)
            if done:
                break
            if session is not None and session.cancelled:
                future.cancel()
                session.raise_if_superseded()

        try:
            result = future.result()
        except RemoteError:
            raise
        except Exception as exc:
            raise RemoteFatal(f"Unexpected remote failure: {exc}") from exc
        if session is not None:
            session.raise_if_superseded()
        return result

    def _handle_remote_error(self, exc: RemoteError) -> None:
        if isinstance(exc, RemoteUnavailable):
            with self._lock:
                self._availability = Availability.UNAVAILABLE
            message = "Cloud storage quota exceeded" if exc.quota else "Network connection unavailable"
            logger.warning("Remote unavailable: %s", exc)
            self._set_status(state=SyncState.UNAVAILABLE, progress=0.0, message=message)
            return
        self._fail(exc, f"Sync error: {exc}")

    def _fail(self, exc: Exception, message: str) -> None:
        if isinstance(exc, PersistenceError):
            logger.error("Sync stopped by local store failure: %s", exc)
        elif isinstance(exc, RemoteTimeout):
            logger.warning("Remote operation timed out: %s", exc)
        else:
            logger.warning("Sync failed: %s", exc)
        self._set_status(state=SyncState.ERROR, progress=0.0, last_error=str(exc), message=message)

    # --- events ----------------------------------------------------------

    def notify_remote_change(self, subscription_id: Optional[str] = None) -> None:
        if self._events is not None:
            self._events.publish(RemoteChangeDetected(subscription_id=subscription_id))

    def process_events(self, *, defer_sync: bool = False) -> int:
        """Handle queued events in this (owning) context. Returns how many were handled.

        Policy changes are applied before returning. With ``defer_sync`` a
        requested sync runs on a background worker instead of the caller's thread.
        """
        if self._events is None:
            return 0
        handled = 0
        sync_requested = False
        for event in self._events.drain():
            handled += 1
            if isinstance(event, RemoteChangeDetected):
                sync_requested = True
            elif isinstance(event, PolicyChanged):
                self._store.recompute_all(event.current)
        # Several notifications collapse into one sync
        if sync_requested:
            if defer_sync:
                self.trigger_sync_async()
            else:
                self.trigger_sync()
        return handled

    def process_events_async(self) -> "Future[int]":
        return self._background.submit(self.process_events)

    def reset(self) -> None:
        """Forget the change cursor and bootstrap state (troubleshooting)."""
        with self._lock:
            if self._active is not None:
                self._active.cancel()
            self._cursors.clear(self._cursor_name)
            self._bootstrapped = False
            self._availability = Availability.UNKNOWN
            self._last_check_at = None
        self._set_status(state=SyncState.UNKNOWN, progress=0.0, message="Sync configuration reset")

    def shutdown(self) -> None:
        self._background.shutdown(wait=False)
        self._remote_pool.shutdown(wait=False)
