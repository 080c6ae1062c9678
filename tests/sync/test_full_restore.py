from __future__ import annotations

import threading
from datetime import date, timedelta

from fakes import T0, FakeRemotePeer, change
from worktimer.core.enums import SyncState
from worktimer.events import SyncStatusChanged
from worktimer.sync.engine import SyncEngine


def test_restore_merges_every_remote_record_without_cursor(engine, peer, store, cursors, status_updates):
    store.create(day=date(2026, 3, 2), identity="local-only")
    for idx in range(3):
        peer.server[f"r{idx}"] = change(f"r{idx}", T0 + timedelta(seconds=idx))

    report = engine.trigger_full_restore()

    assert report.ok
    assert report.pulled == 3
    assert report.inserted == 3
    assert cursors.tokens == {}
    assert store.get("local-only") is not None
    assert engine.status.state is SyncState.AVAILABLE

    progress = [
        e.status.progress
        for e in status_updates.drain()
        if isinstance(e, SyncStatusChanged) and e.status.state is SyncState.SYNCING
    ]
    assert progress == sorted(progress)
    assert all(p < 1.0 for p in progress)
    assert engine.status.progress == 1.0


def test_restore_keeps_newer_local_edits(engine, peer, store, clock):
    peer.server["x"] = change("x", T0 - timedelta(days=1), note="old remote")
    store.create(day=date(2026, 3, 2), identity="x", note="fresh local")

    report = engine.trigger_full_restore()

    assert report.discarded == 1
    assert store.get("x").note == "fresh local"


class _SlowRestorePeer(FakeRemotePeer):
    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def pull_all(self):
        self.entered.set()
        self.release.wait(5)
        return iter([change("r", T0)])


def test_sync_requested_during_restore_is_skipped(store, cursors, clock):
    peer = _SlowRestorePeer()
    engine = SyncEngine(store, peer, cursors, clock=clock, remote_timeout=5)
    results = {}
    worker = threading.Thread(target=lambda: results.setdefault("restore", engine.trigger_full_restore()))
    worker.start()
    try:
        assert peer.entered.wait(2)
        sync_report = engine.trigger_sync()
    finally:
        peer.release.set()
        worker.join(5)
        engine.shutdown()

    assert sync_report.skipped
    assert results["restore"].ok
    assert store.get("r") is not None
