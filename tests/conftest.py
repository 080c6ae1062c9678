from __future__ import annotations

import pytest

from fakes import FakeClock, FakeRemotePeer, InMemoryCursors, InMemorySettings, InMemoryWorkRecords
from worktimer.events import EventChannel
from worktimer.policy.store import PolicyStore
from worktimer.records.service import LocalStore
from worktimer.sync.engine import SyncEngine


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def records():
    return InMemoryWorkRecords()


@pytest.fixture
def settings():
    return InMemorySettings()


@pytest.fixture
def events():
    return EventChannel()


@pytest.fixture
def policy_store(settings, events):
    store = PolicyStore(settings, events=events)
    store.load()
    return store


@pytest.fixture
def store(records, policy_store, clock):
    return LocalStore(records, policy_store.get, clock=clock)


@pytest.fixture
def cursors():
    return InMemoryCursors()


@pytest.fixture
def peer():
    return FakeRemotePeer()


@pytest.fixture
def status_updates():
    return EventChannel()


@pytest.fixture
def engine(store, peer, cursors, events, status_updates, clock):
    eng = SyncEngine(
        store,
        peer,
        cursors,
        events=events,
        status_updates=status_updates,
        clock=clock,
        remote_timeout=5,
    )
    yield eng
    eng.shutdown()
