from __future__ import annotations

from datetime import datetime

import pytest

from fakes import FakeClock
from worktimer.core.enums import TimerState, WorkDayType
from worktimer.core.exceptions import ValidationError
from worktimer.timer.service import WorkTimer


@pytest.fixture
def local_clock():
    return FakeClock(datetime(2026, 3, 2, 9, 0))


@pytest.fixture
def timer(store, settings, local_clock):
    return WorkTimer(store, settings, clock=local_clock)


def test_start_day_opens_work_record(timer, store):
    record = timer.start_day()

    assert timer.state is TimerState.RUNNING
    saved = store.get(record.identity)
    assert saved.type is WorkDayType.WORK
    assert saved.start_time == datetime(2026, 3, 2, 9, 0)
    assert saved.end_time is None
    assert saved.break_seconds == 0


def test_pauses_become_the_break(timer, local_clock):
    timer.start_day()
    local_clock.advance(4 * 3600)
    timer.pause()
    local_clock.advance(1800)
    timer.resume()
    local_clock.advance(4 * 3600)

    record = timer.end_day()

    assert timer.state is TimerState.FINISHED
    assert record.break_seconds == 1800
    assert record.total_hours == 8.0
    assert record.overtime_seconds == 0


def test_end_day_while_paused_counts_open_pause(timer, local_clock):
    timer.start_day()
    local_clock.advance(8 * 3600)
    timer.pause()
    local_clock.advance(600)

    record = timer.end_day()

    assert record.break_seconds == 600
    assert record.total_hours == 8.0


def test_elapsed_excludes_pause(timer, local_clock):
    timer.start_day()
    local_clock.advance(3600)
    timer.pause()
    local_clock.advance(900)

    assert timer.elapsed_seconds() == 3600
    assert timer.remaining_seconds() == 7 * 3600


def test_cannot_start_twice(timer):
    timer.start_day()

    with pytest.raises(ValidationError):
        timer.start_day()


def test_end_without_start_is_rejected(timer):
    with pytest.raises(ValidationError):
        timer.end_day()


def test_toggle_cycles_through_states(timer, local_clock):
    assert timer.toggle().state is TimerState.RUNNING
    local_clock.advance(60)
    assert timer.toggle().state is TimerState.PAUSED
    local_clock.advance(60)
    assert timer.toggle().state is TimerState.RUNNING
    timer.end_day()
    assert timer.toggle().state is TimerState.NOT_STARTED


def test_state_survives_restart(store, settings, local_clock):
    first = WorkTimer(store, settings, clock=local_clock)
    first.start_day()
    local_clock.advance(600)
    first.pause()

    second = WorkTimer(store, settings, clock=local_clock)

    assert second.state is TimerState.PAUSED
    assert second.snapshot.record_identity == first.snapshot.record_identity
    assert second.snapshot.pause_started_at == local_clock.now
