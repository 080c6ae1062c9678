from __future__ import annotations

from datetime import date, datetime, timezone

from worktimer.core.enums import WorkDayType
from worktimer.policy.model import Policy
from worktimer.records.calculator.standard_calculator import StandardWorkRecordCalculator
from worktimer.records.model import WorkRecord

MONDAY = date(2026, 3, 2)
SATURDAY = date(2026, 3, 7)
NOW = datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)


def _work(day=MONDAY, start=(9, 0), end=(17, 30), break_seconds=1800.0, **kw) -> WorkRecord:
    return WorkRecord(
        identity="r1",
        date=day,
        type=WorkDayType.WORK,
        start_time=datetime(day.year, day.month, day.day, *start) if start else None,
        end_time=datetime(day.year, day.month, day.day, *end) if end else None,
        break_seconds=break_seconds,
        **kw,
    )


def test_eight_hour_day_with_half_hour_break_has_no_overtime():
    out = StandardWorkRecordCalculator().calculate(_work(), Policy(), now=NOW)

    assert out.total_hours == 8.0
    assert out.overtime_seconds == 0
    assert out.last_modified == NOW


def test_no_break_gives_half_hour_overtime():
    out = StandardWorkRecordCalculator().calculate(_work(break_seconds=0), Policy(), now=NOW)

    assert out.total_hours == 8.5
    assert out.overtime_seconds == 1800


def test_work_on_disabled_weekday_is_all_overtime():
    out = StandardWorkRecordCalculator().calculate(_work(day=SATURDAY), Policy(), now=NOW)

    assert out.overtime_seconds == 8 * 3600


def test_compensatory_day_consumes_a_standard_day():
    record = WorkRecord(identity="c", date=MONDAY, type=WorkDayType.COMPENSATORY, break_seconds=0)
    out = StandardWorkRecordCalculator().calculate(record, Policy(), now=NOW)

    assert out.total_hours == 0
    assert out.overtime_seconds == -28800


def test_compensatory_on_weekend_costs_nothing():
    record = WorkRecord(identity="c", date=SATURDAY, type=WorkDayType.COMPENSATORY)
    out = StandardWorkRecordCalculator().calculate(record, Policy(), now=NOW)

    assert out.overtime_seconds == 0


def test_training_has_no_overtime_impact():
    record = WorkRecord(identity="t", date=MONDAY, type=WorkDayType.TRAINING)
    out = StandardWorkRecordCalculator().calculate(record, Policy(), now=NOW)

    assert out.overtime_seconds == 0
    assert out.total_hours == 0


def test_non_work_types_clear_time_fields():
    record = WorkRecord(
        identity="v",
        date=MONDAY,
        type=WorkDayType.VACATION,
        start_time=datetime(2026, 3, 2, 9, 0),
        end_time=datetime(2026, 3, 2, 17, 0),
        break_seconds=3600,
        bonus_amount=50,
    )
    out = StandardWorkRecordCalculator().calculate(record, Policy(), now=NOW)

    assert out.start_time is None
    assert out.end_time is None
    assert out.break_seconds == 0
    assert out.bonus_amount == 0
    assert (out.total_hours, out.overtime_seconds) == (0, 0)


def test_missing_end_time_leaves_derived_fields_at_zero():
    out = StandardWorkRecordCalculator().calculate(_work(end=None), Policy(), now=NOW)

    assert out.total_hours == 0
    assert out.overtime_seconds == 0


def test_calculation_is_idempotent():
    calc = StandardWorkRecordCalculator()
    once = calc.calculate(_work(), Policy(), now=NOW)
    twice = calc.calculate(once, Policy(), now=NOW)

    assert once == twice


def test_untouched_recompute_keeps_last_modified():
    original = _work(last_modified=datetime(2026, 1, 1, tzinfo=timezone.utc))
    out = StandardWorkRecordCalculator().calculate(original, Policy(standard_daily_hours=7.0), touch=False)

    assert out.last_modified == original.last_modified
    assert out.overtime_seconds == 3600


def test_is_valid_matches_work_constraints():
    assert _work().is_valid
    assert not _work(end=(8, 0)).is_valid
    assert not _work(break_seconds=-1).is_valid
    assert not _work(start=(9, 0), end=(9, 30), break_seconds=3600).is_valid
    assert not _work(bonus_amount=-5).is_valid
    assert not _work(end=None).is_valid
    assert WorkRecord(identity="h", date=MONDAY, type=WorkDayType.HOLIDAY).is_valid
