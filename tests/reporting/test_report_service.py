from __future__ import annotations

import io
from datetime import date, datetime

import openpyxl
import pytest

from worktimer.core.enums import WorkDayType
from worktimer.policy.model import Policy
from worktimer.reporting.service import ReportService


def _work(store, day: date, end_hour: int, bonus: float = 0.0):
    return store.create(
        day=day,
        start_time=datetime(day.year, day.month, day.day, 9, 0),
        end_time=datetime(day.year, day.month, day.day, end_hour, 0),
        break_seconds=3600,
        bonus_amount=bonus,
    )


@pytest.fixture
def populated(store):
    _work(store, date(2026, 3, 2), 18, bonus=20)  # 8h, 0 overtime
    _work(store, date(2026, 3, 3), 19, bonus=5)  # 9h, +1h
    store.create(day=date(2026, 3, 4), type=WorkDayType.VACATION)
    store.create(day=date(2026, 3, 5), type=WorkDayType.HALF_DAY_VACATION)
    store.create(day=date(2026, 3, 6), type=WorkDayType.COMPENSATORY)  # -8h
    store.create(day=date(2026, 3, 9), type=WorkDayType.SICK_LEAVE)
    store.create(day=date(2026, 3, 10), type=WorkDayType.TRAINING)
    gone = _work(store, date(2026, 3, 11), 20)
    store.soft_delete(gone.identity)
    _work(store, date(2025, 12, 1), 20)  # +2h in the previous year
    return store


def test_summarize_month(populated):
    s = ReportService(populated).summarize(date(2026, 3, 1), date(2026, 3, 31))

    assert s.total_hours == 17.0
    assert s.overtime_seconds == 3600 - 28800
    assert s.total_bonus == 25.0
    assert s.vacation_days_used == 1.5
    assert s.work_days == 2
    assert s.sick_days == 1


def test_deleted_records_are_excluded(populated):
    s = ReportService(populated).summarize(date(2026, 3, 11), date(2026, 3, 11))

    assert s.total_hours == 0
    assert s.work_days == 0


def test_monthly_breakdown_covers_twelve_months(populated):
    months = ReportService(populated).monthly_breakdown(2026)

    assert [m.month for m in months] == list(range(1, 13))
    assert months[2].summary.work_days == 2
    assert months[0].summary.total_hours == 0


def test_cumulative_overtime_includes_previous_years(populated):
    svc = ReportService(populated)

    assert svc.year_summary(2025).overtime_seconds == 7200
    assert svc.cumulative_overtime(2026) == 7200 + 3600 - 28800


def test_vacation_balance(populated):
    balance = ReportService(populated).vacation_balance(2026, Policy(annual_vacation_days=25))

    assert balance.used_days == 1.5
    assert balance.remaining_days == 23.5


def test_summary_is_read_only(populated, records):
    before = dict(records.rows)

    ReportService(populated).year_summary(2026)

    assert records.rows == before


def test_excel_export_has_records_and_summary_sheets(populated):
    content = ReportService(populated).export_year_excel(2026)

    book = openpyxl.load_workbook(io.BytesIO(content))
    assert book.sheetnames == ["Records", "Summary"]
    rows = list(book["Records"].iter_rows(values_only=True))
    assert rows[0][0] == "Date"
    assert len(rows) == 1 + 7
    assert book["Summary"].max_row == 13
