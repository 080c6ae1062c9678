from __future__ import annotations

import io
from datetime import date
from typing import Iterable, Optional

import pandas as pd

from ..common.datetime_utils import day_before, format_duration, format_hours, month_bounds, year_bounds
from ..core.enums import WorkDayType
from ..policy.model import Policy
from ..records.model import WorkRecord
from ..records.service import LocalStore
from .model import MonthSummary, PeriodSummary, VacationBalance

_VACATION_WEIGHT = {
    WorkDayType.VACATION: 1.0,
    WorkDayType.HALF_DAY_VACATION: 0.5,
}

_EXCEL_COLUMNS = [
    "Date",
    "Type",
    "Start",
    "End",
    "Break",
    "Hours",
    "Overtime",
    "Bonus",
    "Note",
]


def aggregate(records: Iterable[WorkRecord], *, start: date, end: date) -> PeriodSummary:
    """Roll up live records. Deleted records never count."""
    total_hours = 0.0
    overtime = 0
    bonus = 0.0
    vacation = 0.0
    work_days = 0
    sick_days = 0
    for r in records:
        if r.is_deleted:
            continue
        # Compensatory and training days still move the overtime balance
        overtime += int(r.overtime_seconds)
        bonus += r.bonus_amount
        vacation += _VACATION_WEIGHT.get(r.type, 0.0)
        if r.type is WorkDayType.WORK:
            total_hours += r.total_hours
            work_days += 1
        elif r.type is WorkDayType.SICK_LEAVE:
            sick_days += 1
    return PeriodSummary(
        start=start,
        end=end,
        total_hours=total_hours,
        overtime_seconds=overtime,
        total_bonus=bonus,
        vacation_days_used=vacation,
        work_days=work_days,
        sick_days=sick_days,
    )


class ReportService:
    """Read-side statistics over the local record collection. No side effects."""

    def __init__(self, store: LocalStore):
        self._store = store

    def summarize(self, start: date, end: date) -> PeriodSummary:
        return aggregate(self._store.query_by_date_range(start, end), start=start, end=end)

    def month_summary(self, year: int, month: int) -> MonthSummary:
        start, end = month_bounds(year, month)
        return MonthSummary(year=year, month=month, summary=self.summarize(start, end))

    def monthly_breakdown(self, year: int) -> list[MonthSummary]:
        start, end = year_bounds(year)
        records = self._store.query_by_date_range(start, end)
        out: list[MonthSummary] = []
        for month in range(1, 13):
            m_start, m_end = month_bounds(year, month)
            in_month = [r for r in records if m_start <= r.date <= m_end]
            out.append(MonthSummary(year=year, month=month, summary=aggregate(in_month, start=m_start, end=m_end)))
        return out

    def year_summary(self, year: int) -> PeriodSummary:
        start, end = year_bounds(year)
        return self.summarize(start, end)

    def cumulative_overtime(self, year: int) -> int:
        """Overtime balance carried into ``year`` plus the year's own overtime."""
        start, end = year_bounds(year)
        earlier = sum(int(r.overtime_seconds) for r in self._store.list_live() if r.date <= day_before(start))
        return earlier + self.summarize(start, end).overtime_seconds

    def vacation_balance(self, year: int, policy: Optional[Policy] = None) -> VacationBalance:
        policy = policy or self._store.current_policy()
        used = self.year_summary(year).vacation_days_used
        return VacationBalance(year=year, allotted_days=float(policy.annual_vacation_days), used_days=used)

    def rows_for_export(self, year: int, policy: Optional[Policy] = None) -> list[dict]:
        policy = policy or self._store.current_policy()
        start, end = year_bounds(year)
        rows: list[dict] = []
        for r in sorted(self._store.query_by_date_range(start, end), key=lambda x: (x.date, x.start_time or x.created_at.replace(tzinfo=None))):
            rows.append(
                {
                    "Date": r.date.isoformat(),
                    "Type": r.type.value,
                    "Start": r.start_time.strftime("%H:%M") if r.start_time else "",
                    "End": r.end_time.strftime("%H:%M") if r.end_time else "",
                    "Break": format_duration(r.break_seconds) if r.type.is_work_day else "",
                    "Hours": format_hours(r.total_hours, use_decimal=policy.use_decimal_hours),
                    "Overtime": format_duration(r.overtime_seconds),
                    "Bonus": r.bonus_amount,
                    "Note": r.note or "",
                }
            )
        return rows

    def export_year_excel(self, year: int, policy: Optional[Policy] = None) -> bytes:
        """Workbook with the year's records and a per-month summary sheet."""
        policy = policy or self._store.current_policy()
        records_df = pd.DataFrame(self.rows_for_export(year, policy), columns=_EXCEL_COLUMNS)

        months = []
        for m in self.monthly_breakdown(year):
            s = m.summary
            months.append(
                {
                    "Month": f"{year}-{m.month:02d}",
                    "Work days": s.work_days,
                    "Hours": format_hours(s.total_hours, use_decimal=policy.use_decimal_hours),
                    "Overtime": format_duration(s.overtime_seconds),
                    "Vacation days": s.vacation_days_used,
                    "Sick days": s.sick_days,
                    "Bonus": s.total_bonus,
                }
            )
        summary_df = pd.DataFrame(months)

        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            records_df.to_excel(writer, index=False, sheet_name="Records")
            summary_df.to_excel(writer, index=False, sheet_name="Summary")
        return output.getvalue()
