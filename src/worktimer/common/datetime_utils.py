from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def now_utc() -> datetime:
    """Current timezone-aware UTC time, used for modification timestamps."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive values read back from storage; convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day (inclusive) of a month."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


def year_bounds(year: int) -> tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def day_before(value: date) -> date:
    return value - timedelta(days=1)


def format_duration(seconds: float) -> str:
    """Signed hours/minutes, e.g. ``-1h30`` or ``8h05``."""
    total_minutes = int(round(seconds / 60))
    hours, minutes = divmod(abs(total_minutes), 60)
    sign = "-" if seconds < 0 and total_minutes != 0 else ""
    return f"{sign}{hours}h{minutes:02d}"


def format_hours(hours: float, *, use_decimal: bool) -> str:
    if use_decimal:
        return f"{hours:.2f}"
    return format_duration(hours * 3600)
