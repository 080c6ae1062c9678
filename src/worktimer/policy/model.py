from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

from ..core.constants import (
    DEFAULT_ANNUAL_VACATION_DAYS,
    DEFAULT_STANDARD_DAILY_HOURS,
    DEFAULT_WEEKLY_HOURS,
    DEFAULT_WORKING_DAYS,
)


@dataclass(frozen=True)
class Policy:
    """Snapshot of the schedule settings used by every calculation.

    ``working_days`` is Monday-first, matching ``date.weekday()``.
    """

    standard_daily_hours: float = DEFAULT_STANDARD_DAILY_HOURS
    working_days: tuple[bool, ...] = DEFAULT_WORKING_DAYS
    use_decimal_hours: bool = False
    annual_vacation_days: int = DEFAULT_ANNUAL_VACATION_DAYS
    weekly_hours: float = DEFAULT_WEEKLY_HOURS

    def is_working_day(self, day: date) -> bool:
        idx = day.weekday()
        return idx < len(self.working_days) and bool(self.working_days[idx])

    def standard_seconds(self) -> int:
        return int(round(self.standard_daily_hours * 3600))

    @property
    def working_day_count(self) -> int:
        return sum(1 for d in self.working_days if d)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["working_days"] = list(self.working_days)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Policy":
        defaults = cls()
        return cls(
            standard_daily_hours=float(data.get("standard_daily_hours", defaults.standard_daily_hours)),
            working_days=tuple(bool(v) for v in data.get("working_days", defaults.working_days)),
            use_decimal_hours=bool(data.get("use_decimal_hours", defaults.use_decimal_hours)),
            annual_vacation_days=int(data.get("annual_vacation_days", defaults.annual_vacation_days)),
            weekly_hours=float(data.get("weekly_hours", defaults.weekly_hours)),
        )
