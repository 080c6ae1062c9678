from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class PeriodSummary:
    start: date
    end: date
    total_hours: float = 0.0
    overtime_seconds: int = 0
    total_bonus: float = 0.0
    vacation_days_used: float = 0.0
    work_days: int = 0
    sick_days: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["start"] = self.start.isoformat()
        data["end"] = self.end.isoformat()
        return data


@dataclass(frozen=True)
class MonthSummary:
    year: int
    month: int
    summary: PeriodSummary

    def to_dict(self) -> dict[str, Any]:
        return {"year": self.year, "month": self.month, **self.summary.to_dict()}


@dataclass(frozen=True)
class VacationBalance:
    year: int
    allotted_days: float
    used_days: float

    @property
    def remaining_days(self) -> float:
        return self.allotted_days - self.used_days

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.year,
            "allotted_days": self.allotted_days,
            "used_days": self.used_days,
            "remaining_days": self.remaining_days,
        }
