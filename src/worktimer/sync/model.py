from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import as_utc, parse_iso_date, parse_iso_datetime
from ..core.enums import WorkDayType


@dataclass(frozen=True)
class SyncCursor:
    """Opaque resumption token: everything remote up to here has been pulled."""

    token: str

    def __str__(self) -> str:
        return self.token


@dataclass(frozen=True)
class ChangeRecord:
    """Wire projection of a WorkRecord exchanged with the remote peer.

    Derived fields travel for display on other devices but are recomputed on
    receipt, since the sender may have used a different policy.
    """

    identity: str
    date: date
    type: WorkDayType
    modified_at: datetime
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    break_seconds: float = 0.0
    bonus_amount: float = 0.0
    total_hours: float = 0.0
    overtime_seconds: int = 0
    note: Optional[str] = None
    created_at: Optional[datetime] = None
    remote_version: Optional[str] = None
    is_deleted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identity,
            "date": self.date.isoformat(),
            "type": self.type.value,
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "endTime": self.end_time.isoformat() if self.end_time else None,
            "breakDuration": self.break_seconds,
            "bonusAmount": self.bonus_amount,
            "totalHours": self.total_hours,
            "overtimeSeconds": self.overtime_seconds,
            "note": self.note,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "modifiedAt": self.modified_at.isoformat(),
            "recordVersion": self.remote_version,
            "isDeleted": self.is_deleted,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeRecord":
        created = parse_iso_datetime(data.get("createdAt"))
        return cls(
            identity=str(data["id"]),
            date=parse_iso_date(str(data["date"])[:10]),
            type=WorkDayType(data.get("type", WorkDayType.WORK.value)),
            modified_at=as_utc(datetime.fromisoformat(data["modifiedAt"])),
            start_time=parse_iso_datetime(data.get("startTime")),
            end_time=parse_iso_datetime(data.get("endTime")),
            break_seconds=float(data.get("breakDuration") or 0),
            bonus_amount=float(data.get("bonusAmount") or 0),
            total_hours=float(data.get("totalHours") or 0),
            overtime_seconds=int(data.get("overtimeSeconds") or 0),
            note=data.get("note"),
            created_at=as_utc(created) if created else None,
            remote_version=data.get("recordVersion"),
            is_deleted=bool(data.get("isDeleted", False)),
        )


@dataclass(frozen=True)
class PullPage:
    records: Sequence[ChangeRecord]
    next_cursor: SyncCursor
    has_more: bool = False


@dataclass
class SyncReport:
    """What one sync session did. Returned to callers instead of raising."""

    pulled: int = 0
    inserted: int = 0
    updated: int = 0
    discarded: int = 0
    pushed: int = 0
    conflicts: int = 0
    purged: int = 0
    superseded: bool = False
    skipped: bool = False
    error: Optional[str] = None
    failed_pushes: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.superseded and not self.skipped
