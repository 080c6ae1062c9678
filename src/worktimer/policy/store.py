from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Optional

from ..common.validators import require_non_negative, require_positive, require_weekday_flags
from ..core.constants import POLICY_SETTINGS_KEY
from ..core.exceptions import ValidationError
from ..events import EventChannel, PolicyChanged
from .model import Policy
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {
    "standard_daily_hours",
    "working_days",
    "use_decimal_hours",
    "annual_vacation_days",
    "weekly_hours",
}


class PolicyStore:
    """Holds the current :class:`Policy`.

    Reads return an immutable snapshot and never block on writers; writes
    replace the snapshot atomically, persist it, and publish ``PolicyChanged``.
    Calculations receive the snapshot as an explicit argument.
    """

    def __init__(self, settings: Optional[SettingsRepository] = None, *, events: Optional[EventChannel] = None):
        self._settings = settings
        self._events = events
        self._write_lock = threading.Lock()
        self._policy = Policy()

    def load(self) -> Policy:
        """Load persisted settings, keeping defaults for anything missing."""
        if self._settings is None:
            return self._policy
        raw = self._settings.load(POLICY_SETTINGS_KEY)
        if raw:
            try:
                self._policy = Policy.from_dict(raw)
            except (TypeError, ValueError):
                logger.warning("Stored policy is unreadable, using defaults", exc_info=True)
                self._policy = Policy()
        return self._policy

    def get(self) -> Policy:
        return self._policy

    def update(self, **changes: Any) -> Policy:
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown policy field(s): {', '.join(sorted(unknown))}")

        with self._write_lock:
            previous = self._policy
            candidate = replace(previous, **self._validated(changes))
            if candidate == previous:
                return previous
            self._commit(previous, candidate)
            return candidate

    def set_weekly_hours(self, weekly_hours: float, *, working_days: Optional[list[bool]] = None) -> Policy:
        """Set weekly hours and derive daily hours from the enabled weekdays."""
        weekly_hours = float(require_non_negative(weekly_hours, "weekly_hours"))
        with self._write_lock:
            previous = self._policy
            days = require_weekday_flags(working_days, "working_days") if working_days is not None else previous.working_days
            count = sum(1 for d in days if d)
            if count == 0:
                raise ValidationError("At least one working day is required to derive daily hours")
            candidate = replace(
                previous,
                weekly_hours=weekly_hours,
                working_days=days,
                standard_daily_hours=weekly_hours / count,
            )
            if candidate != previous:
                self._commit(previous, candidate)
            return candidate

    def reset_to_defaults(self) -> Policy:
        with self._write_lock:
            previous = self._policy
            candidate = Policy()
            if candidate != previous:
                self._commit(previous, candidate)
            return candidate

    def _commit(self, previous: Policy, candidate: Policy) -> None:
        if self._settings is not None:
            self._settings.save(POLICY_SETTINGS_KEY, candidate.to_dict())
        self._policy = candidate
        logger.info(
            "Policy updated: %.2fh/day, working days=%s",
            candidate.standard_daily_hours,
            "".join("1" if d else "0" for d in candidate.working_days),
        )
        if self._events is not None:
            self._events.publish(PolicyChanged(previous=previous, current=candidate))

    @staticmethod
    def _validated(changes: dict[str, Any]) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if "standard_daily_hours" in changes:
            out["standard_daily_hours"] = float(require_positive(changes["standard_daily_hours"], "standard_daily_hours"))
        if "working_days" in changes:
            out["working_days"] = require_weekday_flags(changes["working_days"], "working_days")
        if "use_decimal_hours" in changes:
            out["use_decimal_hours"] = bool(changes["use_decimal_hours"])
        if "annual_vacation_days" in changes:
            out["annual_vacation_days"] = int(require_non_negative(changes["annual_vacation_days"], "annual_vacation_days"))
        if "weekly_hours" in changes:
            out["weekly_hours"] = float(require_non_negative(changes["weekly_hours"], "weekly_hours"))
        return out
