from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ...common.datetime_utils import now_utc
from ...core.enums import WorkDayType
from ...policy.model import Policy
from ..model import WorkRecord
from .base import WorkRecordCalculator


class StandardWorkRecordCalculator(WorkRecordCalculator):
    """Standard rule: worked = (end - start) - break, overtime against the policy day.

    Compensatory days consume a standard day of overtime, training counts as a
    standard day worked, other absences count nothing.
    """

    def standard_seconds(self, record: WorkRecord, policy: Policy) -> int:
        if record.type.counts_standard_day and policy.is_working_day(record.date):
            return policy.standard_seconds()
        return 0

    def calculate(
        self,
        record: WorkRecord,
        policy: Policy,
        *,
        now: Optional[datetime] = None,
        touch: bool = True,
    ) -> WorkRecord:
        standard = self.standard_seconds(record, policy)
        total_hours = 0.0
        overtime = 0

        if record.type is WorkDayType.WORK:
            worked = record.worked_seconds
            # Missing start/end is a normal state while editing
            if worked is not None:
                total_hours = worked / 3600.0
                overtime = int(round(worked)) - standard
        elif record.type is WorkDayType.COMPENSATORY:
            overtime = -standard
        elif record.type is WorkDayType.TRAINING:
            total_hours = standard / 3600.0

        changes: dict = {"total_hours": total_hours, "overtime_seconds": overtime}
        if not record.type.is_work_day:
            changes.update(start_time=None, end_time=None, break_seconds=0.0, bonus_amount=0.0)
        if touch:
            changes["last_modified"] = now or now_utc()
        return replace(record, **changes)
