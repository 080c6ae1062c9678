from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ...policy.model import Policy
from ..model import WorkRecord


class WorkRecordCalculator(ABC):
    """Calculator interface (Strategy Pattern for derived record fields)."""

    @abstractmethod
    def standard_seconds(self, record: WorkRecord, policy: Policy) -> int:
        raise NotImplementedError

    @abstractmethod
    def calculate(
        self,
        record: WorkRecord,
        policy: Policy,
        *,
        now: Optional[datetime] = None,
        touch: bool = True,
    ) -> WorkRecord:
        """Return ``record`` with derived fields recomputed.

        With ``touch`` the result carries ``last_modified=now``; merge and
        policy-driven recomputes pass ``touch=False`` to keep the timestamp of
        the edit they reflect.
        """
        raise NotImplementedError
