from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ReentryPolicy
from .model import AttendanceRecord
from .strategies.base import AttendanceStrategy
from .strategies.measured_strategy import MeasuredStrategy
from .strategies.preserved_strategy import PreservedStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: first cycle is always measured; re-entry follows the policy."""

    reentry_policy: ReentryPolicy = ReentryPolicy.PRESERVE

    @property
    def recalculates(self) -> bool:
        return self.reentry_policy == ReentryPolicy.RECALCULATE

    def for_checkin(self, *, current: Optional[AttendanceRecord]) -> AttendanceStrategy:
        if current is None or current.actual_arrival_time is None:
            return MeasuredStrategy()
        if self.recalculates:
            return MeasuredStrategy()
        return PreservedStrategy()

    def for_checkout(self, *, current: AttendanceRecord) -> AttendanceStrategy:
        if current.actual_departure_time is None:
            return MeasuredStrategy()
        if self.recalculates:
            return MeasuredStrategy()
        return PreservedStrategy()
