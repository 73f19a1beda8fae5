from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...common.datetime_utils import minutes_between
from ..model import AttendanceRecord
from .base import ArrivalDecision, AttendanceStrategy, DepartureDecision


class MeasuredStrategy(AttendanceStrategy):
    """Measure lateness/early leave against the expected times, clamped at zero."""

    def decide_checkin(
        self,
        *,
        now: datetime,
        expected_arrival: datetime,
        current: Optional[AttendanceRecord],
        grace_minutes: int,
    ) -> ArrivalDecision:
        late_minutes = max(0, minutes_between(expected_arrival, now))
        return ArrivalDecision(arrival_time=now, is_late=late_minutes > grace_minutes, late_minutes=late_minutes)

    def decide_checkout(
        self,
        *,
        now: datetime,
        expected_departure: datetime,
        current: AttendanceRecord,
    ) -> DepartureDecision:
        early_minutes = max(0, minutes_between(now, expected_departure))
        return DepartureDecision(departure_time=now, is_early_leave=early_minutes > 0, early_leave_minutes=early_minutes)
