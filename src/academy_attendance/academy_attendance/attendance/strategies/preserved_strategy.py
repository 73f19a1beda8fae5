from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..model import AttendanceRecord
from .base import ArrivalDecision, AttendanceStrategy, DepartureDecision


class PreservedStrategy(AttendanceStrategy):
    """Re-entry cycle: keep the first cycle's times and figures unchanged."""

    def decide_checkin(
        self,
        *,
        now: datetime,
        expected_arrival: datetime,
        current: Optional[AttendanceRecord],
        grace_minutes: int,
    ) -> ArrivalDecision:
        if current is None or current.actual_arrival_time is None:
            raise ValueError("PreservedStrategy needs a record with a first arrival")
        return ArrivalDecision(
            arrival_time=current.actual_arrival_time,
            is_late=current.is_late,
            late_minutes=current.late_minutes,
        )

    def decide_checkout(
        self,
        *,
        now: datetime,
        expected_departure: datetime,
        current: AttendanceRecord,
    ) -> DepartureDecision:
        if current.actual_departure_time is None:
            raise ValueError("PreservedStrategy needs a record with a first departure")
        return DepartureDecision(
            departure_time=current.actual_departure_time,
            is_early_leave=current.is_early_leave,
            early_leave_minutes=current.early_leave_minutes,
        )
