from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..model import AttendanceRecord


@dataclass(frozen=True)
class ArrivalDecision:
    arrival_time: datetime
    is_late: bool
    late_minutes: int


@dataclass(frozen=True)
class DepartureDecision:
    departure_time: datetime
    is_early_leave: bool
    early_leave_minutes: int


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how arrival/departure figures are decided."""

    @abstractmethod
    def decide_checkin(
        self,
        *,
        now: datetime,
        expected_arrival: datetime,
        current: Optional[AttendanceRecord],
        grace_minutes: int,
    ) -> ArrivalDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(
        self,
        *,
        now: datetime,
        expected_departure: datetime,
        current: AttendanceRecord,
    ) -> DepartureDecision:
        raise NotImplementedError
