from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping, Optional

from ..core.enums import AssignmentStatus


@dataclass(frozen=True)
class ExpectedTimes:
    """Expected arrival/departure for one weekday, both "HH:MM"."""

    arrival: str
    departure: str


@dataclass(frozen=True)
class Assignment:
    """Binding of one student to one seat within one layout."""

    assignment_id: str
    academy_id: str
    seat_layout_id: str
    seat_id: str
    student_id: str
    status: AssignmentStatus
    assigned_at: datetime
    expires_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    expected_schedule: Mapping[str, ExpectedTimes] = field(default_factory=dict)

    def is_active_at(self, now: datetime) -> bool:
        if self.status != AssignmentStatus.ACTIVE:
            return False
        return self.expires_at is None or self.expires_at > now

    def expected_for(self, weekday: str) -> Optional[ExpectedTimes]:
        return self.expected_schedule.get(weekday)

    def to_dict(self) -> dict:
        return {
            "id": self.assignment_id,
            "seatLayoutId": self.seat_layout_id,
            "seatId": self.seat_id,
            "studentId": self.student_id,
            "status": self.status.value,
            "assignedAt": self.assigned_at.isoformat(),
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "releasedAt": self.released_at.isoformat() if self.released_at else None,
            "expectedSchedule": schedule_to_document(self.expected_schedule),
        }


def schedule_to_document(schedule: Mapping[str, ExpectedTimes]) -> dict:
    return {day: {"arrivalTime": t.arrival, "departureTime": t.departure} for day, t in schedule.items()}


def schedule_from_document(raw: Optional[Mapping[str, Mapping[str, str]]]) -> dict[str, ExpectedTimes]:
    return {
        str(day): ExpectedTimes(arrival=str(t["arrivalTime"]), departure=str(t["departureTime"]))
        for day, t in (raw or {}).items()
    }
