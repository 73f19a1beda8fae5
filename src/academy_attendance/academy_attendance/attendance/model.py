from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, CheckMethod


def make_record_id(student_id: str, work_date: date, seat_layout_id: str) -> str:
    """Composite key: one record per (student, day, layout)."""
    return f"{student_id}_{work_date.strftime('%Y%m%d')}_{seat_layout_id}"


@dataclass(frozen=True)
class AttendanceRecord:
    """Per-student, per-day attendance document."""

    record_id: str
    academy_id: str
    student_id: str
    seat_layout_id: str
    seat_id: str
    seat_number: str
    work_date: date
    day_of_week: str
    expected_arrival_time: str
    expected_departure_time: str
    status: AttendanceStatus
    created_by: CheckMethod
    created_at: datetime
    updated_at: datetime
    actual_arrival_time: Optional[datetime] = None
    actual_departure_time: Optional[datetime] = None
    is_late: bool = False
    late_minutes: int = 0
    is_early_leave: bool = False
    early_leave_minutes: int = 0
    excused_reason: Optional[str] = None
    excused_note: Optional[str] = None
    excused_by: Optional[str] = None
    check_in_method: Optional[CheckMethod] = None
    check_out_method: Optional[CheckMethod] = None
    version: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "studentId": self.student_id,
            "seatLayoutId": self.seat_layout_id,
            "seatId": self.seat_id,
            "seatNumber": self.seat_number,
            "date": self.work_date.isoformat(),
            "dayOfWeek": self.day_of_week,
            "expectedArrivalTime": self.expected_arrival_time,
            "expectedDepartureTime": self.expected_departure_time,
            "actualArrivalTime": self.actual_arrival_time.isoformat() if self.actual_arrival_time else None,
            "actualDepartureTime": self.actual_departure_time.isoformat() if self.actual_departure_time else None,
            "status": self.status.value,
            "isLate": self.is_late,
            "lateMinutes": self.late_minutes,
            "isEarlyLeave": self.is_early_leave,
            "earlyLeaveMinutes": self.early_leave_minutes,
            "excusedReason": self.excused_reason,
            "excusedNote": self.excused_note,
            "createdBy": self.created_by.value,
            "checkInMethod": self.check_in_method.value if self.check_in_method else None,
            "checkOutMethod": self.check_out_method.value if self.check_out_method else None,
        }
