from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date


@dataclass(frozen=True)
class StatsSummary:
    seat_layout_id: str
    work_date: date
    total_seats: int
    assigned_seats: int
    checked_in: int
    checked_out: int
    not_arrived: int
    absent_excused: int
    absent_unexcused: int
    late_count: int
    early_leave_count: int

    @property
    def attendance_rate(self) -> float:
        if self.assigned_seats == 0:
            return 0.0
        return (self.checked_in + self.checked_out) / self.assigned_seats

    def to_dict(self) -> dict:
        raw = asdict(self)
        return {
            "seatLayoutId": raw["seat_layout_id"],
            "date": self.work_date.isoformat(),
            "totalSeats": raw["total_seats"],
            "assignedSeats": raw["assigned_seats"],
            "checkedIn": raw["checked_in"],
            "checkedOut": raw["checked_out"],
            "notArrived": raw["not_arrived"],
            "absentExcused": raw["absent_excused"],
            "absentUnexcused": raw["absent_unexcused"],
            "lateCount": raw["late_count"],
            "earlyLeaveCount": raw["early_leave_count"],
            "attendanceRate": round(self.attendance_rate, 4),
        }
