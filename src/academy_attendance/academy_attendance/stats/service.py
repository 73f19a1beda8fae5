from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Optional

from ..assignments.service import AssignmentService
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceStatus
from ..core.session import Caller, require_staff
from ..seats.service import SeatLayoutService
from .model import StatsSummary


class StatsService:
    """Read-only daily counts for one layout, recomputed on every call."""

    def __init__(self, layouts: SeatLayoutService, assignments: AssignmentService, attendance: AttendanceService):
        self._layouts = layouts
        self._assignments = assignments
        self._attendance = attendance

    def compute(
        self, caller: Caller, *, seat_layout_id: str, work_date: date, now: Optional[datetime] = None
    ) -> StatsSummary:
        require_staff(caller)
        layout = self._layouts.get_layout(caller, seat_layout_id)
        active = self._assignments.list_active(caller, seat_layout_id, now=now or now_local())
        records = {
            r.student_id: r
            for r in self._attendance.list_records(caller, seat_layout_id=seat_layout_id, work_date=work_date)
        }

        # Bucket by assigned student so the status counts always add up to assigned seats.
        buckets: Counter = Counter()
        late = early = 0
        for assignment in active:
            record = records.get(assignment.student_id)
            buckets[record.status if record else AttendanceStatus.NOT_ARRIVED] += 1
            if record and record.is_late:
                late += 1
            if record and record.is_early_leave:
                early += 1

        return StatsSummary(
            seat_layout_id=seat_layout_id,
            work_date=work_date,
            total_seats=layout.total_seats,
            assigned_seats=len(active),
            checked_in=buckets[AttendanceStatus.CHECKED_IN],
            checked_out=buckets[AttendanceStatus.CHECKED_OUT],
            not_arrived=buckets[AttendanceStatus.NOT_ARRIVED],
            absent_excused=buckets[AttendanceStatus.ABSENT_EXCUSED],
            absent_unexcused=buckets[AttendanceStatus.ABSENT_UNEXCUSED],
            late_count=late,
            early_leave_count=early,
        )
