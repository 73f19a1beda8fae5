from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from ..assignments.model import Assignment
from ..assignments.service import AssignmentService
from ..common.datetime_utils import day_of_week, now_local, parse_hhmm
from ..core.constants import (
    ABSENCE_CONFIRM_AFTER_MINUTES,
    ABSENCE_GRACE_MINUTES,
    DEFAULT_ARRIVAL_TIME,
    DEFAULT_DEPARTURE_TIME,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LATE_GRACE_MINUTES,
)
from ..core.enums import AbsenceType, AttendanceStatus, CheckMethod
from ..core.events import EventBus, RecordTransitioned
from ..core.exceptions import ConflictError, ConflictReason, ValidationError
from ..core.session import Caller, require_self_or_staff, require_staff
from ..seats.service import SeatLayoutService
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, make_record_id
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

# Receives the stored record (None when missing) and returns the record to write.
Transition = Callable[[Optional[AttendanceRecord]], AttendanceRecord]


class AttendanceService:
    """Per-(student, day, layout) attendance state machine."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        assignments: AssignmentService,
        layouts: SeatLayoutService,
        events: EventBus,
        *,
        strategy_factory: AttendanceStrategyFactory | None = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
        default_arrival: str = DEFAULT_ARRIVAL_TIME,
        default_departure: str = DEFAULT_DEPARTURE_TIME,
    ):
        self._attendance = attendance
        self._assignments = assignments
        self._layouts = layouts
        self._events = events
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._grace_minutes = int(grace_minutes)
        self._default_arrival = default_arrival
        self._default_departure = default_departure

    # ---- reads ----

    def get_record(
        self, caller: Caller, *, student_id: str, seat_layout_id: str, work_date: date
    ) -> Optional[AttendanceRecord]:
        require_self_or_staff(caller, student_id)
        return self._attendance.get(
            academy_id=caller.academy_id, record_id=make_record_id(student_id, work_date, seat_layout_id)
        )

    def list_records(self, caller: Caller, *, seat_layout_id: str, work_date: date) -> Sequence[AttendanceRecord]:
        require_staff(caller)
        return self._attendance.list_for_layout_date(
            academy_id=caller.academy_id, seat_layout_id=seat_layout_id, work_date=work_date
        )

    def list_student_history(
        self,
        caller: Caller,
        *,
        student_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        seat_layout_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest-first records for one student, optionally within an inclusive date range."""

        require_self_or_staff(caller, student_id)
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")
        return self._attendance.list_for_student(
            academy_id=caller.academy_id,
            student_id=student_id,
            limit=limit,
            start_date=start_date,
            end_date=end_date,
            seat_layout_id=seat_layout_id,
        )

    # ---- transitions ----

    def check_in(
        self,
        caller: Caller,
        *,
        student_id: str,
        seat_layout_id: str,
        method: CheckMethod = CheckMethod.MANUAL,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        require_self_or_staff(caller, student_id)
        now = now or now_local()
        assignment = self._assignments.get_active_for_student(
            caller, student_id=student_id, seat_layout_id=seat_layout_id, now=now
        )

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            if current is not None and current.status.is_final:
                raise ConflictError(ConflictReason.ALREADY_FINALIZED, "Attendance is already finalized for today")
            if current is not None and current.status == AttendanceStatus.CHECKED_IN:
                return current

            base = current or self._new_record(caller, assignment, now.date(), now, created_by=method)
            expected = datetime.combine(base.work_date, parse_hhmm(base.expected_arrival_time))
            strategy = self._factory.for_checkin(current=current)
            decision = strategy.decide_checkin(
                now=now, expected_arrival=expected, current=current, grace_minutes=self._grace_minutes
            )
            updated = replace(
                base,
                status=AttendanceStatus.CHECKED_IN,
                actual_arrival_time=decision.arrival_time,
                is_late=decision.is_late,
                late_minutes=decision.late_minutes,
                check_in_method=method,
            )
            if current is not None and current.actual_departure_time is not None and self._factory.recalculates:
                # Recalculated re-entry: the previous departure no longer applies.
                updated = replace(updated, actual_departure_time=None, is_early_leave=False, early_leave_minutes=0)
            return updated

        return self._apply(
            caller, student_id=student_id, seat_layout_id=seat_layout_id, work_date=now.date(),
            now=now, method=method, transition=transition,
        )

    def check_out(
        self,
        caller: Caller,
        *,
        student_id: str,
        seat_layout_id: str,
        method: CheckMethod = CheckMethod.MANUAL,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        require_self_or_staff(caller, student_id)
        now = now or now_local()

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            if current is None or current.status == AttendanceStatus.NOT_ARRIVED:
                raise ConflictError(ConflictReason.INVALID_TRANSITION, "Student has not checked in today")
            if current.status.is_final:
                raise ConflictError(ConflictReason.ALREADY_FINALIZED, "Attendance is already finalized for today")
            if current.status == AttendanceStatus.CHECKED_OUT:
                return current

            expected = datetime.combine(current.work_date, parse_hhmm(current.expected_departure_time))
            strategy = self._factory.for_checkout(current=current)
            decision = strategy.decide_checkout(now=now, expected_departure=expected, current=current)
            return replace(
                current,
                status=AttendanceStatus.CHECKED_OUT,
                actual_departure_time=decision.departure_time,
                is_early_leave=decision.is_early_leave,
                early_leave_minutes=decision.early_leave_minutes,
                check_out_method=method,
            )

        return self._apply(
            caller, student_id=student_id, seat_layout_id=seat_layout_id, work_date=now.date(),
            now=now, method=method, transition=transition,
        )

    def mark_absent(
        self,
        caller: Caller,
        *,
        student_id: str,
        seat_layout_id: str,
        absence_type: AbsenceType,
        reason: Optional[str] = None,
        note: Optional[str] = None,
        work_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        require_staff(caller)
        now = now or now_local()
        work_date = work_date or now.date()
        reason = (reason or "").strip() or None
        if absence_type == AbsenceType.EXCUSED and not reason:
            raise ValidationError("A reason is required for an excused absence")

        target = (
            AttendanceStatus.ABSENT_EXCUSED if absence_type == AbsenceType.EXCUSED else AttendanceStatus.ABSENT_UNEXCUSED
        )

        def transition(current: Optional[AttendanceRecord]) -> AttendanceRecord:
            if current is not None and current.status.is_final:
                if current.status == target:
                    return current
                raise ConflictError(ConflictReason.ALREADY_FINALIZED, "Attendance is already finalized for today")
            if current is not None and current.status != AttendanceStatus.NOT_ARRIVED:
                raise ConflictError(
                    ConflictReason.INVALID_TRANSITION, "Cannot mark absence after the student has checked in"
                )

            base = current or self._new_record(
                caller, self._active_assignment(caller, student_id, seat_layout_id, now), work_date, now,
                created_by=CheckMethod.MANUAL,
            )
            if target == AttendanceStatus.ABSENT_EXCUSED:
                return replace(base, status=target, excused_reason=reason, excused_note=note, excused_by=caller.user_id)
            return replace(base, status=target, excused_note=note)

        return self._apply(
            caller, student_id=student_id, seat_layout_id=seat_layout_id, work_date=work_date,
            now=now, method=CheckMethod.MANUAL, transition=transition,
        )

    def sweep_unexcused_absences(
        self,
        caller: Caller,
        *,
        seat_layout_id: str,
        work_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> list[AttendanceRecord]:
        """Finalize no-shows as ``absent_unexcused`` once the departure window has closed.

        A student counts as a no-show when their expected departure plus the
        confirmation delay and grace has passed and the record is still missing
        or ``not_arrived``. Safe to run repeatedly.
        """

        require_staff(caller)
        now = now or now_local()
        work_date = work_date or now.date()
        weekday = day_of_week(work_date)
        cutoff = timedelta(minutes=ABSENCE_CONFIRM_AFTER_MINUTES + ABSENCE_GRACE_MINUTES)

        written: list[AttendanceRecord] = []
        for assignment in self._assignments.list_active(caller, seat_layout_id, now=now):
            expected = assignment.expected_for(weekday)
            departure = expected.departure if expected else self._default_departure
            if now < datetime.combine(work_date, parse_hhmm(departure)) + cutoff:
                continue

            def transition(current: Optional[AttendanceRecord], assignment: Assignment = assignment):
                if current is not None and current.status != AttendanceStatus.NOT_ARRIVED:
                    return current
                base = current or self._new_record(caller, assignment, work_date, now, created_by=CheckMethod.AUTO)
                return replace(base, status=AttendanceStatus.ABSENT_UNEXCUSED)

            before = self._attendance.get(
                academy_id=caller.academy_id,
                record_id=make_record_id(assignment.student_id, work_date, seat_layout_id),
            )
            record = self._apply(
                caller, student_id=assignment.student_id, seat_layout_id=seat_layout_id, work_date=work_date,
                now=now, method=CheckMethod.AUTO, transition=transition,
            )
            if record.status == AttendanceStatus.ABSENT_UNEXCUSED and (before is None or before.version != record.version):
                written.append(record)

        logger.info("Absence sweep for %s on %s marked %d students", seat_layout_id, work_date, len(written))
        return written

    # ---- internals ----

    def _active_assignment(self, caller: Caller, student_id: str, seat_layout_id: str, now: datetime) -> Assignment:
        return self._assignments.get_active_for_student(
            caller, student_id=student_id, seat_layout_id=seat_layout_id, now=now
        )

    def _new_record(
        self,
        caller: Caller,
        assignment: Assignment,
        work_date: date,
        now: datetime,
        *,
        created_by: CheckMethod,
    ) -> AttendanceRecord:
        weekday = day_of_week(work_date)
        expected = assignment.expected_for(weekday)
        seat = self._layouts.find_seat(caller, assignment.seat_layout_id, assignment.seat_id)
        return AttendanceRecord(
            record_id=make_record_id(assignment.student_id, work_date, assignment.seat_layout_id),
            academy_id=caller.academy_id,
            student_id=assignment.student_id,
            seat_layout_id=assignment.seat_layout_id,
            seat_id=assignment.seat_id,
            seat_number=seat.seat_number,
            work_date=work_date,
            day_of_week=weekday,
            expected_arrival_time=expected.arrival if expected else self._default_arrival,
            expected_departure_time=expected.departure if expected else self._default_departure,
            status=AttendanceStatus.NOT_ARRIVED,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )

    def _apply(
        self,
        caller: Caller,
        *,
        student_id: str,
        seat_layout_id: str,
        work_date: date,
        now: datetime,
        method: CheckMethod,
        transition: Transition,
    ) -> AttendanceRecord:
        record_id = make_record_id(student_id, work_date, seat_layout_id)

        # One re-read is allowed after losing a race, then the loser gives up.
        for _ in range(2):
            current = self._attendance.get(academy_id=caller.academy_id, record_id=record_id)
            updated = transition(current)
            if updated is current:
                return current

            if current is None:
                updated = replace(updated, updated_at=now, version=1)
                written = self._attendance.insert(updated)
            else:
                updated = replace(updated, updated_at=now, version=current.version + 1)
                written = self._attendance.update(updated, expected_version=current.version)

            if written:
                from_status = current.status if current else AttendanceStatus.NOT_ARRIVED
                logger.info("Attendance %s: %s -> %s (%s)", record_id, from_status.value, updated.status.value, method.value)
                self._events.publish(
                    RecordTransitioned(
                        academy_id=caller.academy_id,
                        occurred_at=now,
                        record_id=record_id,
                        student_id=student_id,
                        seat_layout_id=seat_layout_id,
                        work_date=work_date,
                        from_status=from_status,
                        to_status=updated.status,
                        method=method,
                    )
                )
                return updated

            logger.info("Attendance %s changed concurrently; re-evaluating", record_id)

        raise ConflictError(ConflictReason.CONCURRENT_UPDATE, "Attendance record was updated concurrently")
