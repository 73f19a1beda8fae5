from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import WEEKDAYS, now_local, to_local_naive
from ..common.validators import require_hhmm, require_non_empty
from ..core.enums import AssignmentStatus
from ..core.events import AssignmentCreated, AssignmentReleased, EventBus
from ..core.exceptions import ConflictError, ConflictReason, NotFoundError, ValidationError
from ..core.session import Caller, require_self_or_staff, require_staff
from ..seats.service import SeatLayoutService
from .model import Assignment, ExpectedTimes
from .repository import AssignmentRepository

logger = logging.getLogger(__name__)


class AssignmentService:
    """Binds students to seats; one active assignment per seat and per (student, layout)."""

    def __init__(self, assignments: AssignmentRepository, layouts: SeatLayoutService, events: EventBus):
        self._assignments = assignments
        self._layouts = layouts
        self._events = events

    @staticmethod
    def _parse_schedule(raw: Optional[Mapping[str, Mapping[str, str]]]) -> dict[str, ExpectedTimes]:
        if raw is not None and not isinstance(raw, Mapping):
            raise ValidationError("Expected schedule must map weekdays to times")
        schedule: dict[str, ExpectedTimes] = {}
        for day, times in (raw or {}).items():
            if not isinstance(times, Mapping):
                raise ValidationError(f"Expected times for {day} must be an object")
            day = str(day).lower()
            if day not in WEEKDAYS:
                raise ValidationError(f"Unknown weekday: {day}")
            arrival = require_hhmm(times.get("arrivalTime", ""), "Arrival time")
            departure = require_hhmm(times.get("departureTime", ""), "Departure time")
            if departure <= arrival:
                raise ValidationError("Departure time must be after arrival time")
            schedule[day] = ExpectedTimes(arrival=arrival, departure=departure)
        return schedule

    def _release_if_expired(self, assignment: Optional[Assignment], now: datetime) -> Optional[Assignment]:
        """Lazily retire an assignment whose ``expires_at`` has passed."""

        if assignment is None or assignment.is_active_at(now):
            return assignment
        if self._assignments.release(
            academy_id=assignment.academy_id, assignment_id=assignment.assignment_id, released_at=now
        ):
            logger.info("Assignment %s expired and was released", assignment.assignment_id)
        return None

    def assign_seat(
        self,
        caller: Caller,
        *,
        seat_id: str,
        student_id: str,
        seat_layout_id: str,
        expires_at: Optional[datetime] = None,
        expected_schedule: Optional[Mapping[str, Mapping[str, str]]] = None,
        now: Optional[datetime] = None,
    ) -> Assignment:
        require_staff(caller)
        student_id = require_non_empty(student_id, "Student id")
        now = now or now_local()

        # Raises NotFoundError when the layout or the seat is unknown.
        self._layouts.find_seat(caller, seat_layout_id, seat_id)
        schedule = self._parse_schedule(expected_schedule)
        if expires_at is not None:
            expires_at = to_local_naive(expires_at)
            if expires_at <= now:
                raise ValidationError("Expiry must be in the future")

        occupant = self._release_if_expired(
            self._assignments.find_active_for_seat(
                academy_id=caller.academy_id, seat_layout_id=seat_layout_id, seat_id=seat_id
            ),
            now,
        )
        if occupant:
            raise ConflictError(ConflictReason.SEAT_OCCUPIED, "Seat is already occupied")

        current = self._release_if_expired(
            self._assignments.find_active_for_student(
                academy_id=caller.academy_id, seat_layout_id=seat_layout_id, student_id=student_id
            ),
            now,
        )
        if current:
            raise ConflictError(ConflictReason.STUDENT_ALREADY_ASSIGNED, "Student already has a seat in this layout")

        assignment = Assignment(
            assignment_id=uuid.uuid4().hex,
            academy_id=caller.academy_id,
            seat_layout_id=seat_layout_id,
            seat_id=seat_id,
            student_id=student_id,
            status=AssignmentStatus.ACTIVE,
            assigned_at=now,
            expires_at=expires_at,
            expected_schedule=schedule,
        )
        # The checks above only pick the error message; this write is the real guard.
        self._assignments.create_active(assignment)
        logger.info("Seat %s/%s assigned to student %s", seat_layout_id, seat_id, student_id)

        self._events.publish(
            AssignmentCreated(
                academy_id=caller.academy_id,
                occurred_at=now,
                assignment_id=assignment.assignment_id,
                seat_layout_id=seat_layout_id,
                seat_id=seat_id,
                student_id=student_id,
            )
        )
        return assignment

    def unassign_seat(self, caller: Caller, assignment_id: str, *, now: Optional[datetime] = None) -> None:
        require_staff(caller)
        now = now or now_local()

        assignment = self._assignments.get(academy_id=caller.academy_id, assignment_id=assignment_id)
        if not assignment or assignment.status != AssignmentStatus.ACTIVE:
            raise NotFoundError("Active assignment not found")

        if not self._assignments.release(academy_id=caller.academy_id, assignment_id=assignment_id, released_at=now):
            # Released by a concurrent call between the read and the write.
            raise NotFoundError("Active assignment not found")
        logger.info("Assignment %s released", assignment_id)

        self._events.publish(
            AssignmentReleased(
                academy_id=caller.academy_id,
                occurred_at=now,
                assignment_id=assignment.assignment_id,
                seat_layout_id=assignment.seat_layout_id,
                seat_id=assignment.seat_id,
                student_id=assignment.student_id,
            )
        )

    def get_active_for_student(
        self, caller: Caller, *, student_id: str, seat_layout_id: str, now: Optional[datetime] = None
    ) -> Assignment:
        require_self_or_staff(caller, student_id)
        found = self._assignments.find_active_for_student(
            academy_id=caller.academy_id, seat_layout_id=seat_layout_id, student_id=student_id
        )
        if not found or not found.is_active_at(now or now_local()):
            raise NotFoundError("Student has no seat in this layout")
        return found

    def list_active(self, caller: Caller, seat_layout_id: str, *, now: Optional[datetime] = None) -> Sequence[Assignment]:
        now = now or now_local()
        return [
            a
            for a in self._assignments.list_active(academy_id=caller.academy_id, seat_layout_id=seat_layout_id)
            if a.is_active_at(now)
        ]
