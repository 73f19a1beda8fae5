from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

from academy_attendance.assignments.model import Assignment
from academy_attendance.attendance.model import AttendanceRecord
from academy_attendance.checklinks.model import CheckLink
from academy_attendance.container import Container, build_services
from academy_attendance.core.enums import AssignmentStatus
from academy_attendance.core.events import RecordingEventBus
from academy_attendance.core.exceptions import ConflictError, ConflictReason
from academy_attendance.pins.model import FailureOutcome, PinCredential
from academy_attendance.seats.model import SeatLayout


class InMemorySeatLayouts:
    def __init__(self):
        self.layouts: dict[tuple[str, str], SeatLayout] = {}

    def get(self, *, academy_id, seat_layout_id) -> Optional[SeatLayout]:
        return self.layouts.get((academy_id, seat_layout_id))

    def list_for_academy(self, *, academy_id):
        return sorted((l for (a, _), l in self.layouts.items() if a == academy_id), key=lambda l: l.name)

    def create(self, layout: SeatLayout) -> None:
        self.layouts[(layout.academy_id, layout.seat_layout_id)] = layout


class InMemoryAssignments:
    """Mimics the unique indexes on the active seat/student keys."""

    def __init__(self):
        self.rows: dict[str, Assignment] = {}
        self._lock = threading.Lock()

    def get(self, *, academy_id, assignment_id):
        a = self.rows.get(assignment_id)
        return a if a and a.academy_id == academy_id else None

    def _active(self, academy_id, seat_layout_id):
        return [
            a
            for a in list(self.rows.values())
            if a.academy_id == academy_id and a.seat_layout_id == seat_layout_id and a.status == AssignmentStatus.ACTIVE
        ]

    def find_active_for_seat(self, *, academy_id, seat_layout_id, seat_id):
        return next((a for a in self._active(academy_id, seat_layout_id) if a.seat_id == seat_id), None)

    def find_active_for_student(self, *, academy_id, seat_layout_id, student_id):
        return next((a for a in self._active(academy_id, seat_layout_id) if a.student_id == student_id), None)

    def list_active(self, *, academy_id, seat_layout_id):
        return sorted(self._active(academy_id, seat_layout_id), key=lambda a: a.assigned_at)

    def create_active(self, assignment: Assignment) -> None:
        with self._lock:
            active = self._active(assignment.academy_id, assignment.seat_layout_id)
            if any(a.seat_id == assignment.seat_id for a in active):
                raise ConflictError(ConflictReason.SEAT_OCCUPIED, "Seat is already occupied")
            if any(a.student_id == assignment.student_id for a in active):
                raise ConflictError(ConflictReason.STUDENT_ALREADY_ASSIGNED, "Student already has a seat")
            self.rows[assignment.assignment_id] = assignment

    def release(self, *, academy_id, assignment_id, released_at) -> bool:
        with self._lock:
            a = self.get(academy_id=academy_id, assignment_id=assignment_id)
            if not a or a.status != AssignmentStatus.ACTIVE:
                return False
            self.rows[assignment_id] = replace(a, status=AssignmentStatus.RELEASED, released_at=released_at)
            return True


class InMemoryAttendance:
    def __init__(self):
        self.rows: dict[tuple[str, str], AttendanceRecord] = {}
        self._lock = threading.Lock()

    def get(self, *, academy_id, record_id):
        return self.rows.get((academy_id, record_id))

    def insert(self, record: AttendanceRecord) -> bool:
        with self._lock:
            key = (record.academy_id, record.record_id)
            if key in self.rows:
                return False
            self.rows[key] = record
            return True

    def update(self, record: AttendanceRecord, *, expected_version: int) -> bool:
        with self._lock:
            key = (record.academy_id, record.record_id)
            stored = self.rows.get(key)
            if stored is None or stored.version != expected_version:
                return False
            self.rows[key] = record
            return True

    def list_for_layout_date(self, *, academy_id, seat_layout_id, work_date: date):
        return [
            r
            for (a, _), r in list(self.rows.items())
            if a == academy_id and r.seat_layout_id == seat_layout_id and r.work_date == work_date
        ]

    def list_for_student(self, *, academy_id, student_id, limit, start_date=None, end_date=None, seat_layout_id=None):
        items = [
            r
            for (a, _), r in list(self.rows.items())
            if a == academy_id
            and r.student_id == student_id
            and (start_date is None or r.work_date >= start_date)
            and (end_date is None or r.work_date <= end_date)
            and (not seat_layout_id or r.seat_layout_id == seat_layout_id)
        ]
        items.sort(key=lambda r: r.work_date, reverse=True)
        return items[:limit]


class InMemoryPins:
    def __init__(self):
        self.rows: dict[tuple[str, str], PinCredential] = {}
        self._lock = threading.Lock()

    def get(self, *, academy_id, student_id):
        return self.rows.get((academy_id, student_id))

    def upsert(self, credential: PinCredential) -> None:
        self.rows[(credential.academy_id, credential.student_id)] = credential

    def record_failure(self, *, academy_id, student_id, max_attempts, at):
        with self._lock:
            c = self.rows.get((academy_id, student_id))
            if c is None or c.is_locked:
                return None
            attempts = c.failed_attempts + 1
            locked = attempts >= max_attempts
            self.rows[(academy_id, student_id)] = replace(
                c, failed_attempts=attempts, is_locked=locked, last_failed_at=at, updated_at=at
            )
            return FailureOutcome(failed_attempts=attempts, is_locked=locked)

    def record_success(self, *, academy_id, student_id, at) -> bool:
        with self._lock:
            c = self.rows.get((academy_id, student_id))
            if c is None or c.is_locked:
                return False
            self.rows[(academy_id, student_id)] = replace(
                c, failed_attempts=0, unlock_attempts=0, last_used_at=at, updated_at=at
            )
            return True

    def replace_pin(self, *, academy_id, student_id, pin_hash, change_history, at) -> bool:
        with self._lock:
            c = self.rows.get((academy_id, student_id))
            if c is None or c.is_locked:
                return False
            self.rows[(academy_id, student_id)] = replace(
                c,
                pin_hash=pin_hash,
                failed_attempts=0,
                last_changed_at=at,
                change_history=tuple(change_history),
                updated_at=at,
            )
            return True

    def claim_unlock_attempt(self, *, academy_id, student_id, max_attempts, at) -> bool:
        with self._lock:
            c = self.rows.get((academy_id, student_id))
            if c is None or c.unlock_attempts >= max_attempts:
                return False
            self.rows[(academy_id, student_id)] = replace(c, unlock_attempts=c.unlock_attempts + 1, updated_at=at)
            return True

    def unlock(self, *, academy_id, student_id, at) -> None:
        with self._lock:
            c = self.rows.get((academy_id, student_id))
            if c is not None:
                self.rows[(academy_id, student_id)] = replace(
                    c, is_locked=False, failed_attempts=0, unlock_attempts=0, updated_at=at
                )


class InMemoryCheckLinks:
    def __init__(self):
        self.rows: dict[str, CheckLink] = {}
        self._lock = threading.Lock()

    def get_by_token(self, link_token):
        return self.rows.get(link_token)

    def list_for_academy(self, *, academy_id):
        items = [l for l in self.rows.values() if l.academy_id == academy_id]
        items.sort(key=lambda l: l.created_at, reverse=True)
        return items

    def create(self, link: CheckLink) -> None:
        self.rows[link.link_token] = link

    def set_active(self, *, academy_id, link_token, is_active, at) -> bool:
        link = self.rows.get(link_token)
        if not link or link.academy_id != academy_id:
            return False
        self.rows[link_token] = replace(link, is_active=is_active, updated_at=at)
        return True

    def delete(self, *, academy_id, link_token) -> bool:
        link = self.rows.get(link_token)
        if not link or link.academy_id != academy_id:
            return False
        del self.rows[link_token]
        return True

    def increment_usage(self, *, link_token, at: datetime):
        with self._lock:
            link = self.rows.get(link_token)
            if not link:
                return None
            self.rows[link_token] = replace(link, usage_count=link.usage_count + 1, last_used_at=at, updated_at=at)
            return link.usage_count + 1


def build_fake_container(settings=None) -> Container:
    return build_services(
        seat_layouts_repo=InMemorySeatLayouts(),
        assignments_repo=InMemoryAssignments(),
        attendance_repo=InMemoryAttendance(),
        pins_repo=InMemoryPins(),
        check_links_repo=InMemoryCheckLinks(),
        settings=settings,
        events=RecordingEventBus(),
    )


ACADEMY = "academy-1"
# A Monday.
MONDAY_0900 = datetime(2026, 3, 2, 9, 0, 0)


def make_layout(container, caller, *, name="Study hall", seat_ids=("A1", "A2", "B1")):
    return container.seat_layout_service.create_layout(
        caller,
        name=name,
        groups=[{"id": "g1", "name": "Front", "rows": 2, "cols": 2, "position": {"x": 0, "y": 0}}],
        seats=[
            {
                "id": seat_id,
                "position": {"x": 10 * i, "y": 0},
                "size": {"width": 40, "height": 40},
                "groupId": "g1",
                "row": 1,
                "col": i + 1,
                "label": seat_id,
            }
            for i, seat_id in enumerate(seat_ids)
        ],
        dimensions={"width": 400, "height": 300},
        now=MONDAY_0900,
    )
