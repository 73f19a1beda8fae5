from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Assignment


class AssignmentRepository(Protocol):
    def get(self, *, academy_id: str, assignment_id: str) -> Optional[Assignment]:
        raise NotImplementedError

    def find_active_for_seat(self, *, academy_id: str, seat_layout_id: str, seat_id: str) -> Optional[Assignment]:
        raise NotImplementedError

    def find_active_for_student(self, *, academy_id: str, seat_layout_id: str, student_id: str) -> Optional[Assignment]:
        raise NotImplementedError

    def list_active(self, *, academy_id: str, seat_layout_id: str) -> Sequence[Assignment]:
        raise NotImplementedError

    def create_active(self, assignment: Assignment) -> None:
        """Insert an active assignment as one atomic conditional write.

        Must raise ``ConflictError`` (seat_occupied / student_already_assigned)
        when another active assignment already holds the seat or the student.
        """

        raise NotImplementedError

    def release(self, *, academy_id: str, assignment_id: str, released_at: datetime) -> bool:
        """Flip status active -> released. Returns False if it was not active."""

        raise NotImplementedError
