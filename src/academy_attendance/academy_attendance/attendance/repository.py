from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get(self, *, academy_id: str, record_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def insert(self, record: AttendanceRecord) -> bool:
        """Create the record. Returns False if a record with the same id already exists."""

        raise NotImplementedError

    def update(self, record: AttendanceRecord, *, expected_version: int) -> bool:
        """Compare-and-set: write only if the stored version still equals ``expected_version``."""

        raise NotImplementedError

    def list_for_layout_date(self, *, academy_id: str, seat_layout_id: str, work_date: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_student(
        self,
        *,
        academy_id: str,
        student_id: str,
        limit: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        seat_layout_id: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        """Newest work_date first; the date bounds are inclusive."""

        raise NotImplementedError
