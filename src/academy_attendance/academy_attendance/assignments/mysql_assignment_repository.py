from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AssignmentStatus
from ..core.exceptions import ConflictError, ConflictReason, StorageError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, is_duplicate_key, to_json
from .model import Assignment, schedule_from_document, schedule_to_document
from .repository import AssignmentRepository

_COLUMNS = """
    assignment_id, academy_id, seat_layout_id, seat_id, student_id, status,
    assigned_at, expires_at, released_at, expected_schedule
"""


class MySQLAssignmentRepository(AssignmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> Assignment:
        return Assignment(
            assignment_id=r["assignment_id"],
            academy_id=r["academy_id"],
            seat_layout_id=r["seat_layout_id"],
            seat_id=r["seat_id"],
            student_id=r["student_id"],
            status=AssignmentStatus(r["status"]),
            assigned_at=r["assigned_at"],
            expires_at=r.get("expires_at"),
            released_at=r.get("released_at"),
            expected_schedule=schedule_from_document(from_json(r.get("expected_schedule"), default={})),
        )

    def _find_one(self, where: str, params: tuple) -> Optional[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM seat_assignments WHERE {where} LIMIT 1", params)
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def get(self, *, academy_id: str, assignment_id: str) -> Optional[Assignment]:
        return self._find_one("academy_id=%s AND assignment_id=%s", (academy_id, assignment_id))

    def find_active_for_seat(self, *, academy_id: str, seat_layout_id: str, seat_id: str) -> Optional[Assignment]:
        return self._find_one(
            "academy_id=%s AND seat_layout_id=%s AND seat_id=%s AND status='active'",
            (academy_id, seat_layout_id, seat_id),
        )

    def find_active_for_student(self, *, academy_id: str, seat_layout_id: str, student_id: str) -> Optional[Assignment]:
        return self._find_one(
            "academy_id=%s AND seat_layout_id=%s AND student_id=%s AND status='active'",
            (academy_id, seat_layout_id, student_id),
        )

    def list_active(self, *, academy_id: str, seat_layout_id: str) -> Sequence[Assignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM seat_assignments
                WHERE academy_id=%s AND seat_layout_id=%s AND status='active'
                ORDER BY assigned_at ASC
                """,
                (academy_id, seat_layout_id),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def create_active(self, assignment: Assignment) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO seat_assignments(
                        assignment_id, academy_id, seat_layout_id, seat_id, student_id, status,
                        assigned_at, expires_at, expected_schedule
                    )
                    VALUES(%s,%s,%s,%s,%s,'active',%s,%s,%s)
                    """,
                    (
                        assignment.assignment_id,
                        assignment.academy_id,
                        assignment.seat_layout_id,
                        assignment.seat_id,
                        assignment.student_id,
                        assignment.assigned_at,
                        assignment.expires_at,
                        to_json(schedule_to_document(assignment.expected_schedule)),
                    ),
                )
        except mysql.connector.IntegrityError as exc:
            # The unique keys on the generated "active" columns are the exclusivity guard.
            if is_duplicate_key(exc, "uq_active_seat"):
                raise ConflictError(ConflictReason.SEAT_OCCUPIED, "Seat is already occupied") from exc
            if is_duplicate_key(exc, "uq_active_student"):
                raise ConflictError(
                    ConflictReason.STUDENT_ALREADY_ASSIGNED, "Student already has a seat in this layout"
                ) from exc
            raise StorageError("Storage operation failed") from exc

    def release(self, *, academy_id: str, assignment_id: str, released_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE seat_assignments
                SET status=%s, released_at=%s
                WHERE academy_id=%s AND assignment_id=%s AND status='active'
                """,
                (AssignmentStatus.RELEASED.value, released_at, academy_id, assignment_id),
            )
            return cur.rowcount > 0
