from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus, CheckMethod
from ..core.exceptions import StorageError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = """
    record_id, academy_id, student_id, seat_layout_id, seat_id, seat_number, work_date, day_of_week,
    expected_arrival_time, expected_departure_time, actual_arrival_time, actual_departure_time,
    status, is_late, late_minutes, is_early_leave, early_leave_minutes,
    excused_reason, excused_note, excused_by, created_by, check_in_method, check_out_method,
    created_at, updated_at, version
"""


def _method(value) -> Optional[CheckMethod]:
    return CheckMethod(value) if value else None


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> AttendanceRecord:
        return AttendanceRecord(
            record_id=r["record_id"],
            academy_id=r["academy_id"],
            student_id=r["student_id"],
            seat_layout_id=r["seat_layout_id"],
            seat_id=r["seat_id"],
            seat_number=r["seat_number"],
            work_date=r["work_date"],
            day_of_week=r["day_of_week"],
            expected_arrival_time=r["expected_arrival_time"],
            expected_departure_time=r["expected_departure_time"],
            actual_arrival_time=r.get("actual_arrival_time"),
            actual_departure_time=r.get("actual_departure_time"),
            status=AttendanceStatus(r["status"]),
            is_late=bool(r["is_late"]),
            late_minutes=int(r["late_minutes"] or 0),
            is_early_leave=bool(r["is_early_leave"]),
            early_leave_minutes=int(r["early_leave_minutes"] or 0),
            excused_reason=r.get("excused_reason"),
            excused_note=r.get("excused_note"),
            excused_by=r.get("excused_by"),
            created_by=CheckMethod(r["created_by"]),
            check_in_method=_method(r.get("check_in_method")),
            check_out_method=_method(r.get("check_out_method")),
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            version=int(r["version"]),
        )

    @staticmethod
    def _mutable_values(rec: AttendanceRecord) -> tuple:
        return (
            rec.actual_arrival_time,
            rec.actual_departure_time,
            rec.status.value,
            int(rec.is_late),
            rec.late_minutes,
            int(rec.is_early_leave),
            rec.early_leave_minutes,
            rec.excused_reason,
            rec.excused_note,
            rec.excused_by,
            rec.check_in_method.value if rec.check_in_method else None,
            rec.check_out_method.value if rec.check_out_method else None,
            rec.updated_at,
            rec.version,
        )

    def get(self, *, academy_id: str, record_id: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM student_attendance_records WHERE academy_id=%s AND record_id=%s",
                (academy_id, record_id),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def insert(self, record: AttendanceRecord) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO student_attendance_records(
                        record_id, academy_id, student_id, seat_layout_id, seat_id, seat_number,
                        work_date, day_of_week, expected_arrival_time, expected_departure_time,
                        created_by, created_at,
                        actual_arrival_time, actual_departure_time, status, is_late, late_minutes,
                        is_early_leave, early_leave_minutes, excused_reason, excused_note, excused_by,
                        check_in_method, check_out_method, updated_at, version
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.record_id,
                        record.academy_id,
                        record.student_id,
                        record.seat_layout_id,
                        record.seat_id,
                        record.seat_number,
                        record.work_date,
                        record.day_of_week,
                        record.expected_arrival_time,
                        record.expected_departure_time,
                        record.created_by.value,
                        record.created_at,
                    )
                    + self._mutable_values(record),
                )
            return True
        except mysql.connector.IntegrityError as exc:
            if is_duplicate_key(exc):
                return False
            raise StorageError("Storage operation failed") from exc

    def update(self, record: AttendanceRecord, *, expected_version: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_attendance_records
                SET actual_arrival_time=%s, actual_departure_time=%s, status=%s,
                    is_late=%s, late_minutes=%s, is_early_leave=%s, early_leave_minutes=%s,
                    excused_reason=%s, excused_note=%s, excused_by=%s,
                    check_in_method=%s, check_out_method=%s, updated_at=%s, version=%s
                WHERE academy_id=%s AND record_id=%s AND version=%s
                """,
                self._mutable_values(record) + (record.academy_id, record.record_id, expected_version),
            )
            return cur.rowcount > 0

    def list_for_layout_date(self, *, academy_id: str, seat_layout_id: str, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM student_attendance_records
                WHERE academy_id=%s AND seat_layout_id=%s AND work_date=%s
                ORDER BY updated_at DESC
                """,
                (academy_id, seat_layout_id, work_date),
            )
            return [self._to_model(r) for r in fetchall(cur)]

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
        where = ["academy_id=%s", "student_id=%s"]
        params: list = [academy_id, student_id]
        if start_date is not None:
            where.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            where.append("work_date <= %s")
            params.append(end_date)
        if seat_layout_id:
            where.append("seat_layout_id=%s")
            params.append(seat_layout_id)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM student_attendance_records
                WHERE {" AND ".join(where)}
                ORDER BY work_date DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [self._to_model(r) for r in fetchall(cur)]
