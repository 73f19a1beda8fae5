from __future__ import annotations

from flask import Flask, request

from ..common.http import current_caller, date_arg, json_body, login_required, ok, optional_date_arg
from ..common.validators import require_non_empty
from ..core.enums import AbsenceType, CheckMethod
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _method(body: dict) -> CheckMethod:
        try:
            return CheckMethod(body.get("method") or CheckMethod.MANUAL.value)
        except ValueError as exc:
            raise ValidationError("Unknown check method") from exc

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_attendance_check_in")
    @login_required
    def api_attendance_check_in():
        body = json_body()
        record = container.attendance_service.check_in(
            current_caller(),
            student_id=require_non_empty(body.get("studentId"), "studentId"),
            seat_layout_id=require_non_empty(body.get("seatLayoutId"), "seatLayoutId"),
            method=_method(body),
        )
        return ok(record.to_dict())

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_attendance_check_out")
    @login_required
    def api_attendance_check_out():
        body = json_body()
        record = container.attendance_service.check_out(
            current_caller(),
            student_id=require_non_empty(body.get("studentId"), "studentId"),
            seat_layout_id=require_non_empty(body.get("seatLayoutId"), "seatLayoutId"),
            method=_method(body),
        )
        return ok(record.to_dict())

    @app.route("/api/attendance/absent", methods=["POST"], endpoint="api_attendance_absent")
    @login_required
    def api_attendance_absent():
        body = json_body()
        try:
            absence_type = AbsenceType(body.get("absenceType") or "")
        except ValueError as exc:
            raise ValidationError("absenceType must be 'excused' or 'unexcused'") from exc

        record = container.attendance_service.mark_absent(
            current_caller(),
            student_id=require_non_empty(body.get("studentId"), "studentId"),
            seat_layout_id=require_non_empty(body.get("seatLayoutId"), "seatLayoutId"),
            absence_type=absence_type,
            reason=body.get("reason"),
            note=body.get("note"),
        )
        return ok(record.to_dict())

    @app.route("/api/seat-layouts/<seat_layout_id>/attendance", methods=["GET"], endpoint="api_layout_attendance")
    @login_required
    def api_layout_attendance(seat_layout_id: str):
        records = container.attendance_service.list_records(
            current_caller(), seat_layout_id=seat_layout_id, work_date=date_arg()
        )
        return ok([r.to_dict() for r in records])

    @app.route("/api/students/<student_id>/attendance", methods=["GET"], endpoint="api_student_attendance")
    @login_required
    def api_student_attendance(student_id: str):
        limit = request.args.get("limit", type=int) or 30
        records = container.attendance_service.list_student_history(
            current_caller(),
            student_id=student_id,
            limit=max(1, min(limit, 365)),
            start_date=optional_date_arg("startDate"),
            end_date=optional_date_arg("endDate"),
            seat_layout_id=request.args.get("seatLayoutId") or None,
        )
        return ok([r.to_dict() for r in records])
