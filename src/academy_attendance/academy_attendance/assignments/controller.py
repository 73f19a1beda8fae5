from __future__ import annotations

from flask import Flask

from ..common.http import current_caller, json_body, login_required, ok, parse_datetime
from ..common.validators import require_non_empty
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/assignments", methods=["POST"], endpoint="api_assignments_create")
    @login_required
    def api_assignments_create():
        body = json_body()
        assignment = container.assignment_service.assign_seat(
            current_caller(),
            seat_id=require_non_empty(body.get("seatId"), "seatId"),
            student_id=require_non_empty(body.get("studentId"), "studentId"),
            seat_layout_id=require_non_empty(body.get("seatLayoutId"), "seatLayoutId"),
            expires_at=parse_datetime(body.get("expiresAt"), "expiresAt"),
            expected_schedule=body.get("expectedSchedule"),
        )
        return ok(assignment.to_dict(), 201)

    @app.route("/api/assignments/<assignment_id>", methods=["DELETE"], endpoint="api_assignments_delete")
    @login_required
    def api_assignments_delete(assignment_id: str):
        container.assignment_service.unassign_seat(current_caller(), assignment_id)
        return ok(message="Seat released")

    @app.route("/api/seat-layouts/<seat_layout_id>/assignments", methods=["GET"], endpoint="api_layout_assignments")
    @login_required
    def api_layout_assignments(seat_layout_id: str):
        active = container.assignment_service.list_active(current_caller(), seat_layout_id)
        return ok([a.to_dict() for a in active])

    @app.route(
        "/api/seat-layouts/<seat_layout_id>/assignments/<student_id>",
        methods=["GET"],
        endpoint="api_student_assignment",
    )
    @login_required
    def api_student_assignment(seat_layout_id: str, student_id: str):
        assignment = container.assignment_service.get_active_for_student(
            current_caller(), student_id=student_id, seat_layout_id=seat_layout_id
        )
        return ok(assignment.to_dict())
