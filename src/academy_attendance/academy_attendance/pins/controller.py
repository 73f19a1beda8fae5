from __future__ import annotations

from flask import Flask

from ..common.http import current_caller, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students/<student_id>/pin", methods=["POST"], endpoint="api_pin_generate")
    @login_required
    def api_pin_generate(student_id: str):
        pin = container.pin_service.generate_pin(current_caller(), student_id=student_id)
        # Shown once; only the hash is kept.
        return ok({"studentId": student_id, "pin": pin}, 201)

    @app.route("/api/students/<student_id>/pin", methods=["GET"], endpoint="api_pin_status")
    @login_required
    def api_pin_status(student_id: str):
        credential = container.pin_service.get_pin_status(current_caller(), student_id=student_id)
        return ok(credential.to_status())

    @app.route("/api/students/<student_id>/pin", methods=["PUT"], endpoint="api_pin_update")
    @login_required
    def api_pin_update(student_id: str):
        body = json_body()
        credential = container.pin_service.update_pin(
            current_caller(), student_id=student_id, new_pin=str(body.get("newPin") or "")
        )
        return ok(credential.to_status())

    @app.route("/api/students/<student_id>/pin/unlock", methods=["POST"], endpoint="api_pin_unlock")
    @login_required
    def api_pin_unlock(student_id: str):
        body = json_body()
        container.pin_service.unlock_pin(
            current_caller(), student_id=student_id, current_pin=str(body.get("currentPin") or "")
        )
        return ok(message="PIN unlocked")

    @app.route("/api/students/<student_id>/pin/verify", methods=["POST"], endpoint="api_pin_verify")
    @login_required
    def api_pin_verify(student_id: str):
        body = json_body()
        container.pin_service.verify_pin(current_caller(), student_id=student_id, candidate=str(body.get("pin") or ""))
        return ok(message="PIN verified")
