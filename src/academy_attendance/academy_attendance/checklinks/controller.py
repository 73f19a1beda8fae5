from __future__ import annotations

import io

from flask import Flask, send_file

from ..common.http import current_caller, json_body, login_required, ok, parse_datetime
from ..common.validators import require_non_empty
from ..core.enums import CheckMethod
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    links = container.check_link_service

    @app.route("/api/check-links", methods=["GET"], endpoint="api_check_links")
    @login_required
    def api_check_links():
        return ok([link.to_dict(url=links.link_url(link)) for link in links.list_links(current_caller())])

    @app.route("/api/check-links", methods=["POST"], endpoint="api_check_links_create")
    @login_required
    def api_check_links_create():
        body = json_body()
        expires_in_days = body.get("expiresInDays")
        try:
            expires_in_days = int(expires_in_days) if expires_in_days not in (None, "") else None
        except (TypeError, ValueError) as exc:
            raise ValidationError("expiresInDays must be a number") from exc

        link = links.create_link(
            current_caller(),
            seat_layout_id=require_non_empty(body.get("seatLayoutId"), "seatLayoutId"),
            title=body.get("title") or "",
            description=body.get("description"),
            expires_in_days=expires_in_days,
            expires_at=parse_datetime(body.get("expiresAt"), "expiresAt"),
        )
        return ok(link.to_dict(url=links.link_url(link)), 201)

    @app.route("/api/check-links/<link_token>", methods=["PATCH"], endpoint="api_check_links_toggle")
    @login_required
    def api_check_links_toggle(link_token: str):
        body = json_body()
        if not isinstance(body.get("isActive"), bool):
            raise ValidationError("isActive must be true or false")
        link = links.toggle_link(current_caller(), link_token, is_active=body["isActive"])
        return ok(link.to_dict(url=links.link_url(link)))

    @app.route("/api/check-links/<link_token>", methods=["DELETE"], endpoint="api_check_links_delete")
    @login_required
    def api_check_links_delete(link_token: str):
        links.delete_link(current_caller(), link_token)
        return ok(message="Check link deleted")

    @app.route("/api/check-links/<link_token>/qr.png", methods=["GET"], endpoint="api_check_links_qr")
    @login_required
    def api_check_links_qr(link_token: str):
        png = links.qr_png(current_caller(), link_token)
        return send_file(io.BytesIO(png), mimetype="image/png")

    # ===== PUBLIC (no session) =====

    @app.route("/check/<link_token>", methods=["GET"], endpoint="public_check_link")
    def public_check_link(link_token: str):
        link = links.resolve_link(link_token)
        return ok({"title": link.title, "description": link.description, "seatLayoutId": link.seat_layout_id})

    @app.route("/check/<link_token>", methods=["POST"], endpoint="public_check")
    def public_check(link_token: str):
        body = json_body()
        try:
            method = CheckMethod(body.get("method") or CheckMethod.QR.value)
        except ValueError as exc:
            raise ValidationError("Unknown check method") from exc
        if method not in {CheckMethod.QR, CheckMethod.PIN}:
            raise ValidationError("Public check-in accepts only qr or pin")

        result = container.kiosk_service.check(
            link_token,
            student_id=body.get("studentId") or "",
            pin=str(body.get("pin") or ""),
            method=method,
        )
        return ok(result.to_dict())
