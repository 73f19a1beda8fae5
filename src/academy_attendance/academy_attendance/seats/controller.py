from __future__ import annotations

from flask import Flask

from ..common.http import current_caller, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/seat-layouts", methods=["GET"], endpoint="api_seat_layouts")
    @login_required
    def api_seat_layouts():
        layouts = container.seat_layout_service.list_layouts(current_caller())
        return ok([layout.to_dict() for layout in layouts])

    @app.route("/api/seat-layouts", methods=["POST"], endpoint="api_seat_layouts_create")
    @login_required
    def api_seat_layouts_create():
        body = json_body()
        layout = container.seat_layout_service.create_layout(
            current_caller(),
            name=body.get("name") or "",
            groups=body.get("groups") or [],
            seats=body.get("seats") or [],
            dimensions=body.get("dimensions"),
        )
        return ok(layout.to_dict(), 201)

    @app.route("/api/seat-layouts/<seat_layout_id>", methods=["GET"], endpoint="api_seat_layout")
    @login_required
    def api_seat_layout(seat_layout_id: str):
        return ok(container.seat_layout_service.get_layout(current_caller(), seat_layout_id).to_dict())
