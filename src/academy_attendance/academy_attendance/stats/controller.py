from __future__ import annotations

from flask import Flask

from ..common.http import current_caller, date_arg, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/seat-layouts/<seat_layout_id>/stats", methods=["GET"], endpoint="api_layout_stats")
    @login_required
    def api_layout_stats(seat_layout_id: str):
        summary = container.stats_service.compute(
            current_caller(), seat_layout_id=seat_layout_id, work_date=date_arg()
        )
        return ok(summary.to_dict())
