from __future__ import annotations

from datetime import datetime

import click
from flask import Flask, current_app

from .container import Container
from .core.enums import Role
from .core.session import Caller
from .database.bootstrap import SCHEMA_PATH, apply_schema, list_tables


def _system_caller(academy_id: str, name: str) -> Caller:
    return Caller(academy_id=academy_id, user_id=f"system:{name}", role=Role.ADMIN)


def register(app: Flask, container: Container) -> None:
    @app.cli.command("init-db")
    def init_db() -> None:
        """Apply database/schema.sql (idempotent)."""
        db_config = current_app.config["DB_CONFIG"]
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        click.echo(f"OK: schema applied (tables={len(list_tables(db_config))})")

    @app.cli.command("sweep-absences")
    @click.option("--academy", "academy_id", required=True)
    @click.option("--layout", "seat_layout_id", required=True)
    @click.option("--date", "work_date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
    def sweep_absences(academy_id: str, seat_layout_id: str, work_date: datetime | None) -> None:
        """Mark no-shows as unexcused once the departure window has closed."""
        written = container.attendance_service.sweep_unexcused_absences(
            _system_caller(academy_id, "sweep"),
            seat_layout_id=seat_layout_id,
            work_date=work_date.date() if work_date else None,
        )
        click.echo(f"Marked {len(written)} student(s) absent_unexcused")

    @app.cli.command("seed-demo")
    @click.option("--academy", "academy_id", default="demo-academy", show_default=True)
    @click.option("--rows", default=3, show_default=True)
    @click.option("--cols", default=4, show_default=True)
    def seed_demo(academy_id: str, rows: int, cols: int) -> None:
        """Create a grid-shaped demo seat layout."""
        seats = [
            {
                "id": f"{chr(ord('A') + r)}{c + 1}",
                "position": {"x": 60 * c, "y": 60 * r},
                "size": {"width": 50, "height": 50},
                "groupId": "main",
                "row": r + 1,
                "col": c + 1,
                "label": f"{chr(ord('A') + r)}{c + 1}",
            }
            for r in range(rows)
            for c in range(cols)
        ]
        layout = container.seat_layout_service.create_layout(
            _system_caller(academy_id, "seed"),
            name="Demo study hall",
            groups=[{"id": "main", "name": "Main", "rows": rows, "cols": cols, "position": {"x": 0, "y": 0}}],
            seats=seats,
            dimensions={"width": 60 * cols, "height": 60 * rows},
        )
        click.echo(f"Created layout {layout.seat_layout_id} with {layout.total_seats} seats")
