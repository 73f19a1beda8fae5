from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import SeatLayout, layout_from_document, layout_to_document
from .repository import SeatLayoutRepository


class MySQLSeatLayoutRepository(SeatLayoutRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> SeatLayout:
        return layout_from_document(
            seat_layout_id=r["seat_layout_id"],
            academy_id=r["academy_id"],
            name=r["name"],
            document=from_json(r["layout_json"], default={}),
            created_at=r.get("created_at"),
            updated_at=r.get("updated_at"),
        )

    def get(self, *, academy_id: str, seat_layout_id: str) -> Optional[SeatLayout]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT seat_layout_id, academy_id, name, layout_json, created_at, updated_at
                FROM seat_layouts
                WHERE academy_id=%s AND seat_layout_id=%s
                """,
                (academy_id, seat_layout_id),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def list_for_academy(self, *, academy_id: str) -> Sequence[SeatLayout]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT seat_layout_id, academy_id, name, layout_json, created_at, updated_at
                FROM seat_layouts
                WHERE academy_id=%s
                ORDER BY name ASC
                """,
                (academy_id,),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def create(self, layout: SeatLayout) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO seat_layouts(seat_layout_id, academy_id, name, layout_json, created_at, updated_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    layout.seat_layout_id,
                    layout.academy_id,
                    layout.name,
                    to_json(layout_to_document(layout)),
                    layout.created_at,
                    layout.updated_at,
                ),
            )
