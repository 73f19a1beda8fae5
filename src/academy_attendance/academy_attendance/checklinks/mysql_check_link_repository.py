from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import CheckLink
from .repository import CheckLinkRepository

_COLUMNS = """
    link_id, academy_id, link_token, seat_layout_id, title, description, is_active,
    expires_at, usage_count, last_used_at, created_at, updated_at
"""


class MySQLCheckLinkRepository(CheckLinkRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> CheckLink:
        return CheckLink(
            link_id=r["link_id"],
            academy_id=r["academy_id"],
            link_token=r["link_token"],
            seat_layout_id=r["seat_layout_id"],
            title=r["title"],
            description=r.get("description"),
            is_active=bool(r["is_active"]),
            expires_at=r.get("expires_at"),
            usage_count=int(r["usage_count"]),
            last_used_at=r.get("last_used_at"),
            created_at=r["created_at"],
            updated_at=r["updated_at"],
        )

    def get_by_token(self, link_token: str) -> Optional[CheckLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_check_links WHERE link_token=%s", (link_token,))
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def list_for_academy(self, *, academy_id: str) -> Sequence[CheckLink]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_check_links WHERE academy_id=%s ORDER BY created_at DESC",
                (academy_id,),
            )
            return [self._to_model(r) for r in fetchall(cur)]

    def create(self, link: CheckLink) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO attendance_check_links({_COLUMNS})
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    link.link_id,
                    link.academy_id,
                    link.link_token,
                    link.seat_layout_id,
                    link.title,
                    link.description,
                    1 if link.is_active else 0,
                    link.expires_at,
                    link.usage_count,
                    link.last_used_at,
                    link.created_at,
                    link.updated_at,
                ),
            )

    def set_active(self, *, academy_id: str, link_token: str, is_active: bool, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_check_links
                SET is_active=%s, updated_at=%s
                WHERE academy_id=%s AND link_token=%s
                """,
                (1 if is_active else 0, at, academy_id, link_token),
            )
            return cur.rowcount > 0

    def delete(self, *, academy_id: str, link_token: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_check_links WHERE academy_id=%s AND link_token=%s",
                (academy_id, link_token),
            )
            return cur.rowcount > 0

    def increment_usage(self, *, link_token: str, at: datetime) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_check_links
                SET usage_count = usage_count + 1, last_used_at=%s, updated_at=%s
                WHERE link_token=%s
                """,
                (at, at, link_token),
            )
            if cur.rowcount == 0:
                return None
            cur.execute("SELECT usage_count FROM attendance_check_links WHERE link_token=%s", (link_token,))
            r = fetchone(cur)
            return int(r["usage_count"])
