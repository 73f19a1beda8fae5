from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_json, to_json
from .model import FailureOutcome, PinChange, PinCredential, history_from_document, history_to_document
from .repository import PinRepository


class MySQLPinRepository(PinRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_model(r: dict) -> PinCredential:
        return PinCredential(
            academy_id=r["academy_id"],
            student_id=r["student_id"],
            pin_hash=r["pin_hash"],
            is_locked=bool(r["is_locked"]),
            failed_attempts=int(r["failed_attempts"]),
            last_changed_at=r["last_changed_at"],
            created_at=r["created_at"],
            updated_at=r["updated_at"],
            last_failed_at=r.get("last_failed_at"),
            last_used_at=r.get("last_used_at"),
            change_history=history_from_document(from_json(r.get("change_history"), default=[])),
            unlock_attempts=int(r.get("unlock_attempts") or 0),
        )

    def get(self, *, academy_id: str, student_id: str) -> Optional[PinCredential]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT academy_id, student_id, pin_hash, is_locked, failed_attempts, unlock_attempts, last_failed_at,
                       last_used_at, last_changed_at, change_history, created_at, updated_at
                FROM student_pins
                WHERE academy_id=%s AND student_id=%s
                """,
                (academy_id, student_id),
            )
            r = fetchone(cur)
            return self._to_model(r) if r else None

    def upsert(self, credential: PinCredential) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO student_pins(
                    academy_id, student_id, pin_hash, is_locked, failed_attempts, unlock_attempts, last_failed_at,
                    last_used_at, last_changed_at, change_history, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    pin_hash=VALUES(pin_hash),
                    is_locked=VALUES(is_locked),
                    failed_attempts=VALUES(failed_attempts),
                    unlock_attempts=VALUES(unlock_attempts),
                    last_failed_at=VALUES(last_failed_at),
                    last_changed_at=VALUES(last_changed_at),
                    change_history=VALUES(change_history),
                    updated_at=VALUES(updated_at)
                """,
                (
                    credential.academy_id,
                    credential.student_id,
                    credential.pin_hash,
                    1 if credential.is_locked else 0,
                    credential.failed_attempts,
                    credential.unlock_attempts,
                    credential.last_failed_at,
                    credential.last_used_at,
                    credential.last_changed_at,
                    to_json(history_to_document(credential.change_history)),
                    credential.created_at,
                    credential.updated_at,
                ),
            )

    def record_failure(
        self, *, academy_id: str, student_id: str, max_attempts: int, at: datetime
    ) -> Optional[FailureOutcome]:
        with db_cursor(self._conn_factory) as (_, cur):
            # SET is evaluated left to right, so is_locked sees the incremented counter.
            cur.execute(
                """
                UPDATE student_pins
                SET failed_attempts = failed_attempts + 1,
                    is_locked = (failed_attempts >= %s),
                    last_failed_at=%s,
                    updated_at=%s
                WHERE academy_id=%s AND student_id=%s AND is_locked=0
                """,
                (int(max_attempts), at, at, academy_id, student_id),
            )
            if cur.rowcount == 0:
                return None
            cur.execute(
                "SELECT failed_attempts, is_locked FROM student_pins WHERE academy_id=%s AND student_id=%s",
                (academy_id, student_id),
            )
            r = fetchone(cur)
            return FailureOutcome(failed_attempts=int(r["failed_attempts"]), is_locked=bool(r["is_locked"]))

    def record_success(self, *, academy_id: str, student_id: str, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_pins
                SET failed_attempts=0, unlock_attempts=0, last_used_at=%s, updated_at=%s
                WHERE academy_id=%s AND student_id=%s AND is_locked=0
                """,
                (at, at, academy_id, student_id),
            )
            return cur.rowcount > 0

    def replace_pin(
        self,
        *,
        academy_id: str,
        student_id: str,
        pin_hash: str,
        change_history: Sequence[PinChange],
        at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_pins
                SET pin_hash=%s, failed_attempts=0, last_changed_at=%s, change_history=%s, updated_at=%s
                WHERE academy_id=%s AND student_id=%s AND is_locked=0
                """,
                (pin_hash, at, to_json(history_to_document(change_history)), at, academy_id, student_id),
            )
            return cur.rowcount > 0

    def claim_unlock_attempt(self, *, academy_id: str, student_id: str, max_attempts: int, at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_pins
                SET unlock_attempts = unlock_attempts + 1, updated_at=%s
                WHERE academy_id=%s AND student_id=%s AND unlock_attempts < %s
                """,
                (at, academy_id, student_id, int(max_attempts)),
            )
            return cur.rowcount > 0

    def unlock(self, *, academy_id: str, student_id: str, at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE student_pins
                SET is_locked=0, failed_attempts=0, unlock_attempts=0, updated_at=%s
                WHERE academy_id=%s AND student_id=%s
                """,
                (at, academy_id, student_id),
            )
