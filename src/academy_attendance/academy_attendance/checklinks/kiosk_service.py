from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus, CheckMethod, Role
from ..core.session import Caller
from ..pins.service import PinService
from .service import CheckLinkService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KioskResult:
    action: str  # "check_in" | "check_out"
    record: AttendanceRecord

    def to_dict(self) -> dict:
        return {"action": self.action, "record": self.record.to_dict()}


class KioskCheckService:
    """Public check flow behind a check link: link -> PIN -> toggle -> usage."""

    def __init__(self, links: CheckLinkService, pins: PinService, attendance: AttendanceService):
        self._links = links
        self._pins = pins
        self._attendance = attendance

    def check(
        self,
        link_token: str,
        *,
        student_id: str,
        pin: str,
        method: CheckMethod = CheckMethod.QR,
        now: Optional[datetime] = None,
    ) -> KioskResult:
        now = now or now_local()
        student_id = require_non_empty(student_id, "Student id")
        link = self._links.resolve_link(link_token, now=now)

        # The link itself is the credential for the academy; the PIN identifies the student.
        caller = Caller(academy_id=link.academy_id, user_id=f"kiosk:{link.link_id}", role=Role.STAFF)
        self._pins.verify_pin(caller, student_id=student_id, candidate=pin, now=now)

        current = self._attendance.get_record(
            caller, student_id=student_id, seat_layout_id=link.seat_layout_id, work_date=now.date()
        )
        if current is not None and current.status == AttendanceStatus.CHECKED_IN:
            action = "check_out"
            record = self._attendance.check_out(
                caller, student_id=student_id, seat_layout_id=link.seat_layout_id, method=method, now=now
            )
        else:
            action = "check_in"
            record = self._attendance.check_in(
                caller, student_id=student_id, seat_layout_id=link.seat_layout_id, method=method, now=now
            )

        self._links.record_usage(link_token, now=now)
        logger.info("Kiosk %s for student %s via link %s", action, student_id, link.link_id)
        return KioskResult(action=action, record=record)
