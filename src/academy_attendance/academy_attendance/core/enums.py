from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller roles supplied by the identity provider."""

    ADMIN = "admin"
    STAFF = "staff"
    STUDENT = "student"


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    RELEASED = "released"


class AttendanceStatus(str, Enum):
    """Per-day attendance state stored on each record."""

    NOT_ARRIVED = "not_arrived"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    ABSENT_EXCUSED = "absent_excused"
    ABSENT_UNEXCUSED = "absent_unexcused"

    @property
    def is_final(self) -> bool:
        return self in {AttendanceStatus.ABSENT_EXCUSED, AttendanceStatus.ABSENT_UNEXCUSED}


class CheckMethod(str, Enum):
    """How a record was created or transitioned."""

    QR = "qr"
    PIN = "pin"
    MANUAL = "manual"
    AUTO = "auto"


class AbsenceType(str, Enum):
    EXCUSED = "excused"
    UNEXCUSED = "unexcused"


class ReentryPolicy(str, Enum):
    """What happens to late/early figures when a student checks in again the same day."""

    PRESERVE = "preserve"
    RECALCULATE = "recalculate"
