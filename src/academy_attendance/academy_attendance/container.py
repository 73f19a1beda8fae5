from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .assignments.mysql_assignment_repository import MySQLAssignmentRepository
from .assignments.repository import AssignmentRepository
from .assignments.service import AssignmentService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .checklinks.kiosk_service import KioskCheckService
from .checklinks.mysql_check_link_repository import MySQLCheckLinkRepository
from .checklinks.repository import CheckLinkRepository
from .checklinks.service import CheckLinkService
from .core.constants import (
    DEFAULT_ARRIVAL_TIME,
    DEFAULT_DEPARTURE_TIME,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_PIN_LENGTH,
    PIN_MAX_FAILED_ATTEMPTS,
)
from .core.enums import ReentryPolicy
from .core.events import EventBus
from .database.connection import DBConfig, DatabaseConnection
from .pins.mysql_pin_repository import MySQLPinRepository
from .pins.repository import PinRepository
from .pins.service import PinService
from .seats.mysql_seat_layout_repository import MySQLSeatLayoutRepository
from .seats.repository import SeatLayoutRepository
from .seats.service import SeatLayoutService
from .stats.service import StatsService


@dataclass(frozen=True)
class Container:
    events: EventBus

    seat_layouts_repo: SeatLayoutRepository
    assignments_repo: AssignmentRepository
    attendance_repo: AttendanceRepository
    pins_repo: PinRepository
    check_links_repo: CheckLinkRepository

    seat_layout_service: SeatLayoutService
    assignment_service: AssignmentService
    attendance_service: AttendanceService
    pin_service: PinService
    check_link_service: CheckLinkService
    kiosk_service: KioskCheckService
    stats_service: StatsService

    conn: Optional[DatabaseConnection] = None


def _setting(settings: Any, name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def build_services(
    *,
    seat_layouts_repo: SeatLayoutRepository,
    assignments_repo: AssignmentRepository,
    attendance_repo: AttendanceRepository,
    pins_repo: PinRepository,
    check_links_repo: CheckLinkRepository,
    settings: Any = None,
    events: Optional[EventBus] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, fakes in tests)."""

    events = events or EventBus()

    seat_layout_service = SeatLayoutService(seat_layouts_repo)
    assignment_service = AssignmentService(assignments_repo, seat_layout_service, events)
    attendance_service = AttendanceService(
        attendance_repo,
        assignment_service,
        seat_layout_service,
        events,
        strategy_factory=AttendanceStrategyFactory(
            ReentryPolicy(str(_setting(settings, "REENTRY_POLICY", ReentryPolicy.PRESERVE.value)).lower())
        ),
        grace_minutes=int(_setting(settings, "LATE_GRACE_MINUTES", DEFAULT_LATE_GRACE_MINUTES)),
        default_arrival=str(_setting(settings, "DEFAULT_ARRIVAL_TIME", DEFAULT_ARRIVAL_TIME)),
        default_departure=str(_setting(settings, "DEFAULT_DEPARTURE_TIME", DEFAULT_DEPARTURE_TIME)),
    )
    pin_service = PinService(
        pins_repo,
        pin_length=int(_setting(settings, "PIN_LENGTH", DEFAULT_PIN_LENGTH)),
        max_failed_attempts=int(_setting(settings, "PIN_MAX_FAILED_ATTEMPTS", PIN_MAX_FAILED_ATTEMPTS)),
    )
    check_link_service = CheckLinkService(
        check_links_repo,
        seat_layout_service,
        events,
        base_url=str(_setting(settings, "CHECK_LINK_BASE_URL", "http://localhost:5000")),
    )
    kiosk_service = KioskCheckService(check_link_service, pin_service, attendance_service)
    stats_service = StatsService(seat_layout_service, assignment_service, attendance_service)

    return Container(
        events=events,
        seat_layouts_repo=seat_layouts_repo,
        assignments_repo=assignments_repo,
        attendance_repo=attendance_repo,
        pins_repo=pins_repo,
        check_links_repo=check_links_repo,
        seat_layout_service=seat_layout_service,
        assignment_service=assignment_service,
        attendance_service=attendance_service,
        pin_service=pin_service,
        check_link_service=check_link_service,
        kiosk_service=kiosk_service,
        stats_service=stats_service,
        conn=conn,
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))
    return build_services(
        seat_layouts_repo=MySQLSeatLayoutRepository(conn),
        assignments_repo=MySQLAssignmentRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        pins_repo=MySQLPinRepository(conn),
        check_links_repo=MySQLCheckLinkRepository(conn),
        settings=settings,
        conn=conn,
    )
