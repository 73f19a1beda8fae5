"""Domain events emitted by the engine.

Services publish plain dataclasses on an ``EventBus``; read models and push
transports subscribe to the event types they care about. Handlers run
synchronously after the write has committed.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, DefaultDict, List, Optional, Type

from .enums import AttendanceStatus, CheckMethod

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    academy_id: str
    occurred_at: datetime


@dataclass(frozen=True)
class AssignmentCreated(DomainEvent):
    assignment_id: str
    seat_layout_id: str
    seat_id: str
    student_id: str


@dataclass(frozen=True)
class AssignmentReleased(DomainEvent):
    assignment_id: str
    seat_layout_id: str
    seat_id: str
    student_id: str


@dataclass(frozen=True)
class RecordTransitioned(DomainEvent):
    record_id: str
    student_id: str
    seat_layout_id: str
    work_date: date
    from_status: AttendanceStatus
    to_status: AttendanceStatus
    method: Optional[CheckMethod] = None


@dataclass(frozen=True)
class LinkUsed(DomainEvent):
    link_id: str
    seat_layout_id: str
    usage_count: int


Handler = Callable[[DomainEvent], None]


class EventBus:
    """In-process publish/subscribe keyed by event class."""

    def __init__(self) -> None:
        self._handlers: DefaultDict[Type[DomainEvent], List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: DomainEvent) -> None:
        for event_type, handlers in self._handlers.items():
            if not isinstance(event, event_type):
                continue
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    # The write already committed; a broken projection must not undo it.
                    logger.exception("Event handler failed for %s", type(event).__name__)


class RecordingEventBus(EventBus):
    """EventBus that also keeps every published event (projections, tests)."""

    def __init__(self) -> None:
        super().__init__()
        self.events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self.events.append(event)
        super().publish(event)

    def of_type(self, event_type: Type[DomainEvent]) -> List[DomainEvent]:
        return [e for e in self.events if isinstance(e, event_type)]
