from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from ..core.session import Caller, require_admin
from .model import Seat, SeatGroup, SeatLayout, Size, groups_from_document, seats_from_document
from .repository import SeatLayoutRepository

logger = logging.getLogger(__name__)


class SeatLayoutService:
    """Owns seat-layout documents; the engine only reads them."""

    def __init__(self, layouts: SeatLayoutRepository):
        self._layouts = layouts

    def get_layout(self, caller: Caller, seat_layout_id: str) -> SeatLayout:
        layout = self._layouts.get(academy_id=caller.academy_id, seat_layout_id=seat_layout_id)
        if not layout:
            raise NotFoundError("Seat layout not found")
        return layout

    def list_layouts(self, caller: Caller) -> Sequence[SeatLayout]:
        return self._layouts.list_for_academy(academy_id=caller.academy_id)

    def find_seat(self, caller: Caller, seat_layout_id: str, seat_id: str) -> Seat:
        layout = self.get_layout(caller, seat_layout_id)
        seat = layout.find_seat(seat_id)
        if not seat:
            raise NotFoundError("Seat not found in this layout")
        return seat

    def create_layout(
        self,
        caller: Caller,
        *,
        name: str,
        groups: Sequence[dict],
        seats: Sequence[dict],
        dimensions: Optional[dict] = None,
        now: Optional[datetime] = None,
    ) -> SeatLayout:
        require_admin(caller)
        name = require_non_empty(name, "Layout name")
        try:
            parsed_groups = groups_from_document(groups)
            parsed_seats = seats_from_document(seats)
            dims = dimensions or {}
            size = Size(width=float(dims.get("width", 0)), height=float(dims.get("height", 0)))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ValidationError("Malformed seat layout") from exc

        self._validate(parsed_groups, parsed_seats)

        now = now or now_local()
        layout = SeatLayout(
            seat_layout_id=uuid.uuid4().hex,
            academy_id=caller.academy_id,
            name=name,
            groups=parsed_groups,
            seats=parsed_seats,
            dimensions=size,
            created_at=now,
            updated_at=now,
        )
        self._layouts.create(layout)
        logger.info("Seat layout %s created (%d seats)", layout.seat_layout_id, layout.total_seats)
        return layout

    @staticmethod
    def _validate(groups: Sequence[SeatGroup], seats: Sequence[Seat]) -> None:
        group_ids = [g.group_id for g in groups]
        if len(set(group_ids)) != len(group_ids):
            raise ValidationError("Duplicate group id in layout")

        seat_ids = [s.seat_id for s in seats]
        if len(set(seat_ids)) != len(seat_ids):
            raise ValidationError("Duplicate seat id in layout")

        known = set(group_ids)
        for seat in seats:
            if seat.group_id is not None and seat.group_id not in known:
                raise ValidationError(f"Seat {seat.seat_id} references unknown group {seat.group_id}")
