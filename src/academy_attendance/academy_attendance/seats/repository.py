from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import SeatLayout


class SeatLayoutRepository(Protocol):
    """Read access to layout documents plus the single create used by admins."""

    def get(self, *, academy_id: str, seat_layout_id: str) -> Optional[SeatLayout]:
        raise NotImplementedError

    def list_for_academy(self, *, academy_id: str) -> Sequence[SeatLayout]:
        raise NotImplementedError

    def create(self, layout: SeatLayout) -> None:
        raise NotImplementedError
