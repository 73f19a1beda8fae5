from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class SeatGroup:
    group_id: str
    name: str
    rows: int
    cols: int
    position: Point


@dataclass(frozen=True)
class Seat:
    seat_id: str
    position: Point
    size: Size
    group_id: Optional[str] = None
    row: Optional[int] = None
    col: Optional[int] = None
    label: Optional[str] = None

    @property
    def seat_number(self) -> str:
        """Label shown on the floor plan and copied onto attendance records."""
        if self.label:
            return self.label
        if self.row is not None and self.col is not None:
            return f"{self.row}-{self.col}"
        return self.seat_id


@dataclass(frozen=True)
class SeatLayout:
    """Floor plan document: groups, seats and overall dimensions."""

    seat_layout_id: str
    academy_id: str
    name: str
    groups: Sequence[SeatGroup]
    seats: Sequence[Seat]
    dimensions: Size
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def find_seat(self, seat_id: str) -> Optional[Seat]:
        for seat in self.seats:
            if seat.seat_id == seat_id:
                return seat
        return None

    @property
    def total_seats(self) -> int:
        return len(self.seats)

    def to_dict(self) -> dict:
        return {"id": self.seat_layout_id, "name": self.name, "totalSeats": self.total_seats, **layout_to_document(self)}


def layout_to_document(layout: SeatLayout) -> dict:
    return {
        "groups": [
            {
                "id": g.group_id,
                "name": g.name,
                "rows": g.rows,
                "cols": g.cols,
                "position": {"x": g.position.x, "y": g.position.y},
            }
            for g in layout.groups
        ],
        "seats": [
            {
                "id": s.seat_id,
                "position": {"x": s.position.x, "y": s.position.y},
                "size": {"width": s.size.width, "height": s.size.height},
                "groupId": s.group_id,
                "row": s.row,
                "col": s.col,
                "label": s.label,
            }
            for s in layout.seats
        ],
        "dimensions": {"width": layout.dimensions.width, "height": layout.dimensions.height},
    }


def _point(raw: Optional[dict]) -> Point:
    raw = raw or {}
    return Point(x=float(raw.get("x", 0)), y=float(raw.get("y", 0)))


def _size(raw: Optional[dict]) -> Size:
    raw = raw or {}
    return Size(width=float(raw.get("width", 0)), height=float(raw.get("height", 0)))


def groups_from_document(items: Sequence[dict]) -> list[SeatGroup]:
    return [
        SeatGroup(
            group_id=str(g["id"]),
            name=str(g.get("name") or ""),
            rows=int(g.get("rows") or 0),
            cols=int(g.get("cols") or 0),
            position=_point(g.get("position")),
        )
        for g in items or []
    ]


def seats_from_document(items: Sequence[dict]) -> list[Seat]:
    return [
        Seat(
            seat_id=str(s["id"]),
            position=_point(s.get("position")),
            size=_size(s.get("size")),
            group_id=s.get("groupId"),
            row=int(s["row"]) if s.get("row") is not None else None,
            col=int(s["col"]) if s.get("col") is not None else None,
            label=s.get("label"),
        )
        for s in items or []
    ]


def layout_from_document(
    *,
    seat_layout_id: str,
    academy_id: str,
    name: str,
    document: dict,
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
) -> SeatLayout:
    return SeatLayout(
        seat_layout_id=seat_layout_id,
        academy_id=academy_id,
        name=name,
        groups=groups_from_document(document.get("groups") or []),
        seats=seats_from_document(document.get("seats") or []),
        dimensions=_size(document.get("dimensions")),
        created_at=created_at,
        updated_at=updated_at,
    )
