from __future__ import annotations

from datetime import date, datetime, time

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value.strip(), "%H:%M").time()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def day_of_week(value: date) -> str:
    return WEEKDAYS[value.weekday()]


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end`` (negative when end is earlier)."""
    return int((end - start).total_seconds() // 60)


def to_local_naive(value: datetime) -> datetime:
    """Drop an explicit UTC offset by converting to naive local time.

    Stored and compared datetimes are naive local, like ``now_local()``.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
