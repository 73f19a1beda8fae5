from __future__ import annotations

import pytest

from academy_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from fakes import make_layout


def test_create_layout_and_find_seat(container, admin, staff):
    layout = make_layout(container, admin)

    assert layout.total_seats == 3
    seat = container.seat_layout_service.find_seat(staff, layout.seat_layout_id, "A2")
    assert seat.seat_number == "A2"
    assert [l.seat_layout_id for l in container.seat_layout_service.list_layouts(staff)] == [layout.seat_layout_id]


def test_seat_number_falls_back_to_row_col(container, admin):
    layout = container.seat_layout_service.create_layout(
        admin, name="Lab", groups=[], seats=[{"id": "x1", "row": 2, "col": 5}, {"id": "x2"}]
    )
    assert layout.find_seat("x1").seat_number == "2-5"
    assert layout.find_seat("x2").seat_number == "x2"


def test_unknown_seat_or_layout_is_not_found(container, admin, layout):
    with pytest.raises(NotFoundError):
        container.seat_layout_service.find_seat(admin, layout.seat_layout_id, "Z9")
    with pytest.raises(NotFoundError):
        container.seat_layout_service.get_layout(admin, "missing")


def test_duplicate_seat_ids_rejected(container, admin):
    with pytest.raises(ValidationError):
        container.seat_layout_service.create_layout(admin, name="Dup", groups=[], seats=[{"id": "A1"}, {"id": "A1"}])


def test_seat_referencing_unknown_group_rejected(container, admin):
    with pytest.raises(ValidationError):
        container.seat_layout_service.create_layout(
            admin, name="Bad", groups=[], seats=[{"id": "A1", "groupId": "nope"}]
        )


def test_only_admin_creates_layouts(container, staff):
    with pytest.raises(AuthorizationError):
        make_layout(container, staff)


@pytest.mark.parametrize("dimensions", [["wide"], {"width": "wide", "height": 10}, "400x300"])
def test_malformed_dimensions_rejected(container, admin, dimensions):
    with pytest.raises(ValidationError):
        container.seat_layout_service.create_layout(
            admin, name="Odd", groups=[], seats=[{"id": "A1"}], dimensions=dimensions
        )
