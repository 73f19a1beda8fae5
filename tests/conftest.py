from __future__ import annotations

import pytest

from academy_attendance.core.enums import Role
from academy_attendance.core.session import Caller
from fakes import ACADEMY, build_fake_container, make_layout


@pytest.fixture
def container():
    return build_fake_container()


@pytest.fixture
def admin() -> Caller:
    return Caller(academy_id=ACADEMY, user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def staff() -> Caller:
    return Caller(academy_id=ACADEMY, user_id="staff-1", role=Role.STAFF)


@pytest.fixture
def student() -> Caller:
    return Caller(academy_id=ACADEMY, user_id="S1", role=Role.STUDENT)


@pytest.fixture
def layout(container, admin):
    return make_layout(container, admin)
