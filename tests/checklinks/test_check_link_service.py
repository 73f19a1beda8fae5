from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from academy_attendance.core.events import LinkUsed
from academy_attendance.core.exceptions import (
    AuthorizationError,
    ExpiredError,
    InactiveError,
    NotFoundError,
    ValidationError,
)
from fakes import MONDAY_0900


def _create(container, caller, layout, **kwargs):
    return container.check_link_service.create_link(
        caller, seat_layout_id=layout.seat_layout_id, title="Front door", now=MONDAY_0900, **kwargs
    )


def test_create_issues_unguessable_active_link(container, admin, layout):
    link = _create(container, admin, layout, expires_in_days=7)

    assert link.is_active is True
    assert link.usage_count == 0
    assert len(link.link_token) >= 40
    assert link.expires_at == MONDAY_0900 + timedelta(days=7)
    assert container.check_link_service.link_url(link).endswith(f"/check/{link.link_token}")


def test_tokens_are_unique(container, admin, layout):
    tokens = {_create(container, admin, layout).link_token for _ in range(20)}
    assert len(tokens) == 20


def test_create_requires_existing_layout(container, admin):
    with pytest.raises(NotFoundError):
        container.check_link_service.create_link(admin, seat_layout_id="missing", title="x")


def test_create_rejects_non_positive_days(container, admin, layout):
    with pytest.raises(ValidationError):
        _create(container, admin, layout, expires_in_days=0)


def test_only_admin_creates_links(container, staff, layout):
    with pytest.raises(AuthorizationError):
        _create(container, staff, layout)


def test_resolve_returns_the_layout(container, admin, layout):
    link = _create(container, admin, layout)

    resolved = container.check_link_service.resolve_link(link.link_token, now=MONDAY_0900)
    assert resolved.seat_layout_id == layout.seat_layout_id


def test_expired_link_is_rejected_even_when_active(container, admin, layout):
    link = _create(container, admin, layout, expires_at=MONDAY_0900 - timedelta(seconds=1))

    assert link.is_active is True
    with pytest.raises(ExpiredError):
        container.check_link_service.resolve_link(link.link_token, now=MONDAY_0900)


def test_expiry_wins_over_inactive(container, admin, layout):
    link = _create(container, admin, layout, expires_at=MONDAY_0900 + timedelta(hours=1))
    container.check_link_service.toggle_link(admin, link.link_token, is_active=False, now=MONDAY_0900)

    with pytest.raises(InactiveError):
        container.check_link_service.resolve_link(link.link_token, now=MONDAY_0900)
    with pytest.raises(ExpiredError):
        container.check_link_service.resolve_link(link.link_token, now=MONDAY_0900 + timedelta(hours=2))


def test_unknown_token_is_not_found(container):
    with pytest.raises(NotFoundError):
        container.check_link_service.resolve_link("nope")


def test_record_usage_counts_and_emits(container, admin, layout):
    link = _create(container, admin, layout)

    assert container.check_link_service.record_usage(link.link_token, now=MONDAY_0900) == 1
    assert container.check_link_service.record_usage(link.link_token, now=MONDAY_0900) == 2

    stored = container.check_links_repo.get_by_token(link.link_token)
    assert stored.usage_count == 2
    assert stored.last_used_at == MONDAY_0900
    assert [e.usage_count for e in container.events.of_type(LinkUsed)] == [1, 2]


def test_delete_removes_link(container, admin, layout):
    link = _create(container, admin, layout)
    container.check_link_service.delete_link(admin, link.link_token)

    with pytest.raises(NotFoundError):
        container.check_link_service.resolve_link(link.link_token)
    with pytest.raises(NotFoundError):
        container.check_link_service.delete_link(admin, link.link_token)


def test_qr_png_encodes_link(container, admin, layout):
    link = _create(container, admin, layout)

    png = container.check_link_service.qr_png(admin, link.link_token)
    assert png.startswith(b"\x89PNG")


def test_concurrent_usage_counts_every_scan(container, admin, layout):
    link = _create(container, admin, layout)
    scans = 12
    barrier = threading.Barrier(scans)
    counts: list[int] = []
    counts_lock = threading.Lock()

    def scan():
        barrier.wait()
        count = container.check_link_service.record_usage(link.link_token, now=MONDAY_0900)
        with counts_lock:
            counts.append(count)

    threads = [threading.Thread(target=scan) for _ in range(scans)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(counts) == list(range(1, scans + 1))
    resolved = container.check_link_service.resolve_link(link.link_token, now=MONDAY_0900)
    assert resolved.usage_count == scans


def test_offset_expiry_is_stored_as_local_time(container, admin, layout):
    aware = datetime(2026, 3, 9, 0, 0, tzinfo=timezone.utc)
    link = _create(container, admin, layout, expires_at=aware)

    assert link.expires_at.tzinfo is None
    assert link.expires_at == aware.astimezone().replace(tzinfo=None)
    assert container.check_link_service.resolve_link(link.link_token, now=MONDAY_0900).link_id == link.link_id
