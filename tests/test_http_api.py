from __future__ import annotations

import pytest

from academy_attendance.main import create_app
from fakes import ACADEMY, build_fake_container


@pytest.fixture
def app():
    app = create_app(container=build_fake_container(), settings_module="config.testing")
    app.config["TESTING"] = True
    return app


def _login(client, *, user_id="admin-1", role="admin"):
    with client.session_transaction() as sess:
        sess["academy_id"] = ACADEMY
        sess["user_id"] = user_id
        sess["role"] = role


def _layout(client) -> str:
    resp = client.post(
        "/api/seat-layouts",
        json={"name": "Hall", "groups": [], "seats": [{"id": "A1", "label": "A1"}, {"id": "A2"}]},
    )
    assert resp.status_code == 201
    return resp.get_json()["data"]["id"]


def test_requires_session(app):
    resp = app.test_client().get("/api/seat-layouts")

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "unauthenticated"


def test_seat_conflict_maps_to_409(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)

    ok = client.post("/api/assignments", json={"seatId": "A1", "studentId": "S1", "seatLayoutId": lid})
    clash = client.post("/api/assignments", json={"seatId": "A1", "studentId": "S2", "seatLayoutId": lid})

    assert ok.status_code == 201
    assert clash.status_code == 409
    body = clash.get_json()
    assert body["success"] is False
    assert body["error"] == "conflict"
    assert body["reason"] == "seat_occupied"


def test_missing_layout_maps_to_404(app):
    client = app.test_client()
    _login(client)

    resp = client.get("/api/seat-layouts/missing")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_student_cannot_create_layout(app):
    client = app.test_client()
    _login(client, user_id="S1", role="student")

    resp = client.post("/api/seat-layouts", json={"name": "x", "groups": [], "seats": []})
    assert resp.status_code == 403


def test_public_check_flow(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)
    client.post("/api/assignments", json={"seatId": "A1", "studentId": "S1", "seatLayoutId": lid})
    pin = client.post("/api/students/S1/pin").get_json()["data"]["pin"]
    link = client.post("/api/check-links", json={"seatLayoutId": lid, "title": "Door", "expiresInDays": 1}).get_json()[
        "data"
    ]

    public = app.test_client()
    info = public.get(f"/check/{link['linkToken']}")
    assert info.status_code == 200
    assert info.get_json()["data"]["seatLayoutId"] == lid

    wrong = "1" * len(pin) if pin != "1" * len(pin) else "2" * len(pin)
    bad = public.post(f"/check/{link['linkToken']}", json={"studentId": "S1", "pin": wrong})
    assert bad.status_code == 401
    assert bad.get_json()["failedAttempts"] == 1

    good = public.post(f"/check/{link['linkToken']}", json={"studentId": "S1", "pin": pin})
    assert good.status_code == 200
    assert good.get_json()["data"]["action"] == "check_in"

    stats = client.get(f"/api/seat-layouts/{lid}/stats").get_json()["data"]
    assert stats["assignedSeats"] == 1


def test_disabled_link_and_qr(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)
    token = client.post("/api/check-links", json={"seatLayoutId": lid, "title": "Door"}).get_json()["data"]["linkToken"]

    qr = client.get(f"/api/check-links/{token}/qr.png")
    assert qr.status_code == 200
    assert qr.mimetype == "image/png"

    assert client.patch(f"/api/check-links/{token}", json={"isActive": False}).status_code == 200
    assert app.test_client().get(f"/check/{token}").get_json()["error"] == "inactive"


def test_validation_error_maps_to_400(app):
    client = app.test_client()
    _login(client)

    resp = client.post("/api/attendance/absent", json={"studentId": "S1", "seatLayoutId": "L", "absenceType": "maybe"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation"


def test_assignment_expiry_with_utc_offset_is_accepted(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)

    resp = client.post(
        "/api/assignments",
        json={"seatId": "A1", "studentId": "S1", "seatLayoutId": lid, "expiresAt": "2099-01-01T00:00:00+09:00"},
    )

    assert resp.status_code == 201
    expires_at = resp.get_json()["data"]["expiresAt"]
    assert "+" not in expires_at and not expires_at.endswith("Z")


def test_assignment_expiry_in_the_past_with_offset_is_400(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)

    resp = client.post(
        "/api/assignments",
        json={"seatId": "A1", "studentId": "S1", "seatLayoutId": lid, "expiresAt": "2000-01-01T00:00:00Z"},
    )
    assert resp.status_code == 400


def test_check_link_with_zulu_expiry_resolves(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)

    future = client.post(
        "/api/check-links", json={"seatLayoutId": lid, "title": "Door", "expiresAt": "2099-01-01T00:00:00Z"}
    ).get_json()["data"]["linkToken"]
    past = client.post(
        "/api/check-links", json={"seatLayoutId": lid, "title": "Old", "expiresAt": "2000-01-01T00:00:00+02:00"}
    ).get_json()["data"]["linkToken"]

    public = app.test_client()
    resolved = public.get(f"/check/{future}")
    assert resolved.status_code == 200
    assert resolved.get_json()["data"]["seatLayoutId"] == lid

    expired = public.get(f"/check/{past}")
    assert expired.status_code == 410
    assert expired.get_json()["error"] == "expired"


def test_malformed_layout_dimensions_map_to_400(app):
    client = app.test_client()
    _login(client)

    resp = client.post(
        "/api/seat-layouts", json={"name": "Hall", "groups": [], "seats": [{"id": "A1"}], "dimensions": [1, 2]}
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation"


def test_current_assignment_for_student(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)
    client.post("/api/assignments", json={"seatId": "A2", "studentId": "S1", "seatLayoutId": lid})

    resp = client.get(f"/api/seat-layouts/{lid}/assignments/S1")
    assert resp.status_code == 200
    assert resp.get_json()["data"]["seatId"] == "A2"

    assert client.get(f"/api/seat-layouts/{lid}/assignments/S9").status_code == 404

    other = app.test_client()
    _login(other, user_id="S2", role="student")
    assert other.get(f"/api/seat-layouts/{lid}/assignments/S1").status_code == 403


def test_student_history_accepts_date_range(app):
    client = app.test_client()
    _login(client)
    lid = _layout(client)
    client.post("/api/assignments", json={"seatId": "A1", "studentId": "S1", "seatLayoutId": lid})
    client.post("/api/attendance/check-in", json={"studentId": "S1", "seatLayoutId": lid})

    everything = client.get("/api/students/S1/attendance").get_json()["data"]
    assert len(everything) == 1

    old = client.get("/api/students/S1/attendance?startDate=2000-01-01&endDate=2000-01-31").get_json()["data"]
    assert old == []

    scoped = client.get(f"/api/students/S1/attendance?seatLayoutId={lid}").get_json()["data"]
    assert len(scoped) == 1

    assert client.get("/api/students/S1/attendance?startDate=2000-02-01&endDate=2000-01-01").status_code == 400
    assert client.get("/api/students/S1/attendance?startDate=yesterday").status_code == 400
