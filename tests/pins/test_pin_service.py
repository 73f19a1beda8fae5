from __future__ import annotations

import threading
from datetime import timedelta

import pytest
from werkzeug.security import check_password_hash

from academy_attendance.core.enums import Role
from academy_attendance.core.exceptions import (
    AuthorizationError,
    LockedError,
    NotFoundError,
    PinMismatchError,
    ValidationError,
)
from academy_attendance.core.session import Caller
from academy_attendance.pins.service import PinService
from fakes import ACADEMY, MONDAY_0900, InMemoryPins


class CountingChecker:
    def __init__(self):
        self.calls = 0

    def __call__(self, pin_hash: str, candidate: str) -> bool:
        self.calls += 1
        return check_password_hash(pin_hash, candidate)


@pytest.fixture
def checker():
    return CountingChecker()


@pytest.fixture
def pins(checker):
    return PinService(InMemoryPins(), checker=checker)


def _wrong(pin: str) -> str:
    return "".join("1" if c != "1" else "2" for c in pin)


def test_generate_returns_plaintext_once_and_stores_hash(pins, admin):
    pin = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)

    assert pin.isdigit() and len(pin) == 6
    status = pins.get_pin_status(admin, student_id="S1")
    assert status.pin_hash != pin
    assert check_password_hash(status.pin_hash, pin)
    assert (status.is_locked, status.failed_attempts) == (False, 0)


def test_configurable_length():
    service = PinService(InMemoryPins(), pin_length=4)
    pin = service.generate_pin(Caller(academy_id=ACADEMY, user_id="a", role=Role.ADMIN), student_id="S1")
    assert len(pin) == 4


def test_only_admin_generates(pins, staff):
    with pytest.raises(AuthorizationError):
        pins.generate_pin(staff, student_id="S1")


def test_three_failures_lock_and_fourth_skips_hash_check(pins, admin, checker):
    pin = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)

    for attempt in (1, 2, 3):
        with pytest.raises(PinMismatchError) as exc:
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin), now=MONDAY_0900)
        assert exc.value.failed_attempts == attempt
        assert exc.value.is_locked is (attempt == 3)

    calls_before = checker.calls
    with pytest.raises(LockedError):
        pins.verify_pin(admin, student_id="S1", candidate=pin, now=MONDAY_0900)
    assert checker.calls == calls_before


def test_successful_verify_resets_the_counter(pins, admin):
    pin = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)

    for _ in range(2):
        with pytest.raises(PinMismatchError):
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin))
    pins.verify_pin(admin, student_id="S1", candidate=pin, now=MONDAY_0900 + timedelta(minutes=1))

    status = pins.get_pin_status(admin, student_id="S1")
    assert status.failed_attempts == 0
    assert status.last_used_at == MONDAY_0900 + timedelta(minutes=1)

    # Counter restarted: two more failures do not lock.
    for _ in range(2):
        with pytest.raises(PinMismatchError):
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin))
    assert pins.get_pin_status(admin, student_id="S1").is_locked is False


def test_verify_without_credential_is_not_found(pins, admin):
    with pytest.raises(NotFoundError):
        pins.verify_pin(admin, student_id="nobody", candidate="123456")


def test_update_pin_validates_format_and_keeps_three_history_entries(pins, admin, student):
    pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)

    with pytest.raises(ValidationError):
        pins.update_pin(student, student_id="S1", new_pin="12ab")
    with pytest.raises(ValidationError):
        pins.update_pin(student, student_id="S1", new_pin="123")

    for i, new_pin in enumerate(("1234", "23456", "345678", "4321")):
        pins.update_pin(student, student_id="S1", new_pin=new_pin, now=MONDAY_0900 + timedelta(days=i + 1))

    status = pins.get_pin_status(student, student_id="S1")
    assert check_password_hash(status.pin_hash, "4321")
    assert len(status.change_history) == 3
    assert status.change_history[0].changed_at == MONDAY_0900 + timedelta(days=4)


def test_update_is_refused_while_locked(pins, admin):
    pin = pins.generate_pin(admin, student_id="S1")
    for _ in range(3):
        with pytest.raises(PinMismatchError):
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin))

    with pytest.raises(LockedError):
        pins.update_pin(admin, student_id="S1", new_pin="2468")


def test_unlock_with_current_pin_clears_lock(pins, admin):
    pin = pins.generate_pin(admin, student_id="S1")
    for _ in range(3):
        with pytest.raises(PinMismatchError):
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin))

    with pytest.raises(ValidationError):
        pins.unlock_pin(admin, student_id="S1", current_pin=_wrong(pin))
    assert pins.get_pin_status(admin, student_id="S1").failed_attempts == 3

    pins.unlock_pin(admin, student_id="S1", current_pin=pin)
    status = pins.get_pin_status(admin, student_id="S1")
    assert (status.is_locked, status.failed_attempts) == (False, 0)
    pins.verify_pin(admin, student_id="S1", candidate=pin)


def test_regenerate_is_the_admin_recovery_path(pins, admin):
    pin = pins.generate_pin(admin, student_id="S1")
    for _ in range(3):
        with pytest.raises(PinMismatchError):
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin))

    fresh = pins.generate_pin(admin, student_id="S1")
    pins.verify_pin(admin, student_id="S1", candidate=fresh)
    assert len(pins.get_pin_status(admin, student_id="S1").change_history) == 2


def test_students_cannot_touch_other_pins(pins, admin, student):
    pins.generate_pin(admin, student_id="S2")

    with pytest.raises(AuthorizationError):
        pins.get_pin_status(student, student_id="S2")


def test_unlock_attempts_are_limited_and_only_regenerate_recovers(pins, admin, checker):
    pin = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)
    for _ in range(3):
        with pytest.raises(PinMismatchError):
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin), now=MONDAY_0900)

    for _ in range(3):
        with pytest.raises(ValidationError):
            pins.unlock_pin(admin, student_id="S1", current_pin=_wrong(pin), now=MONDAY_0900)

    calls_before = checker.calls
    for _ in range(10):
        with pytest.raises(LockedError):
            pins.unlock_pin(admin, student_id="S1", current_pin=pin, now=MONDAY_0900)
    assert checker.calls == calls_before

    status = pins.get_pin_status(admin, student_id="S1")
    assert (status.is_locked, status.unlock_attempts) == (True, 3)

    fresh = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)
    assert pins.get_pin_status(admin, student_id="S1").unlock_attempts == 0
    pins.verify_pin(admin, student_id="S1", candidate=fresh, now=MONDAY_0900)


def test_successful_unlock_restores_the_unlock_budget(pins, admin):
    pin = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)
    with pytest.raises(ValidationError):
        pins.unlock_pin(admin, student_id="S1", current_pin=_wrong(pin), now=MONDAY_0900)

    pins.unlock_pin(admin, student_id="S1", current_pin=pin, now=MONDAY_0900)
    assert pins.get_pin_status(admin, student_id="S1").unlock_attempts == 0


@pytest.mark.parametrize("attempts", [2, 3, 8])
def test_concurrent_wrong_verifies_count_each_failure_once(admin, attempts):
    pins = PinService(InMemoryPins())
    pin = pins.generate_pin(admin, student_id="S1", now=MONDAY_0900)
    barrier = threading.Barrier(attempts)
    outcomes: list[Exception] = []
    outcomes_lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            pins.verify_pin(admin, student_id="S1", candidate=_wrong(pin), now=MONDAY_0900)
        except (PinMismatchError, LockedError) as exc:
            with outcomes_lock:
                outcomes.append(exc)

    threads = [threading.Thread(target=attempt) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    counted = sorted(o.failed_attempts for o in outcomes if isinstance(o, PinMismatchError))
    expected = min(attempts, 3)
    assert counted == list(range(1, expected + 1))
    assert len(outcomes) == attempts

    status = pins.get_pin_status(admin, student_id="S1")
    assert status.failed_attempts == expected
    assert status.is_locked is (attempts >= 3)
