from __future__ import annotations

import logging
import secrets
import string
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty, require_pattern
from ..core.constants import (
    DEFAULT_PIN_LENGTH,
    PIN_HISTORY_LIMIT,
    PIN_MAX_FAILED_ATTEMPTS,
    PIN_MAX_LENGTH,
    PIN_MIN_LENGTH,
    PIN_PATTERN,
)
from ..core.exceptions import LockedError, NotFoundError, PinMismatchError, ValidationError
from ..core.session import Caller, require_admin, require_self_or_staff
from .model import PinChange, PinCredential
from .repository import PinRepository

logger = logging.getLogger(__name__)


class PinService:
    """Self-check-in PIN credentials with lockout after repeated failures.

    Only werkzeug hashes are stored. ``generate_pin`` is the single place a
    plaintext PIN leaves the service, and it is never logged.
    """

    def __init__(
        self,
        pins: PinRepository,
        *,
        pin_length: int = DEFAULT_PIN_LENGTH,
        max_failed_attempts: int = PIN_MAX_FAILED_ATTEMPTS,
        hasher: Callable[[str], str] = generate_password_hash,
        checker: Callable[[str, str], bool] = check_password_hash,
    ):
        if not PIN_MIN_LENGTH <= int(pin_length) <= PIN_MAX_LENGTH:
            raise ValueError(f"PIN length must be between {PIN_MIN_LENGTH} and {PIN_MAX_LENGTH}")
        self._pins = pins
        self._pin_length = int(pin_length)
        self._max_failed_attempts = int(max_failed_attempts)
        self._hash = hasher
        self._check = checker

    def _require(self, caller: Caller, student_id: str) -> PinCredential:
        credential = self._pins.get(academy_id=caller.academy_id, student_id=student_id)
        if not credential:
            raise NotFoundError("No PIN has been issued for this student")
        return credential

    def _matches(self, credential: PinCredential, candidate: str) -> bool:
        try:
            return bool(self._check(credential.pin_hash, candidate or ""))
        except ValueError:
            # Unknown/corrupted hash format.
            return False

    def generate_pin(self, caller: Caller, *, student_id: str, now: Optional[datetime] = None) -> str:
        """Issue a fresh random PIN (also the admin recovery path for a locked PIN)."""

        require_admin(caller)
        student_id = require_non_empty(student_id, "Student id")
        now = now or now_local()

        pin = "".join(secrets.choice(string.digits) for _ in range(self._pin_length))
        existing = self._pins.get(academy_id=caller.academy_id, student_id=student_id)
        history = (PinChange(changed_at=now, changed_by=caller.user_id),)
        if existing:
            history = (history + tuple(existing.change_history))[:PIN_HISTORY_LIMIT]

        self._pins.upsert(
            PinCredential(
                academy_id=caller.academy_id,
                student_id=student_id,
                pin_hash=self._hash(pin),
                is_locked=False,
                failed_attempts=0,
                last_changed_at=now,
                created_at=existing.created_at if existing else now,
                updated_at=now,
                last_used_at=existing.last_used_at if existing else None,
                change_history=history,
            )
        )
        logger.info("PIN issued for student %s by %s", student_id, caller.user_id)
        return pin

    def verify_pin(self, caller: Caller, *, student_id: str, candidate: str, now: Optional[datetime] = None) -> None:
        """Return normally on a match; raise ``LockedError`` or ``PinMismatchError`` otherwise."""

        require_self_or_staff(caller, student_id)
        now = now or now_local()
        credential = self._require(caller, student_id)

        if credential.is_locked:
            logger.warning("PIN verify rejected for locked student %s", student_id)
            raise LockedError("PIN is locked")

        if not self._matches(credential, candidate):
            outcome = self._pins.record_failure(
                academy_id=caller.academy_id,
                student_id=student_id,
                max_attempts=self._max_failed_attempts,
                at=now,
            )
            if outcome is None:
                raise LockedError("PIN is locked")
            logger.warning(
                "PIN mismatch for student %s (%d/%d)", student_id, outcome.failed_attempts, self._max_failed_attempts
            )
            message = "PIN is now locked" if outcome.is_locked else "Incorrect PIN"
            raise PinMismatchError(message, failed_attempts=outcome.failed_attempts, is_locked=outcome.is_locked)

        if not self._pins.record_success(academy_id=caller.academy_id, student_id=student_id, at=now):
            raise LockedError("PIN is locked")

    def update_pin(
        self, caller: Caller, *, student_id: str, new_pin: str, now: Optional[datetime] = None
    ) -> PinCredential:
        require_self_or_staff(caller, student_id)
        now = now or now_local()
        credential = self._require(caller, student_id)
        if credential.is_locked:
            raise LockedError("PIN is locked")
        require_pattern(new_pin, "PIN", PIN_PATTERN)

        history = ((PinChange(changed_at=now, changed_by=caller.user_id),) + tuple(credential.change_history))[
            :PIN_HISTORY_LIMIT
        ]
        pin_hash = self._hash(new_pin)
        if not self._pins.replace_pin(
            academy_id=caller.academy_id, student_id=student_id, pin_hash=pin_hash, change_history=history, at=now
        ):
            raise LockedError("PIN is locked")

        logger.info("PIN changed for student %s", student_id)
        return replace(
            credential,
            pin_hash=pin_hash,
            failed_attempts=0,
            last_changed_at=now,
            change_history=history,
            updated_at=now,
        )

    def unlock_pin(self, caller: Caller, *, student_id: str, current_pin: str, now: Optional[datetime] = None) -> None:
        """Clear a lock by presenting the current PIN.

        Every attempt spends one unit of a separate unlock budget before the
        hash is compared. Once the budget is spent only ``generate_pin`` can
        recover the credential.
        """

        require_self_or_staff(caller, student_id)
        now = now or now_local()
        credential = self._require(caller, student_id)
        if not self._pins.claim_unlock_attempt(
            academy_id=caller.academy_id, student_id=student_id, max_attempts=self._max_failed_attempts, at=now
        ):
            logger.warning("PIN unlock refused for student %s: attempts exhausted", student_id)
            raise LockedError("Unlock attempts exhausted, ask an admin to issue a new PIN")

        if not self._matches(credential, current_pin):
            logger.warning("PIN unlock mismatch for student %s", student_id)
            raise ValidationError("Current PIN does not match")

        self._pins.unlock(academy_id=caller.academy_id, student_id=student_id, at=now)
        logger.info("PIN unlocked for student %s", student_id)

    def get_pin_status(self, caller: Caller, *, student_id: str) -> PinCredential:
        require_self_or_staff(caller, student_id)
        return self._require(caller, student_id)
