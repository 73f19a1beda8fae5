from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence


@dataclass(frozen=True)
class PinChange:
    changed_at: datetime
    changed_by: str


@dataclass(frozen=True)
class PinCredential:
    """Hashed self-check-in PIN for one student. The plaintext is never stored."""

    academy_id: str
    student_id: str
    pin_hash: str
    is_locked: bool
    failed_attempts: int
    last_changed_at: datetime
    created_at: datetime
    updated_at: datetime
    last_failed_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    change_history: Sequence[PinChange] = field(default_factory=tuple)
    unlock_attempts: int = 0

    def to_status(self) -> dict:
        return {
            "studentId": self.student_id,
            "isLocked": self.is_locked,
            "failedAttempts": self.failed_attempts,
            "unlockAttempts": self.unlock_attempts,
            "lastFailedAt": self.last_failed_at.isoformat() if self.last_failed_at else None,
            "lastUsedAt": self.last_used_at.isoformat() if self.last_used_at else None,
            "lastChangedAt": self.last_changed_at.isoformat(),
            "changeHistory": [
                {"changedAt": c.changed_at.isoformat(), "changedBy": c.changed_by} for c in self.change_history
            ],
        }


@dataclass(frozen=True)
class FailureOutcome:
    """Counter state after one failed verification was recorded."""

    failed_attempts: int
    is_locked: bool


def history_to_document(history: Sequence[PinChange]) -> list:
    return [{"changedAt": c.changed_at.isoformat(), "changedBy": c.changed_by} for c in history]


def history_from_document(raw) -> tuple:
    return tuple(
        PinChange(changed_at=datetime.fromisoformat(item["changedAt"]), changed_by=str(item["changedBy"]))
        for item in (raw or [])
    )
