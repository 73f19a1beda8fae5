from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import FailureOutcome, PinChange, PinCredential


class PinRepository(Protocol):
    def get(self, *, academy_id: str, student_id: str) -> Optional[PinCredential]:
        raise NotImplementedError

    def upsert(self, credential: PinCredential) -> None:
        """Create or fully replace the credential (used by generate)."""

        raise NotImplementedError

    def record_failure(
        self, *, academy_id: str, student_id: str, max_attempts: int, at: datetime
    ) -> Optional[FailureOutcome]:
        """Atomically count one failure and lock at ``max_attempts``.

        Returns None when the credential is already locked (nothing written).
        """

        raise NotImplementedError

    def record_success(self, *, academy_id: str, student_id: str, at: datetime) -> bool:
        """Reset the counter and touch ``last_used_at``; False if locked meanwhile."""

        raise NotImplementedError

    def replace_pin(
        self,
        *,
        academy_id: str,
        student_id: str,
        pin_hash: str,
        change_history: Sequence[PinChange],
        at: datetime,
    ) -> bool:
        """Store a new hash on an unlocked credential; False if it is locked."""

        raise NotImplementedError

    def claim_unlock_attempt(self, *, academy_id: str, student_id: str, max_attempts: int, at: datetime) -> bool:
        """Atomically spend one unlock attempt; False once ``max_attempts`` are used up."""

        raise NotImplementedError

    def unlock(self, *, academy_id: str, student_id: str, at: datetime) -> None:
        """Clear the lock and both counters."""

        raise NotImplementedError
