from __future__ import annotations

from enum import Enum


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation"


class AuthorizationError(DomainError):
    """Raised when a caller lacks permission for an action."""

    code = "permission"


class NotFoundError(DomainError):
    """Raised when a seat, layout, link, student, assignment or record is missing."""

    code = "not_found"


class ConflictReason(str, Enum):
    SEAT_OCCUPIED = "seat_occupied"
    STUDENT_ALREADY_ASSIGNED = "student_already_assigned"
    ALREADY_FINALIZED = "already_finalized"
    INVALID_TRANSITION = "invalid_transition"
    CONCURRENT_UPDATE = "concurrent_update"


class ConflictError(DomainError):
    """Raised when the write would break an exclusivity or state-machine rule."""

    code = "conflict"

    def __init__(self, reason: ConflictReason, message: str | None = None):
        super().__init__(message or reason.value)
        self.reason = reason


class ExpiredError(DomainError):
    """Raised when a check link is past its expiry."""

    code = "expired"


class InactiveError(DomainError):
    """Raised when a check link has been deactivated."""

    code = "inactive"


class LockedError(DomainError):
    """Raised when a PIN credential is locked out."""

    code = "locked"


class PinMismatchError(DomainError):
    """Raised when a PIN candidate does not match the stored hash."""

    code = "mismatch"

    def __init__(self, message: str, *, failed_attempts: int = 0, is_locked: bool = False):
        super().__init__(message)
        self.failed_attempts = failed_attempts
        self.is_locked = is_locked


class StorageError(DomainError):
    """Unexpected persistence failure. The message never carries driver details."""

    code = "storage"
