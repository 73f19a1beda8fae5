from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Caller:
    """Already-authenticated caller, passed explicitly into every service call.

    The identity provider owns how this is derived; services only read it to
    scope data to ``academy_id`` and to gate admin-only actions.
    """

    academy_id: str
    user_id: str
    role: Role
    display_name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise AuthorizationError("Admin permission required")


def require_staff(caller: Caller) -> None:
    if caller.role not in {Role.ADMIN, Role.STAFF}:
        raise AuthorizationError("Staff permission required")


def require_self_or_staff(caller: Caller, student_id: str) -> None:
    """Students may only act on their own records; staff may act on anyone's."""

    if caller.role == Role.STUDENT and caller.user_id != student_id:
        raise AuthorizationError("Students can only act on their own attendance")
    if caller.role not in {Role.ADMIN, Role.STAFF, Role.STUDENT}:
        raise AuthorizationError("Permission denied")
