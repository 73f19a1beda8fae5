from __future__ import annotations

from datetime import date, datetime
from functools import wraps
from typing import Any

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..core.session import Caller
from .datetime_utils import now_local, parse_iso_date, to_local_naive


def login_required(view):
    """Reject requests whose session was not populated by the identity provider."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session or "academy_id" not in session:
            return jsonify({"success": False, "error": "unauthenticated", "message": "Login required"}), 401
        return view(*args, **kwargs)

    return wrapper


def current_caller() -> Caller:
    try:
        role = Role(session.get("role") or Role.STUDENT.value)
    except ValueError as exc:
        raise ValidationError("Unknown role in session") from exc
    return Caller(
        academy_id=str(session["academy_id"]),
        user_id=str(session["user_id"]),
        role=role,
        display_name=session.get("name"),
    )


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def date_arg(name: str = "date") -> date:
    return optional_date_arg(name) or now_local().date()


def optional_date_arg(name: str) -> date | None:
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_iso_date(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid {name}, expected YYYY-MM-DD") from exc


def parse_datetime(value: Any, field: str) -> datetime | None:
    if value in (None, ""):
        return None
    raw = str(value)
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}, expected ISO-8601") from exc
    return to_local_naive(parsed)


def ok(data: Any = None, status: int = 200, **extra: Any):
    payload: dict[str, Any] = {"success": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload), status
