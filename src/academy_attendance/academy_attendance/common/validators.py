from __future__ import annotations

import re
from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    text = "" if value is None else str(value)
    if not text.strip():
        raise ValidationError(f"{field_name} is required")
    return text.strip()


def require_pattern(value: Any, field_name: str, pattern: str) -> str:
    if not isinstance(value, str) or not re.fullmatch(pattern, value):
        raise ValidationError(f"{field_name} is not valid")
    return value


def require_hhmm(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not re.fullmatch(r"([01]\d|2[0-3]):[0-5]\d", value.strip()):
        raise ValidationError(f"{field_name} must be HH:MM")
    return value.strip()
