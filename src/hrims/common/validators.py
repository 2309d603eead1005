from __future__ import annotations

import re
from enum import Enum
from typing import Optional, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_email(value: Optional[str], field_name: str = "Email") -> str:
    value = require_non_empty(value, field_name).lower()
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} is not a valid email address")
    return value


def require_non_negative(value, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def parse_enum(enum_cls: Type[E], value, field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")
