from __future__ import annotations

import re
from datetime import time
from decimal import Decimal, InvalidOperation
from typing import Optional

from ..core.exceptions import ValidationError

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def optional_text(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None


def parse_hhmm(value: str, field_name: str) -> time:
    match = _HHMM.match((value or "").strip())
    if not match:
        raise ValidationError(f"{field_name} must be in HH:MM format")
    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def require_positive_int(value, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if number <= 0:
        raise ValidationError(f"{field_name} must be positive")
    return number


def require_non_negative_decimal(value, field_name: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if not number.is_finite() or number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number
