from __future__ import annotations

import math
from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_id(value: Any, field_name: str) -> int:
    """Coerce an identifier to a positive int."""
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} is invalid")
    try:
        ident = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid") from None
    if ident <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return ident


def require_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def require_in_range(value: float, field_name: str, low: float, high: float) -> float:
    if value < low or value > high:
        raise ValidationError(f"{field_name} must be between {low} and {high}")
    return value
