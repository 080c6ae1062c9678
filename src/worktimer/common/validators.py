from __future__ import annotations

from typing import Any, Sequence

from ..core.exceptions import ValidationError


def _as_number(value: Any, field_name: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be a number") from e


def require_non_negative(value: Any, field_name: str) -> float:
    number = _as_number(value, field_name)
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number


def require_positive(value: Any, field_name: str) -> float:
    number = _as_number(value, field_name)
    if number <= 0:
        raise ValidationError(f"{field_name} must be greater than zero")
    return number


def require_weekday_flags(value: Sequence[bool], field_name: str) -> tuple[bool, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValidationError(f"{field_name} must be a list of 7 booleans")
    flags = tuple(bool(v) for v in value)
    if len(flags) != 7:
        raise ValidationError(f"{field_name} needs exactly 7 entries (Monday first)")
    return flags
