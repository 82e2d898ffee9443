from __future__ import annotations

from enum import Enum
from typing import Any, Type, TypeVar

from ..core.exceptions import ValidationError

E = TypeVar("E", bound=Enum)


def require_non_empty(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_enum(value: Any, enum_cls: Type[E], field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}")


def require_id_list(value: Any, field_name: str) -> list[str]:
    if not isinstance(value, list) or not value:
        raise ValidationError(f"{field_name} must be a non-empty list")
    ids = [str(v).strip() for v in value if str(v).strip()]
    if not ids:
        raise ValidationError(f"{field_name} must be a non-empty list")
    return ids


def optional_int(value: Any, field_name: str) -> int | None:
    if value in (None, ""):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return number
