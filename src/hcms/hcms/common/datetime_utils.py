from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from ..core.exceptions import ValidationError


def _date_part(value: Any) -> str:
    """`2025-03-10T08:00:00Z` -> `2025-03-10`; anything else is returned as is."""
    text = str(value).strip()
    for sep in ("T", " "):
        text = text.split(sep, 1)[0]
    return text


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date."""
    try:
        return date.fromisoformat(_date_part(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def to_date(value: Any) -> Optional[date]:
    """Lenient conversion used when reading stored documents."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(_date_part(value))
    except ValueError:
        return None


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mock it easier.
    """
    return datetime.now()


def today_iso() -> str:
    return now_local().date().isoformat()


def utc_now_iso() -> str:
    """UTC timestamp in the `2024-01-31T08:30:00.000Z` shape used by stored documents."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_half_up(value: float) -> int:
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def percentage(part: float, whole: float) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)
