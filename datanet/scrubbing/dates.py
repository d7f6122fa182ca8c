"""Month-level generalisation of date-like values (Strict level)."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from datanet.core.errors import PropertyDecodeError
from datanet.models.entity import PropertyValue, decode_datetime


def month_start(value: datetime) -> datetime:
    """First instant of value's month, keeping its tzinfo."""
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def is_date_value(value: Any, *, epoch_seconds: bool = False) -> bool:
    """Whether value actually holds a date.

    datetime, date and ISO-8601 strings always count. Numbers count only
    when epoch_seconds is set, since a number under a "date"-ish key
    ("candidateScore", "updateCount") is usually just a number.
    """
    if isinstance(value, (datetime, date)):
        return True
    if isinstance(value, str):
        try:
            decode_datetime(value, "")
        except PropertyDecodeError:
            return False
        return True
    if epoch_seconds:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return False


def generalize_date(value: Any, key: str) -> PropertyValue:
    """Drop day-of-month (and time) granularity from a date-like value.

    The output keeps the input's representation:
        datetime      -> datetime on the 1st at 00:00
        date          -> date on the 1st
        ISO string    -> "YYYY-MM"
        epoch seconds -> epoch seconds of the month start (UTC)

    Raises:
        PropertyDecodeError: If the value is not date-like
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return month_start(value)
    if isinstance(value, date):
        return date(value.year, value.month, 1)
    if isinstance(value, str):
        parsed = decode_datetime(value, key)
        return f"{parsed.year:04d}-{parsed.month:02d}"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = decode_datetime(value, key)
        return int(month_start(parsed.astimezone(timezone.utc)).timestamp())
    raise PropertyDecodeError(key, "date", type(value).__name__)
