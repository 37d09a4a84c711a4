"""Locale-independent text forms for transaction values."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from decimal import Decimal


def format_amount_text(value: Decimal) -> str:
    """Return fixed decimal text: no exponent, no trailing zeros (``100``, ``100.5``)."""

    if value == 0:
        return "0"
    return format(value.normalize(), "f")


def format_date_text(value: datetime | date) -> str:
    """Return the ``YYYY-MM-DD`` form of a date, in UTC for aware datetimes."""

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()


def parse_iso_datetime(value: str) -> tuple[datetime, bool]:
    """Parse an ISO date or date-time string into an aware UTC datetime.

    Returns the parsed value and whether the input only carried a date.
    Raises ``ValueError`` on malformed input.
    """

    text = value.strip()
    if not text:
        raise ValueError("empty date")

    if len(text) == 10:
        parsed_date = date.fromisoformat(text)
        return datetime.combine(parsed_date, time.min, tzinfo=timezone.utc), True

    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc), False
