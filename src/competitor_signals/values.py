"""Lenient value coercion for loosely-typed source records."""

import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

# Optional sign and currency, a number with thousands separators, an optional
# K/M/B unit, then trailing words without digits ("12,345 installs").
_NUMBER = re.compile(
    r"^\s*(?P<sign>[-+])?\s*\$?\s*(?P<number>\d[\d,]*(?:\.\d+)?|\.\d+)"
    r"\s*(?P<unit>[kmb])?(?![\w.])(?P<rest>[^\d]*)$",
    re.IGNORECASE,
)
_UNITS = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}


def coerce_int(value: Any) -> Optional[int]:
    """Coerce a magnitude to int, or None when it is not numeric.

    Accepts ints, finite floats (truncated) and strings such as
    "+12,345", "12,345 installs" or "12.5K". Booleans and strings with
    any other shape ("v1.2.3", "12.5x") are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _NUMBER.match(value)
        if not match:
            return None
        number = float(match.group("number").replace(",", ""))
        unit = match.group("unit")
        if unit:
            number = round(number * _UNITS[unit.lower()])
        if match.group("sign") == "-":
            number = -number
        return int(number)
    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO string, date, datetime or epoch seconds into aware UTC."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def date_key(value: Any) -> Optional[str]:
    """Calendar date (YYYY-MM-DD) of a date-like value."""
    if isinstance(value, str) and len(value) >= 10:
        head = value[:10]
        try:
            date.fromisoformat(head)
            return head
        except ValueError:
            pass
    parsed = parse_timestamp(value)
    return parsed.date().isoformat() if parsed else None
