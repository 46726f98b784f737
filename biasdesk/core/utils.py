"""
Utility functions for BiasDesk.

Numeric coercion for user-entered text and timestamp helpers.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

# Leading decimal literal: sign, digits with optional fraction, optional exponent
_NUMERIC_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def parse_numeric(value: Any) -> float:
    """
    Parse user-entered input into a number.

    Zero-on-failure: never raises. Text is read up to the end of its
    leading decimal literal, so "12.5abc" parses as 12.5.

    Examples:
        "500" -> 500.0
        " 1e3 " -> 1000.0
        "" -> 0.0
        "abc" -> 0.0
        None -> 0.0

    Args:
        value: String, number or None

    Returns:
        Finite float, 0.0 when nothing numeric can be read
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    if not isinstance(value, str):
        return 0.0

    match = _NUMERIC_PREFIX.match(value.strip())
    if not match:
        return 0.0

    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0

    return number if math.isfinite(number) else 0.0


def is_blank(value: Any) -> bool:
    """
    Check whether an input counts as empty.

    None, whitespace-only text and numeric zero are empty.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (int, float)):
        return value == 0
    return False


def format_number(value: Any) -> str:
    """
    Render a number as entry text.

    Integral floats drop their fraction: 500.0 -> "500".
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Accepts the trailing "Z" form. Naive values are taken as UTC.
    Returns None for anything unreadable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize an aware datetime as ISO-8601 in UTC."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def format_age_human(seconds: float) -> str:
    """
    Convert elapsed seconds to a short human-readable age.

    Examples:
        30 -> "just now"
        1800 -> "30m"
        9000 -> "2h 30m"
        90000 -> "1d 1h"
    """
    if seconds < 60:
        return "just now"

    total_minutes = int(seconds // 60)

    MINUTES_PER_HOUR = 60
    MINUTES_PER_DAY = 60 * 24

    days = total_minutes // MINUTES_PER_DAY
    remaining = total_minutes % MINUTES_PER_DAY

    hours_part = remaining // MINUTES_PER_HOUR
    minutes_part = remaining % MINUTES_PER_HOUR

    parts = []

    if days > 0:
        parts.append(f"{days}d")
        if hours_part > 0:
            parts.append(f"{hours_part}h")
    elif hours_part > 0:
        parts.append(f"{hours_part}h")
        if minutes_part > 0:
            parts.append(f"{minutes_part}m")
    else:
        parts.append(f"{minutes_part}m")

    return " ".join(parts)


def next_entity_id(existing_ids, now: datetime) -> int:
    """
    Allocate an id from the current time in milliseconds.

    Bumped past any id already in use so ids stay unique.
    """
    candidate = int(now.timestamp() * 1000)
    taken = set(existing_ids)
    while candidate in taken:
        candidate += 1
    return candidate
