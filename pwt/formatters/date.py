"""Date and time formatting utilities."""

from datetime import datetime, timezone
from typing import Any, Optional


def _parse(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(date: Any) -> str:
    """
    Format a date (datetime or ISO-8601 string) as YYYY-MM-DD.

    Args:
        date: Date object or ISO string

    Returns:
        Formatted date string, or "" when missing
    """
    parsed = _parse(date)
    if parsed is None:
        return str(date) if date else ""
    return parsed.astimezone().strftime("%Y-%m-%d")


def format_age(date: Any, now: Optional[datetime] = None) -> str:
    """
    Format the age of a timestamp in whole days ("3d").

    Args:
        date: Date object or ISO string
        now: Reference time (defaults to current UTC time)

    Returns:
        Formatted age string, or "" when the date can't be parsed
    """
    parsed = _parse(date)
    if parsed is None:
        return ""
    now = now or datetime.now(timezone.utc)
    return f"{max(0, (now - parsed).days)}d"
