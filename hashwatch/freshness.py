from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

DEFAULT_WINDOW_HOURS = 48
SCHEDULED_WINDOW_HOURS = 26


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch seconds into an aware UTC datetime.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _elapsed_seconds(timestamp: Any, now: datetime | None) -> float | None:
    created = parse_timestamp(timestamp)
    if created is None:
        return None
    current = now or utc_now()
    return max(0.0, (current - created).total_seconds())


def elapsed_hours(timestamp: Any, now: datetime | None = None) -> float | None:
    seconds = _elapsed_seconds(timestamp, now)
    if seconds is None:
        return None
    return seconds / 3600.0


def age_label(timestamp: Any, now: datetime | None = None) -> str:
    seconds = _elapsed_seconds(timestamp, now)
    if seconds is None:
        return "Unknown"

    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes}m ago"
    whole_hours = minutes // 60
    if whole_hours < 24:
        return f"{whole_hours}h ago"
    return f"{whole_hours // 24}d ago"


def is_fresh(timestamp: Any, window_hours: float, now: datetime | None = None) -> bool:
    hours = elapsed_hours(timestamp, now)
    if hours is None:
        return False
    return hours <= window_hours
