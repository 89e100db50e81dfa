"""Date and time helpers."""

from __future__ import annotations

from datetime import datetime


def normalize_to_minute(dt: datetime) -> datetime:
    """Truncate a timestamp to the start of its minute, keeping its time zone."""
    return dt.replace(second=0, microsecond=0)