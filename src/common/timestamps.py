"""Timestamp helpers for priority contexts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def epoch_ms_from_iso8601(value: Optional[str]) -> Optional[int]:
    """Parse an ISO-8601 string into epoch milliseconds.

    Naive values (such as database ``YYYY-MM-DD HH:MM:SS`` columns) are read
    as UTC.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        if text.endswith("Z"):
            parsed = datetime.fromisoformat(text[:-1]).replace(tzinfo=timezone.utc)
        else:
            parsed = datetime.fromisoformat(text)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000)
    except (ValueError, TypeError):
        return None


def epoch_seconds(value: Any) -> Optional[float]:
    """Read a recency signal as epoch seconds.

    Accepts numbers, numeric strings and ISO-8601 strings. Returns None for
    anything else, including booleans and empty strings.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return float(value.strip())
    except ValueError:
        pass
    ms = epoch_ms_from_iso8601(value)
    return ms / 1000.0 if ms is not None else None
