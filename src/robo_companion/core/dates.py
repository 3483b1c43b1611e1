from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any


def parse_api_datetime(value: Any) -> datetime | None:
    """
    Best-effort parser for upstream timestamps.

    Supports:
      - ISO string: "2025-09-07T20:20:00Z" / "+00:00" / "-05:00"
      - Date-only string: "2025-09-07" (midnight UTC)
      - datetime instances (naive values are treated as UTC)

    Returns None for missing or unparseable values instead of raising.
    """
    if value in (None, ""):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        v = value.strip()
        if v.endswith("Z"):
            v = v[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(v)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def parse_session_date(value: str) -> date:
    """League `locations` keys are "YYYY-MM-DD" (sometimes with a time part)."""

    return date.fromisoformat(value.strip()[:10])


def local_datetime(day: date, at: time) -> datetime:
    """Combine a date and wall-clock time in the system timezone (tz-aware)."""

    return datetime.combine(day, at).astimezone()


def local_date(dt: datetime) -> date:
    return dt.astimezone().date()
