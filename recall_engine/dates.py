"""
Timestamp and study-day helpers.

Progress records store timestamps as integer epoch milliseconds. A study
"day" is a calendar day in the configured study timezone.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from recall_engine.config import get_study_timezone

MS_PER_DAY = 24 * 60 * 60 * 1000


def to_millis(dt: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    if dt.tzinfo is None:
        raise ValueError("Naive datetimes are not supported; pass a timezone-aware datetime")
    return int(round(dt.timestamp() * 1000))


def from_millis(ms: int) -> datetime:
    """Convert epoch milliseconds to a UTC datetime."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _zone(tz: Optional[str]) -> ZoneInfo:
    return ZoneInfo(tz or get_study_timezone())


def today_bounds(now: datetime, tz: Optional[str] = None) -> Tuple[int, int]:
    """
    Get the first and last millisecond of the study day containing `now`.

    Args:
        now: Current time (timezone-aware)
        tz: IANA timezone name (defaults to STUDY_TIMEZONE)

    Returns:
        (start_ms, end_ms), both inclusive
    """
    local = now.astimezone(_zone(tz))
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end = start + timedelta(days=1)
    return to_millis(start), to_millis(end) - 1


def today_date_string(now: datetime, tz: Optional[str] = None) -> str:
    """Study-day date of `now` as YYYY-MM-DD."""
    return now.astimezone(_zone(tz)).date().isoformat()


def yesterday_date_string(now: datetime, tz: Optional[str] = None) -> str:
    """Study-day date before `now` as YYYY-MM-DD."""
    return (now.astimezone(_zone(tz)).date() - timedelta(days=1)).isoformat()
