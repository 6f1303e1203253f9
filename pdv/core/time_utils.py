"""Time helpers shared by models, pagination and listings."""

from datetime import datetime
from typing import Optional, Tuple

import pytz


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - naive values are taken as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped

    Raises ValueError for anything that is not ISO-8601.
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


def month_bounds(year: int, month: Optional[int] = None) -> Tuple[datetime, datetime]:
    """UTC [start, end) of a calendar month, or of the whole year when month is None."""
    if month is None:
        return datetime(year, 1, 1), datetime(year + 1, 1, 1)
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Drop tzinfo after converting aware datetimes to UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)
