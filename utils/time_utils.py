"""
utils/time_utils.py

Purpose: Time and date-range helpers

- UTC "now" stored as naive datetimes (how pymongo returns them)
- YYYY-MM-DD boundary parsing for report filters
- Month keys for analytics series
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple


def utc_now() -> datetime:
    """
    Current UTC time without tzinfo, matching what MongoDB hands back.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date_boundary(value: Optional[str], end_of_day: bool = False) -> Optional[datetime]:
    """
    Parses a YYYY-MM-DD string into a UTC day boundary.

    The end boundary is inclusive of the whole day (23:59:59.999).
    Returns None for empty or malformed input.
    """
    if not value:
        return None

    parts = str(value).strip()[:10].split("-")
    if len(parts) != 3:
        return None

    try:
        year, month, day = (int(p) for p in parts)
        start = datetime(year, month, day)
    except ValueError:
        return None

    if end_of_day:
        return start + timedelta(days=1) - timedelta(milliseconds=1)
    return start


def resolve_date_range(
    start_date: Optional[str],
    end_date: Optional[str],
    now: Optional[datetime] = None
) -> Tuple[datetime, datetime]:
    """
    Resolves a report date range.

    Defaults to the first day of the current UTC month through now.
    """
    now = now or utc_now()
    month_start = datetime(now.year, now.month, 1)
    start = parse_date_boundary(start_date) or month_start
    end = parse_date_boundary(end_date, end_of_day=True) or now
    return start, end


def optional_date_range(start_date: Optional[str], end_date: Optional[str]) -> Optional[dict]:
    """
    Builds a Mongo range filter from optional bounds, or None when neither is usable.
    """
    condition = {}
    start = parse_date_boundary(start_date)
    end = parse_date_boundary(end_date, end_of_day=True)
    if start:
        condition["$gte"] = start
    if end:
        condition["$lte"] = end
    return condition or None


def month_key(year: int, month: int) -> str:
    """Formats a year and month as YYYY-MM."""
    return f"{year}-{month:02d}"


def receipt_date_stamp(dt: datetime) -> str:
    """Formats a date as YYMMDD for receipt numbers."""
    return dt.strftime("%y%m%d")
