"""
Date and time helpers for Calendar Assistant.

All helpers work on timezone-aware datetimes. The timezone used for
"local" operations (start of day, weekday names, display) is passed in
explicitly and defaults to the process-wide DEFAULT_TIMEZONE.
"""

from datetime import datetime, timedelta, tzinfo
from typing import Any, Optional, Tuple

from dateutil import parser as date_parser

from .config import DEFAULT_TIMEZONE


class InvalidDateError(ValueError):
    """Raised when an absolute date string cannot be parsed."""


def _localize(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    tz = tz or DEFAULT_TIMEZONE
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def now_in(tz: Optional[tzinfo] = None) -> datetime:
    """Current time in the given (or default) timezone."""
    return datetime.now(tz or DEFAULT_TIMEZONE)


def parse_date(value: Any, tz: Optional[tzinfo] = None) -> datetime:
    """
    Parse an absolute date/time string into an aware datetime.

    Naive results are interpreted in the given (or default) timezone.

    Raises:
        InvalidDateError: If the string is not a recognizable date
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=tz or DEFAULT_TIMEZONE)
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateError(f"Invalid date: {value!r}")
    try:
        parsed = date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise InvalidDateError(f"Invalid date: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or DEFAULT_TIMEZONE)
    return parsed


def start_of_day(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Midnight of the local day containing dt."""
    local = _localize(dt, tz)
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """23:59:59.999999 of the local day containing dt."""
    local = _localize(dt, tz)
    return local.replace(hour=23, minute=59, second=59, microsecond=999999)


def add_days(dt: datetime, days: int) -> datetime:
    """Add calendar days, keeping the wall-clock time."""
    return dt + timedelta(days=days)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants (rounded)."""
    return round((end - start).total_seconds() / 60)


def ranges_overlap(start1: datetime, end1: datetime,
                   start2: datetime, end2: datetime) -> bool:
    """True if [start1, end1) and [start2, end2) share any time."""
    return start1 < end2 and end1 > start2


def business_hours(dt: datetime, tz: Optional[tzinfo] = None,
                   start_hour: int = 9, end_hour: int = 17) -> Tuple[datetime, datetime]:
    """Business-hours window for the local day containing dt."""
    day = start_of_day(dt, tz)
    return day.replace(hour=start_hour), day.replace(hour=end_hour)


def format_datetime_for_api(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """RFC 3339 timestamp with explicit offset, as the Calendar API expects."""
    return _localize(dt, tz).isoformat()


def format_time(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """12-hour clock time, e.g. '3:30 PM'."""
    local = _localize(dt, tz)
    return local.strftime("%I:%M %p").lstrip("0")


def format_date(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    """Long date, e.g. 'Tuesday, October 20, 2026'."""
    local = _localize(dt, tz)
    return f"{local:%A, %B} {local.day}, {local.year}"


def format_datetime(dt: datetime, tz: Optional[tzinfo] = None) -> str:
    return f"{format_date(dt, tz)} at {format_time(dt, tz)}"


def format_duration(minutes: int) -> str:
    """Format duration in minutes to a human-readable string."""
    if minutes < 60:
        return f"{minutes} min"
    hours = minutes // 60
    remaining = minutes % 60
    if remaining == 0:
        return "1 hour" if hours == 1 else f"{hours} hours"
    return f"{hours}h {remaining}m"


def relative_date_description(dt: datetime, now: Optional[datetime] = None,
                              tz: Optional[tzinfo] = None) -> str:
    """
    Describe a date relative to today ('Today', 'Tomorrow', 'in 3 days', ...).

    Falls back to the long date format beyond a week in either direction.
    """
    now = now or now_in(tz)
    today = start_of_day(now, tz)
    target = start_of_day(dt, tz)
    diff_days = (target.date() - today.date()).days

    if diff_days == 0:
        return "Today"
    if diff_days == 1:
        return "Tomorrow"
    if diff_days == -1:
        return "Yesterday"
    if 0 < diff_days <= 7:
        return f"in {diff_days} days"
    if -7 <= diff_days < 0:
        return f"{abs(diff_days)} days ago"
    return format_date(dt, tz)
