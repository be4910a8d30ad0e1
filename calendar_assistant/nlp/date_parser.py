"""
Date, time and duration extraction from free text.

These parsers never raise: when no recognizable expression is present they
return None so a request can still be partially understood.
"""

from datetime import datetime, timedelta, tzinfo
from typing import Optional, Tuple
import re

from ..core.config import DEFAULT_TIMEZONE
from ..core.dates import now_in, start_of_day


# Tried in order; the first pattern that yields a valid time wins
TIME_PATTERNS = [
    # "3:30pm", "3:30 PM"
    re.compile(r'\b(\d{1,2}):(\d{2})\s*(am|pm)\b', re.IGNORECASE),
    # "9am", "3 PM"
    re.compile(r'\b(\d{1,2})\s*(am|pm)\b', re.IGNORECASE),
    # "15:00" (24-hour)
    re.compile(r'\b(\d{2}):(\d{2})\b'),
]

TIME_KEYWORDS = {
    "noon": (12, 0),
    "midnight": (0, 0),
}

HOUR_PATTERN = re.compile(r'\b(\d+)[\s-]*(?:hours?|hrs?)\b', re.IGNORECASE)
MINUTE_PATTERN = re.compile(r'\b(\d+)[\s-]*(?:minutes?|mins?)\b', re.IGNORECASE)

# Python weekday order (Monday = 0)
WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
WEEKDAY_PATTERN = re.compile(r'\b(' + '|'.join(WEEKDAYS) + r')s?\b', re.IGNORECASE)
NUMERIC_DATE_PATTERN = re.compile(r'\b(\d{1,2})/(\d{1,2})(?:/(\d{4}))?\b')


def _to_24h(hour: int, minute: int, meridiem: Optional[str]) -> Optional[Tuple[int, int]]:
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        meridiem = meridiem.lower()
        if meridiem == "pm" and hour < 12:
            hour += 12
        elif meridiem == "am" and hour == 12:
            hour = 0

    if 0 <= hour < 24 and 0 <= minute < 60:
        return (hour, minute)
    return None


def parse_time_expression(text: str) -> Optional[Tuple[int, int]]:
    """
    Find a clock time in text.

    Accepts "H:MMam/pm", "Ham/pm" and 24-hour "HH:MM", plus the words
    "noon" and "midnight". 12 PM is noon (12), 12 AM is midnight (0).

    Args:
        text: Any text fragment

    Returns:
        (hours, minutes) tuple, or None if nothing valid was found
    """
    if not text:
        return None

    for index, pattern in enumerate(TIME_PATTERNS):
        match = pattern.search(text)
        if not match:
            continue

        hour = int(match.group(1))
        if index == 0:
            parsed = _to_24h(hour, int(match.group(2)), match.group(3))
        elif index == 1:
            parsed = _to_24h(hour, 0, match.group(2))
        else:
            parsed = _to_24h(hour, int(match.group(2)), None)

        if parsed:
            return parsed

    lowered = text.lower()
    for keyword, value in TIME_KEYWORDS.items():
        if re.search(rf'\b{keyword}\b', lowered):
            return value

    return None


def parse_duration(text: str) -> Optional[int]:
    """
    Sum the "N hours" and "N minutes" tokens found in text.

    Either token may be absent; "2 hours 30 minutes" gives 150.

    Returns:
        Total minutes, or None if no duration was stated
    """
    if not text:
        return None

    total_minutes = 0

    hour_match = HOUR_PATTERN.search(text)
    if hour_match:
        total_minutes += int(hour_match.group(1)) * 60

    minute_match = MINUTE_PATTERN.search(text)
    if minute_match:
        total_minutes += int(minute_match.group(1))

    return total_minutes if total_minutes > 0 else None


def parse_date_expression(
    text: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None
) -> Optional[datetime]:
    """
    Resolve a relative or numeric date mentioned in text.

    Resolution order:
    - "today" -> current day
    - "tomorrow" -> current day + 1
    - weekday name -> next occurrence strictly after today
    - "M/D" or "M/D/YYYY" -> that date (year defaults to the current year)

    Args:
        text: Text to search
        now: Reference time (defaults to the current time)
        tz: Timezone for "local midnight" (defaults to DEFAULT_TIMEZONE)

    Returns:
        Aware datetime at local midnight, or None
    """
    if not text:
        return None

    tz = tz or DEFAULT_TIMEZONE
    now = now.astimezone(tz) if now else now_in(tz)
    today = start_of_day(now, tz)
    lowered = text.lower()

    if re.search(r'\btoday\b', lowered):
        return today

    if re.search(r'\btomorrow\b', lowered):
        return start_of_day(today + timedelta(days=1), tz)

    day_match = WEEKDAY_PATTERN.search(lowered)
    if day_match:
        target = WEEKDAYS.index(day_match.group(1))
        days_until = target - today.weekday()
        if days_until <= 0:
            days_until += 7
        return start_of_day(today + timedelta(days=days_until), tz)

    date_match = NUMERIC_DATE_PATTERN.search(text)
    if date_match:
        month = int(date_match.group(1))
        day = int(date_match.group(2))
        year = int(date_match.group(3)) if date_match.group(3) else today.year
        try:
            return datetime(year, month, day, tzinfo=tz)
        except ValueError:
            return None

    return None
