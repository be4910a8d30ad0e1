"""
Entity extraction for natural language calendar requests.

Each field is pulled out by its own pattern; no extractor depends on or
short-circuits another, so a query can yield any subset of fields.
"""

from datetime import datetime, tzinfo
from typing import List, Optional
import re

from ..core.dates import format_date
from ..core.models import EntitySet
from .date_parser import parse_date_expression, parse_time_expression, parse_duration


EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')

# Keywords are case-insensitive, the captured phrase must start with a capital
TITLE_PATTERN = re.compile(
    r'\b(?i:meeting|call|event|with|appointment)\s+(?:(?i:with)\s+)?'
    r'([A-Z][a-zA-Z\s]*?)(?=\s+(?i:at|on|for|next)\b|$)'
)
LOCATION_PATTERN = re.compile(
    r'\b(?i:at|in)\s+([A-Z][a-zA-Z0-9\s,]*?)(?=\s+(?i:on|at|for|with)\b|$)'
)
DESCRIPTION_PATTERN = re.compile(
    r'\b(?:about|regarding|for)\s+([a-z][a-z0-9\s,]*?)(?=\s+(?:on|at|for|with)\b|$)',
    re.IGNORECASE
)

PERSON_PATTERNS = [
    re.compile(r'\b(?i:with)\s+([A-Z][a-z]+)'),
    re.compile(r'\b(?i:meeting|call)\s+(?:(?i:with)\s+)?([A-Z][a-z]+)'),
]

# Checked in order, first keyword hit decides the type
EVENT_TYPE_KEYWORDS = [
    ("standup", ["standup"]),
    ("one-on-one", ["one-on-one", "1:1"]),
    ("review", ["review"]),
    ("planning", ["planning", "plan"]),
    ("sync", ["sync"]),
    ("retrospective", ["retrospective"]),
    ("check-in", ["daily", "check-in"]),
    ("social", ["lunch", "dinner", "coffee"]),
    ("interview", ["interview"]),
    ("demo", ["demo"]),
    ("training", ["training", "workshop"]),
]


def extract_attendees(query: str) -> List[str]:
    """All email addresses in order of appearance, duplicates kept."""
    return EMAIL_PATTERN.findall(query)


def extract_title(query: str) -> Optional[str]:
    match = TITLE_PATTERN.search(query)
    if match:
        title = match.group(1).strip()
        return title or None
    return None


def extract_location(query: str) -> Optional[str]:
    match = LOCATION_PATTERN.search(query)
    if match and '@' not in match.group(1):
        location = match.group(1).strip()
        return location or None
    return None


def extract_description(query: str) -> Optional[str]:
    match = DESCRIPTION_PATTERN.search(query)
    if match:
        description = match.group(1).strip()
        return description or None
    return None


def extract_entities(
    query: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None
) -> EntitySet:
    """
    Build the full entity set for a query.

    Args:
        query: Natural language request
        now: Reference time for relative dates
        tz: Timezone for date resolution and display

    Returns:
        EntitySet with every field that could be found
    """
    if not query:
        return EntitySet()

    date = parse_date_expression(query, now=now, tz=tz)
    time = parse_time_expression(query)

    return EntitySet(
        date=format_date(date, tz) if date else None,
        time=f"{time[0]:02d}:{time[1]:02d}" if time else None,
        duration=parse_duration(query) or None,
        attendees=extract_attendees(query) or None,
        title=extract_title(query),
        location=extract_location(query),
        description=extract_description(query),
    )


def build_event_title(entities: EntitySet) -> str:
    """
    Pick a title for a new event.

    Uses the extracted title, else "Meeting with <names>" from attendee
    addresses, else "New Event".
    """
    if entities.title:
        return entities.title

    if entities.attendees:
        names = [email.split('@')[0] for email in entities.attendees]
        return f"Meeting with {', '.join(names)}"

    return "New Event"


def extract_person_from_query(query: str) -> Optional[str]:
    """First capitalized name after "with" or "meeting/call", if any."""
    for pattern in PERSON_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(1)
    return None


def classify_event_type(query: str) -> str:
    lowered = query.lower()
    for event_type, keywords in EVENT_TYPE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return event_type
    return "meeting"
