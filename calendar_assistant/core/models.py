"""
Data models for Calendar Assistant
Defines value objects for time slots, parsed requests, events and usage summaries.
"""

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Optional, List, Dict, Any, Tuple

from dateutil import parser as date_parser

from .config import DEFAULT_TIMEZONE
from .dates import minutes_between


INTENTS = (
    "availability",
    "create",
    "list",
    "get",
    "update",
    "delete",
    "block",
    "analyze",
    "auth",
)


@dataclass(frozen=True)
class TimeSlot:
    """A [start, end] span between two aware instants. Callers ensure start <= end."""
    start: datetime
    end: datetime

    @property
    def duration(self) -> int:
        """Length in whole minutes"""
        return minutes_between(self.start, self.end)

    def with_end(self, end: datetime) -> 'TimeSlot':
        return TimeSlot(start=self.start, end=end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "duration": self.duration,
        }


# A period during which one calendar is occupied
BusyInterval = TimeSlot


@dataclass(frozen=True)
class EntitySet:
    """Structured fields pulled out of a free-text request. Absent means not stated."""
    date: Optional[str] = None
    time: Optional[str] = None
    duration: Optional[int] = None
    attendees: Optional[Tuple[str, ...]] = None
    title: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    search_terms: Tuple[str, ...] = ()

    def __post_init__(self):
        # Sequences are stored as tuples
        if self.attendees is not None:
            object.__setattr__(self, "attendees", tuple(self.attendees))
        object.__setattr__(self, "search_terms", tuple(self.search_terms))

    def to_dict(self) -> Dict[str, Any]:
        """Dictionary with only the fields that were found (search_terms always present)"""
        result = {}
        for key in ("date", "time", "duration", "attendees", "title", "location", "description"):
            value = getattr(self, key)
            if value is not None:
                result[key] = list(value) if key == "attendees" else value
        result["search_terms"] = list(self.search_terms)
        return result


@dataclass(frozen=True)
class ParsedRequest:
    """Intent plus entities for one input query"""
    intent: str
    entities: EntitySet
    original_query: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent": self.intent,
            "entities": self.entities.to_dict(),
            "original_query": self.original_query,
        }


@dataclass
class DayUsage:
    """Per-weekday usage; meeting_count counts every event on that weekday"""
    day: str
    hours: float
    meeting_count: int


@dataclass
class TimeUsageSummary:
    """Aggregated time usage over a query window"""
    total_hours: float = 0.0
    meeting_hours: float = 0.0
    focus_hours: float = 0.0
    free_hours: float = 0.0
    meeting_count: int = 0
    busiest_day: str = "None"
    day_breakdown: List[DayUsage] = field(default_factory=list)
    scheduled_hours: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_hours": self.total_hours,
            "meeting_hours": self.meeting_hours,
            "focus_hours": self.focus_hours,
            "free_hours": self.free_hours,
            "meeting_count": self.meeting_count,
            "busiest_day": self.busiest_day,
            "day_breakdown": [
                {"day": d.day, "hours": d.hours, "meeting_count": d.meeting_count}
                for d in self.day_breakdown
            ],
            "scheduled_hours": self.scheduled_hours,
        }


@dataclass
class CalendarEvent:
    """Calendar event data model"""
    id: Optional[str] = None
    title: str = ""
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    attendees: List[str] = field(default_factory=list)
    status: str = "confirmed"  # 'confirmed', 'tentative', 'cancelled'
    html_link: Optional[str] = None
    all_day: bool = False

    @property
    def duration_minutes(self) -> int:
        if self.start is None or self.end is None:
            return 0
        return minutes_between(self.start, self.end)

    @classmethod
    def from_google(cls, data: Dict[str, Any], tz: Optional[tzinfo] = None) -> 'CalendarEvent':
        """Create CalendarEvent from a Google Calendar API event resource"""
        start = data.get('start', {})
        end = data.get('end', {})
        return cls(
            id=data.get('id'),
            title=data.get('summary', ''),
            description=data.get('description'),
            location=data.get('location'),
            start=cls._parse_datetime(start.get('dateTime') or start.get('date'), tz),
            end=cls._parse_datetime(end.get('dateTime') or end.get('date'), tz),
            attendees=[a['email'] for a in data.get('attendees', []) if a.get('email')],
            status=data.get('status', 'confirmed'),
            html_link=data.get('htmlLink'),
            all_day='date' in start and 'dateTime' not in start,
        )

    @staticmethod
    def _parse_datetime(dt_str: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
        """Parse an API timestamp; all-day dates become local midnight"""
        if dt_str:
            try:
                parsed = date_parser.parse(dt_str)
            except (ValueError, OverflowError):
                return None
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=tz or DEFAULT_TIMEZONE)
            return parsed
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "location": self.location,
            "start": self.start.isoformat() if self.start else None,
            "end": self.end.isoformat() if self.end else None,
            "attendees": list(self.attendees),
            "status": self.status,
            "html_link": self.html_link,
            "all_day": self.all_day,
        }
