"""
Time usage analysis for Calendar Assistant.

Splits a window's events into meeting and focus time and summarizes the
result as a TimeUsageSummary for display.
"""

from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional
import logging

from ..core.config import DEFAULT_TIMEZONE
from ..core.models import CalendarEvent, DayUsage, TimeUsageSummary


logger = logging.getLogger(__name__)

MEETING_KEYWORDS = [
    "meeting",
    "standup",
    "sync",
    "review",
    "call",
    "discussion",
    "demo",
    "workshop",
    "training",
    "interview",
    "1:1",
    "one-on-one",
]


def is_meeting_event(event: CalendarEvent) -> bool:
    """
    An event is a meeting if it has attendees or its title or description
    mentions a meeting keyword (case-insensitive).
    """
    if event.attendees:
        return True

    text = f"{event.title or ''} {event.description or ''}".lower()
    return any(keyword in text for keyword in MEETING_KEYWORDS)


class TimeUsageAnalyzer:
    """
    Aggregates events into meeting, focus and free hours.

    Weekday names are taken in the analyzer's timezone.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or DEFAULT_TIMEZONE

    def analyze(
        self,
        events: Iterable[CalendarEvent],
        window_start: datetime,
        window_end: datetime
    ) -> TimeUsageSummary:
        """
        Summarize time usage over a window.

        Args:
            events: Events in the window (all-day and undated events are skipped)
            window_start: Start of the analysis window
            window_end: End of the analysis window

        Returns:
            TimeUsageSummary; total_hours is the window length and
            free_hours is what remains after meetings and focus time
        """
        timed = [e for e in events if e.start is not None and e.end is not None]
        timed.sort(key=lambda e: e.start)

        scheduled_minutes = 0
        meeting_minutes = 0
        focus_minutes = 0
        meeting_count = 0
        day_minutes: Dict[str, int] = {}
        day_counts: Dict[str, int] = {}

        for event in timed:
            duration = event.duration_minutes
            scheduled_minutes += duration

            if is_meeting_event(event):
                meeting_minutes += duration
                meeting_count += 1
            else:
                focus_minutes += duration

            day = event.start.astimezone(self.tz).strftime("%A")
            day_minutes[day] = day_minutes.get(day, 0) + duration
            day_counts[day] = day_counts.get(day, 0) + 1

        # Ties keep the first weekday seen
        busiest_day = "None"
        busiest_minutes = 0
        for day, minutes in day_minutes.items():
            if minutes > busiest_minutes:
                busiest_minutes = minutes
                busiest_day = day

        total_hours = (window_end - window_start).total_seconds() / 3600
        meeting_hours = meeting_minutes / 60
        focus_hours = focus_minutes / 60

        breakdown: List[DayUsage] = [
            DayUsage(day=day, hours=minutes / 60, meeting_count=day_counts[day])
            for day, minutes in day_minutes.items()
        ]

        logger.debug(
            f"Analyzed {len(timed)} event(s): {meeting_minutes}m meetings, "
            f"{focus_minutes}m focus"
        )

        return TimeUsageSummary(
            total_hours=total_hours,
            meeting_hours=meeting_hours,
            focus_hours=focus_hours,
            free_hours=max(0.0, total_hours - meeting_hours - focus_hours),
            meeting_count=meeting_count,
            busiest_day=busiest_day,
            day_breakdown=breakdown,
            scheduled_hours=scheduled_minutes / 60,
        )


def analyze_time_usage(
    events: Iterable[CalendarEvent],
    window_start: datetime,
    window_end: datetime,
    tz: Optional[tzinfo] = None
) -> TimeUsageSummary:
    """Summarize time usage over a window with a one-off analyzer."""
    return TimeUsageAnalyzer(tz).analyze(events, window_start, window_end)
