"""
Unit tests for time usage analysis.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from calendar_assistant.core.models import CalendarEvent, DayUsage
from calendar_assistant.dashboard.usage import (
    TimeUsageAnalyzer,
    analyze_time_usage,
    is_meeting_event,
)


UTC = timezone.utc

# Monday, October 19, 2026
MONDAY = datetime(2026, 10, 19, tzinfo=UTC)


def event(title, start_hour, end_hour, day_offset=0, **kwargs):
    day = MONDAY + timedelta(days=day_offset)
    return CalendarEvent(
        title=title,
        start=day + timedelta(hours=start_hour),
        end=day + timedelta(hours=end_hour),
        **kwargs,
    )


# =============================================================================
# Meeting Classification
# =============================================================================

class TestIsMeetingEvent:
    """Tests for meeting classification."""

    def test_attendees_make_a_meeting(self):
        assert is_meeting_event(event("Chat", 9, 10, attendees=["a@example.com"]))

    def test_keyword_in_title(self):
        assert is_meeting_event(event("Weekly Standup", 9, 10))

    def test_keyword_in_description(self):
        assert is_meeting_event(event("Dana", 9, 10, description="Quick CALL about hiring"))

    def test_solo_work_is_focus(self):
        assert not is_meeting_event(event("Write report", 9, 10))


# =============================================================================
# Summaries
# =============================================================================

class TestTimeUsageAnalyzer:
    """Tests for TimeUsageAnalyzer.analyze."""

    @pytest.fixture
    def analyzer(self):
        return TimeUsageAnalyzer(tz=UTC)

    def test_meeting_and_focus_split(self, analyzer):
        """One meeting and one focus block on a single day."""
        events = [
            event("Chat", 9, 10, attendees=["a@example.com"]),
            event("focus block", 13, 15),
        ]

        summary = analyzer.analyze(events, MONDAY, MONDAY + timedelta(days=1))

        assert summary.meeting_hours == 1.0
        assert summary.focus_hours == 2.0
        assert summary.free_hours == 21.0
        assert summary.meeting_count == 1
        assert summary.total_hours == 24.0
        assert summary.scheduled_hours == 3.0
        assert summary.busiest_day == "Monday"
        assert summary.day_breakdown == [DayUsage(day="Monday", hours=3.0, meeting_count=2)]

    def test_no_events(self, analyzer):
        summary = analyzer.analyze([], MONDAY, MONDAY + timedelta(days=7))

        assert summary.busiest_day == "None"
        assert summary.meeting_count == 0
        assert summary.free_hours == summary.total_hours == 168.0
        assert summary.day_breakdown == []

    def test_busiest_day(self, analyzer):
        events = [
            event("Sync", 9, 10),
            event("Review", 9, 12, day_offset=1),
        ]

        summary = analyzer.analyze(events, MONDAY, MONDAY + timedelta(days=7))

        assert summary.busiest_day == "Tuesday"

    def test_busiest_day_tie_keeps_first(self, analyzer):
        """Equal totals keep the chronologically first weekday."""
        events = [
            event("Tuesday work", 9, 10, day_offset=1),
            event("Monday work", 9, 10),
        ]

        summary = analyzer.analyze(events, MONDAY, MONDAY + timedelta(days=7))

        assert summary.busiest_day == "Monday"
        assert [d.day for d in summary.day_breakdown] == ["Monday", "Tuesday"]

    def test_free_hours_never_negative(self, analyzer):
        events = [event("Write report", 9, 12)]

        summary = analyzer.analyze(events, MONDAY + timedelta(hours=9), MONDAY + timedelta(hours=10))

        assert summary.free_hours == 0.0

    def test_undated_events_skipped(self, analyzer):
        events = [CalendarEvent(title="Floating"), event("Write report", 9, 10)]

        summary = analyzer.analyze(events, MONDAY, MONDAY + timedelta(days=1))

        assert summary.focus_hours == 1.0
        assert summary.scheduled_hours == 1.0

    def test_weekday_uses_analyzer_timezone(self):
        """A late-evening UTC event falls on the next day further east."""
        plus_three = timezone(timedelta(hours=3))
        events = [event("Write report", 22, 23)]

        summary = TimeUsageAnalyzer(tz=plus_three).analyze(events, MONDAY, MONDAY + timedelta(days=2))

        assert summary.busiest_day == "Tuesday"

    def test_module_level_helper(self):
        summary = analyze_time_usage([event("Sync", 9, 10)], MONDAY, MONDAY + timedelta(days=1), tz=UTC)

        assert summary.meeting_count == 1
