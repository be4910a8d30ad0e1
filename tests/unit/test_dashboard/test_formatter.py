"""
Unit tests for the Rich calendar formatter.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from rich.console import Console

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from calendar_assistant.core.models import (
    CalendarEvent,
    DayUsage,
    EntitySet,
    ParsedRequest,
    TimeSlot,
    TimeUsageSummary,
)
from calendar_assistant.dashboard.formatter import CalendarFormatter


UTC = timezone.utc
NOW = datetime(2026, 10, 19, 10, 30, tzinfo=UTC)


@pytest.fixture
def console():
    return Console(record=True, width=120, force_terminal=False)


@pytest.fixture
def formatter(console):
    return CalendarFormatter(console=console, tz=UTC)


def render(console, renderable):
    console.print(renderable)
    return console.export_text()


# =============================================================================
# Slots
# =============================================================================

class TestFormatTimeSlots:
    """Tests for the free slot panel."""

    def test_empty(self, formatter, console):
        output = render(console, formatter.format_time_slots([], now=NOW))

        assert "No available time slots found." in output

    def test_slots(self, formatter, console):
        slots = [
            TimeSlot(NOW.replace(hour=13, minute=0), NOW.replace(hour=15, minute=0)),
            TimeSlot(NOW + timedelta(days=1, hours=-1), NOW + timedelta(days=1)),
        ]

        output = render(console, formatter.format_time_slots(slots, now=NOW))

        assert "Available Slots (2)" in output
        assert "Today" in output
        assert "Tomorrow" in output
        assert "1:00 PM" in output
        assert "2 hours" in output


# =============================================================================
# Events
# =============================================================================

class TestFormatEvents:
    """Tests for event panels."""

    def test_event_details(self, formatter, console):
        event = CalendarEvent(
            id="e1",
            title="Design Review",
            start=NOW,
            end=NOW + timedelta(hours=1),
            location="Room 4",
            attendees=["a@example.com"],
        )

        output = render(console, formatter.format_event(event))

        assert "Design Review" in output
        assert "Monday, October 19, 2026" in output
        assert "Room 4" in output
        assert "a@example.com" in output

    def test_event_list_grouped_by_day(self, formatter, console):
        events = [
            CalendarEvent(title="Standup", start=NOW, end=NOW + timedelta(minutes=15)),
            CalendarEvent(title="Planning", start=NOW + timedelta(days=3), end=NOW + timedelta(days=3, hours=1)),
        ]

        output = render(console, formatter.format_event_list(events, title="This Week", now=NOW))

        assert "This Week" in output
        assert "Today" in output
        assert "Thursday, October 22, 2026" in output
        assert "2 events" in output

    def test_empty_event_list(self, formatter, console):
        output = render(console, formatter.format_event_list([], now=NOW))

        assert "No events found." in output


# =============================================================================
# Usage and Parsed Requests
# =============================================================================

class TestFormatSummaries:
    """Tests for usage and parsed request panels."""

    def test_usage_summary(self, formatter, console):
        summary = TimeUsageSummary(
            total_hours=24.0,
            meeting_hours=1.0,
            focus_hours=2.0,
            free_hours=21.0,
            meeting_count=1,
            busiest_day="Monday",
            day_breakdown=[DayUsage("Monday", 3.0, 2)],
            scheduled_hours=3.0,
        )

        output = render(console, formatter.format_usage_summary(summary))

        assert "Time Usage" in output
        assert "21.0h" in output
        assert "Busiest day   Monday" in output

    def test_overbooked(self, formatter, console):
        output = render(console, formatter.format_usage_summary(TimeUsageSummary(total_hours=1.0, meeting_hours=2.0)))

        assert "Overbooked!" in output

    def test_parsed_request(self, formatter, console):
        parsed = ParsedRequest(
            intent="block",
            entities=EntitySet(duration=120, description="deep work"),
            original_query="block 2 hours for deep work",
        )

        output = render(console, formatter.format_parsed_request(parsed))

        assert "block" in output
        assert "deep work" in output
        assert "120" in output
        assert "search_terms" not in output

    def test_print_message(self, formatter, console):
        formatter.print_message("Event deleted", success=True)

        assert "Event deleted" in console.export_text()

    def test_message_brackets_are_literal(self, formatter, console):
        """Square brackets in user text are printed, not read as markup."""
        formatter.print_message("No events matching '[red]standup'", success=False)
        formatter.print_message("No events matching 'retro[/b'", success=False)

        output = console.export_text()
        assert "'[red]standup'" in output
        assert "'retro[/b'" in output

    def test_parsed_request_brackets_are_literal(self, formatter, console):
        parsed = ParsedRequest(
            intent="create",
            entities=EntitySet(title="Sync [bold]now[/bold]", description="notes [/i"),
            original_query="Schedule Sync [bold]now[/bold] about notes [/i",
        )

        output = render(console, formatter.format_parsed_request(parsed))

        assert "Sync [bold]now[/bold]" in output
        assert "notes [/i" in output

    def test_event_title_brackets_are_literal(self, formatter, console):
        event = CalendarEvent(
            id="e1",
            title="Retro [team]",
            start=NOW,
            end=NOW + timedelta(hours=1),
            location="Room [/b",
        )

        details = render(console, formatter.format_event(event))
        listing = render(console, formatter.format_event_list([event], now=NOW))

        assert "Retro [team]" in details
        assert "Room [/b" in details
        assert "Retro [team]" in listing
