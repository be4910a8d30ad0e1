"""
Rich formatter module for Calendar Assistant.

Handles all Rich-based CLI formatting: free slots, event lists grouped by
day, single events, time usage summaries and parsed requests.
"""

from datetime import datetime, tzinfo
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.config import DEFAULT_TIMEZONE
from ..core.dates import (
    format_date,
    format_duration,
    format_time,
    relative_date_description,
)
from ..core.models import CalendarEvent, ParsedRequest, TimeSlot, TimeUsageSummary


# Border colors per intent when echoing a parsed request
INTENT_COLORS = {
    "availability": "green",
    "create": "cyan",
    "list": "blue",
    "get": "blue",
    "update": "yellow",
    "delete": "red",
    "block": "magenta",
    "analyze": "magenta",
    "auth": "white",
}


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class CalendarFormatter:
    """
    Rich-based formatter for calendar output.

    All times are shown in the formatter's timezone.
    """

    def __init__(self, console: Optional[Console] = None, tz: Optional[tzinfo] = None):
        """
        Initialize formatter.

        Args:
            console: Rich Console instance (creates default if not provided)
            tz: Display timezone (defaults to DEFAULT_TIMEZONE)
        """
        self.console = console or Console()
        self.tz = tz or DEFAULT_TIMEZONE

    def _time_range(self, start: Optional[datetime], end: Optional[datetime]) -> str:
        if start is None or end is None:
            return "[dim]---[/dim]"
        return f"[cyan]{format_time(start, self.tz)}[/cyan] - {format_time(end, self.tz)}"

    def _day_label(self, dt: datetime, now: Optional[datetime]) -> str:
        label = relative_date_description(dt, now=now, tz=self.tz)
        if label in ("Today", "Tomorrow"):
            return label
        return format_date(dt, self.tz)

    def format_time_slots(self, slots: List[TimeSlot], now: Optional[datetime] = None) -> Panel:
        """
        Create panel listing available time slots.

        Args:
            slots: Free slots in display order
            now: Reference time for "Today"/"Tomorrow" labels

        Returns:
            Rich Panel with one row per slot
        """
        if not slots:
            return Panel(
                Text("No available time slots found.", style="dim", justify="center"),
                title="[bold]Available Slots[/bold]",
                border_style="green",
                padding=(0, 1),
            )

        table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
        table.add_column("Day", ratio=1)
        table.add_column("Time", width=22, no_wrap=True)
        table.add_column("Duration", width=10, justify="right")

        for slot in slots:
            table.add_row(
                self._day_label(slot.start, now),
                self._time_range(slot.start, slot.end),
                f"[dim]{format_duration(slot.duration)}[/dim]",
            )

        return Panel(
            table,
            title=f"[bold]Available Slots ({len(slots)})[/bold]",
            border_style="green",
            padding=(0, 1),
        )

    def format_event(self, event: CalendarEvent) -> Panel:
        """
        Create detail panel for a single event.

        Args:
            event: Event to display

        Returns:
            Rich Panel with date, time, location, attendees and description
        """
        lines = []
        if event.all_day and event.start:
            lines.append(f"Date          {format_date(event.start, self.tz)} [cyan](all day)[/cyan]")
        elif event.start:
            lines.append(f"Date          {format_date(event.start, self.tz)}")
            lines.append(f"Time          {self._time_range(event.start, event.end)}")

        if event.location:
            lines.append(f"Location      {escape(event.location)}")
        if event.attendees:
            lines.append(f"Attendees     {escape(', '.join(event.attendees))}")
        if event.description:
            lines.append(f"Description   [dim]{escape(_truncate(event.description, 100))}[/dim]")
        if event.html_link:
            lines.append(f"Link          [blue]{event.html_link}[/blue]")

        return Panel(
            "\n".join(lines) if lines else "[dim]No details[/dim]",
            title=f"[bold]{escape(event.title or '(untitled)')}[/bold]",
            border_style="cyan",
            padding=(0, 1),
        )

    def format_event_list(
        self,
        events: List[CalendarEvent],
        title: str = "Calendar",
        now: Optional[datetime] = None
    ) -> Panel:
        """
        Create panel of events grouped by local day.

        Args:
            events: Events sorted by start time
            title: Panel title
            now: Reference time for relative day labels

        Returns:
            Rich Panel with a heading row per day
        """
        if not events:
            return Panel(
                Text("No events found.", style="dim", justify="center"),
                title=f"[bold]{title}[/bold]",
                border_style="cyan",
                padding=(0, 1),
            )

        by_day: Dict[str, List[CalendarEvent]] = {}
        for event in events:
            key = event.start.astimezone(self.tz).date().isoformat() if event.start else ""
            by_day.setdefault(key, []).append(event)

        table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
        table.add_column("Time", width=30, no_wrap=True)
        table.add_column("Title", ratio=1)
        table.add_column("Location", width=14, justify="right")

        total_minutes = 0
        for day_events in by_day.values():
            first = day_events[0]
            heading = self._day_label(first.start, now) if first.start else "Undated"
            table.add_row(f"[bold]{heading}[/bold]", "", "")

            for event in day_events:
                if event.all_day:
                    time_str = "[cyan]All day[/cyan]"
                else:
                    time_str = self._time_range(event.start, event.end)
                    total_minutes += event.duration_minutes

                table.add_row(
                    time_str,
                    Text(_truncate(event.title, 40)),
                    Text(_truncate(event.location or '', 12), style="dim"),
                )

        summary = f"[dim]{len(events)} event{'s' if len(events) != 1 else ''}"
        if total_minutes > 0:
            summary += f" • {format_duration(total_minutes)} committed"
        summary += "[/dim]"
        table.add_row("", "", "")
        table.add_row("", summary, "")

        return Panel(
            table,
            title=f"[bold]{title}[/bold]",
            border_style="cyan",
            padding=(0, 1),
        )

    def format_usage_summary(self, summary: TimeUsageSummary) -> Panel:
        """
        Create panel showing a time usage summary.

        Args:
            summary: Output of TimeUsageAnalyzer

        Returns:
            Rich Panel with hour totals and per-day breakdown
        """
        lines = [
            f"Window        {summary.total_hours:.1f}h",
            f"Meetings      [cyan]{summary.meeting_hours:.1f}h[/cyan] "
            f"[dim]({summary.meeting_count} meeting{'s' if summary.meeting_count != 1 else ''})[/dim]",
            f"Focus         [yellow]{summary.focus_hours:.1f}h[/yellow]",
            "[dim]" + "─" * 40 + "[/dim]",
        ]

        if summary.free_hours > 0:
            lines.append(f"Free          [green bold]{summary.free_hours:.1f}h[/green bold]")
        else:
            lines.append("Free          [red bold]Overbooked![/red bold]")

        lines.append(f"Busiest day   {summary.busiest_day}")

        if summary.day_breakdown:
            lines.append("")
            for day in summary.day_breakdown:
                lines.append(
                    f"  {day.day:<12}{day.hours:>5.1f}h  "
                    f"[dim]{day.meeting_count} event{'s' if day.meeting_count != 1 else ''}[/dim]"
                )

        return Panel(
            "\n".join(lines),
            title="[bold]Time Usage[/bold]",
            border_style="magenta",
            padding=(0, 1),
        )

    def format_parsed_request(self, parsed: ParsedRequest) -> Panel:
        """Create panel echoing how a query was understood."""
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Field", style="dim", width=12)
        table.add_column("Value", ratio=1)

        table.add_row("intent", f"[bold]{parsed.intent}[/bold]")
        for key, value in parsed.entities.to_dict().items():
            if key == "search_terms" and not value:
                continue
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value)
            table.add_row(key, Text(str(value)))

        return Panel(
            table,
            title=f"[bold]{escape(_truncate(parsed.original_query, 50))}[/bold]",
            border_style=INTENT_COLORS.get(parsed.intent, "white"),
            padding=(0, 1),
        )

    def print_message(self, message: str, success: bool = True) -> None:
        style = "green" if success else "red bold"
        self.console.print(Text(message, style=style))
