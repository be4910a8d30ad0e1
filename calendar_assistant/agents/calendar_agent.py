"""
Calendar Agent for Calendar Assistant
Handles the nine calendar intents against a calendar client: availability,
create, list, get, update, delete, block, analyze and auth.

Handlers take structured context (aware datetimes, minutes, email lists).
handle_query() is the natural language entry point: it parses the query,
turns the extracted entities into that context and dispatches.
"""

from datetime import datetime, timedelta, tzinfo
from typing import Any, Callable, Dict, List, Optional, Tuple

from .base_agent import BaseAgent, AgentResponse
from ..core.config import DEFAULT_TIMEZONE
from ..core.dates import InvalidDateError, now_in, parse_date, start_of_day
from ..core.models import INTENTS, ParsedRequest
from ..nlp.date_parser import parse_date_expression, parse_time_expression
from ..nlp.entities import build_event_title, extract_person_from_query
from ..nlp.parser import parse_natural_language
from ..scheduling.intervals import combine_busy, find_free_slots, get_best_slots


class CalendarAgent(BaseAgent):
    """
    Specialized agent for calendar management.

    Handles intents:
    - availability: Find free slots shared with optional attendees
    - create: Create a new calendar event
    - list: List events in a date range
    - get: Find events by ID or search text
    - update: Change title, place, description or time of an event
    - delete: Delete an event
    - block: Create an opaque busy block (deep work, focus time, ...)
    - analyze: Summarize meeting vs focus time
    - auth: Run the OAuth flow
    """

    INTENTS = list(INTENTS)

    DEFAULT_DURATION_MINUTES = 60
    DEFAULT_BLOCK_TITLE = "Blocked"

    # Days before/after today searched when an event is named instead of given by ID
    SEARCH_DAYS_BEFORE = 1
    SEARCH_DAYS_AFTER = 7

    def __init__(self, client, config, tz: Optional[tzinfo] = None):
        """Initialize the Calendar Agent."""
        super().__init__(client, config, "calendar")
        self.tz = tz or getattr(config, "timezone", None) or DEFAULT_TIMEZONE

    def get_supported_intents(self) -> List[str]:
        """Return list of supported intents."""
        return self.INTENTS

    def can_handle(self, intent: str, context: Dict[str, Any]) -> bool:
        """Check if this agent can handle the given intent."""
        return intent in self.INTENTS

    def process(self, intent: str, context: Dict[str, Any]) -> AgentResponse:
        """
        Process a calendar intent.

        Args:
            intent: One of the supported calendar intents
            context: Request context with parameters

        Returns:
            AgentResponse with operation result
        """
        self.log_action(f"processing_{intent}", {"context_keys": list(context.keys())})

        handlers: Dict[str, Callable[[Dict[str, Any]], AgentResponse]] = {
            "availability": self._handle_availability,
            "create": self._handle_create,
            "list": self._handle_list,
            "get": self._handle_get,
            "update": self._handle_update,
            "delete": self._handle_delete,
            "block": self._handle_block,
            "analyze": self._handle_analyze,
            "auth": self._handle_auth,
        }

        handler = handlers.get(intent)
        if not handler:
            return AgentResponse.error(f"Unknown intent: {intent}")

        try:
            return handler(context)
        except InvalidDateError as e:
            return AgentResponse.error(str(e))
        except Exception as e:
            self.logger.error(f"Error processing {intent}: {e}", exc_info=True)
            return AgentResponse.error(f"Failed to process {intent}: {str(e)}")

    # =========================================================================
    # Natural Language Entry Point
    # =========================================================================

    def handle_query(self, query: str, now: Optional[datetime] = None) -> AgentResponse:
        """
        Parse a natural language request and run it.

        Args:
            query: Free-text request
            now: Reference time (defaults to the current time)

        Returns:
            AgentResponse; data always carries the parsed request
        """
        now = now.astimezone(self.tz) if now else now_in(self.tz)
        parsed = parse_natural_language(query, now=now, tz=self.tz)
        context = self._context_from_request(parsed, now)

        response = self.process(parsed.intent, context)
        response.data = {**(response.data or {}), "parsed": parsed}
        return response

    def _context_from_request(self, parsed: ParsedRequest, now: datetime) -> Dict[str, Any]:
        """Map extracted entities onto the handler context for the parsed intent."""
        query = parsed.original_query
        entities = parsed.entities
        date = parse_date_expression(query, now=now, tz=self.tz)
        clock = parse_time_expression(query)

        context: Dict[str, Any] = {"now": now}
        if entities.duration:
            context["duration"] = entities.duration
        if entities.attendees:
            context["attendees"] = list(entities.attendees)
        if entities.description:
            context["description"] = entities.description

        intent = parsed.intent
        if intent in ("availability", "list"):
            if date:
                context["start"] = date
                context["end"] = date + timedelta(days=1)

        elif intent == "create":
            context["title"] = build_event_title(entities)
            context["start"] = self._start_from(date, clock, now)
            if entities.location:
                context["location"] = entities.location

        elif intent == "block":
            work_start, _ = self.config.get_work_hours()
            context["start"] = self._start_from(date, clock or work_start, now)

        elif intent in ("get", "update", "delete"):
            search = entities.title or extract_person_from_query(query)
            if search:
                context["query"] = search
            if intent == "update":
                if date:
                    context["new_date"] = date
                if clock:
                    context["new_time"] = clock
                if entities.location:
                    context["location"] = entities.location

        return context

    def _start_from(self, date: Optional[datetime], clock: Optional[Tuple[int, int]],
                    now: datetime) -> datetime:
        """Combine an optional date and clock time; the next full hour when neither is known."""
        if clock:
            base = date or start_of_day(now, self.tz)
            return base.replace(hour=clock[0], minute=clock[1], second=0, microsecond=0)
        if date:
            work_start, _ = self.config.get_work_hours()
            return date.replace(hour=work_start[0], minute=work_start[1])
        return now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)

    # =========================================================================
    # Intent Handlers
    # =========================================================================

    def _handle_availability(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Find free slots shared by the primary calendar and any attendees.

        Context params:
            start (datetime|str): Window start (default: start of today)
            end (datetime|str): Window end (default: availability_days_ahead later)
            days (int): Window length when end is absent
            duration (int): Minimum slot length in minutes
            attendees (list): Attendee emails whose calendars must be free
            work_hours_only (bool): Restrict to configured work hours (default True)
            limit (int, optional): Keep only the first N slots (count and best follow)
        """
        now = self._now(context)
        start = self._datetime_param(context, "start") or start_of_day(now, self.tz)
        end = self._datetime_param(context, "end") or start + timedelta(
            days=context.get("days") or self.get_config_value("availability_days_ahead", default=7)
        )
        duration = int(context.get("duration") or self.get_config_value(
            "default_duration_minutes", default=self.DEFAULT_DURATION_MINUTES
        ))
        attendees = context.get("attendees") or []
        work_hours_only = context.get("work_hours_only", True)

        # Past time today is not available
        if start < now < end:
            start = now

        calendar_ids = ["primary"] + list(attendees)
        busy = self.client.get_free_busy(start, end, calendar_ids)
        if busy is None:
            return AgentResponse.error("Failed to fetch free/busy information")

        # Busy on any calendar blocks everyone
        merged = combine_busy(busy)
        work_start, work_end = self.config.get_work_hours() if work_hours_only else (None, None)
        slots = find_free_slots(merged, start, end, duration,
                                work_start=work_start, work_end=work_end, tz=self.tz,
                                already_merged=True)
        if context.get("limit"):
            slots = slots[:int(context["limit"])]

        return AgentResponse.ok(
            message=f"Found {len(slots)} free time slot(s) of {duration}+ minutes",
            data={
                "slots": slots,
                "count": len(slots),
                "best": get_best_slots(slots, self.get_config_value("max_suggestions", default=5)),
                "parameters": {
                    "start": start,
                    "end": end,
                    "duration": duration,
                    "calendars": calendar_ids,
                    "work_hours_only": work_hours_only,
                },
            },
            suggestions=[
                "Block a time slot for deep work",
                "Schedule a meeting in the first available slot",
            ]
        )

    def _handle_create(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Create an event.

        Context params:
            title (str): Event title
            start (datetime|str): Start time
            end (datetime|str, optional): End time
            duration (int, optional): Minutes, used when end is absent (default 60)
            attendees, location, description (optional)
        """
        validation = self.validate_required_params(context, ["title", "start"])
        if validation:
            return validation

        start = self._datetime_param(context, "start")
        end = self._datetime_param(context, "end") or start + timedelta(
            minutes=int(context.get("duration") or self.get_config_value(
                "default_duration_minutes", default=self.DEFAULT_DURATION_MINUTES
            ))
        )
        if end <= start:
            return AgentResponse.error("Event end must be after its start")

        event = self.client.create_event(
            summary=context["title"],
            start=start,
            end=end,
            description=context.get("description"),
            location=context.get("location"),
            attendees=context.get("attendees"),
        )
        if not event:
            return AgentResponse.error("Failed to create event")

        return AgentResponse.ok(
            message=f"Event created: '{event.title}'",
            data={"event": event, "action": "created"},
            suggestions=[
                "List this week's events",
                "Find free time slots",
            ]
        )

    def _handle_list(self, context: Dict[str, Any]) -> AgentResponse:
        """
        List events in a date range.

        Context params:
            start (datetime|str): Range start (default: start of today)
            end (datetime|str): Range end (default: start + days)
            days (int): Days to look ahead when end is absent (default 7)
            max_results (int, optional): Cap on returned events
        """
        now = self._now(context)
        start = self._datetime_param(context, "start") or start_of_day(now, self.tz)
        end = self._datetime_param(context, "end") or start + timedelta(days=context.get("days", 7))

        events = self.client.list_events(time_min=start, time_max=end,
                                         max_results=context.get("max_results"))

        if not events:
            return AgentResponse.ok(
                message="No events found in the specified time range",
                data={"events": [], "count": 0, "date_range": {"start": start, "end": end}}
            )

        return AgentResponse.ok(
            message=f"Found {len(events)} event(s)",
            data={"events": events, "count": len(events), "date_range": {"start": start, "end": end}}
        )

    def _handle_get(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Get one event by ID, or all events matching a search text.

        Context params:
            event_id (str) OR query (str)
        """
        if context.get("event_id"):
            event = self.client.get_event(context["event_id"])
            if not event:
                return AgentResponse.error(f"Event {context['event_id']} not found")
            return AgentResponse.ok(message=f"Event: {event.title}", data={"event": event})

        if not context.get("query"):
            return AgentResponse.error("Missing required parameters: event_id or query")

        events = self._search(context)
        if events is None:
            return AgentResponse.error("Failed to search events")
        if not events:
            return AgentResponse.error(
                f"No events matching '{context['query']}'",
                data={"query": context["query"]}
            )

        return AgentResponse.ok(
            message=f"Found {len(events)} event(s) matching '{context['query']}'",
            data={"events": events, "count": len(events)}
        )

    def _handle_update(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Update an event found by ID or search text.

        Context params:
            event_id (str) OR query (str): Event to change (first match is used)
            title, description, location (str, optional): New values
            start, end (datetime|str, optional): New times
            new_date (datetime, optional): Move to this day, keeping the clock time
            new_time ((hour, minute), optional): Move to this clock time
            duration (int, optional): New length in minutes
        """
        event, error = self._resolve_event(context)
        if error:
            return error

        fields: Dict[str, Any] = {
            "summary": context.get("title"),
            "description": context.get("description"),
            "location": context.get("location"),
            "attendees": context.get("attendees"),
        }

        start = self._datetime_param(context, "start")
        end = self._datetime_param(context, "end")
        if not start and event.start and (context.get("new_date") or context.get("new_time")):
            start = event.start.astimezone(self.tz)
            if context.get("new_date"):
                new_date = context["new_date"].astimezone(self.tz)
                start = start.replace(year=new_date.year, month=new_date.month, day=new_date.day)
            if context.get("new_time"):
                hour, minute = context["new_time"]
                start = start.replace(hour=hour, minute=minute, second=0, microsecond=0)

        if start or context.get("duration"):
            start = start or event.start
            if start is None:
                return AgentResponse.error(f"Event {event.id} has no start time to keep")
            if context.get("duration"):
                end = start + timedelta(minutes=int(context["duration"]))
            elif not end:
                end = start + timedelta(minutes=event.duration_minutes or self.DEFAULT_DURATION_MINUTES)
            fields["start"] = start
            fields["end"] = end

        if not any(value is not None for value in fields.values()):
            return AgentResponse.error("No fields to update provided")

        updated = self.client.update_event(event.id, **fields)
        if not updated:
            return AgentResponse.error(f"Failed to update event {event.id}")

        return AgentResponse.ok(
            message=f"Event updated: '{updated.title}'",
            data={"event": updated, "action": "updated"}
        )

    def _handle_delete(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Delete an event found by ID or search text.

        Context params:
            event_id (str) OR query (str): Event to delete (first match is used)
        """
        event, error = self._resolve_event(context)
        if error:
            return error

        if not self.client.delete_event(event.id):
            return AgentResponse.error(f"Failed to delete event {event.id}")

        return AgentResponse.ok(
            message=f"Deleted: {event.title}",
            data={"event_id": event.id, "event": event, "action": "deleted"}
        )

    def _handle_block(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Block time as an opaque busy event.

        Context params:
            start (datetime|str): When the block starts (default: work start today)
            duration (int, optional): Minutes (default deep_work_block_duration)
            title (str, optional): Block title (default "Blocked")
            description (str, optional)
        """
        now = self._now(context)
        start = self._datetime_param(context, "start")
        if not start:
            work_start, _ = self.config.get_work_hours()
            start = start_of_day(now, self.tz).replace(hour=work_start[0], minute=work_start[1])

        duration = int(context.get("duration") or self.get_config_value(
            "deep_work_block_duration", default=120
        ))
        end = start + timedelta(minutes=duration)

        event = self.client.block_time(
            start=start,
            end=end,
            summary=context.get("title") or self.DEFAULT_BLOCK_TITLE,
            description=context.get("description") or "",
        )
        if not event:
            return AgentResponse.error("Failed to block time")

        return AgentResponse.ok(
            message=f"Time blocked: {duration} minutes",
            data={"event": event, "action": "created"},
            suggestions=["Find free time slots", "Analyze this week's time usage"]
        )

    def _handle_analyze(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Summarize time usage.

        Context params:
            start (datetime|str): Window start (default: end - days)
            end (datetime|str): Window end (default: now)
            days (int): Window length when start is absent (default 7)
        """
        end = self._datetime_param(context, "end") or self._now(context)
        start = self._datetime_param(context, "start") or end - timedelta(days=context.get("days", 7))

        summary = self.client.analyze_time_usage(start, end)
        if summary is None:
            return AgentResponse.error("Failed to analyze time usage")

        return AgentResponse.ok(
            message=f"{summary.meeting_count} meeting(s), "
                    f"{summary.meeting_hours:.1f}h meetings / {summary.focus_hours:.1f}h focus",
            data={"summary": summary, "date_range": {"start": start, "end": end}}
        )

    def _handle_auth(self, context: Dict[str, Any]) -> AgentResponse:
        """Authenticate with the calendar provider."""
        if self.client.authenticate():
            return AgentResponse.ok(message="Authentication successful")
        return AgentResponse.error(
            "Authentication failed",
            data={"credentials_dir": str(getattr(self.client, "credentials_dir", ""))}
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _now(self, context: Dict[str, Any]) -> datetime:
        now = context.get("now")
        return now.astimezone(self.tz) if now else now_in(self.tz)

    def _datetime_param(self, context: Dict[str, Any], key: str) -> Optional[datetime]:
        """Context value as an aware datetime; strings go through parse_date."""
        value = context.get(key)
        if value is None or value == "":
            return None
        return parse_date(value, self.tz)

    def _search(self, context: Dict[str, Any]) -> Optional[list]:
        today = start_of_day(self._now(context), self.tz)
        return self.client.search_events(
            context["query"],
            today - timedelta(days=self.SEARCH_DAYS_BEFORE),
            today + timedelta(days=self.SEARCH_DAYS_AFTER),
        )

    def _resolve_event(self, context: Dict[str, Any]):
        """Find the target event; returns (event, None) or (None, error response)."""
        if context.get("event_id"):
            event = self.client.get_event(context["event_id"])
            if not event:
                return None, AgentResponse.error(f"Event {context['event_id']} not found")
            return event, None

        if not context.get("query"):
            return None, AgentResponse.error("Missing required parameters: event_id or query")

        matches = self._search(context)
        if matches is None:
            return None, AgentResponse.error("Failed to search events")
        if not matches:
            return None, AgentResponse.error(f"No events matching '{context['query']}'")
        return matches[0], None
