#!/usr/bin/env python3
"""
gcal - natural language Google Calendar from the command line.

Every command is routed through CalendarAgent, so structured subcommands
and free-text `ask` queries share the same behavior. Output is Rich panels
by default or JSON with --json.

Commands:
  ask QUERY        Run a natural language request
  parse QUERY      Show how a request is understood (no API access)
  free [MINS]      Find free slots (optionally shared with attendees)
  list             List events
  get              Get an event by ID or search text
  create           Create an event
  update ID        Update an event
  delete ID        Delete an event
  block START      Block time as busy
  analyze          Summarize meeting vs focus time
  auth             Run the OAuth flow

Usage:
  gcal ask "find open slots tomorrow"
  gcal ask "block 2 hours for deep work" --json
  gcal parse "Schedule a meeting with John at 3pm tomorrow"
  gcal free 30 --days 3 --attendees alice@example.com,bob@example.com
  gcal create "Design review" "2026-01-08T14:00" --duration 45
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from rich.console import Console

from ...agents import AgentResponse, CalendarAgent
from ...core.config import Config, resolve_timezone
from ...dashboard.formatter import CalendarFormatter
from ...nlp.parser import parse_natural_language
from .calendar_client import GoogleCalendarClient

logger = logging.getLogger(__name__)

# Commands that never touch the Calendar API
OFFLINE_COMMANDS = {"parse"}


# =============================================================================
# OUTPUT UTILITIES
# =============================================================================

def _json_default(obj: Any) -> Any:
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


def emit_json(payload: Any, compact: bool = False) -> None:
    """Emit JSON output, optionally compact."""
    if compact:
        print(json.dumps(payload, separators=(",", ":"), default=_json_default))
    else:
        print(json.dumps(payload, indent=2, default=_json_default))


def render_response(response: AgentResponse, args: argparse.Namespace,
                    formatter: CalendarFormatter) -> int:
    """Print an agent response and return the process exit code."""
    if args.json:
        emit_json(response.to_dict(), compact=args.compact)
        return 0 if response.success else 1

    data = response.data or {}
    if args.verbose and data.get("parsed"):
        formatter.console.print(formatter.format_parsed_request(data["parsed"]))

    formatter.print_message(response.message, success=response.success)

    if "slots" in data:
        formatter.console.print(formatter.format_time_slots(data["slots"]))
    elif "events" in data:
        formatter.console.print(formatter.format_event_list(data["events"], title="Your Calendar"))
    elif "event" in data:
        formatter.console.print(formatter.format_event(data["event"]))
    elif "summary" in data:
        formatter.console.print(formatter.format_usage_summary(data["summary"]))

    for suggestion in response.suggestions or []:
        formatter.console.print(f"[dim]  → {suggestion}[/dim]")

    return 0 if response.success else 1


def _split_emails(value: Optional[str]) -> Optional[list]:
    if not value:
        return None
    return [email.strip() for email in value.split(",") if email.strip()]


def _drop_none(context: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in context.items() if value is not None}


# =============================================================================
# CLI COMMANDS
# =============================================================================

def cmd_ask(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Run a natural language request."""
    return render_response(agent.handle_query(" ".join(args.query)), args, formatter)


def cmd_parse(args: argparse.Namespace, agent: Optional[CalendarAgent],
              formatter: CalendarFormatter) -> int:
    """Parse a request without calling the API."""
    parsed = parse_natural_language(" ".join(args.query), tz=formatter.tz)
    if args.json:
        emit_json(parsed.to_dict(), compact=args.compact)
    else:
        formatter.console.print(formatter.format_parsed_request(parsed))
    return 0


def cmd_free(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Find free time slots."""
    context = _drop_none({
        "duration": args.duration,
        "start": args.start,
        "end": args.end,
        "attendees": _split_emails(args.attendees),
        "work_hours_only": not args.all_hours,
        "limit": args.limit,
    })
    if args.days and not args.end:
        context["days"] = args.days
    response = agent.process("availability", context)
    return render_response(response, args, formatter)


def cmd_list(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """List events."""
    context = _drop_none({
        "start": args.start,
        "days": args.days,
        "max_results": args.max,
    })
    return render_response(agent.process("list", context), args, formatter)


def cmd_get(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Get an event by ID or search text."""
    context = _drop_none({"event_id": args.event_id, "query": args.search})
    return render_response(agent.process("get", context), args, formatter)


def cmd_create(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Create a new event."""
    context = _drop_none({
        "title": args.summary,
        "start": args.start,
        "end": args.end,
        "duration": args.duration,
        "description": args.description,
        "location": args.location,
        "attendees": _split_emails(args.attendees),
    })
    return render_response(agent.process("create", context), args, formatter)


def cmd_update(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Update an event."""
    context = _drop_none({
        "event_id": args.event_id,
        "title": args.title,
        "start": args.start,
        "end": args.end,
        "duration": args.duration,
        "description": args.description,
        "location": args.location,
    })
    return render_response(agent.process("update", context), args, formatter)


def cmd_delete(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Delete an event."""
    return render_response(agent.process("delete", {"event_id": args.event_id}), args, formatter)


def cmd_block(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Block time as busy."""
    context = _drop_none({
        "start": args.start,
        "duration": args.duration,
        "title": args.title,
        "description": args.description,
    })
    return render_response(agent.process("block", context), args, formatter)


def cmd_analyze(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Summarize time usage."""
    return render_response(agent.process("analyze", {"days": args.days}), args, formatter)


def cmd_auth(args: argparse.Namespace, agent: CalendarAgent, formatter: CalendarFormatter) -> int:
    """Run the OAuth flow and store the token."""
    return render_response(agent.process("auth", {}), args, formatter)


# =============================================================================
# ARGUMENTS
# =============================================================================

def add_output_args(parser: argparse.ArgumentParser) -> None:
    """Add output controls shared by every command."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON."
    )
    parser.add_argument(
        "--compact",
        action="store_true",
        help="Minify JSON output."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcal",
        description="Natural language Google Calendar assistant.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ask "find open slots tomorrow"            # Natural language
  %(prog)s parse "block 2 hours for deep work"       # Show intent + entities
  %(prog)s free 60 --days 3 --json                   # 60-min free slots
  %(prog)s list --days 1                             # Today's events
  %(prog)s block "2026-01-08T09:00" --duration 120   # Deep work block
  %(prog)s analyze --days 7                          # Last week's time usage
"""
    )

    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Configuration directory (default: ./config)")
    parser.add_argument("--credentials-dir", type=str, default=None,
                        help="Directory holding credentials.json and token.json")
    parser.add_argument("--timezone", type=str, default=None,
                        help="IANA timezone for parsing and display (default: configured/host)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Debug logging and parsed-request echo")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p_ask = subparsers.add_parser("ask", help="Run a natural language request")
    p_ask.add_argument("query", nargs="+", help="Request text")
    add_output_args(p_ask)

    p_parse = subparsers.add_parser("parse", help="Show how a request is understood")
    p_parse.add_argument("query", nargs="+", help="Request text")
    add_output_args(p_parse)

    p_free = subparsers.add_parser("free", help="Find free time slots")
    p_free.add_argument("duration", type=int, nargs="?", default=None, help="Duration in minutes")
    p_free.add_argument("--start", help="Window start (default: now)")
    p_free.add_argument("--end", help="Window end")
    p_free.add_argument("--days", type=int, default=None, help="Days to search")
    p_free.add_argument("--attendees", help="Comma-separated attendee emails")
    p_free.add_argument("--limit", type=int, default=None, help="Max slots to show")
    p_free.add_argument("--all-hours", action="store_true", help="Ignore configured work hours")
    add_output_args(p_free)

    p_list = subparsers.add_parser("list", help="List events")
    p_list.add_argument("--start", help="Range start (default: today)")
    p_list.add_argument("--days", type=int, default=7, help="Days to list (default: 7)")
    p_list.add_argument("--max", type=int, default=None, help="Max events")
    add_output_args(p_list)

    p_get = subparsers.add_parser("get", help="Get an event")
    p_get.add_argument("event_id", nargs="?", default=None, help="Google Calendar event ID")
    p_get.add_argument("--search", help="Find events by title/description text instead")
    add_output_args(p_get)

    p_create = subparsers.add_parser("create", help="Create a new event")
    p_create.add_argument("summary", help="Event title")
    p_create.add_argument("start", help="Start time (ISO 8601 or any dateutil-readable date)")
    p_create.add_argument("end", nargs="?", default=None, help="End time (default: start + duration)")
    p_create.add_argument("--duration", type=int, default=None, help="Minutes when END is omitted")
    p_create.add_argument("--description", help="Event description")
    p_create.add_argument("--location", help="Event location")
    p_create.add_argument("--attendees", help="Comma-separated attendee emails")
    add_output_args(p_create)

    p_update = subparsers.add_parser("update", help="Update an event")
    p_update.add_argument("event_id", help="Google Calendar event ID")
    p_update.add_argument("--title", help="New title")
    p_update.add_argument("--start", help="New start time")
    p_update.add_argument("--end", help="New end time")
    p_update.add_argument("--duration", type=int, default=None, help="New length in minutes")
    p_update.add_argument("--description", help="New description")
    p_update.add_argument("--location", help="New location")
    add_output_args(p_update)

    p_delete = subparsers.add_parser("delete", help="Delete an event")
    p_delete.add_argument("event_id", help="Google Calendar event ID")
    add_output_args(p_delete)

    p_block = subparsers.add_parser("block", help="Block time as busy")
    p_block.add_argument("start", nargs="?", default=None, help="Block start (default: work start today)")
    p_block.add_argument("--duration", type=int, default=None, help="Minutes (default: deep work length)")
    p_block.add_argument("--title", help="Block title (default: Blocked)")
    p_block.add_argument("--description", help="Block description")
    add_output_args(p_block)

    p_analyze = subparsers.add_parser("analyze", help="Summarize time usage")
    p_analyze.add_argument("--days", type=int, default=7, help="Days back to analyze (default: 7)")
    add_output_args(p_analyze)

    p_auth = subparsers.add_parser("auth", help="Authenticate with Google")
    add_output_args(p_auth)

    return parser


# =============================================================================
# MAIN
# =============================================================================

COMMANDS = {
    "ask": cmd_ask,
    "parse": cmd_parse,
    "free": cmd_free,
    "list": cmd_list,
    "get": cmd_get,
    "create": cmd_create,
    "update": cmd_update,
    "delete": cmd_delete,
    "block": cmd_block,
    "analyze": cmd_analyze,
    "auth": cmd_auth,
}


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    config = Config(args.config_dir)
    tz = resolve_timezone(args.timezone) if args.timezone else config.timezone
    formatter = CalendarFormatter(Console(), tz=tz)

    handler = COMMANDS[args.command]
    if args.command in OFFLINE_COMMANDS:
        return handler(args, None, formatter)

    credentials_dir = args.credentials_dir or str(config.get_credentials_directory())
    client = GoogleCalendarClient(credentials_dir, tz=tz)
    agent = CalendarAgent(client, config, tz=tz)

    if args.command != "auth" and not client.authenticate():
        print("Error: Failed to authenticate with Google Calendar", file=sys.stderr)
        print("\nSetup instructions:", file=sys.stderr)
        print("1. Go to https://console.cloud.google.com/apis/credentials", file=sys.stderr)
        print("2. Create OAuth 2.0 Client ID (Desktop app)", file=sys.stderr)
        print(f"3. Save as {credentials_dir}/credentials.json", file=sys.stderr)
        print("4. Run: gcal auth", file=sys.stderr)
        return 1

    return handler(args, agent, formatter)


if __name__ == "__main__":
    sys.exit(main())
