"""
Integration tests for the gcal command line.

Runs main() end to end with the Google client patched out.
"""

import json
import pytest
import sys
from pathlib import Path
from unittest.mock import patch

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from calendar_assistant.core.models import CalendarEvent
from calendar_assistant.integrations.google_calendar import calendar_cli
from calendar_assistant.integrations.google_calendar.calendar_cli import (
    _split_emails,
    build_parser,
    main,
)


CLIENT_PATH = "calendar_assistant.integrations.google_calendar.calendar_cli.GoogleCalendarClient"


@pytest.fixture
def base_args(tmp_path):
    """Global flags pointing config and credentials at a temp directory."""
    return [
        "--config-dir", str(tmp_path / "config"),
        "--credentials-dir", str(tmp_path / "creds"),
        "--timezone", "UTC",
    ]


@pytest.fixture
def mock_client():
    with patch(CLIENT_PATH) as client_cls:
        client = client_cls.return_value
        client.authenticate.return_value = True
        yield client


# =============================================================================
# Argument Parsing
# =============================================================================

class TestArguments:
    """Tests for the argument parser."""

    def test_free_arguments(self):
        args = build_parser().parse_args(
            ["free", "30", "--days", "3", "--attendees", "a@example.com,b@example.com", "--json"]
        )

        assert args.command == "free"
        assert args.duration == 30
        assert args.days == 3
        assert args.json is True

    def test_ask_joins_words(self):
        args = build_parser().parse_args(["ask", "find", "open", "slots"])

        assert args.query == ["find", "open", "slots"]

    def test_split_emails(self):
        assert _split_emails(" a@example.com, ,b@example.com") == ["a@example.com", "b@example.com"]
        assert _split_emails(None) is None

    def test_no_command(self, capsys):
        assert main([]) == 1


# =============================================================================
# Commands
# =============================================================================

class TestCommands:
    """Tests for running commands through main()."""

    def test_parse_is_offline(self, base_args, capsys):
        with patch(CLIENT_PATH) as client_cls:
            exit_code = main(base_args + ["parse", "block", "2", "hours", "for", "deep", "work", "--json"])

        assert exit_code == 0
        client_cls.assert_not_called()
        output = json.loads(capsys.readouterr().out)
        assert output["intent"] == "block"
        assert output["entities"]["duration"] == 120

    def test_authentication_failure(self, base_args, mock_client, capsys):
        mock_client.authenticate.return_value = False

        exit_code = main(base_args + ["list", "--json"])

        assert exit_code == 1
        assert "Failed to authenticate" in capsys.readouterr().err

    def test_list_json(self, base_args, mock_client, capsys):
        mock_client.list_events.return_value = [CalendarEvent(id="e1", title="Standup")]

        exit_code = main(base_args + ["list", "--days", "1", "--json"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is True
        assert output["data"]["events"][0]["title"] == "Standup"

    def test_delete_failure_exit_code(self, base_args, mock_client, capsys):
        mock_client.get_event.return_value = None

        exit_code = main(base_args + ["delete", "missing", "--json", "--compact"])

        assert exit_code == 1
        output = json.loads(capsys.readouterr().out)
        assert output["message"] == "Event missing not found"

    def test_free_limit(self, base_args, mock_client, capsys):
        mock_client.get_free_busy.return_value = {}

        exit_code = main(base_args + ["free", "30", "--start", "2030-01-07T00:00:00+00:00",
                                      "--days", "3", "--limit", "2", "--json"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert len(output["data"]["slots"]) == 2
        assert output["data"]["count"] == 2
        assert output["data"]["best"] == output["data"]["slots"]
        assert output["data"]["slots"][0]["start"] == "2030-01-07T09:00:00+00:00"

    def test_create_rich_output(self, base_args, mock_client, capsys):
        mock_client.create_event.return_value = CalendarEvent(id="c1", title="Design review")

        exit_code = main(base_args + ["create", "Design review", "2026-10-20T14:00:00+00:00",
                                      "--duration", "45"])

        assert exit_code == 0
        assert "Event created" in capsys.readouterr().out
        kwargs = mock_client.create_event.call_args.kwargs
        assert (kwargs["end"] - kwargs["start"]).total_seconds() == 45 * 60

    def test_commands_cover_parser(self):
        """Every subcommand has a handler."""
        subparsers = next(
            action for action in build_parser()._actions
            if action.dest == "command"
        )

        assert set(subparsers.choices) == set(calendar_cli.COMMANDS)
