"""
Configuration for Calendar Assistant
Settings, scheduling preferences and the default timezone, kept as JSON
files under one configuration directory.
"""

import json
import os
from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Resolve a timezone name to a tzinfo.

    Args:
        name: IANA timezone name (e.g. "America/Los_Angeles"). Empty or None
            falls back to the host's configured offset.

    Returns:
        tzinfo instance
    """
    if name:
        return ZoneInfo(name)
    return datetime.now().astimezone().tzinfo


# Process-wide default, resolved once at startup
DEFAULT_TIMEZONE = resolve_timezone(os.environ.get("TIMEZONE"))

DEFAULT_SETTINGS: Dict[str, Any] = {
    "timezone": None,
    "credentials_directory": "config/google_credentials",
    "default_calendar_id": "primary",
    "date_format": "%Y-%m-%d",
    "time_format": "%H:%M",
}

DEFAULT_PREFERENCES: Dict[str, Any] = {
    "work_hours_start": "09:00",
    "work_hours_end": "17:00",
    "default_duration_minutes": 60,
    "deep_work_block_duration": 120,
    "availability_days_ahead": 7,
    "max_suggestions": 5,
}


class Config:
    """
    JSON-backed configuration with two sections.

    settings.json holds system settings (timezone, credentials location,
    calendar ID); preferences.json holds scheduling preferences (work hours,
    default lengths, search horizon). Missing files are written with the
    defaults on first use.
    """

    SECTION_FILES = {
        "settings": "settings.json",
        "preferences": "preferences.json",
    }

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Args:
            config_dir: Configuration directory (defaults to <project>/config)
        """
        self.config_dir = Path(config_dir) if config_dir else PROJECT_ROOT / "config"
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.settings_file = self.config_dir / self.SECTION_FILES["settings"]
        self.preferences_file = self.config_dir / self.SECTION_FILES["preferences"]

        self.settings = self._read_section(self.settings_file, DEFAULT_SETTINGS)
        self.preferences = self._read_section(self.preferences_file, DEFAULT_PREFERENCES)

        self.timezone = self._configured_timezone()

    def _read_section(self, path: Path, defaults: Dict[str, Any]) -> Dict[str, Any]:
        if not path.exists():
            data = dict(defaults)
            self._write_section(path, data)
            return data

        with open(path, 'r') as f:
            stored = json.load(f)
        # Keys added in newer versions fall back to their defaults
        return {**defaults, **stored}

    def _write_section(self, path: Path, data: Dict[str, Any]) -> None:
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)

    def _section(self, section: str) -> Optional[Tuple[Dict[str, Any], Path]]:
        if section == "settings":
            return self.settings, self.settings_file
        if section == "preferences":
            return self.preferences, self.preferences_file
        return None

    def _configured_timezone(self) -> tzinfo:
        name = self.settings.get("timezone")
        return resolve_timezone(name) if name else DEFAULT_TIMEZONE

    def get(self, key: str, section: str = "settings", default: Any = None) -> Any:
        """
        Look up a value.

        Args:
            key: Key within the section
            section: 'settings' or 'preferences'
            default: Returned when the key is missing or stored as null

        Returns:
            The stored value or default
        """
        found = self._section(section)
        if found is None:
            return default
        value = found[0].get(key)
        return default if value is None else value

    def set(self, key: str, value: Any, section: str = "settings") -> None:
        """Store a value and write its section back to disk. Unknown sections are ignored."""
        found = self._section(section)
        if found is None:
            return
        data, path = found
        data[key] = value
        self._write_section(path, data)
        if section == "settings" and key == "timezone":
            self.timezone = self._configured_timezone()

    def get_credentials_directory(self) -> Path:
        """Directory holding credentials.json and token.json (relative paths are project-relative)."""
        path = Path(self.settings["credentials_directory"])
        return path if path.is_absolute() else PROJECT_ROOT / path

    def get_work_hours(self) -> Tuple[Tuple[int, int], Tuple[int, int]]:
        """Configured work hours as ((hour, minute), (hour, minute))."""
        start = self.get("work_hours_start", "preferences", "09:00")
        end = self.get("work_hours_end", "preferences", "17:00")
        return _parse_hhmm(start), _parse_hhmm(end)


def _parse_hhmm(value: str) -> Tuple[int, int]:
    hours, minutes = value.split(":")
    return int(hours), int(minutes)
