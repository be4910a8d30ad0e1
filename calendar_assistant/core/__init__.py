"""
Core module for Calendar Assistant
Contains configuration, date helpers and model definitions
"""

from .config import Config, DEFAULT_TIMEZONE, resolve_timezone
from .dates import InvalidDateError, parse_date
from .models import (
    INTENTS,
    TimeSlot,
    BusyInterval,
    EntitySet,
    ParsedRequest,
    DayUsage,
    TimeUsageSummary,
    CalendarEvent,
)

__all__ = [
    'Config', 'DEFAULT_TIMEZONE', 'resolve_timezone',
    'InvalidDateError', 'parse_date',
    'INTENTS', 'TimeSlot', 'BusyInterval', 'EntitySet', 'ParsedRequest',
    'DayUsage', 'TimeUsageSummary', 'CalendarEvent',
]
