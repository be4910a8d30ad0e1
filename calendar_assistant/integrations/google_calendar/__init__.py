"""
Google Calendar integration
OAuth-authenticated API client and the gcal command-line interface
"""

from .calendar_client import GoogleCalendarClient, SCOPES

__all__ = ['GoogleCalendarClient', 'SCOPES']
