"""
Dashboard module for Calendar Assistant
Time usage analysis and Rich terminal formatting
"""

from .usage import TimeUsageAnalyzer, analyze_time_usage, is_meeting_event, MEETING_KEYWORDS
from .formatter import CalendarFormatter

__all__ = [
    'TimeUsageAnalyzer', 'analyze_time_usage', 'is_meeting_event', 'MEETING_KEYWORDS',
    'CalendarFormatter',
]
