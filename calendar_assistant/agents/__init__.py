"""
Agent Layer for Calendar Assistant

Command handlers that turn classified intents into calendar client calls.

- BaseAgent: Abstract base class defining the agent interface
- AgentResponse: Standard response structure for agent outputs
- CalendarAgent: Availability, event CRUD, time blocking and usage analysis

Usage:
    from calendar_assistant.agents import CalendarAgent
    from calendar_assistant.core import Config
    from calendar_assistant.integrations.google_calendar import GoogleCalendarClient

    config = Config()
    client = GoogleCalendarClient(config.get_credentials_directory(), tz=config.timezone)
    client.authenticate()

    agent = CalendarAgent(client, config)
    response = agent.handle_query("find open slots tomorrow")

    # Or dispatch structured context directly
    response = agent.process("block", {"duration": 90})
"""

from .base_agent import BaseAgent, AgentResponse
from .calendar_agent import CalendarAgent

__all__ = [
    'BaseAgent',
    'AgentResponse',
    'CalendarAgent',
]
