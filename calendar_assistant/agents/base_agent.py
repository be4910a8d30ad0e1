"""
Base Agent for Calendar Assistant
Defines the command-handler interface shared by calendar agents and the
result type they hand back to the CLI.

An agent receives an intent name plus a context dictionary, talks to the
calendar client, and answers with an AgentResponse. Expected failures
(missing parameters, API errors) come back as error responses rather than
exceptions so every caller can render them the same way.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import json
import logging


@dataclass
class AgentResponse:
    """
    Outcome of one handled intent.

    Attributes:
        success: False when the request could not be carried out
        message: One-line summary shown to the user
        data: Structured payload (events, slots, usage summary, parsed request)
        suggestions: Follow-up commands worth offering next
    """
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    suggestions: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary for JSON output."""
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "suggestions": self.suggestions,
        }

    @classmethod
    def error(cls, message: str, data: Optional[Dict[str, Any]] = None) -> 'AgentResponse':
        return cls(success=False, message=message, data=data)

    @classmethod
    def ok(cls, message: str, data: Optional[Dict[str, Any]] = None,
           suggestions: Optional[List[str]] = None) -> 'AgentResponse':
        return cls(success=True, message=message, data=data, suggestions=suggestions)


class BaseAgent(ABC):
    """
    Abstract calendar command handler.

    Holds the calendar client and configuration, and provides structured
    action logging, required-parameter checks and preference lookups.
    Subclasses declare which intents they serve and implement process().
    """

    def __init__(self, client, config, name: str):
        """
        Args:
            client: Calendar client every provider call goes through
            config: Config holding settings and scheduling preferences
            name: Short agent name, also used for the logger ("agent.<name>")
        """
        self.client = client
        self.config = config
        self.name = name
        self.logger = logging.getLogger(f"agent.{name}")

    @abstractmethod
    def get_supported_intents(self) -> List[str]:
        """Intent names this agent serves."""

    @abstractmethod
    def can_handle(self, intent: str, context: Dict[str, Any]) -> bool:
        """True if process() accepts this intent with this context."""

    @abstractmethod
    def process(self, intent: str, context: Dict[str, Any]) -> AgentResponse:
        """
        Run one intent.

        Args:
            intent: Intent name, normally from the intent classifier
            context: Handler parameters

        Returns:
            AgentResponse describing the outcome
        """

    def log_action(self, action: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Write one JSON line describing an action at INFO level."""
        entry: Dict[str, Any] = {
            "agent": self.name,
            "action": action,
            "at": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            entry["details"] = details
        self.logger.info(json.dumps(entry, default=str))

    def validate_required_params(self, context: Dict[str, Any],
                                 required: List[str]) -> Optional[AgentResponse]:
        """
        Check that every required key is present and not None.

        Returns:
            An error response naming the missing keys, or None when all are set
        """
        missing = [key for key in required if context.get(key) is None]
        if not missing:
            return None
        return AgentResponse.error(f"Missing required parameters: {', '.join(missing)}")

    def get_config_value(self, key: str, section: str = "preferences",
                         default: Any = None) -> Any:
        """Preference (or other section) value with a fallback."""
        return self.config.get(key, section=section, default=default)
