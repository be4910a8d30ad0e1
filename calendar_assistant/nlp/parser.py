"""
Natural language front door: query in, ParsedRequest out.
"""

from datetime import datetime, tzinfo
from typing import Optional
import logging

from ..core.models import ParsedRequest
from .entities import extract_entities
from .intent import detect_intent


logger = logging.getLogger(__name__)


def parse_natural_language(
    query: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None
) -> ParsedRequest:
    """
    Parse a natural language calendar request.

    Args:
        query: Free-text request, e.g. "Schedule a meeting with John tomorrow at 2pm"
        now: Reference time for relative dates (defaults to the current time)
        tz: Timezone used to resolve dates

    Returns:
        ParsedRequest with the detected intent, extracted entities and the query
    """
    intent = detect_intent(query)
    entities = extract_entities(query, now=now, tz=tz)
    logger.debug(f"Parsed '{query}' as {intent}: {entities.to_dict()}")
    return ParsedRequest(intent=intent, entities=entities, original_query=query)
