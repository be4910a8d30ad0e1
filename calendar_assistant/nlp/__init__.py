"""
Natural language parsing for calendar requests
Intent classification, entity extraction and date/time expressions
"""

from .date_parser import parse_date_expression, parse_time_expression, parse_duration
from .entities import (
    extract_entities,
    build_event_title,
    extract_person_from_query,
    classify_event_type,
)
from .intent import IntentClassifier, INTENT_PATTERNS, detect_intent
from .parser import parse_natural_language

__all__ = [
    'parse_date_expression', 'parse_time_expression', 'parse_duration',
    'extract_entities', 'build_event_title', 'extract_person_from_query',
    'classify_event_type',
    'IntentClassifier', 'INTENT_PATTERNS', 'detect_intent',
    'parse_natural_language',
]
