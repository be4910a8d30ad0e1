"""
Intent classification for natural language calendar requests.

Classification is an ordered, first-match lookup: the table below is
evaluated top to bottom and the first pattern found anywhere in the query
decides the intent. Category order resolves ambiguous phrases (for example
"reschedule" contains "schedule " and is claimed by create, which is checked
before update), so the order of the table is part of the behavior.
"""

from typing import List, Optional, Pattern, Tuple
import logging
import re


logger = logging.getLogger(__name__)

DEFAULT_INTENT = "list"

CATEGORY_ORDER = [
    "availability",
    "create",
    "list",
    "get",
    "update",
    "delete",
    "block",
    "analyze",
    "auth",
]

_PATTERNS_BY_CATEGORY = {
    "availability": [
        r"find\s+(?:open|free|available)\s*(?:slot|time)?",
        r"when\s+(?:is|are|can\s+i)\s+(?:i|we|everyone)\s+(?:free|available)",
        r"show\s+(?:me\s+)?(?:available|free|open)\s+time",
        r"what('s| is)\s+(?:my\s+)?(?:free|available)",
        r"check\s+(?:my\s+)?availability",
        r"find\s+(?:me\s+)?time",
        r"free\s+(?:slot|time)",
    ],
    "create": [
        r"schedule\s",
        r"create\s+(?:a\s+)?(?:new\s+)?(?:meeting|event|appointment)",
        r"book\s",
        r"add\s+(?:a\s+)?(?:meeting|event|appointment)",
        r"set\s+up\s",
        r"arrange\s",
        r"plan\s",
    ],
    "list": [
        r"what('s| is| are)\s+(?:on|my)?\s*(?:my\s+)?calendar",
        r"show\s+(?:me\s+)?(?:my\s+)?(?:today|this\s+week|this\s+month)?\s*schedule",
        r"list\s+(?:my\s+)?(?:today|this\s+week)?\s*(?:events|meetings|appointments)?",
        r"what\s+do\s+i\s+have",
        r"my\s+(?:upcoming\s+)?events",
    ],
    "get": [
        r"find\s+(?:my\s+)?(?:meeting|event|appointment)\s+(?:with|called|named)",
        r"get\s+(?:details|info)(?:\s+for)?",
        r"show\s+(?:me\s+)?(?:details|info)(?:\s+for)?",
        r"look\s+up",
        r"search\s+(?:for\s+)?(?:my\s+)?(?:meeting|event)",
    ],
    "update": [
        r"update\s",
        r"change\s",
        r"modify\s",
        r"move\s",
        r"reschedule\s",
        r"edit\s",
        r"shift\s",
        r"reschedule$",
    ],
    "delete": [
        r"delete\s",
        r"remove\s",
        r"cancel\s",
        r"unschedule",
        r"drop\s",
        r"delete$",
        r"remove$",
        r"cancel$",
    ],
    "block": [
        r"block\s+(?:time|out)",
        r"block\s+(?:off\s+)?\d+\s*(?:hours?|hrs?|minutes?|mins?)",
        r"mark\s+(?:me\s+)?(?:as\s+)?(?:busy|unavailable)",
        r"focus\s+(?:time|block)",
        r"out\s+of\s+office",
        r"\booo\b",
        r"do\s+not\s+disturb",
        r"reserve\s+time",
        r"deep\s+work",
    ],
    "analyze": [
        r"analyze",
        r"how\s+(?:much|many)",
        r"time\s+(?:usage|analysis|spent)",
        r"meeting\s+(?:load|count|distribution)",
        r"show\s+(?:my\s+)?(?:time|meeting)\s+(?:usage|analysis|stats|summary)",
        r"busiest",
        r"free\s+time\s+(?:this|next)",
    ],
    "auth": [
        r"authenticate",
        r"login",
        r"authorize",
        r"connect",
    ],
}


def _build_pattern_table() -> List[Tuple[str, Pattern, int]]:
    """Flatten the per-category lists into (category, pattern, priority) rows."""
    table = []
    for category in CATEGORY_ORDER:
        for pattern in _PATTERNS_BY_CATEGORY[category]:
            table.append((category, re.compile(pattern, re.IGNORECASE), len(table)))
    return table


INTENT_PATTERNS: List[Tuple[str, Pattern, int]] = _build_pattern_table()


class IntentClassifier:
    """
    First-match intent classifier over an ordered pattern table.

    Attributes:
        patterns: (category, compiled pattern, priority) rows, lowest priority first
        default: Intent returned when nothing matches
    """

    def __init__(self, patterns: Optional[List[Tuple[str, Pattern, int]]] = None,
                 default: str = DEFAULT_INTENT):
        self.patterns = sorted(patterns or INTENT_PATTERNS, key=lambda row: row[2])
        self.default = default

    def detect(self, query: str) -> str:
        """
        Classify a query.

        Args:
            query: Natural language request

        Returns:
            The category of the first matching pattern, or the default intent
        """
        if not query:
            return self.default

        for category, pattern, priority in self.patterns:
            if pattern.search(query):
                logger.debug(f"Intent '{category}' matched pattern #{priority}: {pattern.pattern}")
                return category

        return self.default


_classifier = IntentClassifier()


def detect_intent(query: str) -> str:
    """Classify a query with the default pattern table."""
    return _classifier.detect(query)
