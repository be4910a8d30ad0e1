"""
Calendar Assistant
Natural language scheduling on top of Google Calendar: intent and entity
extraction, free/busy interval algebra and time usage analysis.
"""

__version__ = "0.1.0"
