"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .assistant import EventSettings, IntentClientProtocol, SchedulingAssistant
from .slot_suggestions import CalendarClientProtocol, SlotSuggestionService

__all__ = [
    "CalendarClientProtocol",
    "EventSettings",
    "IntentClientProtocol",
    "SchedulingAssistant",
    "SlotSuggestionService",
]
