"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    AssistantReply,
    BookingConfirmation,
    EventFile,
    SchedulingPolicy,
    TimeRange,
    UnderstoodRequest,
)
from .slot_finder import SlotFinder, find_available_slots

__all__ = [
    "AssistantReply",
    "BookingConfirmation",
    "EventFile",
    "SchedulingPolicy",
    "TimeRange",
    "UnderstoodRequest",
    "SlotFinder",
    "find_available_slots",
]
