"""
Adapters layer - External integrations (calendar providers, language model, iCalendar).
"""

from .event_file import build_event_file
from .google_calendar_client import GoogleCalendarClient
from .graph_authenticator import GraphAuthenticator
from .graph_client import GraphClient
from .llm_client import OpenAIIntentClient
from .mock_calendar_client import MockCalendarClient

__all__ = [
    "build_event_file",
    "GoogleCalendarClient",
    "GraphAuthenticator",
    "GraphClient",
    "OpenAIIntentClient",
    "MockCalendarClient",
]
