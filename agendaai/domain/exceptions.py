"""
Domain-specific exception hierarchy for the scheduling assistant.
"""


class AgendaError(Exception):
    """Base class for all application-level errors."""


class CalendarAPIError(AgendaError):
    """Raised when busy intervals cannot be fetched or parsed."""


class AuthenticationError(CalendarAPIError):
    """Raised when authentication or token handling fails."""


class LanguageModelError(AgendaError):
    """Raised when the language model service cannot be reached."""
