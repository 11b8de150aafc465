"""
Conversation orchestration: one chat session with the scheduling assistant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

import pendulum
from pendulum import DateTime

from ..adapters.event_file import build_event_file
from ..domain.exceptions import AgendaError
from ..domain.messages import format_slot, localize
from ..domain.models import (
    DEFAULT_LANGUAGE,
    AssistantReply,
    BookingConfirmation,
    UnderstoodRequest,
)
from .slot_suggestions import SlotSuggestionService

logger = logging.getLogger(__name__)


class IntentClientProtocol(Protocol):
    """Protocol describing the language-model capabilities the assistant needs."""

    async def identify_language(self, text: str) -> str:
        """Return ``en``, ``pt`` or ``es``."""

    async def understand_request(
        self,
        text: str,
        language: Optional[str],
        reference_time: DateTime,
    ) -> UnderstoodRequest:
        """Return the structured interpretation of ``text``."""


@dataclass
class EventSettings:
    """Organizer and attendee details written into booked event files."""
    organizer_name: str = "Agenda AI"
    organizer_email: str = "noreply@agenda-ai.com"
    attendee_email: str = "user@example.com"
    attendee_name: Optional[str] = None
    uid_domain: str = "agenda-ai.com"
    product_id: str = "-//AgendaAI//App//EN"


class SchedulingAssistant:
    """
    Drives one conversation: understand, suggest, book.

    Keeps the session language and the last understood request, which
    supplies the subject when a slot is booked.
    """

    def __init__(
        self,
        intent_client: IntentClientProtocol,
        slot_service: SlotSuggestionService,
        event_settings: Optional[EventSettings] = None,
        requester_timezone: str = "UTC",
        clock: Callable[[], DateTime] = lambda: pendulum.now("UTC"),
        language: Optional[str] = None,
    ) -> None:
        self._intent_client = intent_client
        self._slot_service = slot_service
        self._event_settings = event_settings or EventSettings()
        self._clock = clock
        self.requester_timezone = requester_timezone
        self.language = language
        self.last_request: Optional[UnderstoodRequest] = None

    def greeting(self) -> List[str]:
        """Opening messages: one in the session language, or all three if unknown."""
        if self.language is None:
            return [localize("welcome", code) for code in ("en", "pt", "es")]
        return [localize("greeting", self.language)]

    async def handle_message(
        self,
        text: str,
        now: Optional[DateTime] = None,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> AssistantReply:
        """
        Answer one user message.

        Collaborator failures never propagate; they become an ``error`` reply
        asking the user to try again.

        Args:
            text: The user's message
            now: Current time, read from the clock when omitted
            on_progress: Receives localized status lines while the request is worked on
        """
        notify = on_progress or (lambda message: None)
        now = now or self._clock()
        language = self.language or DEFAULT_LANGUAGE

        try:
            language = await self._intent_client.identify_language(text)
            self.language = language
            notify(localize("processing", language))

            understood = await self._intent_client.understand_request(text, language, now)
        except AgendaError:
            logger.exception("Processing message failed")
            return AssistantReply(kind="error", text=localize("technical_error", language), language=language)

        self.last_request = understood

        if not understood.understood:
            return AssistantReply(kind="not_understood", text=localize("not_understood", language), language=language)

        notify(localize("checking_requested" if understood.date_time else "checking_next", language))
        requested_time = understood.date_time or now

        slots = await self._slot_service.suggest_slots(
            requested_time=requested_time,
            now=now,
            requester_timezone=self.requester_timezone,
        )

        if slots:
            return AssistantReply(
                kind="suggestions",
                text=localize("slots_found", language),
                language=language,
                suggestions=slots,
            )

        empty_key = "no_openings" if understood.date_time else "no_immediate_openings"
        return AssistantReply(kind="no_openings", text=localize(empty_key, language), language=language)

    def describe_slot(self, slot: DateTime) -> str:
        """Render a slot in the requester's timezone and session language."""
        return format_slot(slot, self.language, self.requester_timezone)

    def select_slot(self, slot: DateTime, now: Optional[DateTime] = None) -> BookingConfirmation:
        """
        Book a suggested slot and build its calendar event file.
        """
        now = now or self._clock()
        language = self.language or DEFAULT_LANGUAGE
        settings = self._event_settings

        subject = (self.last_request and self.last_request.subject) or localize("default_subject", language)
        attendee_name = settings.attendee_name or localize("default_attendee", language)

        event_file = build_event_file(
            slot,
            subject,
            attendee_name=attendee_name,
            attendee_email=settings.attendee_email,
            organizer_name=settings.organizer_name,
            organizer_email=settings.organizer_email,
            description=localize("event_description", language, attendee=attendee_name),
            now=now,
            uid_domain=settings.uid_domain,
            product_id=settings.product_id,
        )

        logger.info("Booked %s for %r", slot.to_iso8601_string(), subject)

        return BookingConfirmation(
            slot=slot,
            subject=subject,
            text=localize("confirmed", language, subject=subject),
            event_file=event_file,
        )
