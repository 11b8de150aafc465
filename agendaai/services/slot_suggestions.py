"""
Application service for suggesting open slots on the provider calendar.

The service coordinates fetching busy intervals via a calendar client adapter
and delegates the actual slot search to the domain-level ``SlotFinder``.
The calendar dependency is a simple protocol, so the Google, Microsoft and
mock adapters (or a test stub) plug in interchangeably.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Protocol, Union

import pendulum
from pendulum import DateTime

from ..domain.models import TimeRange
from ..domain.slot_finder import SlotFinder

logger = logging.getLogger(__name__)


class CalendarClientProtocol(Protocol):
    """Protocol describing the calendar client behaviour needed by the service."""

    async def get_busy_intervals(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str,
    ) -> List[TimeRange]:
        """Return busy intervals of the calendar within the window."""


class SlotSuggestionService:
    """
    Orchestrates busy-interval retrieval and the slot search.

    Never raises for per-request problems: an unparsable requested time, a
    search that cannot start, or any calendar failure all produce an empty
    suggestion list. Guessing availability without busy data could double
    book the provider.
    """

    def __init__(
        self,
        calendar_client: CalendarClientProtocol,
        slot_finder: SlotFinder,
        calendar_id: str,
    ) -> None:
        self._calendar_client = calendar_client
        self._slot_finder = slot_finder
        self._calendar_id = calendar_id

    @property
    def timezone(self) -> str:
        """Provider timezone of the underlying policy."""
        return self._slot_finder.policy.timezone

    async def suggest_slots(
        self,
        requested_time: Union[datetime, str],
        now: DateTime,
        requester_timezone: Optional[str] = None,
    ) -> List[DateTime]:
        """
        Suggest open slots nearest to ``requested_time``.

        Args:
            requested_time: DateTime or ISO 8601 string
            now: Current time
            requester_timezone: Requester's IANA timezone (informational)

        Returns:
            Slot starts as UTC DateTimes, possibly empty
        """
        requested = self._coerce_instant(requested_time)
        if requested is None:
            return []

        search_start = self._slot_finder.resolve_search_start(requested, now)
        if search_start is None:
            return []

        window = self._slot_finder.search_window(search_start)

        try:
            busy_intervals = await self._calendar_client.get_busy_intervals(
                calendar_id=self._calendar_id,
                time_min=window.start,
                time_max=window.end,
                timezone=self.timezone,
            )
        except Exception:
            logger.exception("Fetching busy intervals for %s failed; suggesting no slots", self._calendar_id)
            return []

        slots = self._slot_finder.find_available_slots(
            requested_time=requested,
            busy_intervals=busy_intervals,
            now=now,
            requester_timezone=requester_timezone,
        )

        logger.info(
            "Suggesting %d slot(s) for request at %s: %s",
            len(slots),
            requested.to_iso8601_string(),
            ", ".join(slot.to_iso8601_string() for slot in slots) or "none",
        )
        return slots

    @staticmethod
    def _coerce_instant(value: Union[datetime, str]) -> Optional[DateTime]:
        if isinstance(value, datetime):
            return pendulum.instance(value)

        try:
            parsed = pendulum.parse(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparsable requested time %r", value)
            return None

        if not isinstance(parsed, DateTime):
            logger.warning("Requested time %r is not an instant", value)
            return None

        return parsed
