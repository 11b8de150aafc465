"""
Mock calendar client for running without any calendar provider account.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import TimeRange

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock client that serves busy intervals from JSON calendar data.

    Two kinds of entries are understood:

    - one-off events: ``{"calendarId": ..., "start": ISO, "end": ISO}``
    - weekly events: ``{"calendarId": ..., "weekday": 0, "from": "12:00", "to": "13:00"}``
      (weekday 0=Monday, wall-clock times in the requested timezone)
    """

    def __init__(
        self,
        events: Optional[List[Dict[str, Any]]] = None,
        data_file: Path = DEFAULT_DATA_FILE
    ):
        """
        Args:
            events: Calendar entries; loaded from ``data_file`` when omitted
            data_file: JSON file with a list of calendar entries
        """
        self.calendar_events = events if events is not None else self._load_calendar_data(data_file)
        self.calls: List[Dict[str, Any]] = []

    @staticmethod
    def _load_calendar_data(data_file: Path) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            logger.warning("Mock calendar data %s not found, calendar is empty", data_file)
            return []

        with open(data_file, "r", encoding="utf-8") as f:
            return json.load(f)

    async def get_busy_intervals(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str
    ) -> List[TimeRange]:
        """
        Return busy intervals of ``calendar_id`` overlapping the window.

        Raises:
            CalendarAPIError: If an entry of the calendar is malformed
        """
        self.calls.append(
            {
                "calendar_id": calendar_id,
                "time_min": time_min,
                "time_max": time_max,
                "timezone": timezone,
            }
        )

        window = TimeRange(start=time_min, end=time_max)
        busy: List[TimeRange] = []

        for event in self.calendar_events:
            if event.get("calendarId") != calendar_id:
                continue

            try:
                if "weekday" in event:
                    occurrences = self._expand_weekly(event, window, timezone)
                else:
                    occurrences = [
                        TimeRange(
                            start=pendulum.parse(event["start"], tz=timezone),
                            end=pendulum.parse(event["end"], tz=timezone)
                        )
                    ]
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise CalendarAPIError(f"Invalid mock calendar entry {event!r}: {e}") from e

            busy.extend(occurrence for occurrence in occurrences if occurrence.overlaps(window))

        return busy

    @staticmethod
    def _expand_weekly(event: Dict[str, Any], window: TimeRange, timezone: str) -> List[TimeRange]:
        from_hour, from_minute = (int(part) for part in event["from"].split(":"))
        to_hour, to_minute = (int(part) for part in event["to"].split(":"))

        occurrences: List[TimeRange] = []
        day = window.start.in_timezone(timezone).start_of("day")
        last_day = window.end.in_timezone(timezone)

        while day <= last_day:
            if day.day_of_week == int(event["weekday"]):
                occurrences.append(
                    TimeRange(
                        start=day.set(hour=from_hour, minute=from_minute),
                        end=day.set(hour=to_hour, minute=to_minute)
                    )
                )
            day = day.add(days=1)

        return occurrences
