"""
Microsoft Graph free/busy for the provider's mailbox.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError
from ..domain.models import TimeRange

logger = logging.getLogger(__name__)

GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"

# Everything except "free" and "unknown" blocks the provider
BUSY_STATUSES = frozenset({"busy", "tentative", "oof", "workingelsewhere"})


def _graph_time(instant: DateTime, timezone: str) -> Dict[str, str]:
    return {"dateTime": instant.in_timezone(timezone).format("YYYY-MM-DD[T]HH:mm:ss"), "timeZone": timezone}


def parse_schedule_items(schedule: Dict[str, Any], timezone: str) -> List[TimeRange]:
    """
    Convert the ``scheduleItems`` of one getSchedule entry to busy ranges.

    Graph reports wall-clock times without offset in the timezone named by
    the ``Prefer`` header, so they are read in ``timezone``.

    Raises:
        CalendarAPIError: If the entry carries an error or a busy item is malformed
    """
    if "error" in schedule:
        message = schedule["error"].get("message", "unknown error")
        raise CalendarAPIError(f"Microsoft Graph could not read {schedule.get('scheduleId')}: {message}")

    busy: List[TimeRange] = []

    for item in schedule.get("scheduleItems", []):
        if str(item.get("status", "")).lower() not in BUSY_STATUSES:
            continue

        try:
            busy.append(
                TimeRange(
                    start=pendulum.parse(item["start"]["dateTime"], tz=timezone),
                    end=pendulum.parse(item["end"]["dateTime"], tz=timezone)
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CalendarAPIError(f"Unreadable schedule item {item!r}: {e}") from e

    return busy


class GraphClient:
    """Reads one mailbox's busy times through ``/me/calendar/getSchedule``."""

    def __init__(self, access_token: str, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json"
        }

    async def get_busy_intervals(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str
    ) -> List[TimeRange]:
        return await asyncio.to_thread(self.get_schedule, calendar_id, time_min, time_max, timezone)

    def get_schedule(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str
    ) -> List[TimeRange]:
        """
        Fetch busy ranges of the mailbox ``calendar_id`` (its e-mail address).

        Raises:
            CalendarAPIError: If the request fails or the mailbox is missing from the answer
        """
        payload = {
            "schedules": [calendar_id],
            "startTime": _graph_time(time_min, timezone),
            "endTime": _graph_time(time_max, timezone),
            "availabilityViewInterval": 60
        }
        headers = {**self.headers, "Prefer": f'outlook.timezone="{timezone}"'}

        data = self._call("post", "/me/calendar/getSchedule", headers=headers, json=payload, timeout=30)

        schedules = [
            entry for entry in data.get("value", [])
            if str(entry.get("scheduleId", "")).lower() == calendar_id.lower()
        ]
        if not schedules:
            raise CalendarAPIError(f"Microsoft Graph returned no schedule for {calendar_id}")

        busy = [interval for entry in schedules for interval in parse_schedule_items(entry, timezone)]

        logger.info("Microsoft Graph reported %d busy interval(s) for %s", len(busy), calendar_id)
        return busy

    def test_connection(self) -> Dict[str, Any]:
        """Return the signed-in user's profile."""
        return self._call("get", "/me", headers=self.headers, timeout=10)

    def _call(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            response = getattr(self.session, method)(f"{GRAPH_API_ENDPOINT}{path}", **kwargs)
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise CalendarAPIError(f"Microsoft Graph request {path} failed: {e}") from e
