"""
Google Calendar client for fetching free/busy data of the provider calendar.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List
from urllib.parse import quote

import pendulum
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account
from pendulum import DateTime

from ..domain.exceptions import AuthenticationError, CalendarAPIError
from ..domain.models import TimeRange

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for the Google Calendar ``freeBusy`` endpoint.

    Authenticates with a service account that has at least "See all event
    details" permission on the provider calendar.
    """

    API_ENDPOINT = "https://www.googleapis.com/calendar/v3"
    SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]

    def __init__(self, session: AuthorizedSession):
        """
        Args:
            session: Authorized HTTP session (anything with requests' API)
        """
        self.session = session

    @classmethod
    def from_service_account_file(cls, path: Path) -> "GoogleCalendarClient":
        """
        Build a client from a service account JSON key file.

        Raises:
            AuthenticationError: If the key file is missing or invalid
        """
        try:
            credentials = service_account.Credentials.from_service_account_file(
                str(path), scopes=cls.SCOPES
            )
        except (OSError, ValueError, GoogleAuthError) as exc:
            raise AuthenticationError(f"Could not load service account file {path}: {exc}") from exc

        return cls(AuthorizedSession(credentials))

    async def get_busy_intervals(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str
    ) -> List[TimeRange]:
        """Fetch busy intervals without blocking the event loop."""
        return await asyncio.to_thread(
            self.query_free_busy, calendar_id, time_min, time_max, timezone
        )

    def query_free_busy(
        self,
        calendar_id: str,
        time_min: DateTime,
        time_max: DateTime,
        timezone: str
    ) -> List[TimeRange]:
        """
        Query busy intervals of one calendar.

        Args:
            calendar_id: Calendar identifier (e-mail address or "primary")
            time_min: Start of the window
            time_max: End of the window
            timezone: IANA timezone used for the response

        Returns:
            List of busy TimeRange objects

        Raises:
            CalendarAPIError: If the API call fails or the payload is malformed
        """
        body = {
            "timeMin": time_min.in_timezone("UTC").to_iso8601_string(),
            "timeMax": time_max.in_timezone("UTC").to_iso8601_string(),
            "timeZone": timezone,
            "items": [{"id": calendar_id}],
        }

        logger.debug("Querying freeBusy for %s from %s to %s", calendar_id, body["timeMin"], body["timeMax"])

        try:
            response = self.session.post(f"{self.API_ENDPOINT}/freeBusy", json=body, timeout=20)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, GoogleAuthError, ValueError) as exc:
            raise CalendarAPIError(f"freeBusy query failed: {exc}") from exc

        busy = self._parse_free_busy_response(data, calendar_id)
        logger.info("Fetched %d busy interval(s) for %s from Google Calendar", len(busy), calendar_id)
        return busy

    def _parse_free_busy_response(self, data: Dict[str, Any], calendar_id: str) -> List[TimeRange]:
        """
        Parse a freeBusy response.

        Response format:
        {
            "calendars": {
                "primary": {
                    "busy": [{"start": "2024-04-29T14:00:00Z", "end": "2024-04-29T15:00:00Z"}],
                    "errors": [{"domain": "global", "reason": "notFound"}]
                }
            }
        }
        """
        calendar = data.get("calendars", {}).get(calendar_id)

        if calendar is None:
            raise CalendarAPIError(f"freeBusy response has no entry for calendar {calendar_id}")

        errors = calendar.get("errors")
        if errors:
            reasons = ", ".join(error.get("reason", "unknown") for error in errors)
            raise CalendarAPIError(f"freeBusy reported errors for {calendar_id}: {reasons}")

        busy_ranges: List[TimeRange] = []

        for item in calendar.get("busy", []):
            try:
                start = pendulum.parse(item["start"])
                end = pendulum.parse(item["end"])
                busy_ranges.append(TimeRange(start=start, end=end))
            except (KeyError, TypeError, ValueError) as exc:
                raise CalendarAPIError(f"Could not parse busy interval {item!r}: {exc}") from exc

        return busy_ranges

    def test_connection(self, calendar_id: str) -> Dict[str, Any]:
        """
        Fetch the calendar metadata to check access.

        Raises:
            CalendarAPIError: If the calendar cannot be read
        """
        try:
            response = self.session.get(f"{self.API_ENDPOINT}/calendars/{quote(calendar_id)}", timeout=10)
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, GoogleAuthError) as exc:
            raise CalendarAPIError(f"Connection test failed: {exc}") from exc
