"""
Core business logic for finding open appointment slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O). The current time
is always passed in, never read from the clock.
"""

import logging
from typing import Iterable, List, Optional

from pendulum import DateTime

from .models import SchedulingPolicy, TimeRange

logger = logging.getLogger(__name__)


class SlotFinder:
    """
    Suggests the open working-hour slots nearest to a requested time.

    Algorithm:
    1. Start from the requested time, or from the next whole hour when the
       request is not in the future
    2. Snap the start forward into working hours on a working day
    3. Walk the days of the search horizon, skipping excluded weekdays
    4. Try one candidate per whole working hour, dropping candidates before
       the start or overlapping a busy interval
    5. Stop once enough suggestions have been collected
    """

    def __init__(self, policy: SchedulingPolicy):
        self.policy = policy

    def resolve_search_start(self, requested_time: DateTime, now: DateTime) -> Optional[DateTime]:
        """
        Compute the first working instant (provider-local) to search from.

        Returns None if no working instant exists within the search horizon,
        which only happens with a policy that excludes every weekday.
        """
        requested_local = self.policy.localize(requested_time)
        now_local = self.policy.localize(now)

        if requested_local <= now_local:
            search_start = now_local.start_of("hour").add(hours=1)
        else:
            search_start = requested_local

        max_steps = self.policy.search_horizon_days * 24

        for _ in range(max_steps):
            if self.policy.is_working_instant(search_start):
                return search_start

            search_start = search_start.start_of("hour").add(hours=1)

            if search_start.hour >= self.policy.end_hour:
                search_start = search_start.add(days=1).set(
                    hour=self.policy.start_hour, minute=0, second=0, microsecond=0
                )

        logger.warning(
            "No working instant found within %d steps from %s",
            max_steps,
            requested_local.to_iso8601_string(),
        )
        return None

    def search_window(self, search_start: DateTime) -> TimeRange:
        """
        Return the window whose busy intervals matter for a search.

        Runs from the search start to closing time on the last day of the
        horizon.
        """
        last_day = search_start.add(days=self.policy.search_horizon_days).start_of("day")
        return TimeRange(start=search_start, end=last_day.add(hours=self.policy.end_hour))

    def find_available_slots(
        self,
        requested_time: DateTime,
        busy_intervals: Iterable[TimeRange],
        now: DateTime,
        requester_timezone: Optional[str] = None
    ) -> List[DateTime]:
        """
        Find up to ``max_suggestions`` open slot starts.

        Args:
            requested_time: Instant the requester asked for
            busy_intervals: Busy ranges of the provider calendar (any order)
            now: Current time
            requester_timezone: Requester's IANA timezone, informational only

        Returns:
            Slot starts as UTC DateTimes in increasing order
        """
        search_start = self.resolve_search_start(requested_time, now)

        if search_start is None:
            return []

        busy = list(busy_intervals)

        logger.debug(
            "Searching slots from %s (%s) against %d busy interval(s), requester timezone %s",
            search_start.to_iso8601_string(),
            self.policy.timezone,
            len(busy),
            requester_timezone or "unknown",
        )

        slots: List[DateTime] = []

        for day_offset in range(self.policy.search_horizon_days):
            day = search_start.add(days=day_offset)

            if not self.policy.is_working_day(day):
                continue

            for hour in range(self.policy.start_hour, self.policy.end_hour):
                candidate = day.set(hour=hour, minute=0, second=0, microsecond=0)

                if candidate < search_start:
                    continue

                # Only the start hour is checked against closing time
                slot = TimeRange(
                    start=candidate,
                    end=candidate.add(minutes=self.policy.slot_duration_minutes)
                )

                if any(slot.overlaps(interval) for interval in busy):
                    continue

                slots.append(candidate.in_timezone("UTC"))

                if len(slots) >= self.policy.max_suggestions:
                    return slots

        return slots


def find_available_slots(
    requested_time: DateTime,
    requester_timezone: Optional[str],
    policy: SchedulingPolicy,
    busy_intervals: Iterable[TimeRange],
    now: DateTime
) -> List[DateTime]:
    """Functional shortcut for ``SlotFinder(policy).find_available_slots``."""
    return SlotFinder(policy).find_available_slots(
        requested_time=requested_time,
        busy_intervals=busy_intervals,
        now=now,
        requester_timezone=requester_timezone
    )
