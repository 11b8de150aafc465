"""
Domain models for busy intervals, scheduling policy and assistant replies.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from urllib.parse import quote

import pendulum
from pendulum import DateTime

SUPPORTED_LANGUAGES: Tuple[str, ...] = ("en", "pt", "es")
DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Busy intervals returned by a calendar provider are TimeRanges.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check if this range overlaps with another.

        Ranges that only touch (one ends exactly when the other starts)
        do not overlap.
        """
        return max(self.start, other.start) < min(self.end, other.end)

    def __str__(self) -> str:
        return f"{self.start.format('DD.MM.YYYY HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class SchedulingPolicy:
    """
    Working-hour policy of the service provider whose calendar is booked.

    Hours are whole wall-clock hours in ``timezone``; slots may start in
    ``[start_hour, end_hour)`` on any weekday not listed in
    ``exclude_weekdays`` (0=Monday, 6=Sunday).
    """
    timezone: str = "America/Sao_Paulo"
    start_hour: int = 9
    end_hour: int = 18
    slot_duration_minutes: int = 60
    max_suggestions: int = 3
    search_horizon_days: int = 14
    exclude_weekdays: Tuple[int, ...] = (5, 6)

    def __post_init__(self):
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"start_hour must be between 0 and 23, got {self.start_hour}")
        if not 1 <= self.end_hour <= 24:
            raise ValueError(f"end_hour must be between 1 and 24, got {self.end_hour}")
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"Working hours must open before they close, got [{self.start_hour}, {self.end_hour})"
            )
        if self.slot_duration_minutes <= 0:
            raise ValueError("slot_duration_minutes must be greater than zero")
        if self.max_suggestions <= 0:
            raise ValueError("max_suggestions must be greater than zero")
        if self.search_horizon_days <= 0:
            raise ValueError("search_horizon_days must be greater than zero")
        # Normalise lists from config into a hashable tuple
        object.__setattr__(self, "exclude_weekdays", tuple(self.exclude_weekdays))

    def localize(self, dt: DateTime) -> DateTime:
        """Convert an instant to the provider's wall-clock time."""
        return pendulum.instance(dt).in_timezone(self.timezone)

    def is_working_day(self, dt: DateTime) -> bool:
        """Check if a given local datetime falls on a working day."""
        return dt.day_of_week not in self.exclude_weekdays

    def is_working_instant(self, dt: DateTime) -> bool:
        """Check if a local datetime is on a working day inside working hours."""
        return self.is_working_day(dt) and self.start_hour <= dt.hour < self.end_hour


@dataclass
class UnderstoodRequest:
    """Structured interpretation of a natural-language scheduling request."""
    understood: bool = False
    date_time: Optional[DateTime] = None
    duration_minutes: Optional[int] = None
    subject: Optional[str] = None


@dataclass
class EventFile:
    """A downloadable calendar event document."""
    content: bytes
    file_name: str
    mime_type: str = "text/calendar"

    def as_data_uri(self) -> str:
        """Return the document as a ``data:`` URI suitable for a download link."""
        return f"data:{self.mime_type};charset=utf8,{quote(self.content.decode('utf-8'), safe='')}"


@dataclass
class AssistantReply:
    """
    A bot message produced for one user turn.

    ``kind`` is one of ``suggestions``, ``no_openings``, ``not_understood``
    or ``error``.
    """
    kind: str
    text: str
    language: str = DEFAULT_LANGUAGE
    suggestions: List[DateTime] = field(default_factory=list)


@dataclass
class BookingConfirmation:
    """Result of selecting one of the suggested slots."""
    slot: DateTime
    subject: str
    text: str
    event_file: EventFile
