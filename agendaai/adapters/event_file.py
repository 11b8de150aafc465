"""
iCalendar (.ics) generation for booked appointments.
"""

import re
import uuid
from datetime import datetime, timezone
from typing import Optional

import pendulum
from icalendar import Calendar, Event, vCalAddress, vText
from pendulum import DateTime

from ..domain.models import EventFile

APPOINTMENT_DURATION_MINUTES = 60


def _to_utc(dt: DateTime) -> datetime:
    # icalendar writes a trailing Z only for stdlib UTC datetimes
    utc = pendulum.instance(dt).in_timezone("UTC")
    return datetime(utc.year, utc.month, utc.day, utc.hour, utc.minute, utc.second, tzinfo=timezone.utc)


def event_file_name(subject: Optional[str], slot_start: DateTime) -> str:
    """Return ``appointment-<subject>-<YYYY-MM-DD>.ics`` with a filesystem-safe subject."""
    safe_subject = re.sub(r"[^\w\s]", "", (subject or "").strip(), flags=re.ASCII)
    safe_subject = re.sub(r"\s+", "_", safe_subject) or "event"
    date_str = pendulum.instance(slot_start).in_timezone("UTC").to_date_string()
    return f"appointment-{safe_subject}-{date_str}.ics"


def build_event_file(
    slot_start: DateTime,
    subject: str,
    *,
    attendee_name: str,
    attendee_email: str,
    organizer_name: str,
    organizer_email: str,
    description: str,
    now: DateTime,
    uid_domain: str = "agenda-ai.com",
    product_id: str = "-//AgendaAI//App//EN",
    duration_minutes: int = APPOINTMENT_DURATION_MINUTES
) -> EventFile:
    """
    Build a single-event calendar document for a booked slot.

    Args:
        slot_start: Start of the booked slot
        subject: Event summary
        attendee_name: Display name of the person who booked
        attendee_email: E-mail of the person who booked
        organizer_name: Display name of the service provider
        organizer_email: E-mail the organizer field points to
        description: Free-text event description
        now: Creation timestamp (DTSTAMP)
        uid_domain: Domain part of the event UID
        product_id: PRODID of the calendar
        duration_minutes: Event length

    Returns:
        EventFile with the serialized calendar
    """
    start = _to_utc(slot_start)
    end = _to_utc(pendulum.instance(slot_start).add(minutes=duration_minutes))

    cal = Calendar()
    cal.add("prodid", product_id)
    cal.add("version", "2.0")
    cal.add("method", "PUBLISH")

    event = Event()
    event.add("uid", f"{uuid.uuid4().hex}@{uid_domain}")
    event.add("dtstamp", _to_utc(now))
    event.add("dtstart", start)
    event.add("dtend", end)
    event.add("summary", subject)
    event.add("description", description)

    organizer = vCalAddress(f"mailto:{organizer_email}")
    organizer.params["CN"] = vText(organizer_name)
    event["organizer"] = organizer

    attendee = vCalAddress(f"mailto:{attendee_email}")
    attendee.params["CUTYPE"] = vText("INDIVIDUAL")
    attendee.params["ROLE"] = vText("REQ-PARTICIPANT")
    attendee.params["PARTSTAT"] = vText("NEEDS-ACTION")
    attendee.params["RSVP"] = vText("TRUE")
    attendee.params["CN"] = vText(attendee_name)
    event.add("attendee", attendee, encode=0)

    cal.add_component(event)

    return EventFile(content=cal.to_ical(), file_name=event_file_name(subject, slot_start))
