import hashlib
from datetime import date, datetime, timezone
from typing import Any

from icalendar import Calendar, Event

from .config import Settings
from .models import ClassSession
from .scheduling import (
    event_description,
    event_summary,
    project_date,
    session_times,
    term_end,
    weekly_rule,
)
from .sync import validated_sessions
from .validation import sanitize


def generate_event_uid(session: ClassSession) -> str:
    base = "|".join(
        [
            sanitize(session.course_code).lower(),
            session.day,
            session.start_time.strip().lower(),
            session.end_time.strip().lower(),
            sanitize(session.class_type).lower(),
            sanitize(session.location).lower(),
        ]
    )
    digest = hashlib.sha1(base.encode("utf-8")).hexdigest()
    return f"{digest}@autosched"


def sessions_to_ics(classes: Any, settings: Settings, today: date) -> bytes:
    """Render a validated batch as an iCalendar file of weekly events."""
    sessions = validated_sessions(classes, settings)
    until = term_end(settings, today)

    cal = Calendar()
    cal.add("prodid", "-//AutoSched//Timetable Export//EN")
    cal.add("version", "2.0")
    cal.add("x-wr-timezone", settings.timezone)

    for session in sessions:
        start_dt, end_dt = session_times(
            session, project_date(session.day, today), settings
        )

        e = Event()
        e.add("uid", generate_event_uid(session))
        e.add("dtstamp", datetime.now(timezone.utc))
        e.add("summary", event_summary(session))
        e.add("description", event_description(session))
        e.add("location", sanitize(session.location))
        e.add("categories", [sanitize(session.class_type)])
        e.add("dtstart", start_dt)
        e.add("dtend", end_dt)
        e.add("rrule", weekly_rule(until, settings))
        cal.add_component(e)

    return cal.to_ical()
