from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from icalendar import vRecur

from .config import Settings
from .models import WEEKDAYS, CalendarEvent, ClassSession, EventDateTime
from .timeparse import parse_time
from .validation import sanitize

# Monday=1 ... Friday=5
DAY_INDEX = {name: i for i, name in enumerate(WEEKDAYS, start=1)}

# Google Calendar event colour ids
COLOR_LECTURE = "1"
COLOR_TUTORIAL = "2"
COLOR_LAB = "3"
COLOR_OTHER = "4"


# ============================================================
# DATES
# ============================================================
def week_start(reference: date) -> date:
    """Monday of the week containing ``reference``; a Sunday rolls back, not forward."""
    return reference - timedelta(days=reference.weekday())


def project_date(day: str, reference: date) -> date:
    """Date of ``day`` in the current week, even if that day already passed."""
    index = DAY_INDEX.get(day)
    if index is None:
        raise ValueError(f'Invalid day "{day}"')
    return week_start(reference) + timedelta(days=index - 1)


def term_end(settings: Settings, reference: date) -> date:
    if settings.term_end_date:
        return settings.term_end_date
    # Sunday closing the last week of the term
    return week_start(reference) + timedelta(weeks=settings.term_weeks, days=-1)


def local_instant(on: date, hours: int, minutes: int, settings: Settings) -> datetime:
    return datetime.combine(on, time(hours, minutes), tzinfo=settings.tz)


# ============================================================
# EVENT FIELDS
# ============================================================
def color_id_for(class_type: str) -> str:
    t = (class_type or "").lower()
    if "lecture" in t:
        return COLOR_LECTURE
    if "tutorial" in t:
        return COLOR_TUTORIAL
    if "lab" in t or "laboratory" in t:
        return COLOR_LAB
    return COLOR_OTHER


def weekly_rule(until: date, settings: Settings) -> vRecur:
    """Weekly recurrence ending at the close of ``until`` in local time."""
    last = datetime.combine(until, time(23, 59, 59), tzinfo=settings.tz)
    return vRecur({"FREQ": "WEEKLY", "UNTIL": last.astimezone(timezone.utc)})


def recurrence_rule(until: date, settings: Settings) -> str:
    return "RRULE:" + weekly_rule(until, settings).to_ical().decode("utf-8")


def session_times(
    session: ClassSession, on: date, settings: Settings
) -> Tuple[datetime, datetime]:
    start = parse_time(session.start_time)
    end = parse_time(session.end_time)
    if not start.is_valid:
        raise ValueError(f'Invalid start time format "{session.start_time}"')
    if not end.is_valid:
        raise ValueError(f'Invalid end time format "{session.end_time}"')
    return (
        local_instant(on, start.hours, start.minutes, settings),
        local_instant(on, end.hours, end.minutes, settings),
    )


def event_summary(session: ClassSession) -> str:
    return f"{sanitize(session.course_code)} - {sanitize(session.course_name)}"


def event_description(session: ClassSession) -> str:
    return (
        f"Class Type: {sanitize(session.class_type)}\n"
        f"Instructor: {sanitize(session.instructor)}"
    )


# ============================================================
# BUILDER
# ============================================================
def build_event(
    session: ClassSession,
    on: date,
    settings: Settings,
    until: Optional[date] = None,
) -> CalendarEvent:
    """Turn a validated session into a weekly recurring Google Calendar event.

    ``on`` is the first occurrence (see ``project_date``). Start and end are
    sent as UTC instants with the configured zone attached so Google expands
    the recurrence in local wall-clock time.
    """
    start_dt, end_dt = session_times(session, on, settings)
    if until is None:
        until = term_end(settings, on)

    return CalendarEvent(
        summary=event_summary(session),
        description=event_description(session),
        location=sanitize(session.location),
        start=EventDateTime(
            date_time=start_dt.astimezone(timezone.utc).isoformat(),
            time_zone=settings.timezone,
        ),
        end=EventDateTime(
            date_time=end_dt.astimezone(timezone.utc).isoformat(),
            time_zone=settings.timezone,
        ),
        recurrence=[recurrence_rule(until, settings)],
        color_id=color_id_for(session.class_type),
    )
