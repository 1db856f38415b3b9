import re

from .models import ParsedTime

# "9:00am", "09:05 pm"
TWELVE_HOUR_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(am|pm)$", re.ASCII)
# "9:00", "14:30"
TWENTY_FOUR_HOUR_RE = re.compile(r"^(\d{1,2}):(\d{2})$", re.ASCII)

INVALID = ParsedTime(hours=0, minutes=0, is_valid=False)


def parse_time(raw) -> ParsedTime:
    """Parse a timetable time string into hours and minutes.

    Accepts 12-hour times with an AM/PM marker ("9:00AM", "2:50 pm") and
    24-hour times ("14:30"). Never raises; callers must check ``is_valid``
    because an invalid result also reports 0:00.
    """
    if not isinstance(raw, str):
        return INVALID
    s = raw.strip().lower()

    if "am" in s or "pm" in s:
        m = TWELVE_HOUR_RE.match(s)
        if not m:
            return INVALID
        hours, minutes, period = int(m.group(1)), int(m.group(2)), m.group(3)
        if not 1 <= hours <= 12 or minutes > 59:
            return INVALID
        if period == "pm" and hours != 12:
            hours += 12
        if period == "am" and hours == 12:
            hours = 0
        return ParsedTime(hours=hours, minutes=minutes, is_valid=True)

    m = TWENTY_FOUR_HOUR_RE.match(s)
    if not m:
        return INVALID
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        return INVALID
    return ParsedTime(hours=hours, minutes=minutes, is_valid=True)
