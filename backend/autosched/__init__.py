"""AutoSched: timetable screenshots to Google Calendar events."""

__version__ = "1.0.0"
