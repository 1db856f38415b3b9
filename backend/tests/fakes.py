"""In-memory stand-ins for the calendar provider and the AI service."""

from autosched.errors import ExternalProviderError


def session_dict(**overrides):
    session = {
        "day": "Monday",
        "start_time": "9:00AM",
        "end_time": "9:50AM",
        "course_code": "CS F213",
        "course_name": "Discrete Structures",
        "class_type": "Lecture",
        "location": "Room 101",
        "instructor": "Staff",
    }
    session.update(overrides)
    return session


class FakeCalendar:
    def __init__(self, fail_codes=()):
        self.fail_codes = set(fail_codes)
        self.inserted = []

    def insert_event(self, event):
        code = event.summary.split(" - ")[0]
        if code in self.fail_codes:
            raise ExternalProviderError(
                "Google Calendar rejected the event (HTTP 503)", provider_status=503
            )
        self.inserted.append(event)
        return f"evt{len(self.inserted)}"


class FakeCalendarFactory:
    def __init__(self, calendar=None):
        self.calendar = calendar or FakeCalendar()
        self.tokens = []

    def __call__(self, access_token):
        self.tokens.append(access_token)
        return self.calendar


class FakeExtractor:
    def __init__(self, classes=None, error=None):
        self.classes = classes or []
        self.error = error
        self.calls = []

    def extract(self, file_bytes, mime_type):
        self.calls.append((file_bytes, mime_type))
        if self.error:
            raise self.error
        return self.classes
