from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================
# CLASS SESSIONS
# ============================================================
WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

REQUIRED_FIELDS = [
    "day",
    "start_time",
    "end_time",
    "course_code",
    "course_name",
    "class_type",
    "location",
]


class ClassSession(BaseModel):
    """A class session that already passed validation.

    Incoming JSON is validated as plain dicts first (see ``validation``);
    this model is only built from records that passed.
    """

    day: str
    start_time: str
    end_time: str
    course_code: str
    course_name: str
    class_type: str
    location: str
    instructor: Optional[str] = None


class ParsedTime(BaseModel):
    model_config = ConfigDict(frozen=True)

    hours: int = 0
    minutes: int = 0
    is_valid: bool = False

    @property
    def minute_of_day(self) -> int:
        return self.hours * 60 + self.minutes


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


# ============================================================
# CALENDAR PAYLOADS
# ============================================================
class EventDateTime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_time: str = Field(alias="dateTime")  # UTC ISO-8601
    time_zone: str = Field(alias="timeZone")  # IANA zone used for recurrence


class CalendarEvent(BaseModel):
    """Google Calendar v3 event body."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    description: str
    location: str
    start: EventDateTime
    end: EventDateTime
    recurrence: List[str]
    color_id: str = Field(alias="colorId")

    def to_body(self) -> dict:
        return self.model_dump(by_alias=True)


class AddedEvent(BaseModel):
    id: Optional[str] = None
    summary: str
    start: str


class SyncBatchResult(BaseModel):
    success: bool
    message: str
    added: List[AddedEvent] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)


# ============================================================
# HTTP RESPONSES
# ============================================================
class SyncResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    events: List[AddedEvent]
    failed_events: Optional[List[str]] = Field(default=None, alias="failedEvents")


class ParseResponse(BaseModel):
    success: bool
    data: List[Any]
    message: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
