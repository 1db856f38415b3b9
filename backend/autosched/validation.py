from typing import Any, List

from .models import REQUIRED_FIELDS, WEEKDAYS, ValidationResult
from .timeparse import parse_time


def sanitize(value: Any) -> str:
    """Trim and drop angle brackets so nothing renders as markup in calendar fields."""
    if value is None:
        return ""
    return str(value).replace("<", "").replace(">", "").strip()


def validate_session(session: Any) -> ValidationResult:
    """Check one class-session record.

    Field problems accumulate; a record missing three fields yields three
    errors. The start/end ordering check only runs when both times parsed.
    """
    if not isinstance(session, dict):
        return ValidationResult(is_valid=False, errors=["Invalid class object"])

    errors: List[str] = []

    for field in REQUIRED_FIELDS:
        value = session.get(field)
        if not isinstance(value, str) or not sanitize(value):
            errors.append(f"Missing or invalid {field}")

    instructor = session.get("instructor")
    if instructor is not None and not isinstance(instructor, str):
        errors.append("Missing or invalid instructor")

    day = session.get("day")
    if isinstance(day, str) and day.strip() and day not in WEEKDAYS:
        errors.append(f'Invalid day "{day}"')

    start_raw = session.get("start_time")
    end_raw = session.get("end_time")
    start = parse_time(start_raw)
    end = parse_time(end_raw)

    # Missing times were reported above; only flag the ones that are there but unparseable.
    if isinstance(start_raw, str) and start_raw.strip() and not start.is_valid:
        errors.append(f'Invalid start time format "{start_raw}"')
    if isinstance(end_raw, str) and end_raw.strip() and not end.is_valid:
        errors.append(f'Invalid end time format "{end_raw}"')

    # identical strings parse equal, so this also rejects "9:00AM" / "9:00am"
    if start.is_valid and end.is_valid and end.minute_of_day <= start.minute_of_day:
        errors.append("End time must be after start time")

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_batch(classes: List[Any]) -> List[str]:
    """Validate every record, labelling errors with the 1-based record index."""
    errors: List[str] = []
    for index, session in enumerate(classes, start=1):
        result = validate_session(session)
        errors.extend(f"Class {index}: {e}" for e in result.errors)
    return errors
