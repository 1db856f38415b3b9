from datetime import date, datetime
from typing import Any, Callable, List, Optional

from .config import Settings
from .errors import AuthenticationError, ExternalProviderError, MalformedInputError
from .logging import get_logger
from .models import AddedEvent, ClassSession, SyncBatchResult
from .scheduling import build_event, project_date, term_end
from .validation import sanitize, validate_batch

log = get_logger(__name__)


def check_batch_shape(classes: Any, settings: Settings) -> None:
    """Reject payloads that are not a non-empty list within the size bound."""
    if not isinstance(classes, list):
        raise MalformedInputError("Invalid classes data")
    if not classes:
        raise MalformedInputError("No classes provided")
    if len(classes) > settings.max_batch_size:
        raise MalformedInputError(
            f"Too many classes: {len(classes)} submitted, "
            f"at most {settings.max_batch_size} allowed per request"
        )


def validated_sessions(classes: Any, settings: Settings) -> List[ClassSession]:
    """Shape-check and validate a whole batch; all-or-nothing."""
    check_batch_shape(classes, settings)
    errors = validate_batch(classes)
    if errors:
        raise MalformedInputError("Invalid class data", details="; ".join(errors))
    return [ClassSession(**c) for c in classes]


def summary_message(added: int, total: int) -> str:
    if added == total:
        return f"Successfully added {added} events to Google Calendar"
    return (
        f"Added {added} of {total} events to Google Calendar "
        f"({total - added} failed)"
    )


def sync_batch(
    classes: Any,
    access_token: Optional[str],
    *,
    calendar_factory: Callable[[str], Any],
    settings: Settings,
    today: Optional[date] = None,
) -> SyncBatchResult:
    """Push a batch of class sessions to the user's calendar.

    Nothing is submitted unless every record validates. Once submission
    starts, a failure for one record is recorded against its course code
    and the remaining records are still sent, in order.
    """
    if not access_token:
        raise AuthenticationError("Not authenticated")

    sessions = validated_sessions(classes, settings)

    if today is None:
        today = datetime.now(settings.tz).date()
    until = term_end(settings, today)

    calendar = calendar_factory(access_token)
    added: List[AddedEvent] = []
    failed: List[str] = []

    for session in sessions:
        course_code = sanitize(session.course_code)
        try:
            on = project_date(session.day, today)
            event = build_event(session, on, settings, until=until)
            event_id = calendar.insert_event(event)
        except ExternalProviderError as exc:
            log.warning(
                "event_insert_failed",
                course_code=course_code,
                error=exc.message,
                provider_status=exc.provider_status,
            )
            failed.append(f"{course_code}: {exc.message}")
            continue
        except ValueError as exc:
            log.warning("event_build_failed", course_code=course_code, error=str(exc))
            failed.append(f"{course_code}: {exc}")
            continue

        added.append(
            AddedEvent(id=event_id, summary=event.summary, start=event.start.date_time)
        )

    log.info(
        "sync_batch_complete",
        submitted=len(sessions),
        added=len(added),
        failed=len(failed),
    )
    return SyncBatchResult(
        success=bool(added),
        message=summary_message(len(added), len(sessions)),
        added=added,
        failed=failed,
    )
