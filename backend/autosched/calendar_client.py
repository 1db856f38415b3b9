import http.client
from typing import Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .errors import ExternalProviderError
from .logging import get_logger
from .models import CalendarEvent

log = get_logger(__name__)


class GoogleCalendarClient:
    """Thin wrapper around the Calendar v3 ``events.insert`` call.

    Authenticates with the user's OAuth access token as issued to the
    browser; refreshing it is the sign-in flow's job, not ours.
    """

    def __init__(self, access_token: str, calendar_id: str = "primary") -> None:
        creds = Credentials(token=access_token)
        self._service = build(
            "calendar", "v3", credentials=creds, cache_discovery=False
        )
        self._calendar_id = calendar_id

    def insert_event(self, event: CalendarEvent) -> Optional[str]:
        """Create the event and return the id Google assigned to it."""
        try:
            created = (
                self._service.events()
                .insert(calendarId=self._calendar_id, body=event.to_body())
                .execute()
            )
        except HttpError as exc:
            status = exc.resp.status if exc.resp is not None else None
            raise ExternalProviderError(
                f"Google Calendar rejected the event (HTTP {status})",
                details=str(exc),
                provider_status=status,
            ) from exc
        except GoogleAuthError as exc:
            raise ExternalProviderError(
                "Google credentials were rejected", details=str(exc)
            ) from exc
        except (httplib2.HttpLib2Error, http.client.HTTPException, OSError) as exc:
            raise ExternalProviderError(
                "Could not reach Google Calendar", details=str(exc)
            ) from exc

        log.debug("event_inserted", event_id=created.get("id"), summary=event.summary)
        return created.get("id")


def google_calendar_factory(calendar_id: str = "primary"):
    """Return a callable building a client per access token."""

    def factory(access_token: str) -> GoogleCalendarClient:
        return GoogleCalendarClient(access_token, calendar_id=calendar_id)

    return factory
