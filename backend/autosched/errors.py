"""Error hierarchy for the AutoSched API.

Every error carries the HTTP status it is rendered with, a short
user-facing message and optional details. The FastAPI app registers one
handler for the whole hierarchy, so route code only raises.
"""

from typing import Optional


class AutoSchedError(Exception):
    """Base exception for all AutoSched errors."""

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class AuthenticationError(AutoSchedError):
    """No valid Google session/token was presented."""

    status_code = 401


class MalformedInputError(AutoSchedError):
    """Batch shape, size or per-record field violations.

    ``details`` holds the index-labelled error list when there is one.
    """

    status_code = 400


class RateLimitError(AutoSchedError):
    """Quota for the client identity is used up for the current window."""

    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: int = 60,
    ) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ExternalProviderError(AutoSchedError):
    """A call to the calendar provider failed.

    During a sync batch these are recorded per record and never abort the
    batch.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        provider_status: Optional[int] = None,
    ) -> None:
        super().__init__(message, details)
        self.provider_status = provider_status


class ExtractionError(AutoSchedError):
    """The AI service returned something that is not a usable timetable."""

    status_code = 500


class ConfigurationError(AutoSchedError):
    """A required setting (e.g. the AI API key) is missing."""

    status_code = 500
