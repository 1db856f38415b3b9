"""Service configuration loaded from environment variables.

Settings are read from the process environment, with a local .env file
loaded first for development.
"""

from datetime import date, datetime
from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as dt_parser
from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """AutoSched configuration.

    Every field maps to an upper-case environment variable of the same name
    (e.g. ``timezone`` -> ``TIMEZONE``).
    """

    # AI extraction
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(
        default="gpt-5-mini",
        description="Vision-capable chat model used for timetable extraction",
    )

    # Scheduling
    timezone: str = Field(
        default="Asia/Kolkata",
        description="IANA timezone the timetable's wall-clock times are in",
    )
    term_end_date: Optional[date] = Field(
        default=None,
        description="Last day of the academic term; weekly events stop here",
    )
    term_weeks: int = Field(
        default=15,
        ge=1,
        description="Term length used when term_end_date is not set",
    )
    calendar_id: str = Field(default="primary", description="Target Google calendar")

    # Request limits
    max_batch_size: int = Field(default=100, ge=1)
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, ge=1)
    max_pdf_pages: int = Field(default=5, ge=1)
    parse_rate_limit: int = Field(default=5, ge=1)
    parse_rate_window_seconds: int = Field(default=60, ge=1)
    sync_rate_limit: int = Field(default=10, ge=1)
    sync_rate_window_seconds: int = Field(default=60, ge=1)

    # HTTP
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @field_validator("term_end_date", mode="before")
    @classmethod
    def _parse_term_end(cls, value):
        # Accept "Dec 12 2026" as well as ISO dates.
        if value is None or isinstance(value, (date, datetime)):
            return value
        s = str(value).strip()
        if not s:
            return None
        try:
            return dt_parser.parse(s).date()
        except (ValueError, OverflowError):
            raise ValueError(f"Unparseable term end date: {value}")

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
