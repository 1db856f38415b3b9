"""Structured logging for the AutoSched API.

``create_app`` calls ``setup_logging`` once, driven by ``LOG_JSON`` and
``LOG_LEVEL``: JSON lines for deployments, coloured console output locally.
Modules take a logger from ``get_logger(__name__)`` and log snake_case
events with keyword context, never raw request bodies or access tokens.

Events emitted by the service:

    timetable_extracted     classes pulled out of an upload (count, mime type)
    ai_request_failed       the OpenAI call raised
    ai_output_invalid       the model returned records that fail validation
    event_inserted          one calendar event created (DEBUG)
    event_insert_failed     Google Calendar refused or was unreachable for one class
    event_build_failed      a class could not be turned into an event
    sync_batch_complete     added/failed totals for a sync request
    rate_limit_exceeded     a client ran out of requests in the current window
    request_rejected        a 4xx returned by the error handler
    request_failed          a 5xx raised as an AutoSchedError
    unexpected_error        anything else, logged with its traceback
"""

import logging
import sys

import structlog


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_output: Settings.log_json; JSON lines when True, console otherwise.
        log_level: Settings.log_level, e.g. "DEBUG" to see each inserted event.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if json_output:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through stdlib logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Return the structlog logger for an autosched module (pass __name__)."""
    return structlog.get_logger(name)
