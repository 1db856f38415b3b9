from datetime import date, datetime
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, FastAPI, File, Request, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .calendar_client import google_calendar_factory
from .config import Settings, get_settings
from .errors import AuthenticationError, AutoSchedError, MalformedInputError, RateLimitError
from .extraction import ALLOWED_UPLOAD_TYPES, TimetableExtractor
from .ics import sessions_to_ics
from .logging import get_logger, setup_logging
from .models import ParseResponse, SyncResponse
from .ratelimit import FixedWindowRateLimiter, RateLimitStatus, client_identity
from .sync import sync_batch

log = get_logger(__name__)

router = APIRouter()


# ============================================================
# DEPENDENCIES
# ============================================================
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_today(settings: Settings = Depends(get_app_settings)) -> date:
    return datetime.now(settings.tz).date()


def get_calendar_factory(request: Request) -> Callable[[str], Any]:
    return request.app.state.calendar_factory


def get_extractor_factory() -> Callable[[Settings], TimetableExtractor]:
    return TimetableExtractor.from_settings


def enforce_rate_limit(request: Request, limiter: FixedWindowRateLimiter) -> RateLimitStatus:
    peer = request.client.host if request.client else None
    return limiter.consume(client_identity(request.headers, fallback=peer))


def bearer_token(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise MalformedInputError("Invalid JSON body")


def classes_from(payload: Any) -> Any:
    return payload.get("classes") if isinstance(payload, dict) else None


# ============================================================
# ENDPOINTS
# ============================================================
@router.post("/parse-timetable", response_model=ParseResponse)
async def parse_timetable(
    request: Request,
    response: Response,
    file: Optional[UploadFile] = File(None),
    settings: Settings = Depends(get_app_settings),
    extractor_factory: Callable[[Settings], TimetableExtractor] = Depends(
        get_extractor_factory
    ),
):
    limit = enforce_rate_limit(request, request.app.state.parse_limiter)

    if file is None:
        raise MalformedInputError("No file uploaded")

    file_bytes = await file.read()
    if not file_bytes:
        raise MalformedInputError("File is empty")
    if len(file_bytes) > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise MalformedInputError(f"File size exceeds {limit_mb}MB limit")

    mime_type = file.content_type or ""
    if mime_type not in ALLOWED_UPLOAD_TYPES:
        raise MalformedInputError(
            "Invalid file type. Please upload a JPG, PNG or PDF file.",
            details=f"Unsupported file type: {mime_type or 'unknown'}",
        )

    extractor = extractor_factory(settings)
    classes = await run_in_threadpool(extractor.extract, file_bytes, mime_type)

    response.headers["X-RateLimit-Remaining"] = str(limit.remaining)
    return ParseResponse(
        success=True,
        data=classes,
        message=f"Successfully extracted {len(classes)} class sessions",
    )


@router.post(
    "/calendar/add-events",
    response_model=SyncResponse,
    response_model_exclude_unset=True,
)
async def add_events(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    calendar_factory: Callable[[str], Any] = Depends(get_calendar_factory),
    today: date = Depends(get_today),
):
    limit = enforce_rate_limit(request, request.app.state.sync_limiter)

    access_token = bearer_token(request.headers.get("authorization"))
    if not access_token:
        raise AuthenticationError("Not authenticated")

    payload = await read_json(request)
    result = await run_in_threadpool(
        sync_batch,
        classes_from(payload),
        access_token,
        calendar_factory=calendar_factory,
        settings=settings,
        today=today,
    )

    response.headers["X-RateLimit-Remaining"] = str(limit.remaining)
    body = SyncResponse(success=result.success, message=result.message, events=result.added)
    if result.failed:
        body.failed_events = result.failed
    return body


@router.post("/calendar/ics")
async def calendar_ics(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    today: date = Depends(get_today),
):
    payload = await read_json(request)
    ics_bytes = sessions_to_ics(classes_from(payload), settings, today)

    return Response(
        content=ics_bytes,
        media_type="text/calendar",
        headers={"Content-Disposition": 'attachment; filename="timetable.ics"'},
    )


@router.get("/")
async def root():
    return {
        "message": "AutoSched API",
        "version": "1.0.0",
        "endpoints": {
            "parse_timetable": "/parse-timetable (POST)",
            "add_events": "/calendar/add-events (POST)",
            "ics": "/calendar/ics (POST)",
            "health": "/health (GET)",
            "docs": "/docs (GET)",
        },
    }


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "healthy",
        "openai_configured": bool(settings.openai_api_key),
        "message": "AutoSched API is running",
    }


# ============================================================
# ERROR HANDLERS
# ============================================================
async def autosched_error_handler(request: Request, exc: AutoSchedError) -> JSONResponse:
    content = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    headers = {}
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after), "X-RateLimit-Remaining": "0"}
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error=exc.message, details=exc.details)
    else:
        log.info("request_rejected", path=request.url.path, status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("unexpected_error", path=request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred. Please try again later."},
    )


# ============================================================
# FASTAPI
# ============================================================
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(json_output=settings.log_json, log_level=settings.log_level)

    app = FastAPI(title="AutoSched", version="1.0.0")
    app.state.settings = settings
    app.state.parse_limiter = FixedWindowRateLimiter(
        settings.parse_rate_limit, settings.parse_rate_window_seconds
    )
    app.state.sync_limiter = FixedWindowRateLimiter(
        settings.sync_rate_limit, settings.sync_rate_window_seconds
    )
    app.state.calendar_factory = google_calendar_factory(settings.calendar_id)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(AutoSchedError, autosched_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8001, reload=False)
