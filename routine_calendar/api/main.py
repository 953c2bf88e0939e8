"""
FastAPI application for Routine Calendar.

This is the main entry point for the HTTP API, providing:
- Event CRUD endpoints against the connected Google Calendar
- Routine sync endpoint that materializes weekly routines
- Google OAuth connect/disconnect endpoints
- Health endpoint
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from routine_calendar import __version__
from routine_calendar.api.auth_routes import router as auth_router
from routine_calendar.api.dependencies import init_services
from routine_calendar.api.event_routes import router as event_router
from routine_calendar.api.middleware import RequestLoggingMiddleware
from routine_calendar.api.models import HealthResponse
from routine_calendar.api.routine_routes import router as routine_router
from routine_calendar.config import Settings, configure_logging, get_settings
from routine_calendar.integrations.google_calendar import (
    GoogleCalendarAuthError,
    GoogleCalendarError,
    GoogleCalendarNotFoundError,
    GoogleCalendarQuotaError,
    GoogleCalendarRateLimitError,
    GoogleCalendarValidationError,
)
from routine_calendar.routines import RoutineSyncError

logger = logging.getLogger(__name__)

# HTTP status per routine sync stage
SYNC_STAGE_STATUS = {
    "fetch": 502,
    "parse": 422,
    "list": 502,
    "create": 502,
}


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    configure_logging(settings.log_level)
    settings.validate_production_config()

    logger.info("Starting Routine Calendar API")
    init_services(settings)

    if not settings.requires_api_key:
        logger.warning("API_KEY is not set; protected routes accept any caller")
    if not settings.uses_google_oauth:
        logger.warning("Google OAuth client is not configured; calendar routes will return 401")

    logger.info("Routine Calendar API started")

    yield

    logger.info("Shutting down Routine Calendar API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Routine Calendar API",
    description="""
# Routine Calendar API

Remote calendar backend for agents: event CRUD on Google Calendar plus
idempotent materialization of weekly routines.

## Connecting a calendar
1. **GET /auth/google/login** - Get the Google consent URL
2. Google redirects to **GET /oauth2callback**, which stores the tokens

## Routines
- **POST /routines/sync** - Expand routines over the look-ahead window and
  create the events that are not already in the calendar. Safe to call
  repeatedly.

## Error Handling

Errors share one envelope: `error_type`, `message`, `retryable`, and for
routine sync failures `stage` and `detail`.

- **400** - Invalid request
- **401** - Missing API key or calendar not connected
- **404** - Event not found
- **422** - Validation error or undecodable routines document
- **429** - Google rate limit or quota
- **502** - Upstream (routines host or Google) failure
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_allow_origins,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router)
app.include_router(event_router)
app.include_router(routine_router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": "http_error",
            "message": exc.detail,
            "retryable": exc.status_code >= 500,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RoutineSyncError)
async def routine_sync_exception_handler(request, exc: RoutineSyncError):
    """Report which sync stage failed, with any partial result."""
    status_code = SYNC_STAGE_STATUS.get(exc.stage, 500)
    logger.error(f"Routine sync failed at stage '{exc.stage}': {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(GoogleCalendarError)
async def google_calendar_exception_handler(request, exc: GoogleCalendarError):
    """Map Google Calendar failures to HTTP statuses."""
    if isinstance(exc, GoogleCalendarAuthError):
        status_code = 401
    elif isinstance(exc, GoogleCalendarNotFoundError):
        status_code = 404
    elif isinstance(exc, GoogleCalendarValidationError):
        status_code = 400
    elif isinstance(exc, (GoogleCalendarRateLimitError, GoogleCalendarQuotaError)):
        status_code = 429
    else:
        status_code = 502

    logger.warning(f"Google Calendar error ({status_code}): {exc}")
    return JSONResponse(
        status_code=status_code,
        content={
            "error_type": type(exc).__name__,
            "message": str(exc),
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
async def health_check(settings: Settings = Depends(get_settings)) -> HealthResponse:
    """
    Check API health status.

    Reports degraded when the Google OAuth client is not configured, since
    no calendar can be connected in that state.
    """
    oauth_configured = settings.uses_google_oauth

    return HealthResponse(
        status="healthy" if oauth_configured else "degraded",
        version=__version__,
        oauth_configured=oauth_configured,
        routines_configured=bool(settings.routines_url),
    )


def run_server(host: str = None, port: int = None, reload: bool = None):
    """Run the API server with Uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "routine_calendar.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
