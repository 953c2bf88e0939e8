"""
Custom exceptions for Google Calendar operations.

Provides structured error handling with retryable flags.
"""


class GoogleCalendarError(Exception):
    """Base exception for Google Calendar operations."""

    retryable: bool = False

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class GoogleCalendarAuthError(GoogleCalendarError):
    """
    Authentication or authorization failure.

    Causes:
    - Invalid or expired credentials
    - Revoked refresh token
    - Insufficient scopes
    """

    retryable = False


class GoogleCalendarQuotaError(GoogleCalendarError):
    """
    API quota exceeded.

    Retryable after backoff.
    """

    retryable = True


class GoogleCalendarNotFoundError(GoogleCalendarError):
    """Event or calendar not found."""

    retryable = False


class GoogleCalendarConflictError(GoogleCalendarError):
    """
    Event update conflict.

    Causes:
    - Stale etag (event was modified concurrently)
    - Duplicate event ID on insert
    """

    retryable = True


class GoogleCalendarRateLimitError(GoogleCalendarError):
    """Rate limit hit (429 response)."""

    retryable = True


class GoogleCalendarServerError(GoogleCalendarError):
    """Google backend failure (500 or 503 response)."""

    retryable = True


class GoogleCalendarValidationError(GoogleCalendarError):
    """
    Invalid event data (400 response).

    Causes:
    - Invalid datetime format
    - Unknown timezone
    - End before start
    """

    retryable = False


class GoogleCalendarTruncatedError(GoogleCalendarError):
    """
    Event listing returned more pages than the configured limit.

    Raised instead of returning a partial result set, since callers that
    deduplicate against the listing need every event in the range.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        fetched: int = 0,
        original_error: Exception | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.fetched = fetched
