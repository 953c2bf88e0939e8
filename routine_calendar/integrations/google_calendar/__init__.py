"""
Google Calendar integration for Routine Calendar.

Provides Google Calendar API as the external calendar store.
"""

from routine_calendar.integrations.google_calendar.adapter import GoogleCalendarAdapter
from routine_calendar.integrations.google_calendar.auth import (
    CALENDAR_SCOPES,
    get_oauth_credentials,
    get_oauth_credentials_from_dict,
)
from routine_calendar.integrations.google_calendar.client import GoogleCalendarClient
from routine_calendar.integrations.google_calendar.exceptions import (
    GoogleCalendarAuthError,
    GoogleCalendarConflictError,
    GoogleCalendarError,
    GoogleCalendarNotFoundError,
    GoogleCalendarQuotaError,
    GoogleCalendarRateLimitError,
    GoogleCalendarServerError,
    GoogleCalendarTruncatedError,
    GoogleCalendarValidationError,
)
from routine_calendar.integrations.google_calendar.repository import GoogleCalendarRepository

__all__ = [
    "CALENDAR_SCOPES",
    "GoogleCalendarAdapter",
    "GoogleCalendarClient",
    "GoogleCalendarError",
    "GoogleCalendarAuthError",
    "GoogleCalendarConflictError",
    "GoogleCalendarNotFoundError",
    "GoogleCalendarQuotaError",
    "GoogleCalendarRateLimitError",
    "GoogleCalendarServerError",
    "GoogleCalendarTruncatedError",
    "GoogleCalendarValidationError",
    "GoogleCalendarRepository",
    "get_oauth_credentials",
    "get_oauth_credentials_from_dict",
]
