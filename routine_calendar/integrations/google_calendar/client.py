"""
Google Calendar API client wrapper with retry and error handling.

Provides a clean interface over the Google Calendar API v3.
"""

import logging
from typing import Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build, Resource
from googleapiclient.errors import HttpError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
)

from routine_calendar.integrations.google_calendar.exceptions import (
    GoogleCalendarError,
    GoogleCalendarAuthError,
    GoogleCalendarQuotaError,
    GoogleCalendarNotFoundError,
    GoogleCalendarConflictError,
    GoogleCalendarRateLimitError,
    GoogleCalendarServerError,
    GoogleCalendarTruncatedError,
    GoogleCalendarValidationError,
)

logger = logging.getLogger(__name__)

# Values accepted by the sendUpdates parameter
SEND_UPDATES_VALUES = ("all", "externalOnly", "none")


def _is_retryable_error(exception: Exception) -> bool:
    """Check if an exception should trigger a retry."""
    if isinstance(exception, GoogleCalendarError):
        return exception.retryable
    if isinstance(exception, HttpError):
        return exception.resp.status in (429, 500, 503)
    return False


def _handle_http_error(error: HttpError) -> None:
    """Convert HttpError to appropriate GoogleCalendarError."""
    status = error.resp.status
    message = str(error)

    if status == 400:
        raise GoogleCalendarValidationError(
            f"Invalid request: {message}",
            original_error=error,
        )
    elif status == 401:
        raise GoogleCalendarAuthError(
            "Authentication failed - credentials may be invalid or expired",
            original_error=error,
        )
    elif status == 403:
        if "quota" in message.lower() or "rate limit" in message.lower():
            raise GoogleCalendarQuotaError(
                "API quota exceeded",
                original_error=error,
            )
        raise GoogleCalendarAuthError(
            "Access denied - check granted scopes",
            original_error=error,
        )
    elif status in (404, 410):
        raise GoogleCalendarNotFoundError(
            "Event or calendar not found",
            original_error=error,
        )
    elif status == 409:
        raise GoogleCalendarConflictError(
            "Event was modified by another process",
            original_error=error,
        )
    elif status == 429:
        raise GoogleCalendarRateLimitError(
            "Rate limit exceeded - too many requests",
            original_error=error,
        )
    elif status in (500, 503):
        raise GoogleCalendarServerError(
            f"Google Calendar backend error ({status})",
            original_error=error,
        )
    else:
        raise GoogleCalendarError(
            f"Google Calendar API error ({status}): {message}",
            original_error=error,
        )


# Three attempts with exponential backoff for errors flagged retryable
_retry_transient = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception(_is_retryable_error),
    reraise=True,
)


def _send_updates(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if value not in SEND_UPDATES_VALUES:
        raise GoogleCalendarValidationError(
            f"sendUpdates must be one of {', '.join(SEND_UPDATES_VALUES)}, got {value!r}"
        )
    return value


class GoogleCalendarClient:
    """
    Wrapper around Google Calendar API v3.

    Provides:
    - Automatic retry with exponential backoff
    - Consistent error handling
    - Pagination handling for list operations
    """

    def __init__(self, credentials: Credentials):
        """
        Initialize the client.

        Args:
            credentials: Google OAuth2 credentials for the calling user
        """
        self._service: Resource = build(
            "calendar",
            "v3",
            credentials=credentials,
            cache_discovery=False,
        )

    @property
    def service(self) -> Resource:
        """Get the underlying Google API service."""
        return self._service

    @_retry_transient
    def list_events(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        single_events: bool = True,
        max_results: int = 250,
        page_token: Optional[str] = None,
        query: Optional[str] = None,
    ) -> dict:
        """
        List one page of events from a calendar.

        Args:
            calendar_id: Calendar to query
            time_min: Lower bound (RFC 3339)
            time_max: Upper bound (RFC 3339)
            single_events: If True, expand recurring events
            max_results: Maximum events per page
            page_token: Token for pagination
            query: Free text search terms

        Returns:
            API response with items and nextPageToken
        """
        try:
            request = self._service.events().list(
                calendarId=calendar_id,
                timeMin=time_min,
                timeMax=time_max,
                singleEvents=single_events,
                maxResults=max_results,
                pageToken=page_token,
                q=query,
                orderBy="startTime" if single_events else None,
            )
            return request.execute()
        except HttpError as e:
            _handle_http_error(e)

    def list_all_events(
        self,
        calendar_id: str,
        time_min: str,
        time_max: str,
        single_events: bool = True,
        query: Optional[str] = None,
        max_pages: int = 10,
    ) -> list[dict]:
        """
        List all events with automatic pagination.

        Args:
            calendar_id: Calendar to query
            time_min: Lower bound (RFC 3339)
            time_max: Upper bound (RFC 3339)
            single_events: If True, expand recurring events
            query: Free text search terms
            max_pages: Pages to follow before giving up

        Returns:
            List of all events in the range

        Raises:
            GoogleCalendarTruncatedError: If more than max_pages pages exist
        """
        all_events = []
        page_token = None
        pages = 0

        while True:
            response = self.list_events(
                calendar_id=calendar_id,
                time_min=time_min,
                time_max=time_max,
                single_events=single_events,
                page_token=page_token,
                query=query,
            )
            pages += 1

            events = response.get("items", [])
            all_events.extend(events)

            page_token = response.get("nextPageToken")
            if not page_token:
                break

            if pages >= max_pages:
                logger.warning(
                    f"Listing {calendar_id} stopped after {pages} pages "
                    f"({len(all_events)} events) with more results pending"
                )
                raise GoogleCalendarTruncatedError(
                    f"Event listing exceeded {max_pages} pages "
                    f"({len(all_events)} events fetched)",
                    fetched=len(all_events),
                )

        logger.debug(f"Listed {len(all_events)} events from {calendar_id}")
        return all_events

    @_retry_transient
    def get_event(self, calendar_id: str, event_id: str) -> dict:
        """
        Get a single event by ID.

        Args:
            calendar_id: Calendar containing the event
            event_id: Event ID

        Returns:
            Event data
        """
        try:
            return self._service.events().get(
                calendarId=calendar_id,
                eventId=event_id,
            ).execute()
        except HttpError as e:
            _handle_http_error(e)

    @_retry_transient
    def insert_event(
        self,
        calendar_id: str,
        body: dict,
        send_updates: Optional[str] = None,
    ) -> dict:
        """
        Create a new event.

        Args:
            calendar_id: Calendar to create event in
            body: Event data in Google Calendar format
            send_updates: Who gets notified (all, externalOnly, none)

        Returns:
            Created event with ID
        """
        try:
            result = self._service.events().insert(
                calendarId=calendar_id,
                body=body,
                sendUpdates=_send_updates(send_updates),
            ).execute()
            logger.info(f"Created event {result.get('id')} in {calendar_id}")
            return result
        except HttpError as e:
            _handle_http_error(e)

    @_retry_transient
    def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: dict,
        send_updates: Optional[str] = None,
    ) -> dict:
        """
        Patch an existing event (partial update).

        Args:
            calendar_id: Calendar containing the event
            event_id: Event to update
            body: Fields to update
            send_updates: Who gets notified (all, externalOnly, none)

        Returns:
            Updated event
        """
        try:
            result = self._service.events().patch(
                calendarId=calendar_id,
                eventId=event_id,
                body=body,
                sendUpdates=_send_updates(send_updates),
            ).execute()
            logger.info(f"Patched event {event_id} in {calendar_id}")
            return result
        except HttpError as e:
            _handle_http_error(e)

    @_retry_transient
    def delete_event(
        self,
        calendar_id: str,
        event_id: str,
        send_updates: Optional[str] = None,
    ) -> None:
        """
        Delete an event.

        Args:
            calendar_id: Calendar containing the event
            event_id: Event to delete
            send_updates: Who gets notified (all, externalOnly, none)
        """
        try:
            self._service.events().delete(
                calendarId=calendar_id,
                eventId=event_id,
                sendUpdates=_send_updates(send_updates),
            ).execute()
            logger.info(f"Deleted event {event_id} from {calendar_id}")
        except HttpError as e:
            _handle_http_error(e)
