"""
Google Calendar Repository implementation.

Implements CalendarRepository protocol using Google Calendar API.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from functools import partial
from typing import Optional, Sequence

from google.oauth2.credentials import Credentials

from routine_calendar.integrations.base import (
    CalendarEvent,
    CalendarRepository,
    CreateEventRequest,
)
from routine_calendar.integrations.google_calendar.adapter import GoogleCalendarAdapter
from routine_calendar.integrations.google_calendar.client import GoogleCalendarClient
from routine_calendar.integrations.google_calendar.exceptions import (
    GoogleCalendarNotFoundError,
)

logger = logging.getLogger(__name__)


def _format_rfc3339(dt: datetime) -> str:
    """Format datetime to RFC 3339 for Google API."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


class GoogleCalendarRepository(CalendarRepository):
    """
    CalendarRepository implementation using Google Calendar API.

    Built per request from the caller's OAuth credentials. The Google API
    client is synchronous, so we run operations in a thread pool for async
    compatibility.
    """

    def __init__(
        self,
        credentials: Credentials,
        executor: Optional[ThreadPoolExecutor] = None,
        max_pages: int = 10,
    ):
        """
        Initialize the repository.

        Args:
            credentials: OAuth credentials of the calling user
            executor: Thread pool for running sync API calls (creates default if None)
            max_pages: Page limit for listings before they count as truncated
        """
        self._credentials = credentials
        self._executor = executor or ThreadPoolExecutor(max_workers=4)
        self._owns_executor = executor is None
        self._max_pages = max_pages
        self._client: Optional[GoogleCalendarClient] = None
        self._adapter = GoogleCalendarAdapter()

    @property
    def client(self) -> GoogleCalendarClient:
        """Get or create the API client."""
        if self._client is None:
            self._client = GoogleCalendarClient(self._credentials)
        return self._client

    async def _run_in_executor(self, func, *args, **kwargs):
        """Run a synchronous function in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor,
            partial(func, *args, **kwargs),
        )

    async def get_events_in_range(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
        include_recurring: bool = True,
        query: Optional[str] = None,
    ) -> Sequence[CalendarEvent]:
        """
        Get events within a time range from Google Calendar.

        Args:
            calendar_id: Google Calendar ID
            start: Range start (inclusive)
            end: Range end (exclusive)
            include_recurring: Whether to expand recurring events into instances
            query: Free text search terms

        Returns:
            Sequence of events in the range
        """
        time_min = _format_rfc3339(start)
        time_max = _format_rfc3339(end)

        google_events = await self._run_in_executor(
            self.client.list_all_events,
            calendar_id=calendar_id,
            time_min=time_min,
            time_max=time_max,
            single_events=include_recurring,
            query=query,
            max_pages=self._max_pages,
        )

        events = [
            self._adapter.from_google_event(event, calendar_id)
            for event in google_events
        ]

        logger.debug(
            f"Retrieved {len(events)} events from {calendar_id} "
            f"between {start} and {end}"
        )
        return events

    async def get_event_by_id(
        self,
        calendar_id: str,
        event_id: str,
    ) -> Optional[CalendarEvent]:
        """
        Get a single event by ID from Google Calendar.

        Returns:
            Event or None if not found
        """
        try:
            google_event = await self._run_in_executor(
                self.client.get_event,
                calendar_id=calendar_id,
                event_id=event_id,
            )
            return self._adapter.from_google_event(google_event, calendar_id)
        except GoogleCalendarNotFoundError:
            return None

    async def create_event(
        self,
        calendar_id: str,
        event: CreateEventRequest,
        send_updates: Optional[str] = None,
    ) -> CalendarEvent:
        """
        Create a new event in Google Calendar.

        Args:
            calendar_id: Google Calendar ID
            event: Event data
            send_updates: Notification fan-out (all, externalOnly, none)

        Returns:
            Created event with assigned ID
        """
        google_event_body = self._adapter.to_google_event(event)

        google_event = await self._run_in_executor(
            self.client.insert_event,
            calendar_id=calendar_id,
            body=google_event_body,
            send_updates=send_updates,
        )

        created_event = self._adapter.from_google_event(google_event, calendar_id)
        logger.info(f"Created event '{event.title}' with ID {created_event.id}")
        return created_event

    async def update_event(
        self,
        calendar_id: str,
        event_id: str,
        updates: dict,
        send_updates: Optional[str] = None,
    ) -> CalendarEvent:
        """
        Update an existing event in Google Calendar.

        Uses PATCH for partial updates.

        Returns:
            Updated event
        """
        google_updates = self._adapter.to_update_body(updates)

        google_event = await self._run_in_executor(
            self.client.patch_event,
            calendar_id=calendar_id,
            event_id=event_id,
            body=google_updates,
            send_updates=send_updates,
        )

        updated_event = self._adapter.from_google_event(google_event, calendar_id)
        logger.info(f"Updated event {event_id}: {list(updates.keys())}")
        return updated_event

    async def delete_event(
        self,
        calendar_id: str,
        event_id: str,
        send_updates: Optional[str] = None,
    ) -> bool:
        """
        Delete an event from Google Calendar.

        Returns:
            True if deleted, False if not found
        """
        try:
            await self._run_in_executor(
                self.client.delete_event,
                calendar_id=calendar_id,
                event_id=event_id,
                send_updates=send_updates,
            )
            return True
        except GoogleCalendarNotFoundError:
            logger.warning(f"Event {event_id} not found for deletion")
            return False

    async def close(self):
        """Clean up resources."""
        if self._executor and self._owns_executor:
            self._executor.shutdown(wait=False)
        self._executor = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        return False
