"""
Pytest configuration and fixtures for Routine Calendar tests.

Provides an in-memory calendar repository and event builders.
"""

import itertools
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

import pytest

from routine_calendar.integrations.base import CalendarEvent, CreateEventRequest
from routine_calendar.integrations.google_calendar import GoogleCalendarNotFoundError


def make_event(
    title: str,
    start: datetime,
    end: Optional[datetime] = None,
    event_id: str = "evt-existing",
    calendar_id: str = "primary",
) -> CalendarEvent:
    """Build a CalendarEvent as returned by a repository."""
    return CalendarEvent(
        id=event_id,
        calendar_id=calendar_id,
        title=title,
        start_time=start,
        end_time=end or start,
    )


class InMemoryCalendarRepository:
    """
    Calendar repository backed by a list.

    Listing returns events whose start falls in ``[start, end)``. Creations
    are stored so that a second run sees them.

    Args:
        events: Events present before the test
        fail_on_create: 1-based creation number that raises, if any
        list_error: Exception raised by every listing, if any
    """

    def __init__(
        self,
        events: Optional[list[CalendarEvent]] = None,
        fail_on_create: Optional[int] = None,
        list_error: Optional[Exception] = None,
    ):
        self.events: list[CalendarEvent] = list(events or [])
        self.created: list[CreateEventRequest] = []
        self.list_calls: list[tuple[datetime, datetime]] = []
        self.fail_on_create = fail_on_create
        self.list_error = list_error
        self._ids = itertools.count(1)
        self._create_attempts = 0

    async def get_events_in_range(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
        include_recurring: bool = True,
        query: Optional[str] = None,
    ) -> list[CalendarEvent]:
        self.list_calls.append((start, end))
        if self.list_error is not None:
            raise self.list_error
        return [
            event for event in self.events
            if start <= _aware_like(event.start_time, start) < end
        ]

    async def get_event_by_id(self, calendar_id: str, event_id: str) -> Optional[CalendarEvent]:
        return next((e for e in self.events if e.id == event_id), None)

    async def create_event(
        self,
        calendar_id: str,
        event: CreateEventRequest,
        send_updates: Optional[str] = None,
    ) -> CalendarEvent:
        self._create_attempts += 1
        if self.fail_on_create is not None and self._create_attempts == self.fail_on_create:
            raise RuntimeError("calendar unavailable")

        self.created.append(event)
        start = event.start_time
        end = event.end_time
        if event.timezone and start.tzinfo is None:
            tz = ZoneInfo(event.timezone)
            start = start.replace(tzinfo=tz)
            end = end.replace(tzinfo=tz)

        created = make_event(
            event.title,
            start,
            end,
            event_id=f"evt-{next(self._ids)}",
            calendar_id=calendar_id,
        )
        self.events.append(created)
        return created

    async def update_event(self, calendar_id, event_id, updates, send_updates=None) -> CalendarEvent:
        event = await self.get_event_by_id(calendar_id, event_id)
        if event is None:
            raise GoogleCalendarNotFoundError(f"Event {event_id} not found")
        for key in ("title", "description", "location", "start_time", "end_time", "status"):
            if key in updates:
                setattr(event, key, updates[key])
        return event

    async def delete_event(self, calendar_id, event_id, send_updates=None) -> bool:
        before = len(self.events)
        self.events = [e for e in self.events if e.id != event_id]
        return len(self.events) < before


def _aware_like(value: datetime, reference: datetime) -> datetime:
    if value.tzinfo is None and reference.tzinfo is not None:
        return value.replace(tzinfo=reference.tzinfo)
    return value


@pytest.fixture
def event_factory():
    """Builder for events already present in a calendar."""
    return make_event


@pytest.fixture
def calendar_factory():
    """Builder for in-memory calendars."""
    return InMemoryCalendarRepository


@pytest.fixture
def calendar() -> InMemoryCalendarRepository:
    """Empty in-memory calendar."""
    return InMemoryCalendarRepository()
