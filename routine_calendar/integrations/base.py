"""
Calendar repository protocol and base types.

Defines the interface the routine engine and API routes use to reach the
external calendar store.
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, Sequence


@dataclass
class CalendarEvent:
    """
    Normalized event representation.

    Mapped from the provider format by adapters. ``start_time`` and
    ``end_time`` keep the offset reported by the provider.
    """

    id: str
    calendar_id: str
    title: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    all_day: bool = False
    location: Optional[str] = None
    attendees: list[str] = field(default_factory=list)
    status: str = "confirmed"
    html_link: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    @property
    def duration_minutes(self) -> int:
        """Calculate event duration in minutes."""
        delta = self.end_time - self.start_time
        return int(delta.total_seconds() / 60)


@dataclass
class CreateEventRequest:
    """
    Request to create a new event.

    Naive ``start_time``/``end_time`` are wall-clock times in ``timezone``.
    Aware values are sent with their own offset.
    """

    title: str
    start_time: datetime
    end_time: datetime
    timezone: Optional[str] = None
    description: Optional[str] = None
    all_day: bool = False
    location: Optional[str] = None
    attendees: list[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)


class CalendarRepository(Protocol):
    """
    Protocol for calendar storage backends.

    Implementations:
    - GoogleCalendarRepository: Uses Google Calendar API

    All methods are async for compatibility with external API calls.
    """

    @abstractmethod
    async def get_events_in_range(
        self,
        calendar_id: str,
        start: datetime,
        end: datetime,
        include_recurring: bool = True,
        query: Optional[str] = None,
    ) -> Sequence[CalendarEvent]:
        """
        Get events within a time range.

        Args:
            calendar_id: Calendar to query
            start: Range start (inclusive)
            end: Range end (exclusive)
            include_recurring: Whether to expand recurring events
            query: Free text search terms

        Returns:
            Sequence of events in the range
        """
        ...

    @abstractmethod
    async def get_event_by_id(
        self,
        calendar_id: str,
        event_id: str,
    ) -> Optional[CalendarEvent]:
        """
        Get a single event by ID.

        Returns:
            Event or None if not found
        """
        ...

    @abstractmethod
    async def create_event(
        self,
        calendar_id: str,
        event: CreateEventRequest,
        send_updates: Optional[str] = None,
    ) -> CalendarEvent:
        """
        Create a new event.

        Args:
            calendar_id: Calendar to create event in
            event: Event data
            send_updates: Notification fan-out (all, externalOnly, none)

        Returns:
            Created event with assigned ID
        """
        ...

    @abstractmethod
    async def update_event(
        self,
        calendar_id: str,
        event_id: str,
        updates: dict,
        send_updates: Optional[str] = None,
    ) -> CalendarEvent:
        """
        Update an existing event.

        Returns:
            Updated event
        """
        ...

    @abstractmethod
    async def delete_event(
        self,
        calendar_id: str,
        event_id: str,
        send_updates: Optional[str] = None,
    ) -> bool:
        """
        Delete an event.

        Returns:
            True if deleted, False if not found
        """
        ...
