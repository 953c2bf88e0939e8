"""
Event CRUD routes.

Each route translates one request into one call against the caller's
Google Calendar.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query

from routine_calendar.api.dependencies import get_calendar_repository, require_api_key
from routine_calendar.api.models import (
    DeleteEventResponse,
    EventCreateRequest,
    EventListResponse,
    EventResponse,
    EventUpdateRequest,
    SendUpdates,
)
from routine_calendar.config import Settings, get_settings
from routine_calendar.integrations.base import CalendarRepository, CreateEventRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/events",
    tags=["Events"],
    dependencies=[Depends(require_api_key)],
)

DEFAULT_LIST_DAYS = 7


def _aware(value: datetime, tz_name: str) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=ZoneInfo(tz_name))
    return value


@router.get("", response_model=EventListResponse, summary="List events")
async def list_events(
    time_min: Optional[datetime] = Query(None, description="Range start (ISO 8601), default now"),
    time_max: Optional[datetime] = Query(None, description="Range end (ISO 8601), default 7 days after start"),
    q: Optional[str] = Query(None, description="Free text search"),
    max_results: int = Query(default=50, ge=1, le=250),
    repository: CalendarRepository = Depends(get_calendar_repository),
    settings: Settings = Depends(get_settings),
) -> EventListResponse:
    """List events in a time range, expanding recurring events."""
    start = _aware(time_min, settings.default_timezone) if time_min else datetime.now(timezone.utc)
    end = (
        _aware(time_max, settings.default_timezone)
        if time_max
        else start + timedelta(days=DEFAULT_LIST_DAYS)
    )
    if end <= start:
        raise HTTPException(status_code=400, detail="time_max must be after time_min")

    events = await repository.get_events_in_range(
        calendar_id=settings.calendar_id,
        start=start,
        end=end,
        query=q,
    )

    return EventListResponse(
        events=[EventResponse.from_event(event) for event in events[:max_results]],
        total=len(events),
        time_min=start.isoformat(),
        time_max=end.isoformat(),
    )


@router.post("", response_model=EventResponse, status_code=201, summary="Create event")
async def create_event(
    request: EventCreateRequest,
    repository: CalendarRepository = Depends(get_calendar_repository),
    settings: Settings = Depends(get_settings),
) -> EventResponse:
    """Create an event. Naive times are read in the request or default timezone."""
    event = await repository.create_event(
        settings.calendar_id,
        CreateEventRequest(
            title=request.title,
            start_time=request.start,
            end_time=request.end,
            timezone=request.timezone or settings.default_timezone,
            description=request.description,
            location=request.location,
            attendees=request.attendees,
            all_day=request.all_day,
        ),
        send_updates=request.send_updates,
    )

    logger.info(f"Created event {event.id} '{event.title}'")
    return EventResponse.from_event(event)


@router.get("/{event_id}", response_model=EventResponse, summary="Get event")
async def get_event(
    event_id: str,
    repository: CalendarRepository = Depends(get_calendar_repository),
    settings: Settings = Depends(get_settings),
) -> EventResponse:
    """Get one event by ID."""
    event = await repository.get_event_by_id(settings.calendar_id, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return EventResponse.from_event(event)


@router.patch("/{event_id}", response_model=EventResponse, summary="Update event")
async def update_event(
    event_id: str,
    request: EventUpdateRequest,
    repository: CalendarRepository = Depends(get_calendar_repository),
    settings: Settings = Depends(get_settings),
) -> EventResponse:
    """Apply a partial update to an event."""
    updates = request.to_updates(settings.default_timezone)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    event = await repository.update_event(
        settings.calendar_id,
        event_id,
        updates,
        send_updates=request.send_updates,
    )
    return EventResponse.from_event(event)


@router.delete("/{event_id}", response_model=DeleteEventResponse, summary="Delete event")
async def delete_event(
    event_id: str,
    send_updates: SendUpdates = Query("none"),
    repository: CalendarRepository = Depends(get_calendar_repository),
    settings: Settings = Depends(get_settings),
) -> DeleteEventResponse:
    """Delete an event."""
    deleted = await repository.delete_event(
        settings.calendar_id,
        event_id,
        send_updates=send_updates,
    )
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")

    return DeleteEventResponse(
        success=True,
        event_id=event_id,
        message="Event deleted successfully",
    )
