"""
External service integrations for Routine Calendar.

Provides abstraction layer for the calendar store.
"""

from routine_calendar.integrations.base import (
    CalendarEvent,
    CalendarRepository,
    CreateEventRequest,
)

__all__ = ["CalendarEvent", "CalendarRepository", "CreateEventRequest"]
