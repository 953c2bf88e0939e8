"""
Identity of calendar events for deduplication.

Two events are the same logical event when their normalized titles match
and their start instants are equal once converted to UTC. Naive instants
are read as wall-clock times in the configured timezone.
"""

from datetime import datetime, timezone, tzinfo
from typing import Iterable, NamedTuple

from routine_calendar.integrations.base import CalendarEvent


class IdentityKey(NamedTuple):
    """Deduplication key: normalized title and UTC start."""

    title: str
    start: datetime


def normalize_title(title: str) -> str:
    """Trim and collapse internal whitespace."""
    return " ".join(str(title or "").split())


def canonical_instant(instant: datetime, tz: tzinfo) -> datetime:
    """Convert to UTC, localizing naive values in ``tz``, to whole seconds."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=tz)
    return instant.astimezone(timezone.utc).replace(microsecond=0)


def identity_key(title: str, start: datetime, tz: tzinfo) -> IdentityKey:
    return IdentityKey(normalize_title(title), canonical_instant(start, tz))


def build_existing_index(events: Iterable[CalendarEvent], tz: tzinfo) -> set[IdentityKey]:
    """
    Build the set of identity keys for events already in the calendar.

    Args:
        events: Events listed from the calendar store
        tz: Timezone for events whose start carries no offset

    Returns:
        Set of identity keys
    """
    return {identity_key(event.title, event.start_time, tz) for event in events}
