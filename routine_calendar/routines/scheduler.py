"""
Deduplicating scheduler.

Filters candidates against events already in the calendar and against
each other, then creates the rest one at a time in candidate order.
"""

import logging
from datetime import tzinfo
from typing import Awaitable, Callable, Iterable

from routine_calendar.integrations.base import CalendarEvent
from routine_calendar.routines.errors import CreateEventError
from routine_calendar.routines.identity import IdentityKey, identity_key
from routine_calendar.routines.models import CandidateInstance, CreatedItem, SyncResult

logger = logging.getLogger(__name__)

CreateFn = Callable[[CandidateInstance], Awaitable[CalendarEvent]]


def plan(
    candidates: Iterable[CandidateInstance],
    existing_keys: set[IdentityKey],
    tz: tzinfo,
) -> tuple[list[CandidateInstance], int]:
    """
    Select the candidates a run would create.

    Returns:
        Tuple of (candidates to create in order, number skipped)
    """
    seen = set(existing_keys)
    selected = []
    skipped = 0

    for candidate in candidates:
        key = identity_key(candidate.title, candidate.start, tz)
        if key in seen:
            skipped += 1
            continue
        seen.add(key)
        selected.append(candidate)

    return selected, skipped


async def schedule(
    candidates: Iterable[CandidateInstance],
    existing_keys: set[IdentityKey],
    create_fn: CreateFn,
    tz: tzinfo,
) -> SyncResult:
    """
    Create every candidate not already in the calendar.

    Each creation is awaited before the next is issued. A candidate whose
    key matches an existing event, or one created earlier in this run, is
    skipped.

    Args:
        candidates: Expanded instances in creation order
        existing_keys: Keys of events already in the calendar
        create_fn: Creates one event in the calendar store
        tz: Timezone of the candidates' wall-clock times

    Returns:
        SyncResult listing created events in order

    Raises:
        CreateEventError: On the first failed creation; events created
            before it are reported in the error's result and are not
            rolled back
    """
    result = SyncResult()
    created_keys: set[IdentityKey] = set()

    for candidate in candidates:
        key = identity_key(candidate.title, candidate.start, tz)
        if key in existing_keys or key in created_keys:
            result.skipped_count += 1
            continue

        try:
            event = await create_fn(candidate)
        except Exception as e:
            logger.error(
                f"Creating '{candidate.title}' at {candidate.start.isoformat()} failed "
                f"after {result.created_count} creations: {e}"
            )
            raise CreateEventError(
                f"Failed to create '{candidate.title}' at {candidate.start.isoformat()}: {e}",
                result=result,
                original_error=e,
            ) from e

        created_keys.add(key)
        result.items.append(
            CreatedItem(id=event.id, title=candidate.title, start=candidate.start)
        )

    return result
