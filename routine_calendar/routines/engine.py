"""
Routine synchronization engine.

One run: compute the horizon, expand routines into candidates, list the
events already in the calendar for the same window, drop candidates that
already exist, and create the rest sequentially.

Runs are safe to repeat because existing events are recognised by title
and start. Concurrent runs against the same calendar are not coordinated
and can both create the same event; callers must serialize them.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional
from zoneinfo import ZoneInfo

import httpx

from routine_calendar.integrations.base import (
    CalendarEvent,
    CalendarRepository,
    CreateEventRequest,
)
from routine_calendar.routines.document import (
    DEFAULT_FETCH_TIMEOUT,
    RoutineDocument,
    load_routines_document,
)
from routine_calendar.routines.errors import ExistingListError
from routine_calendar.routines.expander import expand
from routine_calendar.routines.horizon import (
    DEFAULT_LOOKAHEAD_DAYS,
    coerce_lookahead_days,
    compute_horizon,
)
from routine_calendar.routines.identity import build_existing_index
from routine_calendar.routines.models import CandidateInstance, Horizon, SyncResult
from routine_calendar.routines.scheduler import plan, schedule

logger = logging.getLogger(__name__)

# Widen the listing window so events starting exactly on a horizon edge are seen
LISTING_MARGIN = timedelta(minutes=1)


class RoutineSyncEngine:
    """
    Materializes routines into a calendar without duplicates.

    Args:
        repository: Calendar store bound to the caller's credentials
        calendar_id: Calendar to read and write
        timezone: IANA name; routine clock times are wall-clock times here
        default_lookahead_days: Used when neither caller nor document sets one
        send_updates: Notification fan-out for created events
    """

    def __init__(
        self,
        repository: CalendarRepository,
        calendar_id: str = "primary",
        timezone: str = "Asia/Kolkata",
        default_lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
        send_updates: str = "none",
    ):
        self._repository = repository
        self.calendar_id = calendar_id
        self.timezone_name = timezone
        self.tz = ZoneInfo(timezone)
        self.default_lookahead_days = default_lookahead_days
        self.send_updates = send_updates

    def now(self) -> datetime:
        """Current wall-clock time in the engine's timezone, naive."""
        return datetime.now(self.tz).replace(tzinfo=None, microsecond=0)

    def _localize(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.tz)
        return instant

    def resolve_lookahead(self, document: RoutineDocument, override: Any = None) -> int:
        """Caller override, then document value, then the engine default."""
        if override is not None:
            return coerce_lookahead_days(override, self.default_lookahead_days)
        return coerce_lookahead_days(document.lookahead_days, self.default_lookahead_days)

    async def list_existing(self, horizon: Horizon) -> list[CalendarEvent]:
        """
        List events overlapping the horizon.

        Raises:
            ExistingListError: If the listing fails or is truncated
        """
        try:
            events = await self._repository.get_events_in_range(
                calendar_id=self.calendar_id,
                start=self._localize(horizon.start - LISTING_MARGIN),
                end=self._localize(horizon.end + LISTING_MARGIN),
                include_recurring=True,
            )
        except Exception as e:
            logger.error(f"Listing existing events in {self.calendar_id} failed: {e}")
            raise ExistingListError(
                f"Could not list existing events in {self.calendar_id}: {e}",
                original_error=e,
            ) from e
        return list(events)

    async def create_candidate(self, candidate: CandidateInstance) -> CalendarEvent:
        """Create one routine instance in the calendar."""
        request = CreateEventRequest(
            title=candidate.title,
            start_time=candidate.start,
            end_time=candidate.end,
            timezone=self.timezone_name,
            description=candidate.note,
            location=candidate.location,
            metadata={"routine": candidate.source.title if candidate.source else candidate.title},
        )
        return await self._repository.create_event(
            self.calendar_id,
            request,
            send_updates=self.send_updates,
        )

    async def run(
        self,
        document: RoutineDocument,
        now: Optional[datetime] = None,
        dry_run: bool = False,
        lookahead_days: Any = None,
    ) -> SyncResult:
        """
        Run one synchronization.

        Args:
            document: Decoded routines document
            now: Wall-clock start of the horizon (defaults to now())
            dry_run: Report what would be created without creating it
            lookahead_days: Overrides the document's and the default lookahead

        Returns:
            SyncResult with created events in creation order

        Raises:
            ExistingListError: If existing events cannot be listed; nothing
                is created
            CreateEventError: If a creation fails; earlier creations remain
        """
        now = now or self.now()
        days = self.resolve_lookahead(document, lookahead_days)
        horizon = compute_horizon(now, days, self.default_lookahead_days)

        candidates = expand(document.specs, horizon)
        existing = await self.list_existing(horizon)
        existing_keys = build_existing_index(existing, self.tz)

        logger.info(
            f"Routine sync: {len(document.specs)} routines, {len(candidates)} candidates, "
            f"{len(existing)} existing events, {days} days from {horizon.start.isoformat()}"
        )

        if dry_run:
            selected, skipped = plan(candidates, existing_keys, self.tz)
            return SyncResult(
                skipped_count=skipped,
                horizon=horizon,
                dry_run=True,
                planned=selected,
            )

        result = await schedule(candidates, existing_keys, self.create_candidate, self.tz)
        result.horizon = horizon

        logger.info(
            f"Routine sync created {result.created_count} events, "
            f"skipped {result.skipped_count}"
        )
        return result

    async def sync_from_url(
        self,
        url: str,
        now: Optional[datetime] = None,
        dry_run: bool = False,
        lookahead_days: Any = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> SyncResult:
        """
        Fetch the routines document at ``url`` and run a synchronization.

        Raises:
            ConfigFetchError: If the document cannot be downloaded
            ConfigParseError: If the document cannot be decoded
            ExistingListError: See run()
            CreateEventError: See run()
        """
        document = await load_routines_document(url, client=http_client, timeout=timeout)
        return await self.run(
            document,
            now=now,
            dry_run=dry_run,
            lookahead_days=lookahead_days,
        )
