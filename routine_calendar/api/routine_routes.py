"""
Routine sync route.

Called by a scheduler (cron) or an agent to materialize routines for the
upcoming days. Repeated calls are safe: events already in the calendar
are not created again.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from routine_calendar.api.dependencies import get_calendar_repository, require_api_key
from routine_calendar.api.models import RoutineSyncRequest, SyncResultResponse
from routine_calendar.config import Settings, get_settings
from routine_calendar.integrations.base import CalendarRepository
from routine_calendar.routines import RoutineSyncEngine

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/routines",
    tags=["Routines"],
    dependencies=[Depends(require_api_key)],
)


@router.post(
    "/sync",
    response_model=SyncResultResponse,
    summary="Materialize routines into the calendar",
    responses={
        401: {"description": "Missing API key or calendar not connected"},
        422: {"description": "Routines document could not be decoded"},
        502: {"description": "Routines fetch, event listing or creation failed"},
    },
)
async def sync_routines(
    request: Optional[RoutineSyncRequest] = Body(None),
    repository: CalendarRepository = Depends(get_calendar_repository),
    settings: Settings = Depends(get_settings),
) -> SyncResultResponse:
    """
    Expand routines over the look-ahead window and create missing events.

    The body is optional; without one the configured ROUTINES_URL and
    lookahead are used.
    """
    request = request or RoutineSyncRequest()
    url = request.url or settings.routines_url
    if not url:
        raise HTTPException(
            status_code=400,
            detail="No routines URL given and ROUTINES_URL is not configured",
        )

    engine = RoutineSyncEngine(
        repository,
        calendar_id=settings.calendar_id,
        timezone=settings.default_timezone,
        default_lookahead_days=settings.routines_lookahead_days,
    )

    result = await engine.sync_from_url(
        url,
        dry_run=request.dry_run,
        lookahead_days=request.lookahead_days,
        timeout=settings.http_timeout_seconds,
    )

    return SyncResultResponse.from_result(result)
