"""
Routine expansion and idempotent synchronization.

Turns weekly routines into concrete calendar events over a rolling
look-ahead window without creating duplicates on repeated runs.
"""

from routine_calendar.routines.document import (
    RoutineDocument,
    decode_routines_document,
    fetch_routines_text,
    load_routines_document,
)
from routine_calendar.routines.engine import RoutineSyncEngine
from routine_calendar.routines.errors import (
    ConfigFetchError,
    ConfigParseError,
    CreateEventError,
    ExistingListError,
    ExpansionSkip,
    RoutineSyncError,
)
from routine_calendar.routines.expander import expand, expand_spec
from routine_calendar.routines.horizon import coerce_lookahead_days, compute_horizon
from routine_calendar.routines.identity import IdentityKey, build_existing_index, identity_key
from routine_calendar.routines.models import (
    CandidateInstance,
    CreatedItem,
    Horizon,
    MultiWeekdaySpec,
    RecurrenceSpec,
    SingleWeekdayDurationSpec,
    SyncResult,
    Weekday,
)
from routine_calendar.routines.scheduler import plan, schedule

__all__ = [
    # Models
    "CandidateInstance",
    "CreatedItem",
    "Horizon",
    "MultiWeekdaySpec",
    "RecurrenceSpec",
    "SingleWeekdayDurationSpec",
    "SyncResult",
    "Weekday",
    # Engine steps
    "compute_horizon",
    "coerce_lookahead_days",
    "expand",
    "expand_spec",
    "IdentityKey",
    "identity_key",
    "build_existing_index",
    "plan",
    "schedule",
    "RoutineSyncEngine",
    # Document
    "RoutineDocument",
    "decode_routines_document",
    "fetch_routines_text",
    "load_routines_document",
    # Errors
    "RoutineSyncError",
    "ConfigFetchError",
    "ConfigParseError",
    "ExpansionSkip",
    "ExistingListError",
    "CreateEventError",
]
