"""
Expansion of routines into concrete instances.

Walks the horizon one day at a time and, for every routine whose weekday
matches, builds a start/end pair in wall-clock time. Instances may end
after the horizon but never start before ``horizon.start`` or after
``horizon.end``.

A routine with an empty weekday set, an unparseable clock time or a bad
duration produces no instances at all; the problem is logged and the
remaining routines still expand.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

from routine_calendar.routines.errors import ExpansionSkip
from routine_calendar.routines.horizon import iter_days
from routine_calendar.routines.models import (
    CandidateInstance,
    Horizon,
    MultiWeekdaySpec,
    RecurrenceSpec,
    SingleWeekdayDurationSpec,
    SpecSource,
)

logger = logging.getLogger(__name__)

DEFAULT_TIME_CLOCK = "17:00"
DEFAULT_DURATION_MINUTES = 60

_CLOCK_RE = re.compile(r"^(\d{1,2})(?::(\d{1,2}))?(?::(\d{1,2}))?$")


def parse_clock(value: Any) -> time:
    """
    Parse an ``HH:MM`` clock value.

    ``"6"`` and integers 0-23 mean the top of that hour. Seconds, when
    present, are ignored.

    Raises:
        ExpansionSkip: If the value is missing, non-numeric or out of range
    """
    if isinstance(value, bool) or value is None:
        raise ExpansionSkip(f"Missing or invalid clock time {value!r}")

    if isinstance(value, int):
        hour, minute = value, 0
    elif isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    elif isinstance(value, str):
        match = _CLOCK_RE.match(value.strip())
        if not match:
            raise ExpansionSkip(f"Unparseable clock time {value!r}")
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
    else:
        raise ExpansionSkip(f"Unparseable clock time {value!r}")

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ExpansionSkip(f"Clock time out of range {value!r}")

    return time(hour, minute)


def parse_duration(value: Any) -> timedelta:
    """
    Parse a duration in whole minutes. Zero is allowed.

    Raises:
        ExpansionSkip: If the value is negative or not a whole number
    """
    if value is None:
        return timedelta(minutes=DEFAULT_DURATION_MINUTES)
    if isinstance(value, bool):
        raise ExpansionSkip(f"Invalid duration {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise ExpansionSkip(f"Invalid duration {value!r}")
    return timedelta(minutes=value)


@dataclass(frozen=True)
class _DailyRule:
    weekdays: frozenset[int]
    start: time
    end: Optional[time] = None
    duration: Optional[timedelta] = None

    def occurrence(self, day: date) -> tuple[datetime, datetime]:
        start = datetime.combine(day, self.start)
        if self.duration is not None:
            return start, start + self.duration
        end = datetime.combine(day, self.end)
        if end < start:
            # Overnight routine, e.g. 22:00-01:00
            end += timedelta(days=1)
        return start, end


def _resolve(spec: RecurrenceSpec) -> _DailyRule:
    if isinstance(spec, MultiWeekdaySpec):
        if not spec.weekdays:
            raise ExpansionSkip("No weekdays given")
        return _DailyRule(
            weekdays=frozenset(int(day) for day in spec.weekdays),
            start=parse_clock(spec.start_clock),
            end=parse_clock(spec.end_clock),
        )

    if isinstance(spec, SingleWeekdayDurationSpec):
        if spec.weekday is None:
            raise ExpansionSkip("No weekday given")
        clock = DEFAULT_TIME_CLOCK if spec.time_clock is None else spec.time_clock
        return _DailyRule(
            weekdays=frozenset([int(spec.weekday)]),
            start=parse_clock(clock),
            duration=parse_duration(spec.duration_minutes),
        )

    raise ExpansionSkip(f"Unknown routine type {type(spec).__name__}")


def expand_spec(spec: RecurrenceSpec, horizon: Horizon, index: int = 0) -> list[CandidateInstance]:
    """
    Expand one routine over the horizon.

    Args:
        spec: Routine to expand
        horizon: Window instances must start in
        index: Position of the routine in its document, kept as provenance

    Returns:
        Instances in ascending day order; empty if the routine is malformed
    """
    try:
        rule = _resolve(spec)
    except ExpansionSkip as e:
        logger.warning(f"Skipping routine #{index} '{spec.title}': {e.message}")
        return []

    source = SpecSource(index=index, title=spec.title)
    instances = []

    for day in iter_days(horizon):
        if day.weekday() not in rule.weekdays:
            continue

        start, end = rule.occurrence(day)
        if not horizon.contains(start):
            continue

        instances.append(
            CandidateInstance(
                title=spec.title,
                start=start,
                end=end,
                note=spec.note,
                location=spec.location,
                source=source,
            )
        )

    return instances


def expand(specs: Iterable[RecurrenceSpec], horizon: Horizon) -> list[CandidateInstance]:
    """
    Expand routines into candidate instances.

    Order is routines in input order, then days ascending within a routine.
    """
    candidates: list[CandidateInstance] = []
    for index, spec in enumerate(specs):
        candidates.extend(expand_spec(spec, horizon, index))

    logger.debug(
        f"Expanded routines into {len(candidates)} candidates "
        f"between {horizon.start} and {horizon.end}"
    )
    return candidates
