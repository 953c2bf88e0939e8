"""
Data shapes for routines and their expansion.

Recurrence specs come in two variants: a set of weekdays with start/end
clock times, or one weekday with a start time and a duration. Clock and
duration values are kept as decoded from the routines document and are
validated during expansion, so one malformed routine never fails a run.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Optional, Union


class Weekday(IntEnum):
    """Day of week, numbered like ``date.weekday()``."""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6


WEEKDAY_ALIASES: dict[str, Weekday] = {}
for _day, _names in {
    Weekday.MON: ("mon", "monday", "mo"),
    Weekday.TUE: ("tue", "tues", "tuesday", "tu"),
    Weekday.WED: ("wed", "wednesday", "we"),
    Weekday.THU: ("thu", "thur", "thurs", "thursday", "th"),
    Weekday.FRI: ("fri", "friday", "fr"),
    Weekday.SAT: ("sat", "saturday", "sa"),
    Weekday.SUN: ("sun", "sunday", "su"),
}.items():
    for _name in _names:
        WEEKDAY_ALIASES[_name] = _day


def parse_weekday(value: Any) -> Optional[Weekday]:
    """
    Parse a weekday name.

    Accepts short ("Mon"), long ("Monday") and iCalendar ("MO") names in any
    case. Returns None for anything else.
    """
    if isinstance(value, Weekday):
        return value
    if not isinstance(value, str):
        return None
    return WEEKDAY_ALIASES.get(value.strip().lower())


@dataclass(frozen=True)
class MultiWeekdaySpec:
    """Routine that happens on several weekdays between two clock times."""

    title: str
    weekdays: frozenset[Weekday]
    start_clock: Any
    end_clock: Any
    note: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class SingleWeekdayDurationSpec:
    """Routine that happens on one weekday at a time for a duration."""

    title: str
    weekday: Optional[Weekday]
    time_clock: Any = "17:00"
    duration_minutes: Any = 60
    note: Optional[str] = None
    location: Optional[str] = None


RecurrenceSpec = Union[MultiWeekdaySpec, SingleWeekdayDurationSpec]


@dataclass(frozen=True)
class SpecSource:
    """Which routine produced a candidate."""

    index: int
    title: str


@dataclass(frozen=True)
class CandidateInstance:
    """One concrete occurrence of a routine, in wall-clock time."""

    title: str
    start: datetime
    end: datetime
    note: Optional[str] = None
    location: Optional[str] = None
    source: Optional[SpecSource] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "note": self.note,
            "location": self.location,
        }


@dataclass(frozen=True)
class Horizon:
    """Closed time window ``[start, end]`` that instances must start in."""

    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


@dataclass(frozen=True)
class CreatedItem:
    """An event created during a sync run."""

    id: str
    title: str
    start: datetime

    def to_dict(self) -> dict:
        return {"id": self.id, "title": self.title, "start": self.start.isoformat()}


@dataclass
class SyncResult:
    """Outcome of one sync run."""

    items: list[CreatedItem] = field(default_factory=list)
    skipped_count: int = 0
    horizon: Optional[Horizon] = None
    dry_run: bool = False
    planned: list[CandidateInstance] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        payload = {
            "created_count": self.created_count,
            "skipped_count": self.skipped_count,
            "items": [item.to_dict() for item in self.items],
            "dry_run": self.dry_run,
        }
        if self.horizon is not None:
            payload["horizon"] = self.horizon.to_dict()
        if self.dry_run:
            payload["planned"] = [candidate.to_dict() for candidate in self.planned]
        return payload
