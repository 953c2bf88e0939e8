"""
Loading of the routines document.

The document is fetched over HTTP and decoded as JSON when the URL path
ends in ``.json``, as YAML otherwise. It is either a list of routine
records or a mapping with a ``routines`` list:

    routines:
      - title: Gym
        days: [Mon, Wed, Fri]
        start: "06:00"
        end: "07:00"
      - title: Weekly review
        day: Sun
        time: "17:00"
        duration_minutes: 30
    lookahead_days: 14
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
import yaml

from routine_calendar.routines.errors import ConfigFetchError, ConfigParseError
from routine_calendar.routines.models import (
    MultiWeekdaySpec,
    RecurrenceSpec,
    SingleWeekdayDurationSpec,
    parse_weekday,
)

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 20.0

_CLOCK_SCALAR = re.compile(r"^[0-9]{1,2}:[0-9]{2}(?::[0-9]{2})?$")


class RoutineLoader(yaml.SafeLoader):
    """SafeLoader that reads unquoted ``H:MM`` scalars as strings, not base-60 ints."""


RoutineLoader.yaml_implicit_resolvers = {
    first: list(resolvers)
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
for _digit in "0123456789":
    RoutineLoader.yaml_implicit_resolvers.setdefault(_digit, []).insert(
        0, ("tag:yaml.org,2002:str", _CLOCK_SCALAR)
    )


@dataclass(frozen=True)
class RoutineDocument:
    """Decoded routines document."""

    specs: tuple[RecurrenceSpec, ...]
    lookahead_days: Any = None


def _first(record: dict, *keys: str) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return None


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def spec_from_record(record: Any, index: int = 0) -> Optional[RecurrenceSpec]:
    """
    Build a recurrence spec from one document record.

    Records with a ``days`` list are multi-weekday routines; records with a
    ``day`` are single-weekday routines. Records that match neither, or have
    no title, are skipped with a warning.
    """
    if not isinstance(record, dict):
        logger.warning(f"Skipping routine #{index}: expected a mapping, got {type(record).__name__}")
        return None

    title = _optional_text(_first(record, "title", "summary", "name"))
    if not title:
        logger.warning(f"Skipping routine #{index}: missing title")
        return None

    note = _optional_text(_first(record, "note", "notes", "description"))
    location = _optional_text(record.get("location"))

    days = record.get("days")
    if days is not None:
        if isinstance(days, str):
            days = [part for part in re.split(r"[,\s]+", days) if part]
        if not isinstance(days, list):
            logger.warning(f"Skipping routine #{index} '{title}': 'days' must be a list")
            return None

        weekdays = set()
        for name in days:
            weekday = parse_weekday(name)
            if weekday is None:
                logger.warning(f"Routine #{index} '{title}': ignoring unknown weekday {name!r}")
                continue
            weekdays.add(weekday)

        return MultiWeekdaySpec(
            title=title,
            weekdays=frozenset(weekdays),
            start_clock=_first(record, "start", "start_time"),
            end_clock=_first(record, "end", "end_time"),
            note=note,
            location=location,
        )

    if "day" in record:
        weekday = parse_weekday(record["day"])
        if weekday is None:
            logger.warning(f"Routine #{index} '{title}': unknown weekday {record['day']!r}")

        return SingleWeekdayDurationSpec(
            title=title,
            weekday=weekday,
            time_clock=_first(record, "time", "start", "start_time"),
            duration_minutes=_first(record, "duration_minutes", "durationMinutes", "duration"),
            note=note,
            location=location,
        )

    logger.warning(f"Skipping routine #{index} '{title}': needs either 'days' or 'day'")
    return None


def parse_routine_records(records: list) -> list[RecurrenceSpec]:
    """Build specs from a list of records, dropping unusable ones."""
    specs = []
    for index, record in enumerate(records):
        spec = spec_from_record(record, index)
        if spec is not None:
            specs.append(spec)
    return specs


def _is_json_source(source: str) -> bool:
    path = urlparse(source).path if "://" in source else source
    return path.lower().endswith(".json")


def decode_routines_document(text: str, source: str = "") -> RoutineDocument:
    """
    Decode routines document text.

    Args:
        text: Raw document text
        source: URL or path the text came from; selects JSON or YAML

    Returns:
        RoutineDocument with usable specs and the optional lookahead value

    Raises:
        ConfigParseError: If the text does not decode, or the decoded value
            is neither a list nor a mapping with a ``routines`` list
    """
    try:
        if _is_json_source(source):
            data = json.loads(text)
        else:
            # Timestamp-like scalars become dates; impossible ones raise ValueError
            data = yaml.load(text, Loader=RoutineLoader)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        raise ConfigParseError(
            f"Routines document {source or '<inline>'} could not be decoded: {e}",
            original_error=e,
        ) from e

    lookahead = None
    if isinstance(data, dict):
        lookahead = _first(data, "lookahead_days", "lookaheadDays")
        if "routines" not in data:
            raise ConfigParseError("Routines document mapping has no 'routines' key")
        data = data["routines"]

    if data is None:
        data = []

    if not isinstance(data, list):
        raise ConfigParseError(
            f"Routines must be a list, got {type(data).__name__}"
        )

    specs = parse_routine_records(data)
    logger.info(f"Decoded {len(specs)} of {len(data)} routines from {source or '<inline>'}")
    return RoutineDocument(specs=tuple(specs), lookahead_days=lookahead)


async def fetch_routines_text(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> str:
    """
    Download the routines document.

    Args:
        url: Document URL
        client: Shared HTTP client (a short-lived one is created if None)
        timeout: Request timeout in seconds

    Returns:
        Response body as text

    Raises:
        ConfigFetchError: On transport failure or non-2xx status
    """
    try:
        if client is not None:
            response = await client.get(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=timeout) as http:
                response = await http.get(url, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise ConfigFetchError(
            f"Fetching routines from {url} returned {e.response.status_code}",
            url=url,
            status_code=e.response.status_code,
            original_error=e,
        ) from e
    except httpx.HTTPError as e:
        raise ConfigFetchError(
            f"Fetching routines from {url} failed: {e}",
            url=url,
            original_error=e,
        ) from e

    return response.text


async def load_routines_document(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
) -> RoutineDocument:
    """Fetch and decode the routines document at ``url``."""
    text = await fetch_routines_text(url, client=client, timeout=timeout)
    return decode_routines_document(text, source=url)
