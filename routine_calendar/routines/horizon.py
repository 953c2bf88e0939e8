"""Look-ahead window for routine expansion."""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Any, Iterator

from routine_calendar.routines.models import Horizon

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD_DAYS = 14
MAX_LOOKAHEAD_DAYS = 366


def coerce_lookahead_days(value: Any, default: int = DEFAULT_LOOKAHEAD_DAYS) -> int:
    """
    Turn a look-ahead value from config or a document into a day count.

    Missing, non-numeric, negative, non-finite and values above
    MAX_LOOKAHEAD_DAYS fall back to ``default``. Fractional values are
    truncated.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
        try:
            value = float(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric lookahead {value!r}, using {default}")
            return default

    if (
        not isinstance(value, (int, float))
        or (isinstance(value, float) and not math.isfinite(value))
        or value < 0
    ):
        logger.warning(f"Ignoring invalid lookahead {value!r}, using {default}")
        return default

    if value > MAX_LOOKAHEAD_DAYS:
        logger.warning(
            f"Ignoring lookahead {value!r} above {MAX_LOOKAHEAD_DAYS} days, using {default}"
        )
        return default

    return int(value)


def compute_horizon(now: datetime, lookahead_days: Any, default: int = DEFAULT_LOOKAHEAD_DAYS) -> Horizon:
    """
    Build the window ``[now, now + lookahead_days]``.

    Args:
        now: Current wall-clock time
        lookahead_days: Days ahead; coerced with coerce_lookahead_days
        default: Fallback for malformed lookahead values

    Returns:
        Horizon starting at now
    """
    days = coerce_lookahead_days(lookahead_days, default)
    return Horizon(start=now, end=now + timedelta(days=days))


def iter_days(horizon: Horizon) -> Iterator[date]:
    """Yield each calendar date touched by the horizon, ascending."""
    day = horizon.start.date()
    last = horizon.end.date()
    while day <= last:
        yield day
        day += timedelta(days=1)
