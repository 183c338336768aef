"""
Day-boundary helpers.

Daily counters and buried cards reset at local midnight of the learner's
timezone. Offsets are always resolved for the *named* zone, never the
host's local timezone.
"""

import logging
from datetime import datetime, timezone as dt_timezone
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from cadence.domain.constants import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)


@lru_cache(maxsize=64)
def resolve_timezone(name: str | None) -> ZoneInfo:
    """Return the zone for an IANA name, falling back to UTC for unknown names."""
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError, TypeError):
        logger.warning(f"Unknown timezone {name!r}, using {DEFAULT_TIMEZONE}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def local_midnight(timestamp: int, timezone: str = DEFAULT_TIMEZONE) -> int:
    """
    Epoch ms of 00:00 on the local date of ``timestamp`` in ``timezone``.

    On days where midnight falls in a DST gap the result is the first
    instant of that local date.
    """
    tz = resolve_timezone(timezone)
    local = datetime.fromtimestamp(timestamp / 1000, tz=dt_timezone.utc).astimezone(tz)
    midnight = datetime(local.year, local.month, local.day, tzinfo=tz)
    return int(midnight.timestamp() * 1000)


def is_new_day(previous: int | None, now: int, timezone: str = DEFAULT_TIMEZONE) -> bool:
    """True when ``now`` falls on a later local date than ``previous``."""
    if previous is None:
        return True
    return local_midnight(now, timezone) > local_midnight(previous, timezone)
