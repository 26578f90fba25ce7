from __future__ import annotations

import datetime as dt
import re
from typing import Optional

from ..core.errors import InvalidTimeRange, InvalidTimeValue
from ..schemas.query import TimeRange
from ..utils.timestamps import format_instant, parse_instant

RELATIVE_TIME_RE = re.compile(r"^(\d+)\s*([smhdw])$", re.IGNORECASE)

_UNIT_SECONDS = {
    "s": 1,
    "m": 60,
    "h": 60 * 60,
    "d": 24 * 60 * 60,
    "w": 7 * 24 * 60 * 60,
}


def parse_time_value(value: str, reference: Optional[dt.datetime] = None) -> dt.datetime:
    """Resolve ``now``, a relative duration or an absolute timestamp.

    Relative durations count backwards from ``reference``.
    """
    if reference is None:
        reference = dt.datetime.now(dt.timezone.utc)
    text = value.strip()
    if not text:
        raise InvalidTimeValue("Time value cannot be empty")

    if text.lower() == "now":
        return reference

    match = RELATIVE_TIME_RE.match(text)
    if match:
        amount = int(match.group(1))
        unit = match.group(2).lower()
        if amount <= 0:
            raise InvalidTimeValue(f'Invalid relative time: "{value}"')
        try:
            return reference - dt.timedelta(seconds=amount * _UNIT_SECONDS[unit])
        except OverflowError as exc:
            raise InvalidTimeValue(f'Invalid relative time: "{value}"') from exc

    try:
        return parse_instant(text)
    except ValueError as exc:
        raise InvalidTimeValue(
            f'Invalid time value "{value}". Use ISO time or relative values like 15m, 24h, 7d.'
        ) from exc


def resolve_time_range(
    since: Optional[str],
    until: Optional[str],
    default_since: str,
    *,
    now: Optional[dt.datetime] = None,
) -> TimeRange:
    reference_now = now or dt.datetime.now(dt.timezone.utc)
    end = parse_time_value(until, reference_now) if until else reference_now
    start = parse_time_value(since or default_since, end)

    if start > end:
        raise InvalidTimeRange("`since` must be earlier than `until`")

    return TimeRange(start=format_instant(start), end=format_instant(end))
