from __future__ import annotations

import datetime as dt
import re

from pydantic import TypeAdapter

# pydantic also reads bare numbers as unix timestamps; only ISO dates qualify here.
ISO_DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")

_DATETIME_ADAPTER = TypeAdapter(dt.datetime)


def ensure_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def format_instant(value: dt.datetime) -> str:
    """Canonical wire form: UTC, millisecond precision, ``Z`` suffix."""
    utc = ensure_utc(value)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def parse_instant(value: str) -> dt.datetime:
    """Parse an ISO-8601 date or timestamp; naive values are read as UTC.

    Raises ``ValueError`` (pydantic's ``ValidationError`` included) when the
    text is not an ISO date.
    """
    text = value.strip()
    if not ISO_DATE_PREFIX_RE.match(text):
        raise ValueError(f"Not an ISO-8601 timestamp: {value!r}")
    return ensure_utc(_DATETIME_ADAPTER.validate_python(text))
