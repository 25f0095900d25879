"""
Dates -- the single normalization boundary for date-like document fields.

Responsibility:
    Converts every accepted representation of a date into ``datetime.date``
    before it crosses into the engine.  Billing coverage dates, arrival and
    departure dates arrive as native dates, aware or naive datetimes,
    ISO strings, epoch seconds, or opaque wrapped timestamps exported by
    the document store.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Accepted representations:
    - ``date`` / ``datetime`` (aware datetimes are converted to ``tz``
      first, naive datetimes are taken as-is)
    - ISO strings: ``2025-09-01``, ``2025-09-01T08:00:00+08:00``,
      ``2025-09-01T00:00:00Z``, and the slash form ``2025/09/01``
    - wrapped timestamps: objects exposing ``to_datetime()`` or
      ``toDate()``; objects or mappings carrying ``seconds`` / ``_seconds``
      (plus optional ``nanoseconds``)
    - int/float epoch seconds

Failure modes:
    - MalformedRecordError for anything else, including unparseable
      strings.  Absent values (None, blank string) return None.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from housing_kernel.exceptions import MalformedRecordError

DEFAULT_TIMEZONE = "UTC"


def to_date(
    value: Any,
    field: str = "date",
    record_id: str | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> date | None:
    """
    Normalize a date-like value to ``datetime.date``.

    Postconditions:
        - Returns None for None and blank strings.
        - Returns a ``date`` (never a ``datetime``) otherwise.

    Raises:
        MalformedRecordError: if the value is not a recognised date form.
    """
    if value is None:
        return None

    # datetime is a subclass of date, check it first
    if isinstance(value, datetime):
        return _datetime_to_date(value, tz)
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        return _parse_string(value, field, record_id, tz)

    if isinstance(value, bool):
        raise MalformedRecordError(field, value, "boolean is not a date", record_id)
    if isinstance(value, (int, float)):
        return _from_epoch(value, 0, field, record_id, tz)

    unwrapped = _unwrap_timestamp(value)
    if unwrapped is not None:
        return _datetime_to_date(unwrapped, tz)

    seconds = _timestamp_seconds(value)
    if seconds is not None:
        return _from_epoch(seconds[0], seconds[1], field, record_id, tz)

    raise MalformedRecordError(
        field, value, f"unsupported date type {type(value).__name__}", record_id
    )


def add_months(day: date, months: int) -> date:
    """First day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _datetime_to_date(value: datetime, tz: str) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(ZoneInfo(tz))
    return value.date()


def _parse_string(value: str, field: str, record_id: str | None, tz: str) -> date | None:
    text = value.strip()
    if not text:
        return None
    candidate = text.replace("/", "-")
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        if len(candidate) <= 10:
            return date.fromisoformat(_pad_date(candidate))
        return _datetime_to_date(datetime.fromisoformat(candidate), tz)
    except ValueError as e:
        raise MalformedRecordError(field, value, "not an ISO date", record_id) from e


def _pad_date(text: str) -> str:
    # 2025-9-1 -> 2025-09-01
    parts = text.split("-")
    if len(parts) == 3 and all(p.isdigit() for p in parts):
        return f"{int(parts[0]):04d}-{int(parts[1]):02d}-{int(parts[2]):02d}"
    return text


def _unwrap_timestamp(value: Any) -> datetime | None:
    for accessor in ("to_datetime", "toDate", "to_pydatetime"):
        method = getattr(value, accessor, None)
        if callable(method):
            result = method()
            if isinstance(result, datetime):
                return result
    return None


def _timestamp_seconds(value: Any) -> tuple[float, int] | None:
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
    else:
        seconds = getattr(value, "seconds", getattr(value, "_seconds", None))
        nanos = getattr(value, "nanoseconds", getattr(value, "_nanoseconds", 0))
    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool):
        return seconds, int(nanos or 0)
    return None


def _from_epoch(
    seconds: float, nanos: int, field: str, record_id: str | None, tz: str
) -> date:
    try:
        moment = datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise MalformedRecordError(field, seconds, "epoch out of range", record_id) from e
    return _datetime_to_date(moment, tz)
