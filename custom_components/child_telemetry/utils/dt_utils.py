# File: utils/dt_utils.py
"""Date and time utilities for Child Telemetry.

Pure Python date/time functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Producers write timestamps in whatever shape their SDK emits: native
datetimes, epoch milliseconds, ISO strings, free-form date strings, or
`{seconds, nanoseconds}` maps from serialized store timestamps. Everything is
coerced to a timezone-aware UTC datetime here so engines only ever compare
like with like.

Functions:
    - set_default_timezone / get_default_timezone: Timezone used for date keys
    - dt_now_utc / dt_now_local / dt_today_iso: Current time helpers
    - as_utc / as_local: Timezone conversion
    - coerce_datetime: Tolerant conversion of any timestamp shape
    - dt_date_key / dt_day_label / dt_epoch_ms: DayEntry field helpers
    - dt_date_key_from_id: Extract a trailing YYYY-MM-DD from a document id
    - dt_parse_date_key: Date key to local-midnight datetime
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime, time
import logging
import math
import re
from typing import Any
from zoneinfo import ZoneInfo

# Third-party date parsing (no HA dependency)
from dateutil import parser as date_parser

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

DATE_KEY_FORMAT = "%Y-%m-%d"
DAY_LABEL_FORMAT = "%a"

_DATE_KEY_SUFFIX = re.compile(r"(\d{4}-\d{2}-\d{2})$")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the timezone used to derive calendar dates and day labels.

    Args:
        tz: ZoneInfo object representing the dashboard's timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in the default timezone."""
    return datetime.now(tz or DEFAULT_TIME_ZONE)


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's date key in the default timezone.

    Example:
        "2025-04-07"
    """
    return dt_now_local(tz).date().isoformat()


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC, assuming the default timezone if naive."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to the default timezone, assuming UTC if naive."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz or DEFAULT_TIME_ZONE)


# ==============================================================================
# Timestamp Coercion
# ==============================================================================


def _from_epoch_ms(value: float) -> datetime | None:
    if not math.isfinite(value):
        return None
    try:
        return datetime.fromtimestamp(value / 1000, UTC)
    except (OverflowError, OSError, ValueError):
        return None


def _from_seconds_nanos(seconds: Any, nanos: Any) -> datetime | None:
    if isinstance(seconds, bool) or not isinstance(seconds, (int, float)):
        return None
    if isinstance(nanos, bool) or not isinstance(nanos, (int, float)):
        nanos = 0
    return _from_epoch_ms(seconds * 1000 + nanos / 1e6)


def _from_string(value: str) -> datetime | None:
    text = value.strip()
    if not text:
        return None
    try:
        parsed = date_parser.isoparse(text)
    except ValueError:
        try:
            parsed = date_parser.parse(text)
        except (ValueError, OverflowError):
            _LOGGER.debug("Unparsable timestamp string: %s", value)
            return None
    return as_utc(parsed)


def coerce_datetime(value: Any) -> datetime | None:
    """Convert any producer timestamp shape to an aware UTC datetime.

    Accepts:
    - datetime (naive values are read in the default timezone)
    - date (local midnight)
    - int/float epoch milliseconds
    - ISO 8601 or free-form date strings
    - mappings with `seconds`/`nanoseconds` (or `_seconds`/`_nanoseconds`)
    - objects exposing `seconds` and `nanos` attributes

    Returns:
        Aware UTC datetime, or None when the value is absent or unparsable.

    Examples:
        coerce_datetime(1700000000000) → 2023-11-14 22:13:20+00:00
        coerce_datetime({"seconds": 1700000000, "nanoseconds": 0}) → same
        coerce_datetime("not a date") → None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return as_utc(datetime.combine(value, time.min))
    if isinstance(value, (int, float)):
        return _from_epoch_ms(value)
    if isinstance(value, str):
        return _from_string(value)
    if isinstance(value, Mapping):
        if "seconds" in value:
            return _from_seconds_nanos(value.get("seconds"), value.get("nanoseconds"))
        if "_seconds" in value:
            return _from_seconds_nanos(
                value.get("_seconds"), value.get("_nanoseconds")
            )
        return None
    if hasattr(value, "seconds") and hasattr(value, "nanos"):
        return _from_seconds_nanos(value.seconds, value.nanos)
    return None


def coerce_first_datetime(record: Mapping[str, Any], keys: tuple[str, ...]) -> datetime | None:
    """Coerce the first present (non-None) field among `keys`.

    Mirrors a null-coalescing chain: the first key holding any value wins even
    if that value then fails to parse.
    """
    for key in keys:
        value = record.get(key)
        if value is not None:
            return coerce_datetime(value)
    return None


# ==============================================================================
# DayEntry Field Helpers
# ==============================================================================


def dt_date_key(dt_obj: datetime, tz: ZoneInfo | None = None) -> str:
    """Return the calendar date key of a datetime in the default timezone."""
    return as_local(dt_obj, tz).strftime(DATE_KEY_FORMAT)


def dt_day_label(dt_obj: datetime, tz: ZoneInfo | None = None) -> str:
    """Return the short weekday label ("Mon") in the default timezone."""
    return as_local(dt_obj, tz).strftime(DAY_LABEL_FORMAT)


def dt_epoch_ms(dt_obj: datetime) -> int:
    """Return epoch milliseconds for an aware (or default-timezone naive) datetime."""
    return int(as_utc(dt_obj).timestamp() * 1000)


def dt_date_key_from_id(doc_id: str) -> str | None:
    """Extract a trailing YYYY-MM-DD from ids like "device123_2025-04-07".

    Returns None if the id has no valid date suffix.
    """
    match = _DATE_KEY_SUFFIX.search(doc_id or "")
    if not match:
        return None
    try:
        date.fromisoformat(match.group(1))
    except ValueError:
        return None
    return match.group(1)


def dt_parse_date_key(date_key: str, tz: ZoneInfo | None = None) -> datetime | None:
    """Return local midnight for a date key, or None if it is not a date."""
    try:
        parsed = date.fromisoformat(date_key)
    except (TypeError, ValueError):
        return None
    return datetime.combine(parsed, time.min, tzinfo=tz or DEFAULT_TIME_ZONE)
