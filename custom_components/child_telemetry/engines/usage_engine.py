"""Usage Engine - Canonical per-day usage from two schema generations.

Two normalizer strategies produce DayEntry records:

- Primary: per-day documents under the child (`usageHistory`), which carry a
  total and an hourly breakdown in either list-of-objects or map-by-hour shape.
- Fallback: the legacy global daily collection keyed "<deviceId>_<YYYY-MM-DD>",
  which carries either a root duration or a nested per-app usage map and no
  hourly data.

The manager picks the strategy with a fallback-if-empty rule; nothing here
branches on which producer wrote a record.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import (
    coerce_first_datetime,
    dt_date_key,
    dt_date_key_from_id,
    dt_day_label,
    dt_epoch_ms,
    dt_parse_date_key,
)
from ..utils.math_utils import to_number
from .field_engine import resolve_minutes, resolve_number

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from ..type_defs import DayEntry, HourlyPoint, RawRecord


# ────────────────────────────────────────────────────────────────
# Hourly Breakdown
# ────────────────────────────────────────────────────────────────


def _hour_label(value: Any) -> str | None:
    """Return "00".."23" for an hour given as int, whole float, "9" or "09:00"."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(":00"):
            text = text[:-3]
        if not text.isdecimal():
            return None
        value = int(text)
    if not isinstance(value, int) or not 0 <= value <= 23:
        return None
    return f"{value:02d}"


def _first_present(entry: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


def normalize_hourly(raw: Any) -> list[HourlyPoint]:
    """Normalize an hourly breakdown in either supported raw shape.

    Shapes:
    - [{"hour": 9, "minutes": 12}, {"label": "10", "value": "4.5"}, ...]
    - {"9": 12, "10": "4.5", ...}

    Entries whose hour is not 0..23 or whose minutes are not numeric are
    dropped.
    Single-digit hour labels are zero-padded ("9" → "09").
    """
    points: list[HourlyPoint] = []

    if isinstance(raw, list):
        for entry in raw:
            if not isinstance(entry, Mapping):
                continue
            label = _hour_label(_first_present(entry, const.HOURLY_LABEL_FIELDS))
            minutes = to_number(_first_present(entry, const.HOURLY_MINUTES_FIELDS))
            if label is None or minutes is None or minutes < 0:
                continue
            points.append({"hour_label": label, "minutes": minutes})
        return points

    if isinstance(raw, Mapping):
        for key, value in raw.items():
            label = _hour_label(key)
            minutes = to_number(value)
            if label is None or minutes is None or minutes < 0:
                continue
            points.append({"hour_label": label, "minutes": minutes})

    return points


# ────────────────────────────────────────────────────────────────
# Day Entries
# ────────────────────────────────────────────────────────────────


def _build_day_entry(
    doc_id: str, day: datetime, total_minutes: float, hourly: list[HourlyPoint]
) -> DayEntry:
    return {
        "id": doc_id,
        "date": dt_date_key(day),
        "total_minutes": max(0.0, total_minutes),
        "hourly": hourly,
        "day_label": dt_day_label(day),
        "date_value": dt_epoch_ms(day),
    }


def _resolve_day(doc_id: str, record: RawRecord) -> datetime | None:
    day = coerce_first_datetime(record, const.DAY_DATE_FIELDS)
    if day is not None:
        return day
    date_key = dt_date_key_from_id(doc_id)
    return dt_parse_date_key(date_key) if date_key else None


def normalize_day_entry(doc_id: str, record: RawRecord) -> DayEntry | None:
    """Normalize a primary per-day usage document.

    The date comes from the first date-like field, then from a YYYY-MM-DD
    suffix of the document id. Records with neither are malformed and
    return None.
    """
    day = _resolve_day(doc_id, record)
    if day is None:
        return None

    hourly_raw = _first_present(record, const.DAY_HOURLY_FIELDS)
    return _build_day_entry(
        doc_id,
        day,
        resolve_minutes(record, const.DAY_TOTAL_CANDIDATES),
        normalize_hourly(hourly_raw),
    )


def _app_map_entries(record: RawRecord) -> Iterable[tuple[str, Any]]:
    """Yield (key, app_record) pairs from the nested per-app map or list."""
    raw = _first_present(record, const.DAILY_APP_MAP_FIELDS)
    if isinstance(raw, Mapping):
        yield from raw.items()
    elif isinstance(raw, list):
        for index, entry in enumerate(raw):
            yield str(index), entry


def app_map_minutes(record: RawRecord) -> dict[str, float]:
    """Return minutes per app key from a daily document's nested app map.

    Values may be app records ({"usageSeconds": 600, ...}) or bare numbers
    (already minutes).
    """
    minutes: dict[str, float] = {}
    for key, entry in _app_map_entries(record):
        if isinstance(entry, Mapping):
            value = resolve_minutes(entry, const.APP_USAGE_CANDIDATES)
        else:
            value = to_number(entry) or 0.0
        if value > 0:
            minutes[key] = minutes.get(key, 0.0) + value
    return minutes


def fallback_total_minutes(doc_id: str, record: RawRecord) -> float:
    """Total minutes for a legacy daily document.

    A positive root duration field wins; otherwise the per-app durations are
    summed. The two are not cross-checked.
    """
    root_total = resolve_number(record, const.DAY_TOTAL_CANDIDATES)
    per_app_total = sum(app_map_minutes(record).values())

    if root_total is not None and root_total > 0:
        if per_app_total and abs(per_app_total - root_total) > 1:
            const.LOGGER.debug(
                "Daily doc %s: root total %.1f disagrees with per-app sum %.1f",
                doc_id,
                root_total,
                per_app_total,
            )
        return root_total
    return per_app_total


def normalize_fallback_day(doc_id: str, record: RawRecord) -> DayEntry | None:
    """Normalize a legacy "<deviceId>_<YYYY-MM-DD>" daily document.

    Hourly breakdown is not available from this source and is always empty.
    """
    date_key = dt_date_key_from_id(doc_id)
    day = dt_parse_date_key(date_key) if date_key else _resolve_day(doc_id, record)
    if day is None:
        return None
    return _build_day_entry(doc_id, day, fallback_total_minutes(doc_id, record), [])


# ────────────────────────────────────────────────────────────────
# Device Aliases
# ────────────────────────────────────────────────────────────────


def extract_device_aliases(
    child_id: str,
    root_record: RawRecord | None,
    max_aliases: int = const.DEFAULT_MAX_DEVICE_ALIASES,
) -> list[str]:
    """Return the ids a legacy producer may have keyed daily documents under.

    The child id always comes first, followed by up to `max_aliases` distinct
    device identifiers read from the child's root document.

    Example:
        >>> extract_device_aliases("kid1", {"deviceId": "d1", "androidId": "d1"})
        ['kid1', 'd1']
    """
    aliases = [child_id]
    if not root_record:
        return aliases

    extra = 0
    for key in const.DEVICE_ALIAS_FIELDS:
        if extra >= max_aliases:
            break
        value = root_record.get(key)
        if not isinstance(value, str):
            continue
        value = value.strip()
        if value and value not in aliases:
            aliases.append(value)
            extra += 1
    return aliases


def id_prefix_range(alias: str) -> tuple[str, str]:
    """Return the half-open id range covering every "<alias>_..." document."""
    start = f"{alias}{const.ID_PREFIX_SEPARATOR}"
    return start, f"{start}{const.ID_RANGE_SENTINEL}"


def latest_day_document(
    documents: Iterable[tuple[str, RawRecord]],
) -> tuple[str, RawRecord] | None:
    """Pick the daily document with the newest date suffix in its id."""
    latest: tuple[str, RawRecord] | None = None
    latest_key = ""
    for doc_id, record in documents:
        date_key = dt_date_key_from_id(doc_id)
        if date_key and date_key > latest_key:
            latest, latest_key = (doc_id, record), date_key
    return latest


# ────────────────────────────────────────────────────────────────
# Merge & Ordering
# ────────────────────────────────────────────────────────────────


def sort_history(entries: Iterable[DayEntry]) -> list[DayEntry]:
    """Sort entries newest first by date_value."""
    return sorted(entries, key=lambda entry: entry["date_value"], reverse=True)


def dedupe_by_date(entries: Iterable[DayEntry]) -> list[DayEntry]:
    """Keep one entry per date; the last one delivered wins."""
    by_date: dict[str, DayEntry] = {}
    for entry in entries:
        by_date[entry["date"]] = entry
    return list(by_date.values())


def build_history(entries: Iterable[DayEntry | None]) -> list[DayEntry]:
    """Drop malformed records, dedupe by date, and sort newest first."""
    return sort_history(dedupe_by_date(entry for entry in entries if entry))


def merge_alias_days(per_alias: Sequence[Sequence[DayEntry]]) -> list[DayEntry]:
    """Merge fallback results from several device aliases by date.

    All aliases describe the same device; for a date present under several
    aliases the later alias in `per_alias` wins.
    """
    merged: dict[str, DayEntry] = {}
    for entries in per_alias:
        for entry in entries:
            merged[entry["date"]] = entry
    return sort_history(merged.values())


def select_history(
    primary: list[DayEntry], fallback: list[DayEntry]
) -> list[DayEntry]:
    """Primary wins wholesale; the fallback is used only when primary is empty."""
    return primary if primary else fallback
