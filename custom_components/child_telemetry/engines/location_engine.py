"""Location Engine - Location fix normalization and trail merging.

Fixes arrive from a ping subcollection and from a "latest location" object
embedded on the child root document. Both are normalized to LocationPoint and
merged by composite identity, so re-delivering a fix (or receiving it from
both sources) never grows the trail.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import coerce_first_datetime, dt_epoch_ms, dt_now_utc
from ..utils.math_utils import is_finite_number, to_number
from .field_engine import resolve_bool, resolve_optional_number, resolve_string

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from ..type_defs import LocationPoint, RawRecord

LocationKey = tuple[str, int, float, float]


def _coordinate(value: object) -> float | None:
    if isinstance(value, str):
        return to_number(value)
    return float(value) if is_finite_number(value) else None


def normalize_location(
    point_id: str,
    record: RawRecord | None,
    received_at: datetime | None = None,
) -> LocationPoint | None:
    """Normalize one raw location fix.

    Returns None unless both latitude and longitude are numeric; a fix is never
    zeroed. Accuracy defaults to 0. A fix with no parsable timestamp is stamped
    with `received_at` (or now).
    """
    if not record:
        return None

    latitude = _coordinate(record.get("latitude"))
    longitude = _coordinate(record.get("longitude"))
    if latitude is None or longitude is None:
        return None

    accuracy = resolve_optional_number(record, ("accuracy",))
    timestamp = coerce_first_datetime(record, const.LOCATION_TIMESTAMP_FIELDS)
    provider = resolve_string(record, const.LOCATION_PROVIDER_FIELDS)

    return {
        "id": point_id,
        "latitude": latitude,
        "longitude": longitude,
        "accuracy": max(0.0, accuracy) if accuracy is not None else 0.0,
        "timestamp": timestamp or received_at or dt_now_utc(),
        "altitude": resolve_optional_number(record, const.LOCATION_ALTITUDE_FIELDS),
        "speed": resolve_optional_number(record, const.LOCATION_SPEED_FIELDS),
        "heading": resolve_optional_number(record, const.LOCATION_HEADING_FIELDS),
        "provider": provider,
        "provider_accuracy": resolve_optional_number(
            record, const.LOCATION_PROVIDER_ACCURACY_FIELDS
        ),
        "source": resolve_string(record, ("source",)) or provider,
        "is_mock": resolve_bool(record, const.LOCATION_MOCK_FIELDS),
        "battery_level": resolve_optional_number(
            record, const.LOCATION_BATTERY_FIELDS
        ),
        "activity_type": resolve_string(record, const.LOCATION_ACTIVITY_FIELDS),
    }


def embedded_location_record(root_record: RawRecord | None) -> RawRecord | None:
    """Return the first non-empty embedded location object on a root document."""
    if not root_record:
        return None
    for key in const.EMBEDDED_LOCATION_FIELDS:
        value = root_record.get(key)
        if isinstance(value, Mapping) and value:
            return value
    return None


def embedded_location_id(child_id: str) -> str:
    """Stable id for the embedded fix so repeated deliveries dedupe."""
    return f"{const.COLLECTION_CHILDREN}/{child_id}/currentLocation"


def location_key(point: LocationPoint) -> LocationKey:
    """Composite identity: (id, timestamp truncated to ms, latitude, longitude)."""
    return (
        point["id"],
        dt_epoch_ms(point["timestamp"]),
        point["latitude"],
        point["longitude"],
    )


def merge_locations(
    *sources: Iterable[LocationPoint],
    limit: int = const.DEFAULT_LOCATION_TRAIL_SIZE,
) -> list[LocationPoint]:
    """Concatenate, dedupe by location_key, sort newest first, and cap.

    The first occurrence of a key wins. Sorting is stable, so fixes sharing a
    timestamp keep source order.
    """
    seen: set[LocationKey] = set()
    merged: list[LocationPoint] = []
    for source in sources:
        for point in source:
            key = location_key(point)
            if key in seen:
                continue
            seen.add(key)
            merged.append(point)

    merged.sort(key=lambda point: dt_epoch_ms(point["timestamp"]), reverse=True)
    return merged[:limit]
