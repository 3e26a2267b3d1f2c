"""Aggregate Engine - Per-app and per-category usage totals.

Normalizes precomputed aggregate documents and, for the fallback path,
re-derives an aggregate from the per-app map inside a legacy daily document.

Total minutes come from exactly one place: the precomputed document's own
total, or the sum of per-app minutes in the derived path. They are never
added together.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import coerce_first_datetime, dt_date_key_from_id
from ..utils.math_utils import to_number
from .field_engine import (
    infer_category,
    resolve_minutes,
    resolve_number,
    resolve_string,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import CategoryTotal, RawRecord, TopApp, UsageAggregate


# ────────────────────────────────────────────────────────────────
# Precomputed Aggregates
# ────────────────────────────────────────────────────────────────


def _raw_category_totals(record: RawRecord) -> Any:
    # Lists only count under the first two names; maps under any of them
    for key in const.AGGREGATE_CATEGORY_FIELDS[:2]:
        value = record.get(key)
        if isinstance(value, list):
            return value
    for key in const.AGGREGATE_CATEGORY_FIELDS:
        value = record.get(key)
        if isinstance(value, Mapping) and value:
            return value
    return {}


def normalize_category_totals(raw: Any) -> list[CategoryTotal]:
    """Normalize category totals from list-of-object or map-by-name shape.

    Examples:
        [{"category": "Games", "minutes": 30}] → [{"category": "Games", "minutes": 30}]
        {"Games": "30", "Social": 12} → two entries
    """
    totals: list[CategoryTotal] = []

    if isinstance(raw, list):
        for entry in raw:
            if not isinstance(entry, Mapping):
                continue
            label = resolve_string(entry, ("category", "name"))
            minutes = resolve_number(entry, const.AGGREGATE_CATEGORY_MINUTES_CANDIDATES)
            if not label or minutes is None:
                continue
            totals.append({"category": label, "minutes": max(0.0, minutes)})
    elif isinstance(raw, Mapping):
        for label, value in raw.items():
            minutes = to_number(value)
            if minutes is None:
                continue
            totals.append({"category": str(label), "minutes": max(0.0, minutes)})

    return _unique_categories(totals)


def _unique_categories(totals: Iterable[CategoryTotal]) -> list[CategoryTotal]:
    """Keep one total per category; a repeated category keeps the first one."""
    seen: dict[str, CategoryTotal] = {}
    for total in totals:
        seen.setdefault(total["category"], total)
    return list(seen.values())


def normalize_top_app(index: int, raw: Any) -> TopApp | None:
    """Normalize one top-app entry; entries with no name or minutes are dropped."""
    if not isinstance(raw, Mapping):
        return None

    name = resolve_string(raw, const.TOP_APP_NAME_FIELDS)
    minutes = resolve_number(raw, const.TOP_APP_MINUTES_CANDIDATES)
    if not name or minutes is None:
        return None

    package_name = resolve_string(raw, const.ACTIVITY_PACKAGE_FIELDS[:2])
    return {
        "id": resolve_string(raw, ("id", "packageName")) or str(index),
        "name": name,
        "package_name": package_name,
        "minutes": max(0.0, minutes),
        "category": resolve_string(raw, const.ACTIVITY_CATEGORY_FIELDS),
        "icon_url": resolve_string(raw, const.ICON_URL_FIELDS[:2]),
    }


def normalize_top_apps(raw: Any) -> list[TopApp]:
    """Normalize top apps from a list, or from a map keyed by app name."""
    if isinstance(raw, Mapping):
        items: list[Any] = []
        for name, value in raw.items():
            if isinstance(value, Mapping):
                items.append({"name": name, **value})
            else:
                items.append({"name": name, "minutes": to_number(value)})
        raw = items
    if not isinstance(raw, list):
        return []

    return [
        app
        for app in (normalize_top_app(index, entry) for index, entry in enumerate(raw))
        if app is not None
    ]


def normalize_aggregate(record: RawRecord) -> UsageAggregate:
    """Normalize a precomputed aggregate document.

    The total is taken verbatim from the first positive total field, else 0.
    """
    total = resolve_number(record, const.AGGREGATE_TOTAL_CANDIDATES)
    average = resolve_number(record, const.AGGREGATE_AVERAGE_CANDIDATES)

    raw_top_apps: Any = []
    for key in const.AGGREGATE_TOP_APPS_FIELDS:
        if record.get(key):
            raw_top_apps = record[key]
            break

    return {
        "total_minutes": total if total and total > 0 else 0.0,
        "average_daily_minutes": average if average else None,
        "category_totals": normalize_category_totals(_raw_category_totals(record)),
        "top_apps": normalize_top_apps(raw_top_apps),
        "updated_at": coerce_first_datetime(record, const.AGGREGATE_UPDATED_FIELDS),
    }


# ────────────────────────────────────────────────────────────────
# Derived Aggregates (fallback)
# ────────────────────────────────────────────────────────────────


def _daily_app_entries(record: RawRecord) -> Iterable[tuple[str, Mapping[str, Any]]]:
    for key in const.DAILY_APP_MAP_FIELDS:
        raw = record.get(key)
        if isinstance(raw, Mapping):
            for app_key, value in raw.items():
                if isinstance(value, Mapping):
                    yield str(app_key), value
                else:
                    yield str(app_key), {"minutes": value}
            return
        if isinstance(raw, list):
            for index, value in enumerate(raw):
                if isinstance(value, Mapping):
                    yield str(value.get("packageName") or index), value
            return


def derive_aggregate_from_daily(
    doc_id: str,
    record: RawRecord,
    limit: int = const.DEFAULT_TOP_APPS_LIMIT,
) -> UsageAggregate:
    """Derive an aggregate from one legacy daily document's per-app map.

    Each app contributes its resolved minutes to its category and to the top
    apps ranking. The total is the sum of per-app minutes only; any root
    duration field on the document is ignored here.
    """
    by_category: dict[str, float] = {}
    top_apps: list[TopApp] = []
    total = 0.0

    for app_key, entry in _daily_app_entries(record):
        minutes = resolve_minutes(entry, const.APP_USAGE_CANDIDATES)
        if minutes <= 0:
            continue

        package_name = resolve_string(entry, ("packageName",)) or (
            app_key if "." in app_key else None
        )
        name = resolve_string(entry, const.APP_NAME_FIELDS) or app_key
        category = infer_category(entry, name, package_name)

        total += minutes
        by_category[category] = by_category.get(category, 0.0) + minutes
        top_apps.append(
            {
                "id": package_name or app_key,
                "name": name,
                "package_name": package_name,
                "minutes": minutes,
                "category": category,
            }
        )

    top_apps.sort(key=lambda app: app["minutes"], reverse=True)
    category_totals: list[CategoryTotal] = sorted(
        ({"category": name, "minutes": minutes} for name, minutes in by_category.items()),
        key=lambda item: item["minutes"],
        reverse=True,
    )

    return {
        "total_minutes": total,
        "average_daily_minutes": None,
        "category_totals": category_totals,
        "top_apps": top_apps[:limit],
        "updated_at": coerce_first_datetime(record, const.AGGREGATE_UPDATED_FIELDS),
        "day_id": doc_id,
    }


def _recency_key(aggregate: UsageAggregate) -> tuple[int, float, str]:
    updated = aggregate["updated_at"]
    if updated is not None:
        return (1, updated.timestamp(), "")
    return (0, 0.0, dt_date_key_from_id(aggregate.get("day_id") or "") or "")


def pick_newer_aggregate(
    candidate: UsageAggregate | None, incumbent: UsageAggregate | None
) -> UsageAggregate | None:
    """Keep the aggregate with the most recent updated_at, else the newest day id.

    Candidates with an updated_at always outrank those without. Ties keep the
    incumbent.
    """
    if candidate is None:
        return incumbent
    if incumbent is None:
        return candidate
    return candidate if _recency_key(candidate) > _recency_key(incumbent) else incumbent


def newest_aggregate(
    candidates: Iterable[UsageAggregate | None],
) -> UsageAggregate | None:
    """Reduce alias fallback aggregates to the most recent one."""
    winner: UsageAggregate | None = None
    for candidate in candidates:
        winner = pick_newer_aggregate(candidate, winner)
    return winner
