"""Metrics Engine - Presentation metrics over reconciled usage state.

Every function here is pure and synchronous: it takes already reconciled
history (sorted newest first) and aggregates and returns chart-ready values.
Nothing is cached; the coordinator recomputes on every update.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import dt_today_iso
from ..utils.math_utils import minutes_to_hours

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..type_defs import (
        CategoryTotal,
        DayEntry,
        NormalizedActivity,
        TelemetrySnapshot,
        TopApp,
        UsageAggregate,
        WeeklyUsagePoint,
    )


# ────────────────────────────────────────────────────────────────
# Day Selection
# ────────────────────────────────────────────────────────────────


def find_today_entry(
    history: Sequence[DayEntry], today_key: str | None = None
) -> DayEntry | None:
    """Return the entry for today's date key, else the most recent entry.

    Args:
        history: DayEntries sorted newest first
        today_key: "YYYY-MM-DD"; defaults to today in the configured timezone
    """
    if not history:
        return None
    key = today_key or dt_today_iso()
    for entry in history:
        if entry["date"] == key:
            return entry
    return history[0]


def find_yesterday_entry(
    history: Sequence[DayEntry], today_entry: DayEntry | None
) -> DayEntry | None:
    """Return the entry preceding `today_entry` in the sorted history.

    With fewer than two entries, any entry with a different date is used
    (so a single-entry history has no yesterday).
    """
    if len(history) < 2:
        for entry in history:
            if today_entry is None or entry["date"] != today_entry["date"]:
                return entry
        return None

    if history[0] is today_entry:
        return history[1]
    return history[0]


def trend_minutes(today: DayEntry | None, yesterday: DayEntry | None) -> float:
    """Today minus yesterday in minutes. May be negative."""
    return _total(today) - _total(yesterday)


def _total(entry: DayEntry | None) -> float:
    return entry["total_minutes"] if entry else 0.0


# ────────────────────────────────────────────────────────────────
# Rollups
# ────────────────────────────────────────────────────────────────


def weekly_usage(
    history: Sequence[DayEntry], window: int = const.DEFAULT_WEEKLY_WINDOW
) -> list[WeeklyUsagePoint]:
    """The `window` most recent days, oldest first, with hours to 2 decimals."""
    return [
        {
            "label": entry["day_label"],
            "hours": minutes_to_hours(entry["total_minutes"]),
            "minutes": entry["total_minutes"],
        }
        for entry in reversed(history[:window])
    ]


def longest_day(
    history: Sequence[DayEntry], window: int = const.DEFAULT_WEEKLY_WINDOW
) -> DayEntry | None:
    """Arg-max by total_minutes over the most recent `window` days.

    Ties keep the more recent day. None for an empty history.
    """
    longest: DayEntry | None = None
    for entry in history[:window]:
        if longest is None or entry["total_minutes"] > longest["total_minutes"]:
            longest = entry
    return longest


def category_chart(aggregate: UsageAggregate | None) -> list[CategoryTotal]:
    """Category totals verbatim from the reconciled aggregate."""
    if not aggregate:
        return []
    return list(aggregate["category_totals"])


def top_apps(
    aggregate: UsageAggregate | None, limit: int = const.DEFAULT_TOP_APPS_DISPLAY
) -> list[TopApp]:
    """First `limit` top apps; the aggregate already ranks them."""
    if not aggregate:
        return []
    return list(aggregate["top_apps"][:limit])


# ────────────────────────────────────────────────────────────────
# Snapshot
# ────────────────────────────────────────────────────────────────


def build_telemetry_snapshot(
    current_app: NormalizedActivity | None,
    history: Sequence[DayEntry],
    aggregate: UsageAggregate | None,
    *,
    loading: bool = False,
    today_key: str | None = None,
    weekly_window: int = const.DEFAULT_WEEKLY_WINDOW,
    top_apps_display: int = const.DEFAULT_TOP_APPS_DISPLAY,
) -> TelemetrySnapshot:
    """Combine reconciled state into the dashboard's telemetry view."""
    today = find_today_entry(history, today_key)
    yesterday = find_yesterday_entry(history, today)
    weekly = weekly_usage(history, weekly_window)

    return {
        "current_app": current_app,
        "usage_history": list(history),
        "aggregates": aggregate,
        "hourly_today": list(today["hourly"]) if today else [],
        "weekly_usage": weekly,
        "weekly_total_minutes": sum(point["minutes"] for point in weekly),
        "today_total_minutes": _total(today),
        "yesterday_total_minutes": _total(yesterday),
        "trend_minutes": trend_minutes(today, yesterday),
        "category_chart": category_chart(aggregate),
        "top_apps": top_apps(aggregate, top_apps_display),
        "longest_day": longest_day(history, weekly_window),
        "loading": loading,
    }
