"""App Engine - Installed app inventory normalization.

ARCHITECTURE: Pure logic engine with NO Home Assistant dependencies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import coerce_first_datetime
from ..utils.math_utils import format_minutes
from .field_engine import (
    infer_category,
    resolve_blocked,
    resolve_minutes_with_text,
    resolve_string,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ..type_defs import AppSummary, NormalizedActivity, NormalizedApp, RawRecord


def normalize_app(doc_id: str, record: RawRecord) -> NormalizedApp:
    """Normalize one app document.

    Usage comes from the first numeric minutes/seconds/ms field, formatted as
    "1h 30m"; a free-text `usage`/`usageLabel` is parsed for minutes and its
    text kept as the label.

    Example:
        normalize_app("a1", {"usageSeconds": 5400})
        → usage_minutes 90.0, usage_label "1h 30m"
    """
    name = resolve_string(record, const.APP_NAME_FIELDS) or const.UNNAMED_APP_NAME
    package_name = record.get("packageName")
    if not isinstance(package_name, str):
        package_name = None

    minutes, label = resolve_minutes_with_text(
        record, const.APP_USAGE_CANDIDATES, const.APP_USAGE_TEXT_FIELDS
    )
    is_blocked = resolve_blocked(record)

    return {
        "id": doc_id,
        "name": name,
        "package_name": package_name,
        "category": infer_category(record, name, package_name),
        "usage_minutes": minutes,
        "usage_label": label if label is not None else format_minutes(minutes),
        "is_blocked": is_blocked,
        "status": const.APP_STATUS_BLOCKED if is_blocked else const.APP_STATUS_ALLOWED,
        "last_used": coerce_first_datetime(record, const.APP_LAST_USED_FIELDS[:3])
        or coerce_first_datetime(record, const.APP_LAST_USED_FIELDS[3:]),
    }


def sort_apps(apps: Iterable[NormalizedApp]) -> list[NormalizedApp]:
    """Most used first."""
    return sorted(apps, key=lambda app: app["usage_minutes"], reverse=True)


def filter_apps(
    apps: Sequence[NormalizedApp],
    term: str = "",
    status: str = const.APP_STATUS_ALL,
) -> list[NormalizedApp]:
    """Filter by a case-insensitive search term and an allowed/blocked status.

    The term matches against name, package name, and category.
    """
    needle = term.strip().lower()

    def _matches(app: NormalizedApp) -> bool:
        if needle and not (
            needle in app["name"].lower()
            or needle in (app["package_name"] or "").lower()
            or needle in app["category"].lower()
        ):
            return False
        if status == const.APP_STATUS_BLOCKED:
            return app["is_blocked"]
        if status == const.APP_STATUS_ALLOWED:
            return not app["is_blocked"]
        return True

    return [app for app in apps if _matches(app)]


def summarize_apps(apps: Sequence[NormalizedApp]) -> AppSummary:
    """Total, blocked, and allowed counts plus summed usage."""
    blocked = sum(1 for app in apps if app["is_blocked"])
    return {
        "total": len(apps),
        "blocked": blocked,
        "allowed": len(apps) - blocked,
        "total_usage_minutes": sum(app["usage_minutes"] for app in apps),
    }


def is_active_app(app: NormalizedApp, current_app: NormalizedActivity | None) -> bool:
    """Whether `app` is the child's current foreground app.

    Matches on package name, then on display name, case-insensitively.
    """
    if current_app is None:
        return False

    active_package = (current_app["package_name"] or "").lower()
    if active_package and (app["package_name"] or "").lower() == active_package:
        return True

    active_name = (current_app["name"] or "").lower()
    return bool(active_name) and app["name"].lower() == active_name
