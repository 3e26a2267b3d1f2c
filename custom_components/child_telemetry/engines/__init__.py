"""Engine modules for Child Telemetry integration.

Contains pure normalization and reconciliation engines:
- field_engine: Tolerant typed lookups over loosely-shaped records
- activity_engine: Current app normalization and freshest-wins merge
- usage_engine: Per-day usage from primary and legacy daily documents
- aggregate_engine: Category and top-app totals, precomputed or derived
- location_engine: Location fix normalization and trail merge
- metrics_engine: Dashboard metrics over reconciled state
- content_engine: Safe-search risk scoring
- app_engine: App inventory normalization, filtering, and counts
"""

# Use relative imports within package to avoid mypy module resolution issues
from .activity_engine import freshest_of, normalize_current_app, pick_fresher
from .aggregate_engine import (
    derive_aggregate_from_daily,
    normalize_aggregate,
    pick_newer_aggregate,
)
from .app_engine import filter_apps, normalize_app, sort_apps, summarize_apps
from .content_engine import estimate_monthly_cost, score_safe_search, severity_label
from .field_engine import infer_category, resolve_blocked, resolve_minutes
from .location_engine import merge_locations, normalize_location
from .metrics_engine import build_telemetry_snapshot
from .usage_engine import (
    extract_device_aliases,
    merge_alias_days,
    normalize_day_entry,
    normalize_fallback_day,
)

__all__ = [
    "build_telemetry_snapshot",
    "derive_aggregate_from_daily",
    "estimate_monthly_cost",
    "extract_device_aliases",
    "filter_apps",
    "freshest_of",
    "infer_category",
    "merge_alias_days",
    "merge_locations",
    "normalize_aggregate",
    "normalize_app",
    "normalize_current_app",
    "normalize_day_entry",
    "normalize_fallback_day",
    "normalize_location",
    "pick_fresher",
    "pick_newer_aggregate",
    "resolve_blocked",
    "resolve_minutes",
    "score_safe_search",
    "severity_label",
    "sort_apps",
    "summarize_apps",
]
