"""Type definitions for Child Telemetry data structures.

Normalized records are TypedDicts: they are built fresh by the engines on
every update and replaced wholesale, never mutated in place. Raw records from
the document store stay `Mapping[str, Any]` because their shape is not
guaranteed by any producer.

IMPORTANT: This file must NOT import from coordinator.py or the managers to
avoid circular dependencies. Only typing machinery is imported here.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime tolerance (type checks,
.get() lookups, fallbacks) lives in the engines.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

ChildId = str
DateKey = str  # "2026-01-18"
RawRecord = Mapping[str, Any]
SourceStatus = Literal["data", "empty", "error"]
AppStatus = Literal["allowed", "blocked"]


# =============================================================================
# Current Activity
# =============================================================================


class NormalizedActivity(TypedDict):
    """Foreground app reported by either current-activity source.

    `name` is never empty; it falls back to a placeholder.
    """

    id: str | None
    name: str
    package_name: str | None
    category: str | None
    icon_url: str | None
    started_at: datetime | None
    last_updated: datetime | None
    duration_minutes: float | None


# =============================================================================
# Usage History
# =============================================================================


class HourlyPoint(TypedDict):
    """Minutes used during one hour of a day."""

    hour_label: str  # "00".."23"
    minutes: float


class DayEntry(TypedDict):
    """Canonical usage for one calendar date."""

    id: str
    date: DateKey
    total_minutes: float
    hourly: list[HourlyPoint]
    day_label: str  # "Mon"
    date_value: int  # epoch milliseconds


# =============================================================================
# Aggregates
# =============================================================================


class CategoryTotal(TypedDict):
    """Minutes attributed to one app category."""

    category: str
    minutes: float


class TopApp(TypedDict):
    """One app in a top-N usage ranking."""

    id: str
    name: str
    package_name: str | None
    minutes: float
    category: str | None
    icon_url: NotRequired[str | None]


class UsageAggregate(TypedDict):
    """Per-app and per-category totals.

    `total_minutes` is either verbatim from a precomputed aggregate or the sum
    of per-app minutes in the derived path, never both.
    """

    total_minutes: float
    average_daily_minutes: float | None
    category_totals: list[CategoryTotal]
    top_apps: list[TopApp]
    updated_at: datetime | None
    day_id: NotRequired[str | None]  # Set only when derived from a daily doc


# =============================================================================
# Location
# =============================================================================


class LocationPoint(TypedDict):
    """One location fix. Latitude and longitude are always numeric."""

    id: str
    latitude: float
    longitude: float
    accuracy: float
    timestamp: datetime
    altitude: float | None
    speed: float | None
    heading: float | None
    provider: str | None
    provider_accuracy: float | None
    source: str | None
    is_mock: bool | None
    battery_level: float | None  # [0, 1] or raw percent, as reported
    activity_type: str | None


# =============================================================================
# App Inventory
# =============================================================================


class NormalizedApp(TypedDict):
    """Installed app with resolved usage and block status."""

    id: str
    name: str
    package_name: str | None
    category: str
    usage_minutes: float
    usage_label: str
    is_blocked: bool
    status: AppStatus
    last_used: datetime | None


class AppSummary(TypedDict):
    """Counts shown above the app inventory."""

    total: int
    blocked: int
    allowed: int
    total_usage_minutes: float


# =============================================================================
# Content Screening
# =============================================================================


class ContentAnalysis(TypedDict):
    """Risk assessment derived from a five-label likelihood vector."""

    is_adult: bool
    is_violent: bool
    is_racy: bool
    adult: str
    violence: str
    racy: str
    medical: str
    spoof: str
    risk_score: float
    should_block: bool


# =============================================================================
# Presentation Snapshots (derived, never stored)
# =============================================================================


class WeeklyUsagePoint(TypedDict):
    """One bar of the weekly chart, oldest first."""

    label: str
    hours: float
    minutes: float


class TelemetrySnapshot(TypedDict):
    """Reconciled usage view for one child."""

    current_app: NormalizedActivity | None
    usage_history: list[DayEntry]
    aggregates: UsageAggregate | None
    hourly_today: list[HourlyPoint]
    weekly_usage: list[WeeklyUsagePoint]
    weekly_total_minutes: float
    today_total_minutes: float
    yesterday_total_minutes: float
    trend_minutes: float
    category_chart: list[CategoryTotal]
    top_apps: list[TopApp]
    longest_day: DayEntry | None
    loading: bool


class LocationSnapshot(TypedDict):
    """Reconciled location view for one child."""

    current_location: LocationPoint | None
    location_history: list[LocationPoint]
    loading: bool
    awaiting_first_fix: bool
    error: str | None


class AppInventorySnapshot(TypedDict):
    """Normalized app list for one child."""

    apps: list[NormalizedApp]
    summary: AppSummary
    loading: bool
    error: str | None


class ChildTelemetryData(TypedDict):
    """Coordinator data for the currently selected child."""

    child_id: ChildId | None
    telemetry: TelemetrySnapshot
    location: LocationSnapshot
    apps: AppInventorySnapshot


class SourceDiagnostics(TypedDict):
    """Per-manager status used by diagnostics."""

    status: SourceStatus
    error: str | None
    details: dict[str, Any]
