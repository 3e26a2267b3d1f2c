# File: const.py
"""Constants for the Child Telemetry integration.

Centralizes store paths, raw field aliases, unit divisors, defaults, signal
suffixes, and user-facing advisory strings so that every engine and manager
reads producer schemas from one place.
"""

import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
DOMAIN = "child_telemetry"

LOGGER = logging.getLogger(__package__)

COORDINATOR_SUFFIX = "_coordinator"

# ------------------------------------------------------------------------------------------------
# Document Store Paths
# ------------------------------------------------------------------------------------------------
COLLECTION_CHILDREN = "children"
SUBCOLLECTION_CURRENT_APP = "currentApp"
SUBCOLLECTION_USAGE_HISTORY = "usageHistory"
SUBCOLLECTION_LOCATIONS = "locations"
SUBCOLLECTION_APPS = "apps"
COLLECTION_APP_USAGE_AGGREGATES = "appUsageAggregates"
COLLECTION_APP_USAGE_DAILY = "appUsageDaily"

# Upper bound appended to an id prefix for range queries over the id namespace
ID_RANGE_SENTINEL = "\uffff"
ID_PREFIX_SEPARATOR = "_"

# ------------------------------------------------------------------------------------------------
# Source Names (logging and diagnostics)
# ------------------------------------------------------------------------------------------------
SOURCE_CURRENT_APP_COLLECTION = "current_app_collection"
SOURCE_CHILD_DOCUMENT = "child_document"
SOURCE_USAGE_HISTORY = "usage_history"
SOURCE_DAILY_FALLBACK = "daily_fallback"
SOURCE_AGGREGATE_DOCUMENT = "aggregate_document"
SOURCE_LOCATION_PINGS = "location_pings"
SOURCE_EMBEDDED_LOCATION = "embedded_location"
SOURCE_APPS = "apps"

# Tri-state source status
SOURCE_STATUS_DATA = "data"
SOURCE_STATUS_EMPTY = "empty"
SOURCE_STATUS_ERROR = "error"

# ------------------------------------------------------------------------------------------------
# Dispatcher Signals
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_CURRENT_APP_UPDATED = "current_app_updated"
SIGNAL_SUFFIX_USAGE_HISTORY_UPDATED = "usage_history_updated"
SIGNAL_SUFFIX_AGGREGATE_UPDATED = "aggregate_updated"
SIGNAL_SUFFIX_LOCATION_UPDATED = "location_updated"
SIGNAL_SUFFIX_APPS_UPDATED = "apps_updated"

# ------------------------------------------------------------------------------------------------
# Configuration Keys and Defaults
# ------------------------------------------------------------------------------------------------
CONF_FIRST_FIX_TIMEOUT = "first_fix_timeout"
CONF_LOCATION_TRAIL_SIZE = "location_trail_size"
CONF_TOP_APPS_LIMIT = "top_apps_limit"
CONF_TOP_APPS_DISPLAY = "top_apps_display"
CONF_WEEKLY_WINDOW = "weekly_window"
CONF_MAX_DEVICE_ALIASES = "max_device_aliases"

DEFAULT_FIRST_FIX_TIMEOUT: Final = 1.5
DEFAULT_LOCATION_TRAIL_SIZE: Final = 20
DEFAULT_TOP_APPS_LIMIT: Final = 10
DEFAULT_TOP_APPS_DISPLAY: Final = 5
DEFAULT_WEEKLY_WINDOW: Final = 7
DEFAULT_MAX_DEVICE_ALIASES: Final = 2

DATA_FLOAT_PRECISION = 2

# ------------------------------------------------------------------------------------------------
# Placeholders and Labels
# ------------------------------------------------------------------------------------------------
UNKNOWN_APP_NAME = "Unknown App"
UNNAMED_APP_NAME = "Unnamed App"
DEFAULT_CHILD_NAME = "Child"
CATEGORY_UNCATEGORIZED = "Uncategorized"

APP_STATUS_ALLOWED = "allowed"
APP_STATUS_BLOCKED = "blocked"
APP_STATUS_ALL = "all"

# ------------------------------------------------------------------------------------------------
# Advisory Messages (surfaced to the UI on subscription failure)
# ------------------------------------------------------------------------------------------------
ERROR_CURRENT_APP_UNAVAILABLE = "Unable to fetch live app activity right now."
ERROR_USAGE_HISTORY_UNAVAILABLE = "Unable to load usage history right now."
ERROR_AGGREGATES_UNAVAILABLE = "Unable to load usage aggregates right now."
ERROR_LOCATION_UNAVAILABLE = "Unable to load location updates right now."
ERROR_APPS_UNAVAILABLE = (
    "Unable to load app usage data right now. Please try again shortly."
)

# ------------------------------------------------------------------------------------------------
# Raw Field Aliases
# ------------------------------------------------------------------------------------------------
# Unit divisors to canonical minutes
UNIT_MINUTES = 1
UNIT_SECONDS = 60
UNIT_MILLISECONDS = 60_000

# Current activity
FIELD_EMBEDDED_CURRENT_APP = "currentApp"
ACTIVITY_NAME_FIELDS = ("name", "appName", "title", "packageName")
ACTIVITY_PACKAGE_FIELDS = ("packageName", "bundleId", "identifier")
ACTIVITY_CATEGORY_FIELDS = ("category", "type")
ICON_URL_FIELDS = ("iconUrl", "icon", "imageUrl")
ACTIVITY_STARTED_FIELDS = (
    "startedAt",
    "startTime",
    "firstSeenAt",
    "openedAt",
    "sessionStartedAt",
)
ACTIVITY_UPDATED_FIELDS = (
    "lastUpdated",
    "updatedAt",
    "timestamp",
    "lastSeenAt",
    "sessionEndedAt",
)
ACTIVITY_DURATION_CANDIDATES = (
    ("durationMinutes", UNIT_MINUTES),
    ("totalMinutes", UNIT_MINUTES),
    ("durationSeconds", UNIT_SECONDS),
)

# Usage history
DAY_DATE_FIELDS = ("date", "day", "dateKey", "timestamp", "dayStart", "recordedAt")
DAY_TOTAL_CANDIDATES = (
    ("totalMinutes", UNIT_MINUTES),
    ("totalUsageMinutes", UNIT_MINUTES),
    ("screenTimeMinutes", UNIT_MINUTES),
    ("totalSeconds", UNIT_SECONDS),
    ("totalMillis", UNIT_MILLISECONDS),
)
DAY_HOURLY_FIELDS = (
    "hourlyBreakdown",
    "hourly",
    "hourlyUsage",
    "hourlyMinutes",
    "hours",
)
HOURLY_LABEL_FIELDS = ("hour", "label", "time")
HOURLY_MINUTES_FIELDS = ("minutes", "value", "duration", "totalMinutes")

# Fallback daily documents (keyed "<deviceId>_<YYYY-MM-DD>")
DAILY_APP_MAP_FIELDS = ("apps", "appUsage", "packages", "usageByApp")
DEVICE_ALIAS_FIELDS = ("deviceId", "androidId", "installationId")

# Generic per-app durations, shared by app inventory and daily fallbacks
APP_USAGE_CANDIDATES = (
    ("usageMinutes", UNIT_MINUTES),
    ("totalMinutes", UNIT_MINUTES),
    ("totalUsageMinutes", UNIT_MINUTES),
    ("screenTimeMinutes", UNIT_MINUTES),
    ("minutes", UNIT_MINUTES),
    ("usageSeconds", UNIT_SECONDS),
    ("totalSeconds", UNIT_SECONDS),
    ("durationSeconds", UNIT_SECONDS),
    ("usageMillis", UNIT_MILLISECONDS),
    ("durationMs", UNIT_MILLISECONDS),
    ("totalTimeInForeground", UNIT_MILLISECONDS),
)
APP_USAGE_TEXT_FIELDS = ("usage", "usageLabel")

# Aggregates
AGGREGATE_TOTAL_CANDIDATES = (
    ("totalMinutes", UNIT_MINUTES),
    ("totalUsageMinutes", UNIT_MINUTES),
    ("screenTimeMinutes", UNIT_MINUTES),
)
AGGREGATE_AVERAGE_CANDIDATES = (
    ("averageDailyMinutes", UNIT_MINUTES),
    ("avgDailyMinutes", UNIT_MINUTES),
)
AGGREGATE_UPDATED_FIELDS = ("updatedAt", "calculatedAt", "generatedAt", "timestamp")
AGGREGATE_CATEGORY_FIELDS = (
    "categoryTotals",
    "categories",
    "categoryMinutes",
    "categoriesTotals",
)
AGGREGATE_CATEGORY_MINUTES_CANDIDATES = (
    ("minutes", UNIT_MINUTES),
    ("totalMinutes", UNIT_MINUTES),
    ("value", UNIT_MINUTES),
)
AGGREGATE_TOP_APPS_FIELDS = ("topApps", "topApplications")
TOP_APP_NAME_FIELDS = ("name", "appName", "packageName")
TOP_APP_MINUTES_CANDIDATES = (
    ("minutes", UNIT_MINUTES),
    ("totalMinutes", UNIT_MINUTES),
    ("usageMinutes", UNIT_MINUTES),
    ("usageSeconds", UNIT_SECONDS),
)

# App inventory
APP_NAME_FIELDS = ("name", "appName", "applicationName", "packageName")
APP_LAST_USED_FIELDS = ("lastUsed", "lastUsedAt", "updatedAt", "timestamp", "lastActiveAt")

# Location
EMBEDDED_LOCATION_FIELDS = ("currentLocation", "latestLocation", "location")
LOCATION_TIMESTAMP_FIELDS = (
    "timestamp",
    "recordedAt",
    "createdAt",
    "updatedAt",
    "generatedAt",
)
LOCATION_PROVIDER_FIELDS = ("provider", "providerName", "locationProvider", "source")
LOCATION_SPEED_FIELDS = ("speed", "velocity")
LOCATION_HEADING_FIELDS = ("heading", "bearing")
LOCATION_ALTITUDE_FIELDS = ("altitude", "alt")
LOCATION_BATTERY_FIELDS = ("batteryLevel", "battery", "deviceBattery")
LOCATION_PROVIDER_ACCURACY_FIELDS = ("providerAccuracy", "verticalAccuracy")
LOCATION_MOCK_FIELDS = ("isMock", "mocked")
LOCATION_ACTIVITY_FIELDS = ("activityType", "activity")

# Blocked-status aliases: (field, inverted)
BLOCKED_FLAG_CANDIDATES = (
    ("isBlocked", False),
    ("blocked", False),
    ("allowed", True),
)
BLOCKED_STATUS_FIELDS = ("status", "mode")

# Category inference: first matching keyword group wins
CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Entertainment", ("youtube", "netflix", "disney")),
    ("Social Media", ("insta", "tiktok", "snap", "social")),
    ("Communication", ("message", "sms", "chat", "whats")),
    ("Productivity", ("mail", "docs", "drive")),
    ("Games", ("game",)),
    ("Education", ("school", "edu", "learn")),
    ("Tools", ("camera", "photo")),
)

# ------------------------------------------------------------------------------------------------
# Content Screening
# ------------------------------------------------------------------------------------------------
LIKELIHOOD_VERY_UNLIKELY = "VERY_UNLIKELY"
LIKELIHOOD_UNLIKELY = "UNLIKELY"
LIKELIHOOD_POSSIBLE = "POSSIBLE"
LIKELIHOOD_LIKELY = "LIKELY"
LIKELIHOOD_VERY_LIKELY = "VERY_LIKELY"
LIKELIHOOD_UNKNOWN = "UNKNOWN"

LIKELIHOOD_WEIGHTS: Final[dict[str, float]] = {
    LIKELIHOOD_VERY_LIKELY: 1.0,
    LIKELIHOOD_LIKELY: 0.7,
    LIKELIHOOD_POSSIBLE: 0.4,
    LIKELIHOOD_UNLIKELY: 0.2,
    LIKELIHOOD_VERY_UNLIKELY: 0.0,
}

SAFE_SEARCH_ADULT = "adult"
SAFE_SEARCH_VIOLENCE = "violence"
SAFE_SEARCH_RACY = "racy"
SAFE_SEARCH_MEDICAL = "medical"
SAFE_SEARCH_SPOOF = "spoof"

RISK_WEIGHT_ADULT = 0.5
RISK_WEIGHT_VIOLENCE = 0.3
RISK_WEIGHT_RACY = 0.2

RISK_THRESHOLD_HIGH = 0.8
RISK_THRESHOLD_MODERATE = 0.5
SEVERITY_HIGH = "HIGH RISK"
SEVERITY_MODERATE = "MODERATE"
SEVERITY_LOW = "LOW"

# Classification pricing: first 1000 images free, then 1.50 per 1000
CLASSIFICATION_FREE_QUOTA = 1000
CLASSIFICATION_PRICE_PER_THOUSAND = 1.5
