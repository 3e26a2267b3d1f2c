"""Unit tests for aggregate_engine - precomputed and derived aggregates."""

from __future__ import annotations

from datetime import UTC, datetime

from custom_components.child_telemetry.engines.aggregate_engine import (
    derive_aggregate_from_daily,
    newest_aggregate,
    normalize_aggregate,
    normalize_category_totals,
    normalize_top_apps,
    pick_newer_aggregate,
)

LEGACY_DAY = {
    "totalMinutes": 999,
    "apps": {
        "com.google.android.youtube": {"name": "YouTube", "usageMinutes": 50},
        "com.instagram.android": {"name": "Instagram", "usageSeconds": 600},
        "com.idle.app": {"usageMinutes": 0},
    },
}


# =============================================================================
# Precomputed documents
# =============================================================================


class TestNormalizeAggregate:
    """Tests for the precomputed aggregate path."""

    def test_full_document(self) -> None:
        aggregate = normalize_aggregate(
            {
                "totalMinutes": 270,
                "averageDailyMinutes": 90,
                "updatedAt": "2025-04-07T10:00:00Z",
                "categories": [
                    {"name": "Games", "totalMinutes": 30},
                    {"category": "Games", "minutes": 5},
                    {"category": "Video", "minutes": -3},
                ],
                "topApplications": [
                    {"appName": "Chess", "packageName": "com.chess", "usageSeconds": 600},
                    {"name": "NoMinutes"},
                ],
            }
        )

        assert aggregate["total_minutes"] == 270
        assert aggregate["average_daily_minutes"] == 90
        assert aggregate["updated_at"] == datetime(2025, 4, 7, 10, tzinfo=UTC)
        assert aggregate["category_totals"] == [
            {"category": "Games", "minutes": 30.0},
            {"category": "Video", "minutes": 0.0},
        ]
        assert len(aggregate["top_apps"]) == 1
        chess = aggregate["top_apps"][0]
        assert chess["id"] == "com.chess"
        assert chess["name"] == "Chess"
        assert chess["minutes"] == 10

    def test_total_taken_verbatim_or_zero(self) -> None:
        """The total is never recomputed from categories or top apps."""
        record = {"categoryTotals": [{"category": "Games", "minutes": 40}]}
        assert normalize_aggregate(record)["total_minutes"] == 0
        assert normalize_aggregate({"totalMinutes": -5})["total_minutes"] == 0
        assert normalize_aggregate({"screenTimeMinutes": 12})["total_minutes"] == 12

    def test_missing_average(self) -> None:
        assert normalize_aggregate({})["average_daily_minutes"] is None

    def test_category_map_shape(self) -> None:
        totals = normalize_category_totals({"Games": "30", "Social": 12, "Bad": None})
        assert totals == [
            {"category": "Games", "minutes": 30.0},
            {"category": "Social", "minutes": 12.0},
        ]

    def test_category_map_under_legacy_name(self) -> None:
        aggregate = normalize_aggregate({"categoryMinutes": {"Games": 10}})
        assert aggregate["category_totals"] == [{"category": "Games", "minutes": 10.0}]

    def test_top_apps_map_shape(self) -> None:
        apps = normalize_top_apps({"YouTube": 30, "Chess": {"minutes": 10}})
        assert [(app["id"], app["name"], app["minutes"]) for app in apps] == [
            ("0", "YouTube", 30.0),
            ("1", "Chess", 10.0),
        ]

    def test_top_apps_garbage(self) -> None:
        assert normalize_top_apps("YouTube") == []


# =============================================================================
# Derived aggregates
# =============================================================================


class TestDeriveAggregate:
    """Aggregates re-derived from a legacy daily document."""

    def test_derived_totals(self) -> None:
        aggregate = derive_aggregate_from_daily("tablet-1_2025-04-07", LEGACY_DAY)

        assert aggregate["total_minutes"] == 60
        assert aggregate["day_id"] == "tablet-1_2025-04-07"
        assert aggregate["average_daily_minutes"] is None
        assert aggregate["category_totals"] == [
            {"category": "Entertainment", "minutes": 50.0},
            {"category": "Social Media", "minutes": 10.0},
        ]
        assert [app["id"] for app in aggregate["top_apps"]] == [
            "com.google.android.youtube",
            "com.instagram.android",
        ]
        assert aggregate["top_apps"][0]["name"] == "YouTube"

    def test_limit_truncates_apps_not_total(self) -> None:
        aggregate = derive_aggregate_from_daily("d_2025-04-07", LEGACY_DAY, limit=1)
        assert len(aggregate["top_apps"]) == 1
        assert aggregate["total_minutes"] == 60

    def test_bare_number_values(self) -> None:
        aggregate = derive_aggregate_from_daily("d_2025-04-07", {"apps": {"Chess": 12}})
        app = aggregate["top_apps"][0]
        assert app["id"] == "Chess"
        assert app["package_name"] is None
        assert app["minutes"] == 12
        assert app["category"] == "Uncategorized"

    def test_no_apps(self) -> None:
        aggregate = derive_aggregate_from_daily("d_2025-04-07", {"totalMinutes": 20})
        assert aggregate["total_minutes"] == 0
        assert aggregate["top_apps"] == []


# =============================================================================
# Recency
# =============================================================================


class TestPickNewerAggregate:
    """Most recent aggregate wins across aliases."""

    def test_updated_at_outranks_day_id(self) -> None:
        stamped = derive_aggregate_from_daily("a_2025-04-01", {"updatedAt": "2025-04-01T00:00:00Z"})
        unstamped = derive_aggregate_from_daily("b_2025-04-08", {})
        assert pick_newer_aggregate(stamped, unstamped) is stamped
        assert pick_newer_aggregate(unstamped, stamped) is stamped

    def test_newest_day_id(self) -> None:
        older = derive_aggregate_from_daily("a_2025-04-06", {})
        newer = derive_aggregate_from_daily("b_2025-04-07", {})
        assert newest_aggregate([older, None, newer]) is newer
        assert newest_aggregate([newer, older]) is newer

    def test_tie_keeps_incumbent(self) -> None:
        first = derive_aggregate_from_daily("a_2025-04-07", {})
        second = derive_aggregate_from_daily("b_2025-04-07", {})
        assert pick_newer_aggregate(second, first) is first

    def test_empty(self) -> None:
        assert newest_aggregate([]) is None
        assert pick_newer_aggregate(None, None) is None
