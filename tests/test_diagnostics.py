"""Tests for coordinator diagnostics."""

from __future__ import annotations

import json

from homeassistant.core import HomeAssistant

from custom_components.child_telemetry import const
from custom_components.child_telemetry.coordinator import ChildTelemetryCoordinator
from custom_components.child_telemetry.diagnostics import (
    async_get_coordinator_diagnostics,
)
from tests.helpers import FakeStore, seed_from_yaml


async def test_diagnostics_legacy_child(hass: HomeAssistant, fake_store: FakeStore) -> None:
    """Diagnostics report per-source status without coordinates or app names."""
    seed_from_yaml(fake_store, "legacy_device.yaml")
    coordinator = ChildTelemetryCoordinator(hass, fake_store)
    coordinator.async_set_child("kid2")
    fake_store.fail("children/kid2/apps", RuntimeError("denied"))
    await hass.async_block_till_done()

    result = await async_get_coordinator_diagnostics(hass, coordinator)

    assert result["child_id"] == "kid2"
    assert set(result["sources"]) == {
        "ActivityManager",
        "UsageManager",
        "AggregateManager",
        "LocationManager",
        "AppManager",
    }
    assert result["sources"]["UsageManager"]["status"] == const.SOURCE_STATUS_DATA
    assert result["sources"]["UsageManager"]["details"]["aliases"] == ["kid2", "tablet-1"]
    assert result["sources"]["AppManager"]["status"] == const.SOURCE_STATUS_ERROR
    assert result["summary"] == {
        "has_current_app": False,
        "history_days": 3,
        "history_from_fallback": True,
        "has_aggregate": True,
        "location_points": 0,
        "awaiting_first_fix": True,
        "apps": 0,
    }
    assert result["advisories"] == {"AppManager": const.ERROR_APPS_UNAVAILABLE}
    json.dumps(result)

    await coordinator.async_shutdown()


async def test_diagnostics_without_child(hass: HomeAssistant, fake_store: FakeStore) -> None:
    coordinator = ChildTelemetryCoordinator(hass, fake_store)

    result = await async_get_coordinator_diagnostics(hass, coordinator)

    assert result["child_id"] is None
    assert result["sources"] == {}
    assert result["summary"]["history_from_fallback"] is False

    await coordinator.async_shutdown()
