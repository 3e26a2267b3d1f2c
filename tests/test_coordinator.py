"""Tests for ChildTelemetryCoordinator - child selection and composition.

These tests run against a real Home Assistant instance (hass fixture) so the
dispatcher and event loop timers behave as in production.

These tests verify:
- Selecting a child composes telemetry, location and app snapshots
- Switching child tears down every subscription of the previous child first
- Updates tagged with a previous child are ignored
- The first-fix deadline fires on the event loop
- Options validation and the one-shot child name read
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

from homeassistant.core import HomeAssistant
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.util import dt as dt_util
from pytest_homeassistant_custom_component.common import async_fire_time_changed
import pytest
import voluptuous as vol

from custom_components.child_telemetry import const
from custom_components.child_telemetry.coordinator import ChildTelemetryCoordinator
from custom_components.child_telemetry.helpers.signal_helpers import get_event_signal
from tests.helpers import FakeStore, seed_from_yaml


@pytest.fixture
async def coordinator(hass: HomeAssistant, fake_store: FakeStore):
    """Coordinator over the fake store with both scenarios seeded."""
    seed_from_yaml(fake_store, "modern_child.yaml")
    seed_from_yaml(fake_store, "legacy_device.yaml")
    coordinator = ChildTelemetryCoordinator(hass, fake_store)
    yield coordinator
    await coordinator.async_shutdown()


# =============================================================================
# Composition
# =============================================================================


class TestComposition:
    """Snapshots built from the managers."""

    async def test_no_child(self, coordinator: ChildTelemetryCoordinator) -> None:
        data = coordinator.data

        assert data["child_id"] is None
        assert data["telemetry"]["current_app"] is None
        assert data["telemetry"]["usage_history"] == []
        assert data["location"]["awaiting_first_fix"] is True
        assert data["apps"]["summary"]["total"] == 0
        assert coordinator.managers == []

    async def test_modern_child(
        self, hass: HomeAssistant, coordinator: ChildTelemetryCoordinator
    ) -> None:
        coordinator.async_set_child("kid1")
        await hass.async_block_till_done()

        telemetry = coordinator.data["telemetry"]
        assert telemetry["current_app"]["name"] == "YouTube"
        assert len(telemetry["usage_history"]) == 3
        assert telemetry["today_total_minutes"] == 90
        assert telemetry["trend_minutes"] == -30
        assert telemetry["aggregates"]["total_minutes"] == 270
        assert [app["name"] for app in telemetry["top_apps"]] == ["YouTube", "Minecraft"]
        assert telemetry["loading"] is False

        location = coordinator.data["location"]
        assert location["current_location"]["id"] == "children/kid1/currentLocation"
        assert len(location["location_history"]) == 3
        assert coordinator.data["apps"]["summary"]["blocked"] == 1
        assert coordinator.advisories() == {}

    async def test_legacy_child(
        self, hass: HomeAssistant, coordinator: ChildTelemetryCoordinator
    ) -> None:
        coordinator.async_set_child("kid2")
        await hass.async_block_till_done()

        telemetry = coordinator.data["telemetry"]
        assert [entry["date"] for entry in telemetry["usage_history"]] == [
            "2025-04-07",
            "2025-04-06",
            "2025-04-05",
        ]
        assert telemetry["aggregates"]["total_minutes"] == 60
        assert telemetry["current_app"] is None
        assert coordinator.usage_manager.using_fallback is True

    async def test_loading_while_sources_pending(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        fake_store: FakeStore,
    ) -> None:
        fake_store.hold("children/kid1/currentApp")
        coordinator.async_set_child("kid1")
        await hass.async_block_till_done()
        assert coordinator.data["telemetry"]["loading"] is True

        fake_store.release("children/kid1/currentApp")
        await hass.async_block_till_done()
        assert coordinator.data["telemetry"]["loading"] is False

    async def test_listeners_notified_on_push(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        fake_store: FakeStore,
    ) -> None:
        coordinator.async_set_child("kid1")
        listener = MagicMock()
        remove = coordinator.async_add_listener(listener)

        fake_store.set_document(
            "children/kid1/currentApp/s9",
            {"name": "Chess", "lastUpdated": "2025-04-07T12:00:00Z"},
        )
        await hass.async_block_till_done()

        assert coordinator.data["telemetry"]["current_app"]["name"] == "Chess"
        assert listener.called
        remove()

    async def test_advisories(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        fake_store: FakeStore,
    ) -> None:
        coordinator.async_set_child("kid1")

        fake_store.fail("children/kid1/apps", RuntimeError("denied"))
        await hass.async_block_till_done()

        assert coordinator.advisories() == {"AppManager": const.ERROR_APPS_UNAVAILABLE}
        assert coordinator.data["apps"]["error"] == const.ERROR_APPS_UNAVAILABLE
        assert coordinator.data["telemetry"]["current_app"]["name"] == "YouTube"


# =============================================================================
# Child switching
# =============================================================================


class TestChildSwitching:
    """Teardown before attach, and stale updates."""

    async def test_switch_detaches_previous(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        fake_store: FakeStore,
    ) -> None:
        coordinator.async_set_child("kid1")
        old_managers = coordinator.managers

        coordinator.async_set_child("kid2")
        await hass.async_block_till_done()

        assert all(not manager.attached for manager in old_managers)
        assert not any(
            s.active for s in fake_store.subscriptions if "kid1" in s.path
        )
        assert coordinator.data["child_id"] == "kid2"
        assert coordinator.data["telemetry"]["current_app"] is None

    async def test_late_store_delivery_ignored(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        fake_store: FakeStore,
    ) -> None:
        coordinator.async_set_child("kid1")
        in_flight = fake_store.active_for("children/kid1/currentApp")[0]
        coordinator.async_set_child("kid2")
        await hass.async_block_till_done()
        before = coordinator.data

        in_flight.on_next([])
        await hass.async_block_till_done()

        assert coordinator.data is before

    async def test_stale_signal_ignored(
        self, hass: HomeAssistant, coordinator: ChildTelemetryCoordinator
    ) -> None:
        coordinator.async_set_child("kid1")
        coordinator.async_set_child("kid2")
        await hass.async_block_till_done()
        before = coordinator.data

        async_dispatcher_send(
            hass,
            get_event_signal(coordinator.scope_id, const.SIGNAL_SUFFIX_APPS_UPDATED),
            {"child_id": "kid1"},
        )
        await hass.async_block_till_done()

        assert coordinator.data is before

    async def test_same_child_is_noop(
        self, coordinator: ChildTelemetryCoordinator
    ) -> None:
        coordinator.async_set_child("kid1")
        managers = coordinator.managers

        coordinator.async_set_child("kid1")

        assert coordinator.managers == managers

    async def test_clear_child(
        self, coordinator: ChildTelemetryCoordinator, fake_store: FakeStore
    ) -> None:
        coordinator.async_set_child("kid1")

        coordinator.async_set_child(None)

        assert fake_store.active_count == 0
        assert coordinator.data["child_id"] is None

    async def test_shutdown(
        self, coordinator: ChildTelemetryCoordinator, fake_store: FakeStore
    ) -> None:
        coordinator.async_set_child("kid1")

        await coordinator.async_shutdown()

        assert fake_store.active_count == 0
        assert coordinator.child_id is None


# =============================================================================
# First-fix deadline
# =============================================================================


async def test_first_fix_deadline(
    hass: HomeAssistant, coordinator: ChildTelemetryCoordinator, fake_store: FakeStore
) -> None:
    """With no fix ever reported, loading stops after the deadline."""
    fake_store.hold("children/kid9/locations")
    fake_store.hold("children/kid9")
    coordinator.async_set_child("kid9")
    await hass.async_block_till_done()
    assert coordinator.data["location"]["loading"] is True

    async_fire_time_changed(hass, dt_util.utcnow() + timedelta(seconds=2))
    await hass.async_block_till_done()

    location = coordinator.data["location"]
    assert location["loading"] is False
    assert location["awaiting_first_fix"] is True
    assert location["error"] is None


# =============================================================================
# Options and child name
# =============================================================================


class TestOptionsAndName:
    """Option validation and the one-shot name read."""

    async def test_option_defaults(self, coordinator: ChildTelemetryCoordinator) -> None:
        assert coordinator.options == {
            const.CONF_FIRST_FIX_TIMEOUT: 1.5,
            const.CONF_LOCATION_TRAIL_SIZE: 20,
            const.CONF_TOP_APPS_LIMIT: 10,
            const.CONF_TOP_APPS_DISPLAY: 5,
            const.CONF_WEEKLY_WINDOW: 7,
            const.CONF_MAX_DEVICE_ALIASES: 2,
        }

    async def test_options_coerced(self, hass: HomeAssistant, fake_store: FakeStore) -> None:
        coordinator = ChildTelemetryCoordinator(
            hass, fake_store, {const.CONF_LOCATION_TRAIL_SIZE: "5"}
        )
        assert coordinator.options[const.CONF_LOCATION_TRAIL_SIZE] == 5
        await coordinator.async_shutdown()

    @pytest.mark.parametrize(
        "options",
        [
            {const.CONF_FIRST_FIX_TIMEOUT: -1},
            {const.CONF_LOCATION_TRAIL_SIZE: 0},
            {"unknown_option": 1},
        ],
    )
    async def test_invalid_options(
        self, hass: HomeAssistant, fake_store: FakeStore, options: dict
    ) -> None:
        with pytest.raises(vol.Invalid):
            ChildTelemetryCoordinator(hass, fake_store, options)

    async def test_child_name(self, coordinator: ChildTelemetryCoordinator) -> None:
        assert await coordinator.async_fetch_child_name("kid1") == "Zoë"
        assert await coordinator.async_fetch_child_name("nobody") == const.DEFAULT_CHILD_NAME

    async def test_child_name_read_failure(
        self, coordinator: ChildTelemetryCoordinator, fake_store: FakeStore
    ) -> None:
        fake_store.get_error = RuntimeError("offline")
        assert await coordinator.async_fetch_child_name("kid1") == const.DEFAULT_CHILD_NAME
