# File: coordinator.py
"""Coordinator for the Child Telemetry integration.

Owns the managers for exactly one child at a time and composes their state
into read-only ChildTelemetryData snapshots. The coordinator never polls:
managers are pushed updates by the document store and announce changes over
the dispatcher, and every announcement rebuilds the snapshot.

Switching child detaches every subscription and timer of the previous child
synchronously, before anything is attached for the new one.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .engines.app_engine import summarize_apps
from .engines.field_engine import resolve_string
from .engines.metrics_engine import build_telemetry_snapshot
from .helpers.signal_helpers import get_event_signal
from .managers import (
    ActivityManager,
    AggregateManager,
    AppManager,
    LocationManager,
    UsageManager,
)
from .store import document_path
from .type_defs import ChildTelemetryData

if TYPE_CHECKING:
    from .managers import BaseManager
    from .store import DocumentStore
    from .type_defs import AppInventorySnapshot, LocationSnapshot, TelemetrySnapshot

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_FIRST_FIX_TIMEOUT, default=const.DEFAULT_FIRST_FIX_TIMEOUT
        ): vol.All(vol.Coerce(float), vol.Range(min=0)),
        vol.Optional(
            const.CONF_LOCATION_TRAIL_SIZE, default=const.DEFAULT_LOCATION_TRAIL_SIZE
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            const.CONF_TOP_APPS_LIMIT, default=const.DEFAULT_TOP_APPS_LIMIT
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            const.CONF_TOP_APPS_DISPLAY, default=const.DEFAULT_TOP_APPS_DISPLAY
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            const.CONF_WEEKLY_WINDOW, default=const.DEFAULT_WEEKLY_WINDOW
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
        vol.Optional(
            const.CONF_MAX_DEVICE_ALIASES, default=const.DEFAULT_MAX_DEVICE_ALIASES
        ): vol.All(vol.Coerce(int), vol.Range(min=0)),
    }
)

CHILD_NAME_FIELDS = ("name", "displayName", "childName")

_MANAGER_SIGNALS = (
    const.SIGNAL_SUFFIX_CURRENT_APP_UPDATED,
    const.SIGNAL_SUFFIX_USAGE_HISTORY_UPDATED,
    const.SIGNAL_SUFFIX_AGGREGATE_UPDATED,
    const.SIGNAL_SUFFIX_LOCATION_UPDATED,
    const.SIGNAL_SUFFIX_APPS_UPDATED,
)


class ChildTelemetryCoordinator(DataUpdateCoordinator[ChildTelemetryData]):
    """Push-driven coordinator for one selected child.

    Args:
        hass: Home Assistant instance
        store: Document store the managers subscribe to
        options: Raw options, validated by OPTIONS_SCHEMA

    Raises:
        vol.Invalid: If options fail validation
    """

    def __init__(
        self,
        hass: HomeAssistant,
        store: DocumentStore,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize the coordinator with no child selected."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=None,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.store = store
        self.options: dict[str, Any] = OPTIONS_SCHEMA(dict(options or {}))
        self.scope_id = uuid.uuid4().hex
        self.child_id: str | None = None

        self.activity_manager: ActivityManager | None = None
        self.usage_manager: UsageManager | None = None
        self.aggregate_manager: AggregateManager | None = None
        self.location_manager: LocationManager | None = None
        self.app_manager: AppManager | None = None

        self._signal_unsubs: list[CALLBACK_TYPE] = [
            async_dispatcher_connect(
                hass, get_event_signal(self.scope_id, suffix), self._on_manager_update
            )
            for suffix in _MANAGER_SIGNALS
        ]
        self.data = self._build_data()

    # -------------------------------------------------------------------------------------
    # Child Selection
    # -------------------------------------------------------------------------------------

    @property
    def managers(self) -> list[BaseManager]:
        """Managers for the current child, in attach order."""
        return [
            manager
            for manager in (
                self.activity_manager,
                self.usage_manager,
                self.aggregate_manager,
                self.location_manager,
                self.app_manager,
            )
            if manager is not None
        ]

    @callback
    def async_set_child(self, child_id: str | None) -> None:
        """Select the child to monitor.

        Every subscription and timer for the previous child is cancelled
        before the new child's managers attach. Passing None just detaches.
        """
        child_id = child_id or None
        if child_id == self.child_id:
            return

        previous = self.child_id
        self._async_detach_managers()
        self.child_id = child_id
        const.LOGGER.info(
            "Child Telemetry: switching child from %s to %s", previous, child_id
        )

        if child_id is not None:
            self.activity_manager = ActivityManager(self.hass, self, child_id)
            self.usage_manager = UsageManager(self.hass, self, child_id)
            self.aggregate_manager = AggregateManager(self.hass, self, child_id)
            self.location_manager = LocationManager(self.hass, self, child_id)
            self.app_manager = AppManager(self.hass, self, child_id)
            for manager in self.managers:
                manager.async_attach()

        self.async_set_updated_data(self._build_data())

    @callback
    def _async_detach_managers(self) -> None:
        for manager in self.managers:
            manager.async_detach()
        self.activity_manager = None
        self.usage_manager = None
        self.aggregate_manager = None
        self.location_manager = None
        self.app_manager = None

    async def async_shutdown(self) -> None:
        """Detach managers and stop listening for their updates."""
        self._async_detach_managers()
        self.child_id = None
        for unsub in self._signal_unsubs:
            unsub()
        self._signal_unsubs.clear()
        await super().async_shutdown()

    async def async_fetch_child_name(self, child_id: str) -> str:
        """Read the child's display name once; "Child" if unavailable."""
        try:
            snapshot = await self.store.async_get_document(
                document_path(const.COLLECTION_CHILDREN, child_id)
            )
        except Exception as err:  # pylint: disable=broad-except
            const.LOGGER.warning(
                "Child Telemetry: could not read name of child %s: %s", child_id, err
            )
            return const.DEFAULT_CHILD_NAME

        if not snapshot.exists:
            return const.DEFAULT_CHILD_NAME
        return (
            resolve_string(snapshot.data or {}, CHILD_NAME_FIELDS)
            or const.DEFAULT_CHILD_NAME
        )

    # -------------------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------------------

    @callback
    def _on_manager_update(self, payload: dict[str, Any]) -> None:
        """Rebuild data when a manager of the current child announces a change."""
        if payload.get("child_id") != self.child_id:
            const.LOGGER.debug(
                "Child Telemetry: ignoring update for previous child %s",
                payload.get("child_id"),
            )
            return
        self.async_set_updated_data(self._build_data())

    async def _async_update_data(self) -> ChildTelemetryData:
        """Return the current snapshot. Data is push-driven, nothing is fetched."""
        return self._build_data()

    # -------------------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------------------

    def _build_telemetry(self) -> TelemetrySnapshot:
        activity = self.activity_manager
        usage = self.usage_manager
        aggregate = self.aggregate_manager
        loading = any(
            manager is not None and manager.loading
            for manager in (activity, usage, aggregate)
        )
        return build_telemetry_snapshot(
            activity.current_app if activity else None,
            usage.history if usage else [],
            aggregate.aggregate if aggregate else None,
            loading=loading,
            weekly_window=self.options[const.CONF_WEEKLY_WINDOW],
            top_apps_display=self.options[const.CONF_TOP_APPS_DISPLAY],
        )

    def _build_location(self) -> LocationSnapshot:
        if self.location_manager is not None:
            return self.location_manager.snapshot()
        return {
            "current_location": None,
            "location_history": [],
            "loading": False,
            "awaiting_first_fix": True,
            "error": None,
        }

    def _build_apps(self) -> AppInventorySnapshot:
        if self.app_manager is not None:
            return self.app_manager.snapshot()
        return {
            "apps": [],
            "summary": summarize_apps([]),
            "loading": False,
            "error": None,
        }

    def _build_data(self) -> ChildTelemetryData:
        return {
            "child_id": self.child_id,
            "telemetry": self._build_telemetry(),
            "location": self._build_location(),
            "apps": self._build_apps(),
        }

    def advisories(self) -> dict[str, str]:
        """Advisory error strings by manager, for surfaces that show them."""
        return {
            manager.__class__.__name__: manager.error
            for manager in self.managers
            if manager.error
        }
