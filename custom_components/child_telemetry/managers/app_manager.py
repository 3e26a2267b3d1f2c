"""App Manager - Installed app inventory for one child."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback

from .. import const
from ..engines.app_engine import normalize_app, sort_apps, summarize_apps
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ChildTelemetryCoordinator
    from ..store import DocumentSnapshot
    from ..type_defs import AppInventorySnapshot, NormalizedApp


__all__ = ["AppManager"]


class AppManager(BaseManager):
    """Normalize children/{child}/apps, most used first.

    A subscription failure clears the list and sets an advisory error.
    """

    SIGNAL_SUFFIX = const.SIGNAL_SUFFIX_APPS_UPDATED

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize with an empty inventory."""
        super().__init__(hass, coordinator, child_id)
        self.apps: list[NormalizedApp] = []

    @property
    def has_data(self) -> bool:
        return bool(self.apps)

    def snapshot(self) -> AppInventorySnapshot:
        """Return the inventory view for the coordinator."""
        return {
            "apps": list(self.apps),
            "summary": summarize_apps(self.apps),
            "loading": self.loading,
            "error": self.error,
        }

    def _async_subscribe(self) -> None:
        self._subscribe_collection(
            const.SOURCE_APPS,
            self._child_path(const.SUBCOLLECTION_APPS),
            self._on_apps,
            self._on_apps_error,
        )

    @callback
    def _on_apps(self, snapshots: list[DocumentSnapshot]) -> None:
        self.apps = sort_apps(
            normalize_app(snapshot.id, snapshot.data)
            for snapshot in snapshots
            if snapshot.data is not None
        )
        const.LOGGER.debug(
            "AppManager: received %d app documents for child %s",
            len(self.apps),
            self.child_id,
        )
        self._mark_source(const.SOURCE_APPS, bool(self.apps))
        self.loading = False
        self.error = None
        self.emit(count=len(self.apps))

    @callback
    def _on_apps_error(self, err: Exception) -> None:
        self.apps = []
        self.loading = False
        self.error = const.ERROR_APPS_UNAVAILABLE
        self.emit()
