"""Location Manager - Current position and trail for one child.

Two concurrently active sources:
- children/{child}/locations: discrete pings
- children/{child}: an embedded currentLocation/latestLocation/location object

Each source's contribution is replaced wholesale on every snapshot and
cleared on error, then both are merged by composite identity. A single
first-fix deadline stops `loading` even if the device never reports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback

from .. import const
from ..engines.location_engine import (
    embedded_location_id,
    embedded_location_record,
    merge_locations,
    normalize_location,
)
from ..utils.dt_utils import dt_now_utc
from .base_manager import BaseManager

if TYPE_CHECKING:
    from asyncio import TimerHandle

    from homeassistant.core import HomeAssistant

    from ..coordinator import ChildTelemetryCoordinator
    from ..store import DocumentSnapshot
    from ..type_defs import LocationPoint, LocationSnapshot, SourceDiagnostics


__all__ = ["LocationManager"]


class LocationManager(BaseManager):
    """Reconcile location pings with the embedded latest fix."""

    SIGNAL_SUFFIX = const.SIGNAL_SUFFIX_LOCATION_UPDATED

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize with empty contributions and no deadline."""
        super().__init__(hass, coordinator, child_id)
        self._pings: list[LocationPoint] = []
        self._embedded: list[LocationPoint] = []
        self._source_errors: dict[str, str] = {}
        self._first_fix_timer: TimerHandle | None = None
        self.locations: list[LocationPoint] = []

    @property
    def has_data(self) -> bool:
        return bool(self.locations)

    @property
    def current_location(self) -> LocationPoint | None:
        """Newest fix, or None while awaiting the first one."""
        return self.locations[0] if self.locations else None

    def snapshot(self) -> LocationSnapshot:
        """Return the location view for the coordinator."""
        return {
            "current_location": self.current_location,
            "location_history": list(self.locations),
            "loading": self.loading,
            "awaiting_first_fix": not self.locations,
            "error": self.error,
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _async_subscribe(self) -> None:
        self._first_fix_timer = self.hass.loop.call_later(
            self.options[const.CONF_FIRST_FIX_TIMEOUT], self._on_first_fix_deadline
        )
        self._subscribe_collection(
            const.SOURCE_LOCATION_PINGS,
            self._child_path(const.SUBCOLLECTION_LOCATIONS),
            self._on_pings,
            self._on_pings_error,
        )
        self._subscribe_document(
            const.SOURCE_EMBEDDED_LOCATION,
            self._child_path(),
            self._on_child_document,
            self._on_child_document_error,
        )

    def _async_teardown(self) -> None:
        self._cancel_first_fix_timer()

    def _cancel_first_fix_timer(self) -> None:
        if self._first_fix_timer is not None:
            self._first_fix_timer.cancel()
            self._first_fix_timer = None

    @callback
    def _on_first_fix_deadline(self) -> None:
        self._first_fix_timer = None
        if not self._attached or not self.loading:
            return
        const.LOGGER.debug(
            "LocationManager: no fix for child %s within %.1fs",
            self.child_id,
            self.options[const.CONF_FIRST_FIX_TIMEOUT],
        )
        self.loading = False
        self.emit(deadline=True)

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def _apply(self) -> None:
        self.locations = merge_locations(
            self._pings,
            self._embedded,
            limit=self.options[const.CONF_LOCATION_TRAIL_SIZE],
        )
        self.error = const.ERROR_LOCATION_UNAVAILABLE if self._source_errors else None
        self.loading = False
        self._cancel_first_fix_timer()
        self.emit(points=len(self.locations))

    @callback
    def _on_pings(self, snapshots: list[DocumentSnapshot]) -> None:
        received_at = dt_now_utc()
        points: list[LocationPoint] = []
        for snapshot in snapshots:
            point = normalize_location(
                self._child_path(const.SUBCOLLECTION_LOCATIONS, snapshot.id),
                snapshot.data,
                received_at,
            )
            if point is None:
                self._log_dropped(const.SOURCE_LOCATION_PINGS, snapshot.id)
                continue
            points.append(point)

        self._pings = points
        self._source_errors.pop(const.SOURCE_LOCATION_PINGS, None)
        self._mark_source(const.SOURCE_LOCATION_PINGS, bool(points))
        self._apply()

    @callback
    def _on_pings_error(self, err: Exception) -> None:
        self._pings = []
        self._source_errors[const.SOURCE_LOCATION_PINGS] = str(err)
        self._apply()

    @callback
    def _on_child_document(self, snapshot: DocumentSnapshot) -> None:
        record = embedded_location_record(snapshot.data)
        point = (
            normalize_location(embedded_location_id(self.child_id), record)
            if record
            else None
        )
        if record and point is None:
            self._log_dropped(const.SOURCE_EMBEDDED_LOCATION, snapshot.id)

        self._embedded = [point] if point else []
        self._source_errors.pop(const.SOURCE_EMBEDDED_LOCATION, None)
        self._mark_source(const.SOURCE_EMBEDDED_LOCATION, point is not None)
        self._apply()

    @callback
    def _on_child_document_error(self, err: Exception) -> None:
        self._embedded = []
        self._source_errors[const.SOURCE_EMBEDDED_LOCATION] = str(err)
        self._apply()

    def diagnostics(self) -> SourceDiagnostics:
        """Add per-source point counts and deadline state."""
        result = super().diagnostics()
        result["details"]["ping_points"] = len(self._pings)
        result["details"]["embedded_points"] = len(self._embedded)
        result["details"]["awaiting_deadline"] = self._first_fix_timer is not None
        return result
