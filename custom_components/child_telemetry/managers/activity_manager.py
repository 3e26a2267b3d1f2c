"""Activity Manager - Live "what app is running now" for one child.

Two independent subscriptions feed one freshest-wins value:
- children/{child}/currentApp: session-like records, reduced to the freshest
- children/{child}: the `currentApp` object embedded on the root document

Both sources go through the same commutative reducer, so the result is the
same whichever source delivers first. Once a value is known it never reverts
to unknown while the manager is attached.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback

from .. import const
from ..engines.activity_engine import (
    embedded_current_app,
    freshest_of,
    normalize_current_app,
    pick_fresher,
)
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ChildTelemetryCoordinator
    from ..store import DocumentSnapshot
    from ..type_defs import NormalizedActivity


__all__ = ["ActivityManager"]


class ActivityManager(BaseManager):
    """Resolve the current foreground app.

    `loading` is True only until the first response (data or error) from the
    currentApp collection. A failure there sets an advisory error and keeps
    the last known value; root document failures are only logged.
    """

    SIGNAL_SUFFIX = const.SIGNAL_SUFFIX_CURRENT_APP_UPDATED

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize with no known activity."""
        super().__init__(hass, coordinator, child_id)
        self.current_app: NormalizedActivity | None = None

    @property
    def has_data(self) -> bool:
        return self.current_app is not None

    def _async_subscribe(self) -> None:
        self._subscribe_collection(
            const.SOURCE_CURRENT_APP_COLLECTION,
            self._child_path(const.SUBCOLLECTION_CURRENT_APP),
            self._on_sessions,
            self._on_sessions_error,
        )
        self._subscribe_document(
            const.SOURCE_CHILD_DOCUMENT,
            self._child_path(),
            self._on_child_document,
            self._on_child_document_error,
        )

    def _offer(self, candidate: NormalizedActivity | None) -> bool:
        """Merge a candidate; return True if the current app changed."""
        winner = pick_fresher(candidate, self.current_app)
        if winner is self.current_app:
            return False
        self.current_app = winner
        return True

    # ------------------------------------------------------------------
    # Store callbacks
    # ------------------------------------------------------------------

    @callback
    def _on_sessions(self, snapshots: list[DocumentSnapshot]) -> None:
        activities: list[NormalizedActivity] = []
        for snapshot in snapshots:
            activity = normalize_current_app(snapshot.id, snapshot.data)
            if activity is None:
                self._log_dropped(const.SOURCE_CURRENT_APP_COLLECTION, snapshot.id)
                continue
            activities.append(activity)

        self._mark_source(const.SOURCE_CURRENT_APP_COLLECTION, bool(activities))
        changed = self._offer(freshest_of(activities))

        if changed or self.loading or self.error:
            self.loading = False
            self.error = None
            self.emit(name=self.current_app["name"] if self.current_app else None)

    @callback
    def _on_sessions_error(self, err: Exception) -> None:
        self.loading = False
        self.error = const.ERROR_CURRENT_APP_UNAVAILABLE
        self.emit()

    @callback
    def _on_child_document(self, snapshot: DocumentSnapshot) -> None:
        candidate = embedded_current_app(snapshot.data)
        self._mark_source(const.SOURCE_CHILD_DOCUMENT, candidate is not None)
        if self._offer(candidate):
            self.emit(name=self.current_app["name"] if self.current_app else None)

    @callback
    def _on_child_document_error(self, err: Exception) -> None:
        """Root document failures never clear or flag the current app."""
