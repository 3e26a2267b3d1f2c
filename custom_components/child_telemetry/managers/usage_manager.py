"""Usage Manager - Per-day usage history for one child.

Primary source: children/{child}/usageHistory.
Fallback source: appUsageDaily documents keyed "<alias>_<YYYY-MM-DD>", one
range subscription per device alias.

The fallback is opened only after the primary collection has answered with
no entries (or failed), and closed as soon as it has entries. When both have
data the primary wins wholesale; entries are never mixed across sources.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback

from .. import const
from ..engines.usage_engine import (
    build_history,
    merge_alias_days,
    normalize_day_entry,
    normalize_fallback_day,
    select_history,
)
from .base_manager import AliasFallbackManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ChildTelemetryCoordinator
    from ..store import DocumentSnapshot
    from ..type_defs import DayEntry, SourceDiagnostics


__all__ = ["UsageManager"]


class UsageManager(AliasFallbackManager):
    """Resolve the canonical usage history, newest first."""

    SIGNAL_SUFFIX = const.SIGNAL_SUFFIX_USAGE_HISTORY_UPDATED

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize with empty primary and fallback caches."""
        super().__init__(hass, coordinator, child_id)
        self._primary: list[DayEntry] = []
        self._primary_answered = False
        self._alias_days: dict[str, list[DayEntry]] = {}

    @property
    def history(self) -> list[DayEntry]:
        """Primary history if non-empty, else the merged fallback history."""
        return select_history(self._primary, self.fallback_history)

    @property
    def fallback_history(self) -> list[DayEntry]:
        """Fallback days merged across aliases in alias order."""
        return merge_alias_days(
            [self._alias_days[alias] for alias in self.aliases if alias in self._alias_days]
        )

    @property
    def using_fallback(self) -> bool:
        """Return True if the visible history comes from the fallback path."""
        return not self._primary and bool(self.fallback_history)

    @property
    def has_data(self) -> bool:
        return bool(self.history)

    def _async_subscribe(self) -> None:
        self._subscribe_collection(
            const.SOURCE_USAGE_HISTORY,
            self._child_path(const.SUBCOLLECTION_USAGE_HISTORY),
            self._on_primary,
            self._on_primary_error,
        )
        self._subscribe_aliases()

    def _needs_fallback(self) -> bool:
        return self._primary_answered and not self._primary

    # ------------------------------------------------------------------
    # Primary
    # ------------------------------------------------------------------

    @callback
    def _on_primary(self, snapshots: list[DocumentSnapshot]) -> None:
        entries: list[DayEntry | None] = []
        for snapshot in snapshots:
            entry = normalize_day_entry(snapshot.id, snapshot.data or {})
            if entry is None:
                self._log_dropped(const.SOURCE_USAGE_HISTORY, snapshot.id)
            entries.append(entry)

        self._primary = build_history(entries)
        self._primary_answered = True
        self._mark_source(const.SOURCE_USAGE_HISTORY, bool(self._primary))
        self.loading = False
        self.error = None
        self._sync_fallback()
        self.emit(days=len(self._primary))

    @callback
    def _on_primary_error(self, err: Exception) -> None:
        self._primary = []
        self._primary_answered = True
        self.loading = False
        self.error = const.ERROR_USAGE_HISTORY_UNAVAILABLE
        self._sync_fallback()
        self.emit()

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    @callback
    def _on_alias_snapshot(self, alias: str, snapshots: list[DocumentSnapshot]) -> None:
        entries: list[DayEntry | None] = []
        for snapshot in snapshots:
            entry = normalize_fallback_day(snapshot.id, snapshot.data or {})
            if entry is None:
                self._log_dropped(const.SOURCE_DAILY_FALLBACK, snapshot.id)
            entries.append(entry)

        self._alias_days[alias] = build_history(entries)
        self._mark_source(const.SOURCE_DAILY_FALLBACK, bool(self.fallback_history))
        const.LOGGER.debug(
            "UsageManager: %d fallback days for alias %s of child %s",
            len(self._alias_days[alias]),
            alias,
            self.child_id,
        )
        self.emit(alias=alias)

    def _drop_alias(self, alias: str) -> None:
        self._alias_days.pop(alias, None)

    def _async_teardown(self) -> None:
        super()._async_teardown()
        self._alias_days.clear()

    def diagnostics(self) -> SourceDiagnostics:
        """Add primary and fallback day counts."""
        result = super().diagnostics()
        result["details"]["primary_days"] = len(self._primary)
        result["details"]["fallback_days"] = len(self.fallback_history)
        return result
