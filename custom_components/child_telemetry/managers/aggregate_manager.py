"""Aggregate Manager - Category and top-app totals for one child.

Primary source: the precomputed appUsageAggregates/{child} document.
Fallback source: the newest appUsageDaily document of every device alias,
each turned into a derived aggregate; the most recent candidate is kept.

The fallback is open while the primary document does not exist or has failed.
An existing but empty primary document still wins, as a zero aggregate.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback

from .. import const
from ..engines.aggregate_engine import (
    derive_aggregate_from_daily,
    newest_aggregate,
    normalize_aggregate,
)
from ..engines.usage_engine import latest_day_document
from ..store import document_path
from .base_manager import AliasFallbackManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ChildTelemetryCoordinator
    from ..store import DocumentSnapshot
    from ..type_defs import SourceDiagnostics, UsageAggregate


__all__ = ["AggregateManager"]


class AggregateManager(AliasFallbackManager):
    """Resolve the usage aggregate, preferring the precomputed document."""

    SIGNAL_SUFFIX = const.SIGNAL_SUFFIX_AGGREGATE_UPDATED

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize with no aggregate."""
        super().__init__(hass, coordinator, child_id)
        self._primary: UsageAggregate | None = None
        self._primary_answered = False
        self._alias_aggregates: dict[str, UsageAggregate] = {}

    @property
    def aggregate(self) -> UsageAggregate | None:
        """Primary aggregate if present, else the newest derived one."""
        if self._primary is not None:
            return self._primary
        return newest_aggregate(
            self._alias_aggregates[alias]
            for alias in self.aliases
            if alias in self._alias_aggregates
        )

    @property
    def has_data(self) -> bool:
        return self.aggregate is not None

    def _async_subscribe(self) -> None:
        self._subscribe_document(
            const.SOURCE_AGGREGATE_DOCUMENT,
            document_path(const.COLLECTION_APP_USAGE_AGGREGATES, self.child_id),
            self._on_primary,
            self._on_primary_error,
        )
        self._subscribe_aliases()

    def _needs_fallback(self) -> bool:
        return self._primary_answered and self._primary is None

    # ------------------------------------------------------------------
    # Primary
    # ------------------------------------------------------------------

    @callback
    def _on_primary(self, snapshot: DocumentSnapshot) -> None:
        self._primary = (
            normalize_aggregate(snapshot.data or {}) if snapshot.exists else None
        )
        self._primary_answered = True
        self._mark_source(const.SOURCE_AGGREGATE_DOCUMENT, self._primary is not None)
        self.loading = False
        self.error = None
        self._sync_fallback()
        self.emit(exists=snapshot.exists)

    @callback
    def _on_primary_error(self, err: Exception) -> None:
        self._primary = None
        self._primary_answered = True
        self.loading = False
        self.error = const.ERROR_AGGREGATES_UNAVAILABLE
        self._sync_fallback()
        self.emit()

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    @callback
    def _on_alias_snapshot(self, alias: str, snapshots: list[DocumentSnapshot]) -> None:
        latest = latest_day_document(
            (snapshot.id, snapshot.data) for snapshot in snapshots if snapshot.data
        )
        if latest is None:
            self._alias_aggregates.pop(alias, None)
        else:
            doc_id, record = latest
            self._alias_aggregates[alias] = derive_aggregate_from_daily(
                doc_id, record, self.options[const.CONF_TOP_APPS_LIMIT]
            )
        self._mark_source(const.SOURCE_DAILY_FALLBACK, bool(self._alias_aggregates))
        self.emit(alias=alias)

    def _drop_alias(self, alias: str) -> None:
        self._alias_aggregates.pop(alias, None)

    def _async_teardown(self) -> None:
        super()._async_teardown()
        self._alias_aggregates.clear()

    def diagnostics(self) -> SourceDiagnostics:
        """Add which path produced the aggregate."""
        result = super().diagnostics()
        result["details"]["derived"] = (
            self._primary is None and self.aggregate is not None
        )
        return result
