"""Base manager class for Child Telemetry managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.dispatcher import async_dispatcher_send

from .. import const
from ..engines.usage_engine import extract_device_aliases, id_prefix_range
from ..helpers.signal_helpers import get_event_signal
from ..store import document_path

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import CALLBACK_TYPE, HomeAssistant

    from ..coordinator import ChildTelemetryCoordinator
    from ..store import DocumentSnapshot
    from ..type_defs import SourceDiagnostics, SourceStatus


@dataclass(slots=True, eq=False)
class Subscription:
    """One live store subscription owned by a manager."""

    source: str
    unsubscribe: CALLBACK_TYPE | None = None
    active: bool = True

    def cancel(self) -> None:
        """Stop deliveries; safe to call more than once."""
        if not self.active:
            return
        self.active = False
        if self.unsubscribe is not None:
            self.unsubscribe()
            self.unsubscribe = None


class BaseManager(ABC):
    """Base class for all Child Telemetry managers.

    A manager resolves one reconciled concern (current app, history, ...) for
    exactly one child. It is created by the coordinator, attached once, and
    detached when the coordinator switches child or shuts down. It is never
    re-attached.

    Provides:
    - Guarded store subscriptions: deliveries to a detached manager, or to a
      subscription that was cancelled, are dropped
    - Setup failures (the store raising) routed to the subscription's error path
    - Instance-scoped event emitting (emit)
    - Tri-state source status and an advisory error string

    Subclasses must implement:
    - _async_subscribe(): open the manager's subscriptions
    - has_data: whether the manager currently contributes anything
    """

    SIGNAL_SUFFIX: str = ""

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Coordinator that owns this manager
            child_id: Child whose documents this manager subscribes to
        """
        self.hass = hass
        self.coordinator = coordinator
        self.child_id = child_id
        self.store = coordinator.store
        self.options = coordinator.options
        self.loading = True
        self.error: str | None = None
        self._attached = False
        self._subscriptions: list[Subscription] = []
        self._source_status: dict[str, SourceStatus] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def attached(self) -> bool:
        """Return True while the manager accepts store deliveries."""
        return self._attached

    @callback
    def async_attach(self) -> None:
        """Open this manager's subscriptions."""
        if self._attached:
            return
        self._attached = True
        self._async_subscribe()

    @callback
    def async_detach(self) -> None:
        """Cancel every subscription and timer. Late deliveries are ignored."""
        if not self._attached:
            return
        self._attached = False
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        self._async_teardown()
        const.LOGGER.debug(
            "%s detached for child %s", self.__class__.__name__, self.child_id
        )

    @abstractmethod
    def _async_subscribe(self) -> None:
        """Open subscriptions. Called once from async_attach()."""

    def _async_teardown(self) -> None:
        """Release anything besides subscriptions (timers). Optional."""

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def _child_path(self, *segments: str) -> str:
        return document_path(const.COLLECTION_CHILDREN, self.child_id, *segments)

    def _subscribe(
        self,
        source: str,
        subscribe: Callable[..., CALLBACK_TYPE],
        on_next: Callable[[Any], None],
        on_error: Callable[[Exception], None],
    ) -> Subscription:
        """Open one guarded subscription.

        Args:
            source: Source name used in logs and diagnostics
            subscribe: Store method with its path arguments bound, called as
                       subscribe(on_next, on_error)
            on_next: Snapshot handler
            on_error: Error handler; also receives setup failures
        """
        subscription = Subscription(source)

        @callback
        def _guarded_next(snapshot: Any) -> None:
            if not (self._attached and subscription.active):
                const.LOGGER.debug(
                    "Ignoring late %s delivery for child %s", source, self.child_id
                )
                return
            on_next(snapshot)

        @callback
        def _guarded_error(err: Exception) -> None:
            if not (self._attached and subscription.active):
                return
            self._source_status[source] = const.SOURCE_STATUS_ERROR
            const.LOGGER.warning(
                "%s: %s subscription failed for child %s: %s",
                self.__class__.__name__,
                source,
                self.child_id,
                err,
            )
            on_error(err)

        self._subscriptions.append(subscription)
        try:
            unsubscribe = subscribe(_guarded_next, _guarded_error)
        except Exception as err:  # pylint: disable=broad-except
            _guarded_error(err)
        else:
            if subscription.active:
                subscription.unsubscribe = unsubscribe
            else:
                unsubscribe()
        return subscription

    def _cancel(self, subscription: Subscription) -> None:
        subscription.cancel()
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _subscribe_collection(
        self,
        source: str,
        path: str,
        on_next: Callable[[list[DocumentSnapshot]], None],
        on_error: Callable[[Exception], None],
    ) -> Subscription:
        return self._subscribe(
            source, partial(self.store.subscribe_collection, path), on_next, on_error
        )

    def _subscribe_document(
        self,
        source: str,
        path: str,
        on_next: Callable[[DocumentSnapshot], None],
        on_error: Callable[[Exception], None],
    ) -> Subscription:
        return self._subscribe(
            source, partial(self.store.subscribe_document, path), on_next, on_error
        )

    def _log_dropped(self, source: str, doc_id: str) -> None:
        const.LOGGER.debug(
            "%s: dropped malformed %s record %s for child %s",
            self.__class__.__name__,
            source,
            doc_id,
            self.child_id,
        )

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def has_data(self) -> bool:
        """Return True if the manager currently contributes a value."""

    @property
    def status(self) -> SourceStatus:
        """Tri-state status: data, else error if any source failed, else empty."""
        if self.has_data:
            return const.SOURCE_STATUS_DATA
        if const.SOURCE_STATUS_ERROR in self._source_status.values():
            return const.SOURCE_STATUS_ERROR
        return const.SOURCE_STATUS_EMPTY

    def _mark_source(self, source: str, has_records: bool) -> None:
        self._source_status[source] = (
            const.SOURCE_STATUS_DATA if has_records else const.SOURCE_STATUS_EMPTY
        )

    def diagnostics(self) -> SourceDiagnostics:
        """Return status, advisory error, and per-source details."""
        return {
            "status": self.status,
            "error": self.error,
            "details": {
                "loading": self.loading,
                "attached": self._attached,
                "sources": dict(self._source_status),
            },
        }

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def emit(self, suffix: str | None = None, **payload: Any) -> None:
        """Emit an instance-scoped update event to the coordinator.

        The child id is always included so listeners can drop updates for a
        child they no longer display.

        Example:
            self.emit(const.SIGNAL_SUFFIX_APPS_UPDATED, count=12)
        """
        suffix = suffix or self.SIGNAL_SUFFIX
        signal = get_event_signal(self.coordinator.scope_id, suffix)
        const.LOGGER.debug(
            "Emitting event '%s' for child %s with payload keys: %s",
            suffix,
            self.child_id,
            list(payload.keys()),
        )
        # Pass payload as single dict argument (dispatcher only supports *args)
        async_dispatcher_send(self.hass, signal, {"child_id": self.child_id, **payload})


class AliasFallbackManager(BaseManager):
    """Manager with a per-device-alias fallback over the legacy daily collection.

    Aliases are the child id plus up to `max_device_aliases` device ids read
    from the child root document. Fallback range subscriptions are open only
    while the subclass reports that it needs them, one per alias, and each
    alias's results are cached independently.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ChildTelemetryCoordinator,
        child_id: str,
    ) -> None:
        """Initialize alias tracking."""
        super().__init__(hass, coordinator, child_id)
        self.aliases: list[str] = [child_id]
        self._alias_subscriptions: dict[str, Subscription] = {}

    @abstractmethod
    def _needs_fallback(self) -> bool:
        """Return True while fallback subscriptions should be open."""

    @abstractmethod
    def _on_alias_snapshot(self, alias: str, snapshots: list[DocumentSnapshot]) -> None:
        """Handle a fallback snapshot for one alias."""

    @abstractmethod
    def _drop_alias(self, alias: str) -> None:
        """Forget the cached fallback result of one alias."""

    def _subscribe_aliases(self) -> None:
        self._subscribe_document(
            const.SOURCE_CHILD_DOCUMENT,
            self._child_path(),
            self._on_alias_document,
            self._on_alias_document_error,
        )

    @callback
    def _on_alias_document(self, snapshot: DocumentSnapshot) -> None:
        aliases = extract_device_aliases(
            self.child_id, snapshot.data, self.options[const.CONF_MAX_DEVICE_ALIASES]
        )
        if aliases == self.aliases:
            return
        const.LOGGER.debug(
            "%s: device aliases for child %s are now %s",
            self.__class__.__name__,
            self.child_id,
            aliases,
        )
        self.aliases = aliases
        self._sync_fallback()
        self.emit()

    @callback
    def _on_alias_document_error(self, err: Exception) -> None:
        """Root document failures keep the last known aliases."""

    @callback
    def _on_alias_error(self, alias: str, err: Exception) -> None:
        self._drop_alias(alias)
        self.emit()

    def _sync_fallback(self) -> None:
        """Open or close fallback subscriptions to match aliases and need."""
        wanted = self.aliases if self._needs_fallback() else []

        for alias in list(self._alias_subscriptions):
            if alias not in wanted:
                self._cancel(self._alias_subscriptions.pop(alias))
                self._drop_alias(alias)

        for alias in wanted:
            if alias in self._alias_subscriptions:
                continue
            start, end = id_prefix_range(alias)
            self._alias_subscriptions[alias] = self._subscribe(
                const.SOURCE_DAILY_FALLBACK,
                partial(
                    self.store.subscribe_id_range,
                    const.COLLECTION_APP_USAGE_DAILY,
                    start,
                    end,
                ),
                partial(self._on_alias_snapshot, alias),
                partial(self._on_alias_error, alias),
            )

    def _async_teardown(self) -> None:
        self._alias_subscriptions.clear()

    @property
    def fallback_active(self) -> bool:
        """Return True while any fallback subscription is open."""
        return bool(self._alias_subscriptions)

    def diagnostics(self) -> SourceDiagnostics:
        """Add aliases and open fallback subscriptions."""
        result = super().diagnostics()
        result["details"]["aliases"] = list(self.aliases)
        result["details"]["fallback_aliases"] = list(self._alias_subscriptions)
        return result
