"""In-memory document store for Child Telemetry tests.

Documents are kept by full path ("children/kid1/apps/a1"). A collection at
path P holds every document whose path is P plus one more segment.

Deliveries are synchronous, like a local cache answering immediately:
subscribing delivers the current state at once unless the path is held
with hold(). Writes notify every active subscription they affect.

Usage:
    store = FakeStore()
    store.set_document("children/kid1/usageHistory/2025-04-07", {...})
    store.hold("children/kid1/currentApp")       # stays pending
    ...
    store.release("children/kid1/currentApp")    # first delivery now
    store.fail("appUsageAggregates/kid1", RuntimeError("denied"))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from custom_components.child_telemetry.store import DocumentSnapshot

KIND_COLLECTION = "collection"
KIND_DOCUMENT = "document"
KIND_RANGE = "range"


@dataclass(eq=False)
class FakeSubscription:
    """One registered listener."""

    kind: str
    path: str
    on_next: Callable[[Any], None]
    on_error: Callable[[Exception], None]
    start: str = ""
    end: str = ""
    active: bool = True
    deliveries: int = 0

    def unsubscribe(self) -> None:
        self.active = False


@dataclass
class FakeStore:
    """DocumentStore implementation backed by a dict."""

    documents: dict[str, dict[str, Any]] = field(default_factory=dict)
    subscriptions: list[FakeSubscription] = field(default_factory=list)
    held: set[str] = field(default_factory=set)
    subscribe_errors: dict[str, Exception] = field(default_factory=dict)
    get_error: Exception | None = None

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed(self, documents: Mapping[str, Mapping[str, Any]]) -> None:
        """Store documents without notifying anyone."""
        for path, data in documents.items():
            self.documents[path] = dict(data)

    def hold(self, path: str) -> None:
        """Defer the first delivery to new subscriptions on `path`."""
        self.held.add(path)

    def release(self, path: str) -> None:
        """Deliver the current state to subscriptions held on `path`."""
        self.held.discard(path)
        for subscription in self.active_for(path):
            if subscription.deliveries == 0:
                self._deliver(subscription)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set_document(self, path: str, data: Mapping[str, Any]) -> None:
        """Write a document and notify affected subscriptions."""
        self.documents[path] = dict(data)
        self._notify(path)

    def delete_document(self, path: str) -> None:
        """Delete a document and notify affected subscriptions."""
        self.documents.pop(path, None)
        self._notify(path)

    def fail(self, path: str, err: Exception) -> None:
        """Deliver an error to every active subscription on `path`."""
        for subscription in self.active_for(path):
            subscription.on_error(err)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def active_for(self, path: str) -> list[FakeSubscription]:
        return [s for s in self.subscriptions if s.active and s.path == path]

    @property
    def active_count(self) -> int:
        return sum(1 for s in self.subscriptions if s.active)

    def range_paths(self) -> list[tuple[str, str]]:
        """(start, end) of every active range subscription."""
        return [
            (s.start, s.end)
            for s in self.subscriptions
            if s.active and s.kind == KIND_RANGE
        ]

    # ------------------------------------------------------------------
    # DocumentStore API
    # ------------------------------------------------------------------

    def subscribe_collection(self, path, on_next, on_error):
        return self._register(FakeSubscription(KIND_COLLECTION, path, on_next, on_error))

    def subscribe_document(self, path, on_next, on_error):
        return self._register(FakeSubscription(KIND_DOCUMENT, path, on_next, on_error))

    def subscribe_id_range(self, collection, start, end, on_next, on_error):
        return self._register(
            FakeSubscription(KIND_RANGE, collection, on_next, on_error, start, end)
        )

    async def async_get_document(self, path: str) -> DocumentSnapshot:
        if self.get_error is not None:
            raise self.get_error
        return DocumentSnapshot(path.rsplit("/", 1)[-1], self.documents.get(path))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _register(self, subscription: FakeSubscription) -> Callable[[], None]:
        if subscription.path in self.subscribe_errors:
            raise self.subscribe_errors[subscription.path]
        self.subscriptions.append(subscription)
        if subscription.path not in self.held:
            self._deliver(subscription)
        return subscription.unsubscribe

    def _children(self, collection: str) -> list[DocumentSnapshot]:
        prefix = f"{collection}/"
        return [
            DocumentSnapshot(path[len(prefix) :], data)
            for path, data in sorted(self.documents.items())
            if path.startswith(prefix) and "/" not in path[len(prefix) :]
        ]

    def _deliver(self, subscription: FakeSubscription) -> None:
        if not subscription.active:
            return
        subscription.deliveries += 1
        if subscription.kind == KIND_DOCUMENT:
            subscription.on_next(
                DocumentSnapshot(
                    subscription.path.rsplit("/", 1)[-1],
                    self.documents.get(subscription.path),
                )
            )
        elif subscription.kind == KIND_COLLECTION:
            subscription.on_next(self._children(subscription.path))
        else:
            subscription.on_next(
                [
                    snapshot
                    for snapshot in self._children(subscription.path)
                    if subscription.start <= snapshot.id < subscription.end
                ]
            )

    def _notify(self, path: str) -> None:
        parent, _, doc_id = path.rpartition("/")
        for subscription in list(self.subscriptions):
            if not subscription.active or subscription.path in self.held:
                continue
            if subscription.kind == KIND_DOCUMENT and subscription.path == path:
                self._deliver(subscription)
            elif subscription.kind == KIND_COLLECTION and subscription.path == parent:
                self._deliver(subscription)
            elif (
                subscription.kind == KIND_RANGE
                and subscription.path == parent
                and subscription.start <= doc_id < subscription.end
            ):
                self._deliver(subscription)
