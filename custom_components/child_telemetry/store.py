# File: store.py
"""Document store interface consumed by the Child Telemetry managers.

The remote store owns all durable state; this integration only subscribes to
it. Any backend (a Firestore client wrapper, an in-memory fake in tests) can be
used as long as it satisfies DocumentStore.

Delivery contract:
- Snapshot callbacks and error callbacks run on the Home Assistant event loop.
  Backends that receive updates on another thread must hop to the loop with
  `hass.loop.call_soon_threadsafe` before invoking them.
- Every subscription returns an unsubscribe callable. Calling it stops
  further deliveries; calling it twice is harmless.
- A subscribe call that raises is treated by the managers exactly like a
  subscription error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from homeassistant.core import CALLBACK_TYPE


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """One document as delivered by the store.

    `data` is None when the document does not exist.
    """

    id: str
    data: Mapping[str, Any] | None = field(default=None)

    @property
    def exists(self) -> bool:
        """Return True if the document exists."""
        return self.data is not None


class DocumentStore(Protocol):
    """Push-subscription API of the remote document store."""

    def subscribe_collection(
        self,
        path: str,
        on_next: Callable[[list[DocumentSnapshot]], None],
        on_error: Callable[[Exception], None],
    ) -> CALLBACK_TYPE:
        """Subscribe to every document in the collection at `path`."""

    def subscribe_document(
        self,
        path: str,
        on_next: Callable[[DocumentSnapshot], None],
        on_error: Callable[[Exception], None],
    ) -> CALLBACK_TYPE:
        """Subscribe to one document; missing documents are delivered with data None."""

    def subscribe_id_range(
        self,
        collection: str,
        start: str,
        end: str,
        on_next: Callable[[list[DocumentSnapshot]], None],
        on_error: Callable[[Exception], None],
    ) -> CALLBACK_TYPE:
        """Subscribe to documents of `collection` whose id is in [start, end)."""

    async def async_get_document(self, path: str) -> DocumentSnapshot:
        """Read one document once."""


def document_path(*segments: str) -> str:
    """Join path segments: document_path("children", "kid1", "apps")."""
    return "/".join(segment.strip("/") for segment in segments)
