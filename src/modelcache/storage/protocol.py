"""Storage protocol for the identity-indexed entity store.

The storage layer abstracts what the client believes about server-resident
entities of one kind, enabling:
- Local in-memory (default)
- Persistent offline stores (future)

Usage:
    def count_active(store: Store) -> int:
        return sum(1 for entity in store.data if entity.get("active"))

    count_active(users.repository)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, overload, runtime_checkable

from modelcache.core.types import Entity, Identity, Probe


@runtime_checkable
class EventSink(Protocol):
    """Receiver of change notifications raised by a store."""

    def trigger(self, event: str, payload: Any = None) -> None:
        """Notify subscribers of ``event``."""
        ...


@runtime_checkable
class Store(Protocol):
    """Abstract entity store. Implementations own ``data`` and ``by_id``."""

    @property
    def data(self) -> list[Entity]:
        """Entities in insertion order."""
        ...

    @property
    def by_id(self) -> Mapping[Identity, Entity]:
        """Identity index over ``data``."""
        ...

    def find(self, probe: Probe) -> Entity | None:
        """Find an entity by identity, partial entity or predicate."""
        ...

    @overload
    def add(self, entities: list[Entity]) -> list[Entity]: ...

    @overload
    def add(self, entities: Entity) -> Entity: ...

    def add(self, entities: Entity | list[Entity]) -> Entity | list[Entity]:
        """Reconcile entities into the store. Returns canonical references."""
        ...

    @overload
    def remove(self, entities: list[Entity]) -> list[Entity]: ...

    @overload
    def remove(self, entities: Entity) -> Entity: ...

    def remove(self, entities: Entity | list[Entity]) -> Entity | list[Entity]:
        """Remove entities from the store. Missing entities are ignored."""
        ...

    def reconcile(self, target: Entity, incoming: Entity) -> Entity:
        """Merge a server response into the local entity it answers."""
        ...

    def empty(self) -> None:
        """Remove every entity without raising events."""
        ...
