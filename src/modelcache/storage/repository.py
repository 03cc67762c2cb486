"""Identity-indexed in-memory repository.

Single source of truth for what the client currently believes about the
server-resident entities of one model.

Structure:
    data: [entity, ...]          # insertion order
    by_id: {identity: entity}    # index over identified entities in data

Usage:
    repository = Repository(IdentityResolver(), router)
    user = repository.add({"id": 1, "name": "a"})
    repository.add({"id": 1, "name": "b"})  # user now {"id": 1, "name": "b"}
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, overload

from modelcache.core.identity import IdentityResolver
from modelcache.core.merge import matches, replace_contents
from modelcache.core.types import Entity, Identity, Probe
from modelcache.storage.protocol import EventSink

logger = logging.getLogger(__name__)


class Repository:
    """Ordered entity list plus identity index, raising change events.

    ``data`` and ``by_id`` may be supplied by an owner (see ``Registry``) so
    the store mutates containers that are shared by reference; they are never
    reassigned.

    Args:
        identity: Resolver for the model's identity field.
        events: Receiver of ``change``/``add``/``update``/``remove`` events.
        data: Backing entity list (default: new list).
        by_id: Backing identity index (default: new dict).
    """

    def __init__(
        self,
        identity: IdentityResolver | None = None,
        events: EventSink | None = None,
        data: list[Entity] | None = None,
        by_id: dict[Identity, Entity] | None = None,
    ) -> None:
        self._identity = identity or IdentityResolver()
        self._events = events
        self._data: list[Entity] = data if data is not None else []
        self._by_id: dict[Identity, Entity] = by_id if by_id is not None else {}

    @property
    def data(self) -> list[Entity]:
        return self._data

    @property
    def by_id(self) -> dict[Identity, Entity]:
        return self._by_id

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, entity: object) -> bool:
        return self._index_of(entity) != -1

    def find(self, probe: Probe) -> Entity | None:
        """Find an entity by identity, partial entity or predicate.

        Identity values (and probes carrying one) use the ``by_id`` index.
        Other mappings match by reference first, then by the first entity
        holding every probe field with an equal value.

        Args:
            probe: Identity value, partial entity or ``entity -> bool`` predicate.

        Returns:
            The stored entity, or None if nothing matches.
        """
        if callable(probe) and not isinstance(probe, Mapping):
            return next((entity for entity in self._data if probe(entity)), None)

        if not isinstance(probe, Mapping):
            return self._by_id.get(probe) if probe is not None else None

        entity_id = self._identity.id(probe)
        if entity_id is not None and entity_id in self._by_id:
            return self._by_id[entity_id]

        index = self._index_of(probe)
        if index != -1:
            return self._data[index]
        if entity_id is not None:
            return None
        return next((entity for entity in self._data if matches(entity, probe)), None)

    @overload
    def add(self, entities: list[Entity]) -> list[Entity]: ...

    @overload
    def add(self, entities: Entity) -> Entity: ...

    def add(self, entities: Entity | list[Entity]) -> Entity | list[Entity]:
        """Reconcile one or more entities into the store.

        An entity matching a stored one replaces the stored entity's contents
        in place (``change`` then ``update``); otherwise it is appended
        (``change`` then ``add``).

        Args:
            entities: Entity or list of entities.

        Returns:
            Canonical stored reference(s), in input order.
        """
        if isinstance(entities, list):
            return [self._add_one(entity) for entity in entities]
        return self._add_one(entities)

    @overload
    def remove(self, entities: list[Entity]) -> list[Entity]: ...

    @overload
    def remove(self, entities: Entity) -> Entity: ...

    def remove(self, entities: Entity | list[Entity]) -> Entity | list[Entity]:
        """Remove one or more entities (by reference or identity).

        Entities that are not stored are returned untouched and raise no events.

        Args:
            entities: Entity or list of entities.

        Returns:
            Removed stored reference(s), or the inputs for entities not found.
        """
        if isinstance(entities, list):
            return [self._remove_one(entity) for entity in entities]
        return self._remove_one(entities)

    def reconcile(self, target: Entity, incoming: Entity) -> Entity:
        """Merge a server response into the local entity it answers.

        Used for create/update responses: ``target`` (often still without an
        identity) takes the response's content and gets indexed in the same
        step. If another stored entity already owns the response's identity,
        ``target`` is dropped and that entity is updated instead.

        Args:
            target: Local entity the response belongs to.
            incoming: Entity returned by the server.

        Returns:
            Canonical stored reference.
        """
        incoming_id = self._identity.id(incoming)
        owner = self._by_id.get(incoming_id) if incoming_id is not None else None
        target_stored = self._index_of(target) != -1

        if owner is not None:
            if owner is not target and target_stored:
                self._remove_one(target)
            return self._update(owner, incoming)
        if target_stored:
            return self._update(target, incoming)
        return self._add_one(incoming)

    def empty(self) -> None:
        """Remove every entity, newest first, without raising events."""
        while self._data:
            entity = self._data.pop()
            entity_id = self._identity.id(entity)
            if entity_id is not None:
                self._by_id.pop(entity_id, None)

    def _add_one(self, entity: Entity) -> Entity:
        existing = self._lookup(entity)
        if existing is not None:
            if existing is not entity and self._index_of(entity) != -1:
                # A stored entity now carries an identity owned by another one
                self._remove_one(entity)
            return self._update(existing, entity)

        self._data.append(entity)
        entity_id = self._identity.id(entity)
        if entity_id is not None:
            self._by_id[entity_id] = entity
        logger.debug("Added entity %r", entity_id)

        self._trigger("change", entity)
        self._trigger("add", entity)
        return entity

    def _update(self, existing: Entity, incoming: Entity) -> Entity:
        previous_id = self._identity.id(existing)
        if existing is not incoming:
            replace_contents(existing, incoming)

        entity_id = self._identity.id(existing)
        if existing is incoming:
            # Mutated by the caller; the key it was indexed under is unknown
            for key in [k for k, v in self._by_id.items() if v is existing and k != entity_id]:
                del self._by_id[key]
        elif previous_id is not None and previous_id != entity_id:
            if self._by_id.get(previous_id) is existing:
                del self._by_id[previous_id]
        if entity_id is not None:
            self._by_id[entity_id] = existing
        logger.debug("Updated entity %r", entity_id)

        self._trigger("change", existing)
        self._trigger("update", existing)
        return existing

    def _remove_one(self, entity: Entity) -> Entity:
        index = self._index_of(entity)
        if index == -1:
            stored = self.find(self._identity.id(entity)) if self._identity.has_id(entity) else None
            if stored is None:
                return entity
            index = self._index_of(stored)

        removed = self._data.pop(index)
        entity_id = self._identity.id(removed)
        self._unindex(removed)
        logger.debug("Removed entity %r", entity_id)

        self._trigger("change", removed)
        self._trigger("remove", removed)
        return removed

    def _unindex(self, entity: Entity) -> None:
        entity_id = self._identity.id(entity)
        if entity_id is not None and self._by_id.get(entity_id) is entity:
            del self._by_id[entity_id]
            return
        # Indexed under an identity the caller has since changed
        for key in [k for k, v in self._by_id.items() if v is entity]:
            del self._by_id[key]

    def _lookup(self, entity: Entity) -> Entity | None:
        """Stored counterpart of an incoming entity.

        Unidentified entities only match stored entities that are unidentified
        as well, so a new local entity never overwrites a persisted one.
        """
        if self._identity.id(entity) is not None:
            return self.find(entity)
        index = self._index_of(entity)
        if index != -1:
            return self._data[index]
        return next(
            (
                stored
                for stored in self._data
                if self._identity.is_new(stored) and matches(stored, entity)
            ),
            None,
        )

    def _index_of(self, entity: Any) -> int:
        """Position of ``entity`` in ``data`` by reference, -1 if absent."""
        for index, stored in enumerate(self._data):
            if stored is entity:
                return index
        return -1

    def _trigger(self, event: str, payload: Any) -> None:
        if self._events is not None:
            self._events.trigger(event, payload)
