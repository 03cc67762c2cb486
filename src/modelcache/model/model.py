"""Model: local cache of one kind of server-resident entity.

Usage:
    users = Model(communicator, name="user", connection="api", defaults={"active": True})

    # Optimistic local changes
    bob = users.create({"name": "bob"})     # queued for save
    users.set(bob, {"name": "bobby"})
    users.remove(alice)                      # queued for destroy

    # Reconcile with the server
    await users.save()      # persist queued saves
    await users.destroy()   # persist queued destroys
    await users.sync()      # both, then reset() to the server's state
"""

from __future__ import annotations

import asyncio
import copy as cp
import logging
import types
from collections.abc import Callable, Iterable, Mapping
from typing import Any, cast

from modelcache.communicator.protocol import Communicator, Request, UnknownRequestError
from modelcache.communicator.routes import (
    CREATE,
    DESTROY,
    FIND_ALL,
    FIND_BY_ID,
    UPDATE,
    make_custom_requests,
    make_rest_requests,
)
from modelcache.config.models import ModelOptions, ModelOptionsError
from modelcache.config.settings import CacheSettings
from modelcache.core.identity import IdentityResolver
from modelcache.core.types import Entity, Identity
from modelcache.events.models import Callback, ListenerRegistration
from modelcache.events.router import ListenerRouter
from modelcache.queue.pending import PendingQueue
from modelcache.storage.protocol import Store
from modelcache.storage.repository import Repository

logger = logging.getLogger(__name__)

SAVE = "save"
DESTROY_QUEUE = "destroy"


class Model:
    """Local mirror of a server collection with deferred persistence.

    Owns one repository, one listener router and two pending queues (save and
    destroy). Local mutators (``create``, ``set``, ``add``, ``remove``,
    ``clone``) never touch the network; ``fetch``, ``save``, ``destroy``,
    ``reset`` and ``sync`` go through the communicator.

    Args:
        communicator: Executes requests against the server.
        options: Validated options. Mutually exclusive with ``**kwargs``.
        settings: Process-wide defaults used when building options from kwargs.
        data: Backing entity list, shared by reference (see ``Registry``).
        by_id: Backing identity index, shared by reference.
        **kwargs: Options passed to ``ModelOptions.build``.

    Raises:
        ModelOptionsError: If options are missing or invalid.
    """

    def __init__(
        self,
        communicator: Communicator,
        options: ModelOptions | None = None,
        *,
        settings: CacheSettings | None = None,
        data: list[Entity] | None = None,
        by_id: dict[Identity, Entity] | None = None,
        **kwargs: Any,
    ) -> None:
        if options is not None and kwargs:
            raise TypeError("Pass either options or keyword options, not both")
        self._options = options or ModelOptions.build(settings, **kwargs)
        self._communicator = communicator

        self._identity = IdentityResolver(
            id_attribute=self._options.id_attribute,
            created_on_attribute=self._options.created_on_attribute,
            updated_on_attribute=self._options.updated_on_attribute,
        )
        self._router = ListenerRouter(self._identity)
        self._repository = Repository(self._identity, self._router, data=data, by_id=by_id)
        self._queues = {
            SAVE: PendingQueue(self.save, name=SAVE),
            DESTROY_QUEUE: PendingQueue(self.destroy, name=DESTROY_QUEUE),
        }

        self._requests = make_rest_requests(
            self._options.url, context=self.name, connection=self.connection
        )
        self._requests.update(
            make_custom_requests(self._options.requests, context=self.name, connection=self.connection)
        )
        self._bind_api(self._options.api)

    # --- Configuration ---

    @property
    def options(self) -> ModelOptions:
        return self._options

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def connection(self) -> str:
        return self._options.connection

    @property
    def url(self) -> str:
        return self._options.url

    @property
    def event(self) -> str:
        return self._options.event

    @property
    def defaults(self) -> Mapping[str, Any]:
        return types.MappingProxyType(self._options.defaults)

    @property
    def id_attribute(self) -> str:
        return self._options.id_attribute

    @property
    def created_on_attribute(self) -> str:
        return self._options.created_on_attribute

    @property
    def updated_on_attribute(self) -> str:
        return self._options.updated_on_attribute

    @property
    def requests(self) -> Mapping[str, Any]:
        """Request name -> template, RESTful and custom."""
        return types.MappingProxyType(self._requests)

    # --- Local state ---

    @property
    def data(self) -> list[Entity]:
        """Cached entities in insertion order. Mutate through the model only."""
        return self._repository.data

    @property
    def by_id(self) -> Mapping[Identity, Entity]:
        """Read-only identity index over ``data``."""
        return types.MappingProxyType(self._repository.by_id)

    @property
    def repository(self) -> Store:
        return self._repository

    @property
    def queues(self) -> Mapping[str, PendingQueue]:
        """Pending queues keyed by action ("save", "destroy")."""
        return types.MappingProxyType(self._queues)

    def is_new(self, entity: Mapping[str, Any]) -> bool:
        """Check whether an entity has never been persisted."""
        return self._identity.is_new(entity)

    def id(self, entity_or_id: Any) -> Identity | None:
        """Get the identity of an entity, or pass an identity through."""
        return self._identity.id(entity_or_id)

    def find(self, probe: Any) -> Entity | None:
        """Find a cached entity by identity, partial entity or predicate."""
        return self._repository.find(probe)

    # --- Events ---

    def on(self, event: str | None, callback: Callback) -> None:
        """Listen for an event. Repository events: change, add, update, remove."""
        self._router.on(event, callback)

    def off(self, event: str | None, callback: Callback | None = None) -> None:
        """Stop listening; without a callback, drop every listener of the event."""
        self._router.off(event, callback)

    def once(self, event: str | None, callback: Callback) -> None:
        """Listen for the next occurrence of an event only."""
        self._router.once(event, callback)

    def listen_to(
        self,
        model: Any = None,
        event: Any = None,
        callback: Callback | None = None,
    ) -> ListenerRegistration:
        """Listen to events of one entity and/or one event name.

        Example:
            >>> registration = users.listen_to(bob, "update", render_bob)
            >>> registration.stop()
        """
        return self._router.listen_to(model, event, callback)

    def trigger(self, event: str, payload: Any = None) -> None:
        """Trigger an event with a payload."""
        self._router.trigger(event, payload)

    # --- Local mutation ---

    def add(self, *entities: Entity | list[Entity]) -> Entity | list[Entity]:
        """Add entities to the local data and queue them for save.

        Entities matching cached ones replace their contents in place.

        Example:
            >>> users.add({"name": "bob"})
            >>> users.add([{"id": 1}, {"id": 2}], {"id": 3})

        Returns:
            The canonical entity for a single entity argument, else a list.
        """
        flat = _flatten(entities)
        stored = self._repository.add(flat)
        for incoming, entity in zip(flat, stored):
            if incoming is not entity:
                self._queues[SAVE].remove(incoming)
            self._queues[DESTROY_QUEUE].remove(entity)
            self._queues[SAVE].add(entity)
        return _unwrap(entities, stored)

    def set(
        self, entity: Entity, props: Mapping[str, Any] | None = None, **fields: Any
    ) -> Entity:
        """Merge ``props`` into an entity, then add it (see ``add``)."""
        entity.update(props or {}, **fields)
        return cast(Entity, self.add(entity))

    def remove(self, *entities: Entity | list[Entity]) -> Entity | list[Entity]:
        """Remove entities from the local data and queue them for destroy.

        To destroy on the server right away, see ``destroy``.

        Returns:
            The removed entity for a single entity argument, else a list.
        """
        removed = self._repository.remove(_flatten(entities))
        for entity in removed:
            self._queues[SAVE].remove(entity)
            self._queues[DESTROY_QUEUE].add(entity)
        return _unwrap(entities, removed)

    def create(self, attributes: Mapping[str, Any] | None = None) -> Entity:
        """Create a new local entity from the defaults and ``attributes``.

        The entity is saved to the server by ``save()``, ``save(entity)`` or ``sync()``.
        """
        entity = {**cp.deepcopy(self._options.defaults), **(attributes or {})}
        return cast(Entity, self.add(entity))

    def clone(self, entity: Mapping[str, Any] | None = None) -> Entity:
        """Create a new local entity copying ``entity`` minus identity and timestamps."""
        return self.create(self._identity.strip(entity or {}))

    # --- Server reconciliation ---

    async def request(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Run a named request (RESTful or custom) through the communicator.

        Raises:
            UnknownRequestError: If the model defines no such request.
        """
        template = self._requests.get(name)
        if template is None:
            raise UnknownRequestError(f"Model '{self.name}' has no request '{name}'")
        request: Request = template.bind(params, body)
        logger.debug("%s: %s %s", self.name, request.method.upper(), request.route)
        return await self._communicator.request(request)

    async def fetch(self, entity_or_id: Any = None) -> Entity | list[Entity] | None:
        """Fetch one entity (by entity or identity) or all entities from the server.

        Results are reconciled into the local data; nothing is queued.

        Example:
            >>> await users.fetch()        # all
            >>> await users.fetch(3)       # by identity
            >>> await users.fetch(bob)     # by entity

        Returns:
            Canonical entity, list of canonical entities, or None for an empty response.
        """
        if entity_or_id is not None and self._identity.has_id(entity_or_id):
            response = await self.request(FIND_BY_ID, params={"id": self.id(entity_or_id)})
            if not isinstance(response, Mapping):
                return None
            stored = self._repository.add(dict(response))
            return stored

        response = await self.request(FIND_ALL)
        if response is None:
            return []
        return self._repository.add([dict(item) for item in response])

    async def save(self, entity: Entity | None = None) -> Any:
        """Save one entity, or every entity queued for save.

        New entities are created, others updated. The response is merged into
        the entity in place, so a created entity gains its identity without
        being replaced.

        Returns:
            The canonical entity, or the list of results when draining the queue.
        """
        if entity is None:
            return await self._queues[SAVE].run()

        if self.is_new(entity):
            response = await self.request(CREATE, body=dict(entity))
        else:
            response = await self.request(UPDATE, params={"id": self.id(entity)}, body=dict(entity))

        self._queues[SAVE].remove(entity)
        if not isinstance(response, Mapping):
            return entity
        stored = self._repository.reconcile(entity, dict(response))
        self._queues[SAVE].remove(stored)
        return stored

    async def destroy(self, entity_or_id: Any = None) -> Any:
        """Destroy one entity (by entity or identity), or every entity queued for destroy.

        An entity that was never persisted is only removed locally. To remove
        locally and defer the server call, see ``remove``.

        Returns:
            The server response, None for local-only entities, or the list of
            results when draining the queue.
        """
        if entity_or_id is None:
            return await self._queues[DESTROY_QUEUE].run()

        if not self._identity.has_id(entity_or_id):
            self._forget(entity_or_id)
            return None

        entity_id = self.id(entity_or_id)
        response = await self.request(DESTROY, params={"id": entity_id})
        stored = self._repository.find(entity_id)
        if stored is not None:
            self._forget(stored)
        if isinstance(entity_or_id, Mapping):
            self._forget(entity_or_id)
        return response

    async def reset(self) -> Entity | list[Entity] | None:
        """Discard unsaved local state and reload everything from the server."""
        for queue in self._queues.values():
            queue.empty()
        self._repository.empty()
        return await self.fetch()

    async def sync(self) -> Entity | list[Entity] | None:
        """Persist queued saves and destroys concurrently, then ``reset()``."""
        await asyncio.gather(self.save(), self.destroy())
        return await self.reset()

    def receive(self, message: Mapping[str, Any]) -> Any:
        """Apply a change pushed by the server; nothing is queued.

        Args:
            message: ``{"verb": "created" | "updated" | "destroyed", "id": ..., "data": {...}}``.

        Returns:
            The affected canonical entity, the bare identity for a destroy of an
            uncached entity, or None if the message was ignored.
        """
        verb = message.get("verb")
        data = message.get("data")
        entity_id = message.get("id")
        if entity_id is None and isinstance(data, Mapping):
            entity_id = self.id(data)

        if verb == "created" and isinstance(data, Mapping):
            return self._repository.add(dict(data))

        if verb == "updated" and entity_id is not None:
            stored = self._repository.find(entity_id)
            if stored is None:
                return None
            changes = dict(data) if isinstance(data, Mapping) else {}
            return self._repository.add({**stored, **changes, self.id_attribute: entity_id})

        if verb == "destroyed" and entity_id is not None:
            stored = self._repository.find(entity_id)
            if stored is None:
                self.trigger("change", entity_id)
                self.trigger("remove", entity_id)
                return entity_id
            self._forget(stored)
            return stored

        logger.warning("%s: ignoring server message with verb %r", self.name, verb)
        return None

    def close(self) -> None:
        """Drop every listener and pending entry. Cached data is kept."""
        self._router.clear()
        for queue in self._queues.values():
            queue.empty()

    def _forget(self, entity: Any) -> None:
        """Remove an entity locally without queueing anything."""
        stored = self._repository.remove(entity)
        for queue in self._queues.values():
            queue.remove(stored)
            queue.remove(entity)

    def _bind_api(self, api: Mapping[str, Callable[..., Any]]) -> None:
        for name, fn in api.items():
            if hasattr(self, name):
                raise ModelOptionsError(f"api method '{name}' would shadow Model.{name}")
            setattr(self, name, types.MethodType(fn, self))

    def __repr__(self) -> str:
        return f"Model(name={self.name!r}, entities={len(self.data)})"


def _flatten(entities: Iterable[Entity | list[Entity]]) -> list[Entity]:
    flat: list[Entity] = []
    for item in entities:
        if isinstance(item, list):
            flat.extend(item)
        else:
            flat.append(item)
    return flat


def _unwrap(arguments: tuple[Any, ...], results: list[Entity]) -> Entity | list[Entity]:
    if len(arguments) == 1 and not isinstance(arguments[0], list):
        return results[0]
    return results
