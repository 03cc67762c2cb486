"""Deduplicating queue of entities awaiting one persistence action.

Usage:
    queue = PendingQueue(model.save)
    queue.add(user)
    queue.add(user)         # ignored, already queued
    results = await queue.run()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any

from modelcache.core.types import Entity

logger = logging.getLogger(__name__)

Task = Callable[[Entity], Awaitable[Any] | Any]
"""Signature: (entity) -> result or awaitable result"""


class PendingQueue:
    """Insertion-ordered set of entities, deduplicated by object identity.

    Args:
        task: Action run once per entity by ``run()``. May be sync or async.
        name: Label used in log messages (e.g. "save", "destroy").
    """

    def __init__(self, task: Task, name: str = "queue") -> None:
        self._task = task
        self._name = name
        # id(entity) -> entity; holding the entity keeps its id() stable
        self._items: dict[int, Entity] = {}

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity: object) -> bool:
        return self._items.get(id(entity)) is entity

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._items.values()))

    def add(self, entities: Entity | list[Entity]) -> None:
        """Queue entities not already queued. Duplicates are ignored."""
        if isinstance(entities, list):
            for entity in entities:
                self.add(entity)
            return
        self._items.setdefault(id(entities), entities)

    def remove(self, entities: Entity | list[Entity]) -> None:
        """Unqueue entities. Entities not queued are ignored."""
        if isinstance(entities, list):
            for entity in entities:
                self.remove(entity)
            return
        if entities in self:
            del self._items[id(entities)]

    def empty(self) -> None:
        """Drop every queued entity without running the task."""
        self._items.clear()

    async def run(self) -> list[Any]:
        """Drain the queue and run the task once per drained entity.

        The queue is emptied before the first task starts; entities queued
        while tasks run are left for the next call. Tasks run concurrently.
        The first failure propagates and drained entities are not re-queued.

        Returns:
            Task results in queue order.
        """
        drained = list(self._items.values())
        self._items.clear()
        if not drained:
            return []

        logger.debug("Running %s queue with %d entities", self._name, len(drained))
        return list(await asyncio.gather(*(self._invoke(entity) for entity in drained)))

    async def _invoke(self, entity: Entity) -> Any:
        result = self._task(entity)
        if inspect.isawaitable(result):
            return await result
        return result
