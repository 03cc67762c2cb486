"""In-memory server double implementing the RESTful model requests.

Simple dict-based tables suitable for single-process use and testing.
Records handed out are deep copies so client-side mutation never leaks into
server state.

Usage:
    communicator = InMemoryCommunicator()
    communicator.seed("user", [{"id": 1, "name": "bob"}])
    registry = Registry(communicator)
    users = registry.model(name="user", connection="memory")
    await users.fetch()
"""

from __future__ import annotations

import copy as cp
import inspect
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from modelcache.communicator.protocol import (
    CommunicatorError,
    Request,
    RequestNotFoundError,
)
from modelcache.communicator.routes import CREATE, DESTROY, FIND_ALL, FIND_BY_ID, UPDATE

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Any]
"""Signature: (request) -> response data or awaitable response data"""


class InMemoryCommunicator:
    """Dict-backed communicator: one table per model name.

    Args:
        id_attribute: Identity field assigned on create.
        created_on_attribute: Field stamped on create, None to skip.
        updated_on_attribute: Field stamped on create and update, None to skip.
    """

    def __init__(
        self,
        id_attribute: str = "id",
        created_on_attribute: str | None = "createdAt",
        updated_on_attribute: str | None = "updatedAt",
    ) -> None:
        self._id_attribute = id_attribute
        self._created_on_attribute = created_on_attribute
        self._updated_on_attribute = updated_on_attribute
        self._tables: dict[str, dict[Any, dict[str, Any]]] = {}
        self._next_ids: dict[str, int] = {}
        self._handlers: dict[tuple[str | None, str], Handler] = {}
        self.requests: list[Request] = []
        """Every request received, in arrival order."""

    def table(self, context: str) -> dict[Any, dict[str, Any]]:
        """Server-side records of a model, keyed by identity."""
        return self._tables.setdefault(context, {})

    def seed(self, context: str, records: Iterable[dict[str, Any]]) -> None:
        """Store records as if they had been created earlier."""
        table = self.table(context)
        for record in records:
            record_id = record.get(self._id_attribute)
            if record_id is None:
                record_id = self._allocate_id(context)
            elif isinstance(record_id, int):
                self._next_ids[context] = max(self._next_ids.get(context, 1), record_id + 1)
            table[record_id] = {**cp.deepcopy(record), self._id_attribute: record_id}

    def register(self, name: str, handler: Handler, context: str | None = None) -> None:
        """Handle requests named ``name`` (optionally only for one model) with ``handler``.

        Registered handlers take precedence over the built-in REST behavior.
        """
        self._handlers[(context, name)] = handler

    async def request(self, request: Request) -> Any:
        """Execute a request against the in-memory tables.

        Raises:
            RequestNotFoundError: If the addressed record does not exist.
            CommunicatorError: If no handler exists for the request.
        """
        self.requests.append(request)
        logger.debug("%s %s (%s)", request.method.upper(), request.route, request.name)

        handler = self._handlers.get((request.context, request.name)) or self._handlers.get(
            (None, request.name)
        )
        if handler is not None:
            result = handler(request)
            if inspect.isawaitable(result):
                return await result
            return result

        if request.name == FIND_ALL:
            return [cp.deepcopy(record) for record in self.table(request.context).values()]
        if request.name == FIND_BY_ID:
            return cp.deepcopy(self._get(request))
        if request.name == CREATE:
            return self._create(request)
        if request.name == UPDATE:
            return self._update(request)
        if request.name == DESTROY:
            record = self._get(request)
            del self.table(request.context)[record[self._id_attribute]]
            return cp.deepcopy(record)

        raise CommunicatorError(f"No handler for request '{request.name}'", request)

    def _get(self, request: Request) -> dict[str, Any]:
        record_id = request.params.get("id")
        record = self.table(request.context).get(record_id)
        if record is None:
            raise RequestNotFoundError(
                f"{request.context} with {self._id_attribute} {record_id!r} not found", request
            )
        return record

    def _create(self, request: Request) -> dict[str, Any]:
        record = cp.deepcopy(dict(request.body or {}))
        record_id = self._allocate_id(request.context)
        record[self._id_attribute] = record_id
        now = self._now()
        if self._created_on_attribute:
            record[self._created_on_attribute] = now
        if self._updated_on_attribute:
            record[self._updated_on_attribute] = now
        self.table(request.context)[record_id] = record
        return cp.deepcopy(record)

    def _update(self, request: Request) -> dict[str, Any]:
        existing = self._get(request)
        record = cp.deepcopy(dict(request.body or {}))
        record[self._id_attribute] = existing[self._id_attribute]
        if self._created_on_attribute and self._created_on_attribute in existing:
            record[self._created_on_attribute] = existing[self._created_on_attribute]
        if self._updated_on_attribute:
            record[self._updated_on_attribute] = self._now()
        self.table(request.context)[record[self._id_attribute]] = record
        return cp.deepcopy(record)

    def _allocate_id(self, context: str) -> int:
        record_id = self._next_ids.get(context, 1)
        self._next_ids[context] = record_id + 1
        return record_id

    @staticmethod
    def _now() -> str:
        return datetime.now(UTC).isoformat()
