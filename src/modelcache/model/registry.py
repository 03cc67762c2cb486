"""Registry: owner of every model's cached data in one application.

Replaces process-global ``models``/``modelsById`` maps with one explicit
object constructed at startup and handed to whoever needs models.

Usage:
    registry = Registry(communicator, CacheSettings(connection="api"))
    users = registry.model(name="user", defaults={"active": True})
    registry.data["user"] is users.data  # True
    await registry.sync()
"""

from __future__ import annotations

import asyncio
import logging
import types
import warnings
from collections.abc import Iterator, Mapping
from typing import Any

from modelcache.communicator.protocol import Communicator
from modelcache.config.models import ModelOptions
from modelcache.config.settings import CacheSettings
from modelcache.core.types import Entity, Identity
from modelcache.model.model import Model

logger = logging.getLogger(__name__)


class Registry:
    """Creates models and owns their ``data`` lists and ``by_id`` indexes.

    Args:
        communicator: Shared by every model created here.
        settings: Defaults for every model (default: loaded from environment).
    """

    def __init__(
        self,
        communicator: Communicator,
        settings: CacheSettings | None = None,
    ) -> None:
        self._communicator = communicator
        self._settings = settings or CacheSettings()
        self._models: dict[str, Model] = {}
        self._data: dict[str, list[Entity]] = {}
        self._by_id: dict[str, dict[Identity, Entity]] = {}

    @property
    def communicator(self) -> Communicator:
        return self._communicator

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def data(self) -> Mapping[str, list[Entity]]:
        """Model name -> cached entities."""
        return types.MappingProxyType(self._data)

    @property
    def by_id(self) -> Mapping[str, dict[Identity, Entity]]:
        """Model name -> identity index."""
        return types.MappingProxyType(self._by_id)

    def model(self, **options: Any) -> Model:
        """Create and register a model.

        Registering a name twice replaces the earlier model and its data.

        Args:
            **options: Model options (see ``ModelOptions``).

        Returns:
            The new model.

        Raises:
            ModelOptionsError: If options are missing or invalid.
        """
        validated = ModelOptions.build(self._settings, **options)
        if validated.name in self._models:
            warnings.warn(
                f"Model '{validated.name}' registered twice. The earlier model is replaced.",
                stacklevel=2,
            )
            self._models[validated.name].close()

        data: list[Entity] = []
        by_id: dict[Identity, Entity] = {}
        model = Model(self._communicator, validated, data=data, by_id=by_id)
        self._data[validated.name] = data
        self._by_id[validated.name] = by_id
        self._models[validated.name] = model
        logger.debug("Registered model %s (%s)", validated.name, validated.url)
        return model

    def get(self, name: str) -> Model:
        """Get a registered model.

        Raises:
            KeyError: If no model has that name.
        """
        return self._models[name]

    def __getitem__(self, name: str) -> Model:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[Model]:
        return iter(list(self._models.values()))

    def __len__(self) -> int:
        return len(self._models)

    async def sync(self) -> None:
        """Run ``sync()`` on every registered model concurrently."""
        await asyncio.gather(*(model.sync() for model in self))

    def close(self) -> None:
        """Tear down listeners and pending queues of every model."""
        for model in self:
            model.close()
