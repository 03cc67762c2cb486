"""Identity resolution for entities.

Usage:
    identity = IdentityResolver(id_attribute="uuid")
    identity.id({"uuid": "a1"})      # "a1"
    identity.id("a1")                # "a1"
    identity.is_new({"name": "x"})   # True
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from modelcache.core.types import Entity, Identity


@dataclass(frozen=True, slots=True)
class IdentityResolver:
    """Pure functions over a model's identity and timestamp field names."""

    id_attribute: str = "id"
    created_on_attribute: str = "createdAt"
    updated_on_attribute: str = "updatedAt"

    def id(self, entity_or_id: Any) -> Identity | None:
        """Get the identity of an entity, or pass a bare identity through.

        Args:
            entity_or_id: Entity mapping or identity value.

        Returns:
            The identity value, or None if the entity carries none.
        """
        if isinstance(entity_or_id, Mapping):
            return entity_or_id.get(self.id_attribute)
        return entity_or_id

    def has_id(self, entity_or_id: Any) -> bool:
        """Check whether an identity can be resolved from the argument."""
        if callable(entity_or_id) and not isinstance(entity_or_id, Mapping):
            return False
        return self.id(entity_or_id) is not None

    def is_new(self, entity: Mapping[str, Any]) -> bool:
        """Check whether an entity has never been persisted (carries no identity)."""
        return entity.get(self.id_attribute) is None

    def same(self, left: Any, right: Any) -> bool:
        """Check whether two entities refer to the same record.

        True for the same object, or when both carry equal, defined identities.
        """
        if left is right:
            return True
        left_id = self.id(left) if isinstance(left, Mapping) else None
        right_id = self.id(right) if isinstance(right, Mapping) else None
        return left_id is not None and left_id == right_id

    def strip(self, entity: Mapping[str, Any]) -> Entity:
        """Shallow copy of an entity without identity and timestamp fields."""
        reserved = (self.id_attribute, self.created_on_attribute, self.updated_on_attribute)
        return {key: value for key, value in entity.items() if key not in reserved}
