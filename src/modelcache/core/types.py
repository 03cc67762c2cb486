"""Core type definitions for modelcache."""

from collections.abc import Callable, Mapping
from typing import Any, TypeAlias

Entity: TypeAlias = dict[str, Any]
"""A cached record: an open-ended mapping of field names to values.

Entities are mutated in place by reconciliation. Holding a reference to one
keeps observing the cache's view of that record until it is removed.
"""

Identity: TypeAlias = Any
"""Value stored under a model's identity field (int, str, uuid, ...)."""

Probe: TypeAlias = Identity | Mapping[str, Any] | Callable[[Entity], bool]
"""Anything `Repository.find` accepts: an identity, a partial entity or a predicate."""
