"""Pure functions for in-place content replacement.

Stateless functions used by the repository to update cached entities without
replacing the objects callers hold references to.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, MutableSequence, Sequence
from typing import Any, TypeVar

T = TypeVar("T")


def replace_contents(target: T, source: Any = None) -> T:
    """Replace the contents of a container with the contents of another.

    Clears ``target`` and copies ``source`` into it, so every existing
    reference to ``target`` observes the new content. A REPLACE, not a merge:
    keys missing from ``source`` are gone afterwards.

    - list target: emptied, then extended with ``source`` if it is a sequence.
    - dict target: every key deleted, then every key of ``source`` copied if it
      is a mapping.

    Args:
        target: Container to mutate.
        source: Container providing the new content. None empties the target.

    Returns:
        ``target`` itself.
    """
    if target is source:
        return target

    if isinstance(target, MutableSequence):
        del target[:]
        if isinstance(source, Sequence) and not isinstance(source, str | bytes):
            target.extend(source)
    elif isinstance(target, MutableMapping):
        target.clear()
        if isinstance(source, Mapping):
            target.update(source)

    return target


def matches(entity: Mapping[str, Any], probe: Mapping[str, Any]) -> bool:
    """Check that every field of ``probe`` is present in ``entity`` with an equal value.

    An empty probe matches nothing.
    """
    if not probe:
        return False
    for key, value in probe.items():
        if key not in entity or entity[key] != value:
            return False
    return True
