"""Listener registration models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from modelcache.events.router import ListenerRouter

Callback = Callable[[Any], Any]
"""Signature: (payload) -> ignored"""


@dataclass(eq=False, slots=True)
class ListenerRegistration:
    """A callback scoped to one entity and/or one event name.

    Attributes:
        model: Entity or bare identity the listener is scoped to, None for any
            entity. Used only for identity comparison, never mutated.
        event: Event name the listener is scoped to, None for any event.
        callback: Called with the triggering entity (or None).
    """

    model: Any
    event: str | None
    callback: Callback
    _router: ListenerRouter | None = field(default=None, repr=False)

    def stop(self) -> None:
        """Remove exactly this registration from its router."""
        if self._router is not None:
            self._router._discard(self)
            self._router = None

    @property
    def active(self) -> bool:
        """Whether the registration still receives notifications."""
        return self._router is not None
