"""Named-event subscription and entity-scoped dispatch.

Usage:
    router = ListenerRouter(IdentityResolver())

    router.on("change", print)
    registration = router.listen_to(user, "update", refresh_user_view)
    router.trigger("update", user)  # print(user), refresh_user_view(user)
    router.trigger("update", other_user)  # print(other_user) only
    registration.stop()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from modelcache.core.identity import IdentityResolver
from modelcache.events.models import Callback, ListenerRegistration

ANY_EVENT = None
"""Event key of subscribers notified for every event."""


class ListenerRouter:
    """Routes triggered events to direct subscribers and scoped registrations.

    Direct subscribers (``on``/``once``) receive every payload of their event.
    Scoped registrations (``listen_to``) are dispatched through an internal
    subscriber created lazily per event name, which applies the entity filter.

    Args:
        identity: Resolver used to compare entities by identity.
    """

    def __init__(self, identity: IdentityResolver | None = None) -> None:
        self._identity = identity or IdentityResolver()
        self._handlers: dict[str | None, list[Callback]] = {}
        self._internal_events: set[str | None] = set()
        self._registrations: list[ListenerRegistration] = []

    @property
    def registrations(self) -> tuple[ListenerRegistration, ...]:
        """Active scoped registrations in registration order."""
        return tuple(self._registrations)

    def on(self, event: str | None, callback: Callback) -> None:
        """Subscribe to an event. ``None`` subscribes to every event."""
        self._bind_internal(event)
        self._handlers.setdefault(event, []).append(callback)

    def off(self, event: str | None, callback: Callback | None = None) -> None:
        """Unsubscribe a callback, or every direct subscriber of the event."""
        handlers = self._handlers.get(event)
        if not handlers:
            return
        if callback is None:
            # Internal dispatchers stay so scoped registrations keep working
            handlers[:] = [h for h in handlers if getattr(h, "_internal", False)]
            return
        for index, handler in enumerate(handlers):
            if handler == callback or getattr(handler, "__wrapped__", None) == callback:
                del handlers[index]
                return

    def once(self, event: str | None, callback: Callback) -> None:
        """Subscribe a callback that fires at most once."""

        def shim(payload: Any) -> Any:
            self.off(event, shim)
            return callback(payload)

        shim.__wrapped__ = callback  # type: ignore[attr-defined]
        self.on(event, shim)

    def listen_to(
        self,
        model: Any = None,
        event: Any = None,
        callback: Callback | None = None,
    ) -> ListenerRegistration:
        """Register a listener scoped to an entity and/or an event name.

        Arguments shift when a callable is passed early:
        ``listen_to(cb)`` listens to everything, ``listen_to(model, cb)`` to
        every event of one entity.

        Args:
            model: Entity or bare identity to scope to, None for any entity.
            event: Event name to scope to, None for any event.
            callback: Called with the entity that triggered the event.

        Returns:
            Registration whose ``stop()`` removes it.

        Raises:
            TypeError: If no callback is given.
        """
        if callable(model) and not isinstance(model, Mapping):
            callback, model, event = model, None, None
        elif callable(event):
            callback, event = event, None

        if callback is None:
            raise TypeError("listen_to() requires a callback")

        registration = ListenerRegistration(
            model=model, event=event, callback=callback, _router=self
        )
        self._registrations.append(registration)
        self._bind_internal(event)
        return registration

    def trigger(self, event: str, payload: Any = None) -> None:
        """Deliver ``payload`` to the subscribers of ``event`` and of every event."""
        handlers = list(self._handlers.get(event, ()))
        if event is not ANY_EVENT:
            handlers.extend(self._handlers.get(ANY_EVENT, ()))

        dispatched = False
        for handler in handlers:
            if not getattr(handler, "_internal", False):
                handler(payload)
            elif not dispatched:
                # One pass serves the event's and the wildcard's registrations
                dispatched = True
                handler(event, payload)

    def clear(self) -> None:
        """Drop every subscriber and scoped registration."""
        for registration in list(self._registrations):
            registration.stop()
        self._handlers.clear()
        self._internal_events.clear()

    def _bind_internal(self, event: str | None) -> None:
        """Create the internal dispatcher for an event on first use."""
        if event in self._internal_events:
            return
        self._internal_events.add(event)

        def dispatch(triggered: str, payload: Any) -> None:
            self._run_registrations(triggered, payload)

        dispatch._internal = True  # type: ignore[attr-defined]
        self._handlers.setdefault(event, []).append(dispatch)

    def _run_registrations(self, event: str, payload: Any) -> None:
        """Invoke matching registrations in registration order."""
        if isinstance(payload, Mapping):
            data: Any = payload
            selected = [r for r in self._registrations if self._matches_entity(r, event, payload)]
        else:
            data = None
            selected = [
                r
                for r in self._registrations
                if r.model is None and (r.event is None or r.event == event)
            ]
        for registration in selected:
            registration.callback(data)

    def _matches_entity(
        self, registration: ListenerRegistration, event: str, entity: Mapping[str, Any]
    ) -> bool:
        if registration.event is not None and registration.event != event:
            return False
        if registration.model is None:
            return True
        if isinstance(registration.model, Mapping):
            return self._identity.same(entity, registration.model)
        return self._identity.id(entity) == registration.model

    def _discard(self, registration: ListenerRegistration) -> None:
        for index, existing in enumerate(self._registrations):
            if existing is registration:
                del self._registrations[index]
                return
