"""Change notification: named events and entity-scoped listeners."""

from modelcache.events.models import Callback, ListenerRegistration
from modelcache.events.router import ANY_EVENT, ListenerRouter

__all__ = [
    "ListenerRouter",
    "ListenerRegistration",
    "Callback",
    "ANY_EVENT",
]
