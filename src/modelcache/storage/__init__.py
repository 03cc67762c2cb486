"""Entity storage backends."""

from modelcache.storage.protocol import EventSink, Store
from modelcache.storage.repository import Repository

__all__ = [
    "Store",
    "EventSink",
    "Repository",
]
