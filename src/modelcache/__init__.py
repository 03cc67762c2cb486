"""modelcache: client-side cache of server-resident entities.

Usage:
    from modelcache import CacheSettings, InMemoryCommunicator, Registry

    registry = Registry(InMemoryCommunicator(), CacheSettings(connection="memory"))
    users = registry.model(name="user", defaults={"active": True})

    bob = users.create({"name": "bob"})
    users.listen_to(bob, "update", lambda user: print("saved", user))
    await users.save()   # bob gains an id in place
    await users.sync()   # push pending changes, then reload from the server
"""

__version__ = "0.1.0"

# Communicator
from modelcache.communicator import (
    Communicator,
    CommunicatorError,
    InMemoryCommunicator,
    Request,
    RequestNotFoundError,
    RequestTemplate,
    UnknownRequestError,
)

# Configuration
from modelcache.config import CacheSettings, ModelOptions, ModelOptionsError

# Core primitives
from modelcache.core import Entity, Identity, IdentityResolver, matches, replace_contents

# Events
from modelcache.events import ListenerRegistration, ListenerRouter

# Models
from modelcache.model import Model, Registry

# Queues
from modelcache.queue import PendingQueue

# Storage
from modelcache.storage import Repository, Store

__all__ = [
    # Version
    "__version__",
    # Core
    "Entity",
    "Identity",
    "IdentityResolver",
    "replace_contents",
    "matches",
    # Storage
    "Store",
    "Repository",
    # Queues
    "PendingQueue",
    # Events
    "ListenerRouter",
    "ListenerRegistration",
    # Models
    "Model",
    "Registry",
    # Configuration
    "CacheSettings",
    "ModelOptions",
    "ModelOptionsError",
    # Communicator
    "Communicator",
    "Request",
    "RequestTemplate",
    "InMemoryCommunicator",
    "CommunicatorError",
    "RequestNotFoundError",
    "UnknownRequestError",
]
