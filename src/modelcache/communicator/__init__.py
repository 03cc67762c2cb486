"""Request layer interface and the bundled in-memory communicator."""

from modelcache.communicator.memory import InMemoryCommunicator
from modelcache.communicator.protocol import (
    Communicator,
    CommunicatorError,
    Request,
    RequestNotFoundError,
    RequestTemplate,
    UnknownRequestError,
)
from modelcache.communicator.routes import (
    CREATE,
    DESTROY,
    FIND_ALL,
    FIND_BY_ID,
    REST_REQUESTS,
    UPDATE,
    make_custom_requests,
    make_rest_requests,
)

__all__ = [
    # Protocol
    "Communicator",
    "Request",
    "RequestTemplate",
    # Errors
    "CommunicatorError",
    "RequestNotFoundError",
    "UnknownRequestError",
    # Routes
    "make_rest_requests",
    "make_custom_requests",
    "REST_REQUESTS",
    "FIND_ALL",
    "FIND_BY_ID",
    "CREATE",
    "UPDATE",
    "DESTROY",
    # Implementations
    "InMemoryCommunicator",
]
