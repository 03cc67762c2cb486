"""Shared test fixtures."""

import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from modelcache import (
    CacheSettings,
    IdentityResolver,
    InMemoryCommunicator,
    ListenerRouter,
    Registry,
    Repository,
)


class Recorder:
    """Collects (event, payload) pairs raised by a router."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def trigger(self, event: str, payload: object = None) -> None:
        self.calls.append((event, payload))

    @property
    def events(self) -> list[str]:
        return [event for event, _ in self.calls]


@pytest.fixture
def identity():
    """Default resolver (identity field "id")."""
    return IdentityResolver()


@pytest.fixture
def router(identity):
    """Fresh ListenerRouter."""
    return ListenerRouter(identity)


@pytest.fixture
def recorder():
    """Event sink recording every trigger."""
    return Recorder()


@pytest.fixture
def repository(identity, recorder):
    """Repository raising events into a recorder."""
    return Repository(identity, recorder)


@pytest.fixture
def communicator():
    """In-memory server with an empty user table."""
    return InMemoryCommunicator()


@pytest.fixture
def registry(communicator):
    """Registry bound to the in-memory communicator."""
    return Registry(communicator, CacheSettings(connection="memory"))


@pytest.fixture
def users(registry):
    """User model with an ``active`` default."""
    return registry.model(name="user", defaults={"active": True})
