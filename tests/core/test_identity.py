"""Tests for identity resolution.

Critical Invariants:
- An entity without a value under the identity field is new
- Bare identities pass through id()
- Same-record comparison needs equal, defined identities
"""

import pytest

from modelcache.core.identity import IdentityResolver


@pytest.fixture
def uuid_identity():
    """Resolver with a custom identity field."""
    return IdentityResolver(id_attribute="uuid")


def test_id_reads_identity_field(identity):
    assert identity.id({"id": 3, "name": "a"}) == 3


def test_id_passes_bare_identity_through(identity):
    assert identity.id(3) == 3
    assert identity.id("abc") == "abc"


def test_custom_identity_field(uuid_identity):
    assert uuid_identity.id({"uuid": "a1", "id": 9}) == "a1"
    assert uuid_identity.is_new({"id": 9})


def test_is_new_without_identity(identity):
    """CRITICAL: missing or None identity means never persisted."""
    assert identity.is_new({"name": "bob"})
    assert identity.is_new({"id": None})
    assert not identity.is_new({"id": 0})


def test_has_id(identity):
    assert identity.has_id({"id": 1})
    assert identity.has_id(0)
    assert not identity.has_id({"name": "x"})
    assert not identity.has_id(None)
    assert not identity.has_id(lambda entity: True)


def test_same_by_reference_or_identity(identity):
    entity = {"name": "x"}

    assert identity.same(entity, entity)
    assert identity.same({"id": 1, "name": "a"}, {"id": 1, "name": "b"})
    assert not identity.same({"name": "x"}, {"name": "x"})
    assert not identity.same({"id": 1}, {"id": 2})


def test_strip_removes_identity_and_timestamps(identity):
    entity = {"id": 1, "createdAt": "t0", "updatedAt": "t1", "name": "bob"}

    stripped = identity.strip(entity)

    assert stripped == {"name": "bob"}
    assert entity["id"] == 1, "strip must not mutate its input"
