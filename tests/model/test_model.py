"""Tests for Model construction and local (non-network) operations.

Critical Invariants:
- Local mutators never call the communicator
- add queues for save, remove queues for destroy, never both at once
- create merges attributes over a fresh copy of the defaults
"""

import pytest

from modelcache import (
    CacheSettings,
    InMemoryCommunicator,
    Model,
    ModelOptions,
    ModelOptionsError,
    Store,
    UnknownRequestError,
)


def save_queue(model):
    return list(model.queues["save"])


def destroy_queue(model):
    return list(model.queues["destroy"])


# Construction


def test_model_from_keyword_options(communicator):
    model = Model(communicator, name="user", connection="api")

    assert model.name == "user"
    assert model.url == "/user"
    assert model.event == "user"
    assert model.connection == "api"
    assert set(model.requests) == {"find_all", "find_by_id", "create", "update", "destroy"}
    assert isinstance(model.repository, Store)


def test_model_requires_name_and_connection(communicator):
    with pytest.raises(ModelOptionsError):
        Model(communicator, connection="api")
    with pytest.raises(ModelOptionsError):
        Model(communicator, name="user", settings=CacheSettings(connection=""))


def test_options_and_keywords_are_exclusive(communicator):
    options = ModelOptions.build(CacheSettings(connection="api"), name="user")

    with pytest.raises(TypeError):
        Model(communicator, options, name="other")


def test_repr(users):
    users.add({"id": 1})

    assert repr(users) == "Model(name='user', entities=1)"


# create / clone


def test_create_applies_defaults_and_queues_for_save(users, communicator):
    """Scenario: create({"name": "x"}) with defaults {"active": True}."""
    entity = users.create({"name": "x"})

    assert entity == {"active": True, "name": "x"}
    assert users.is_new(entity)
    assert save_queue(users) == [entity]
    assert users.data == [entity]
    assert communicator.requests == []


def test_create_attributes_win_over_defaults(users):
    assert users.create({"active": False})["active"] is False


def test_create_copies_nested_defaults(registry):
    tags = registry.model(name="post", defaults={"tags": []})

    first = tags.create()
    first["tags"].append("x")
    second = tags.create()

    assert second["tags"] == []
    assert tags.defaults["tags"] == []


def test_clone_strips_identity_and_timestamps(users):
    original = users.add({"id": 1, "name": "a", "createdAt": "t0", "updatedAt": "t1"})

    copy = users.clone(original)

    assert copy == {"active": True, "name": "a"}
    assert copy is not original
    assert len(users.data) == 2
    assert save_queue(users)[-1] is copy


# add / set / remove


def test_add_returns_single_or_list(users):
    single = users.add({"id": 1})
    many = users.add([{"id": 2}, {"id": 3}], {"id": 4})

    assert single == {"id": 1}
    assert [e["id"] for e in many] == [2, 3, 4]
    assert len(save_queue(users)) == 4


def test_add_duplicate_identity_queues_canonical_entity_once(users):
    first = users.add({"id": 1, "name": "a"})
    users.add({"id": 1, "name": "b"})

    assert save_queue(users) == [first]
    assert first["name"] == "b"


def test_set_merges_fields_in_place(users):
    entity = users.add({"id": 1, "name": "a", "email": "a@x"})

    result = users.set(entity, {"name": "b"}, active=False)

    assert result is entity
    assert entity == {"id": 1, "name": "b", "email": "a@x", "active": False}
    assert users.by_id[1] is entity


def test_remove_moves_entity_to_destroy_queue(users):
    entity = users.add({"id": 1})

    removed = users.remove(entity)

    assert removed is entity
    assert users.data == []
    assert save_queue(users) == []
    assert destroy_queue(users) == [entity]


def test_add_after_remove_cancels_destroy(users):
    entity = users.add({"id": 1})
    users.remove(entity)

    users.add(entity)

    assert destroy_queue(users) == []
    assert save_queue(users) == [entity]


def test_remove_unknown_entity_is_local_noop(users, recorder):
    users.on(None, lambda payload: recorder.trigger("any", payload))

    ghost = users.remove({"id": 42})

    assert ghost == {"id": 42}
    assert recorder.calls == []
    assert destroy_queue(users) == [ghost]


# Read-only views


def test_by_id_is_read_only(users):
    users.add({"id": 1})

    with pytest.raises(TypeError):
        users.by_id[2] = {"id": 2}


def test_find_and_id(users):
    entity = users.add({"id": 5, "name": "a"})

    assert users.find(5) is entity
    assert users.find({"name": "a"}) is entity
    assert users.id(entity) == 5
    assert users.id(5) == 5


# Events through the model


def test_listen_to_entity_updates(users):
    seen = []
    entity = users.add({"id": 1, "name": "a"})
    users.listen_to(entity, "update", seen.append)

    users.add({"id": 1, "name": "b"})
    users.add({"id": 2, "name": "other"})

    assert seen == [entity]


def test_on_change_sees_every_mutation(users):
    events = []
    users.on("change", lambda entity: events.append(entity.get("id")))

    entity = users.create({"name": "a"})
    users.set(entity, id=1)
    users.remove(entity)

    assert events == [None, 1, 1]


def test_close_drops_listeners_and_queues(users):
    seen = []
    users.on("add", seen.append)
    users.create({"name": "a"})

    users.close()
    users.create({"name": "b"})

    assert len(seen) == 1
    assert len(users.data) == 2
    assert save_queue(users)[0]["name"] == "b"


# Custom requests and api


@pytest.mark.asyncio
async def test_custom_request_runs_through_communicator(registry, communicator):
    communicator.register("login", lambda request: {"token": request.body["user"]})
    users = registry.model(
        name="user",
        requests={"login": {"route": "/user/login", "method": "post"}},
    )

    result = await users.request("login", body={"user": "bob"})

    assert result == {"token": "bob"}
    request = communicator.requests[-1]
    assert (request.method, request.route, request.context) == ("post", "/user/login", "user")


@pytest.mark.asyncio
async def test_unknown_request_raises(users):
    with pytest.raises(UnknownRequestError):
        await users.request("nope")


def test_api_methods_are_bound(registry):
    def active(model):
        return [entity for entity in model.data if entity.get("active")]

    users = registry.model(name="user", api={"active": active})
    users.add([{"id": 1, "active": True}, {"id": 2, "active": False}])

    assert [entity["id"] for entity in users.active()] == [1]


def test_api_method_cannot_shadow_model_attribute():
    with pytest.raises(ModelOptionsError, match="save"):
        Model(InMemoryCommunicator(), name="user", connection="api", api={"save": lambda m: None})


@pytest.mark.asyncio
async def test_custom_request_can_override_rest_route(registry, communicator):
    users = registry.model(name="user", requests={"find_all": {"route": "/user/active"}})

    await users.fetch()

    assert communicator.requests[-1].route == "/user/active"


@pytest.mark.asyncio
async def test_set_identity_owned_by_cached_entity_keeps_one(users, communicator):
    """CRITICAL: giving a local entity a cached identity merges the two.

    Why: two cached dicts with one identity would both be queued and saved.
    """
    communicator.seed("user", [{"id": 1, "name": "server"}])
    persisted = users.add({"id": 1, "name": "server"})
    local = users.create({"name": "draft"})

    result = users.set(local, {"id": 1})

    assert result is persisted
    assert len([e for e in users.data if e.get("id") == 1]) == 1
    assert save_queue(users) == [persisted]

    await users.save()

    assert [r.name for r in communicator.requests] == ["update"]
