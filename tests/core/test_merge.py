"""Tests for in-place replacement and structural matching.

Critical Invariants:
- replace_contents keeps the target object, replacing all of its content
- Keys missing from the source are removed (replace, not merge)
"""

from modelcache.core.merge import matches, replace_contents


def test_replace_dict_in_place():
    """CRITICAL: existing references observe the new content."""
    target = {"id": 1, "name": "a", "stale": True}
    alias = target

    result = replace_contents(target, {"id": 1, "name": "b"})

    assert result is target
    assert alias == {"id": 1, "name": "b"}
    assert "stale" not in alias


def test_replace_same_object_is_noop():
    target = {"id": 1}

    assert replace_contents(target, target) is target
    assert target == {"id": 1}


def test_replace_list_in_place():
    target = [1, 2, 3]

    replace_contents(target, [4, 5])

    assert target == [4, 5]


def test_replace_list_with_non_sequence_empties_it():
    target = [1, 2, 3]

    replace_contents(target, {"a": 1})

    assert target == []


def test_replace_dict_with_non_mapping_empties_it():
    target = {"a": 1}

    replace_contents(target, None)

    assert target == {}


def test_matches_partial_fields():
    entity = {"id": 1, "name": "bob", "active": True}

    assert matches(entity, {"name": "bob"})
    assert matches(entity, {"name": "bob", "active": True})
    assert not matches(entity, {"name": "alice"})
    assert not matches(entity, {"missing": None})


def test_empty_probe_matches_nothing():
    assert not matches({"id": 1}, {})
