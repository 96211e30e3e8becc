"""Tests for state paths and the state store."""

import pytest

from screenspec.state.paths import (
    StatePathError,
    ancestor_paths,
    descendant_paths,
    format_path,
    get_in,
    normalize_path,
    parse_path,
    paths_overlap,
    set_in,
)
from screenspec.state.store import StateChange, StateStore


# ============================================================================
# Paths
# ============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "path,segments",
    [
        ("count", ("count",)),
        ("cartItems[0].price", ("cartItems", 0, "price")),
        ("items.0", ("items", 0)),
        ("form['first name']", ("form", "first name")),
        ("grid[1][2]", ("grid", 1, 2)),
    ],
)
def test_parse_path(path, segments):
    assert parse_path(path) == segments


@pytest.mark.unit
@pytest.mark.parametrize("path", ["", "a..b", ".a", "a.", "a[b"])
def test_parse_path_rejects_malformed(path):
    with pytest.raises(StatePathError):
        parse_path(path)


@pytest.mark.unit
def test_format_path_is_canonical():
    assert normalize_path("items.0.name") == "items[0].name"
    assert format_path(("a", 1, "b")) == "a[1].b"


@pytest.mark.unit
def test_ancestor_and_descendant_paths():
    assert ancestor_paths(("a", "b", 0)) == ["a", "a.b"]
    assert sorted(descendant_paths({"x": [1, {"y": 2}]}, ("root",))) == [
        "root.x",
        "root.x[0]",
        "root.x[1]",
        "root.x[1].y",
    ]


@pytest.mark.unit
def test_set_in_creates_containers():
    tree: dict = {}
    set_in(tree, ("a", "list", 2, "name"), "x")
    assert tree == {"a": {"list": [None, None, {"name": "x"}]}}
    assert get_in(tree, ("a", "list", 2, "name")) == "x"
    assert get_in(tree, ("a", "list", 9)) is None


# ============================================================================
# Store operations
# ============================================================================


@pytest.mark.unit
def test_get_missing_is_none(store):
    assert store.get("nope.deeper") is None
    assert store.get("user.name") == "Ada"


@pytest.mark.unit
def test_get_returns_copy(store):
    tags = store.get("tags")
    tags.append("Z")
    assert store.get("tags") == ["A", "B"]


@pytest.mark.unit
def test_set_creates_intermediate_containers(store):
    store.set("profile.addresses[1].city", "Oslo")
    assert store.get("profile.addresses") == [None, {"city": "Oslo"}]


@pytest.mark.unit
def test_toggle_in_array_round_trip():
    store = StateStore({"tags": ["A", "B"]})

    store.toggle_in_array("tags", "A")
    assert store.get("tags") == ["B"]

    store.toggle_in_array("tags", "A")
    assert store.get("tags") == ["B", "A"]


@pytest.mark.unit
def test_toggle_in_array_removes_first_match_only():
    store = StateStore({"tags": ["A", "B", "A"]})
    store.toggle_in_array("tags", "A")
    assert store.get("tags") == ["B", "A"]


@pytest.mark.unit
def test_append_keeps_duplicates(store):
    store.append_to_array("tags", "A")
    assert store.get("tags") == ["A", "B", "A"]


@pytest.mark.unit
def test_append_to_missing_array(store):
    store.append_to_array("cart", {"sku": 1})
    assert store.get("cart") == [{"sku": 1}]


@pytest.mark.unit
def test_remove_from_array_by_value_and_index():
    store = StateStore({"items": [1, 2, 1, 3]})

    store.remove_from_array("items", value=1)
    assert store.get("items") == [2, 3]

    store.remove_from_array("items", index=0)
    assert store.get("items") == [3]

    store.remove_from_array("items", index=5)
    assert store.get("items") == [3]

    with pytest.raises(ValueError):
        store.remove_from_array("items")


@pytest.mark.unit
@pytest.mark.parametrize("initial,expected", [(True, False), (False, True), (None, True), ("yes", True)])
def test_toggle_state(initial, expected):
    store = StateStore({"flag": initial})
    store.toggle_state("flag")
    assert store.get("flag") is expected


@pytest.mark.unit
def test_invalid_write_path_raises(store):
    with pytest.raises(StatePathError):
        store.set("a..b", 1)


@pytest.mark.unit
def test_far_index_write_is_rejected():
    store = StateStore({"items": ["a"]})

    with pytest.raises(StatePathError):
        store.set("items[1000000000]", "x")

    assert store.get("items") == ["a"]
    store.set("items[3]", "d")
    assert store.get("items") == ["a", None, None, "d"]


# ============================================================================
# Notifications and dirty tracking
# ============================================================================


@pytest.mark.unit
def test_change_includes_ancestors_and_descendants():
    store = StateStore({"items": [{"title": "a"}]})
    changes: list[StateChange] = []
    store.subscribe(changes.append)

    store.set("items", [{"title": "b"}, {"title": "c"}])

    change = changes[0]
    assert change.path == "items"
    assert change.operation == "set"
    assert {"items", "items[0]", "items[0].title", "items[1]", "items[1].title"} <= change.paths
    assert change.affects("items.1.title")


@pytest.mark.unit
def test_nested_write_notifies_parent_binding(store):
    changes: list[StateChange] = []
    store.subscribe(changes.append)

    store.set("user.name", "Grace")

    assert changes[0].affects("user")
    assert changes[0].affects("user.name")
    assert not changes[0].affects("count")


@pytest.mark.unit
def test_unsubscribe(store):
    changes: list[StateChange] = []
    token = store.subscribe(changes.append)

    assert store.unsubscribe(token)
    store.set("count", 1)

    assert changes == []
    assert not store.unsubscribe(token)


@pytest.mark.unit
def test_failing_subscriber_does_not_block_others(store):
    seen: list[str] = []

    def broken(change):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(lambda change: seen.append(change.path))
    store.set("count", 2)

    assert seen == ["count"]
    assert store.get("count") == 2


@pytest.mark.unit
def test_dirty_paths_consumed(store):
    store.set("user.name", "Grace")

    assert store.has_dirty_paths
    assert store.is_dirty("user")
    dirty = store.consume_dirty_paths()
    assert {"user", "user.name"} <= dirty
    assert not store.has_dirty_paths


@pytest.mark.unit
def test_restore_replaces_state(store):
    snapshot = store.snapshot()
    store.set("count", 10)
    store.restore(snapshot)
    assert store.get("count") == 0


@pytest.mark.unit
def test_writes_after_release_are_dropped(store, mocker):
    log = mocker.patch("screenspec.state.store.logger")
    store.release()

    store.set("count", 99)

    assert store.is_released
    assert store.get("count") == 0
    assert log.warning.call_args[0][0] == "state_write_after_release"


@pytest.mark.unit
@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("items", "items.count", True),
        ("items[0].title", "items", True),
        ("items", "items", True),
        ("", "count", True),
        ("items", "itemsOld", False),
        ("user.name", "user.age", False),
    ],
)
def test_paths_overlap(a, b, expected):
    assert paths_overlap(a, b) is expected
    assert paths_overlap(b, a) is expected


@pytest.mark.unit
def test_derived_binding_is_notified_and_dirty():
    store = StateStore({"items": ["a"]})
    changes: list[StateChange] = []
    store.subscribe(changes.append)

    store.append_to_array("items", "b")

    assert changes[0].affects("items.count")
    assert not changes[0].affects("itemsOld")
    assert store.is_dirty("items.count")
    assert store.is_dirty("items[5].title")
    assert not store.is_dirty("other")

    store.consume_dirty_paths()
    assert not store.is_dirty("items.count")
