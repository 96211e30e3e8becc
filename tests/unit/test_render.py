"""Tests for the document resolver."""

import pytest

from screenspec.document.models import DocumentDefinition, SequenceAction, SetStateAction
from screenspec.render.resolver import DocumentResolver


def make_document(children: list, **extra) -> DocumentDefinition:
    return DocumentDefinition.model_validate({"id": "doc", **extra, "root": {"children": children}})


@pytest.fixture
def counter(counter_document, metrics):
    document = DocumentDefinition.model_validate(counter_document)
    return DocumentResolver(document, metrics=metrics)


# ============================================================================
# Whole tree
# ============================================================================


@pytest.mark.unit
def test_resolution_is_deterministic(counter, counter_document):
    state = counter_document["state"]
    assert counter.resolve_tree(state) == counter.resolve_tree(state)


@pytest.mark.unit
def test_counter_tree(counter, counter_document):
    tree = counter.resolve_tree(counter_document["state"])

    assert tree.document_id == "counter"
    assert tree.root.kind == "root"
    assert tree.root.props["backgroundColor"] == "#AABBCC"
    assert [child.id for child in tree.root.children] == ["greeting", "count", "inc", "tagA", "nameField", "list"]

    greeting = tree.find("greeting")
    assert greeting.text == "Hello Ada"
    assert greeting.style == {"fontSize": 14, "color": "#FFFFFF", "fontWeight": "bold"}

    assert tree.find("count").text == "Count: 0"


@pytest.mark.unit
def test_tree_holds_no_templates_or_style_ids(counter, counter_document):
    data = counter.resolve_tree(counter_document["state"]).root.to_dict()

    def walk(node):
        assert "styleId" not in node and "style_id" not in node
        assert "${" not in (node.get("text") or "")
        for child in node.get("children", []):
            walk(child)

    walk(data)


@pytest.mark.unit
def test_named_actions_are_bound(counter, counter_document):
    tree = counter.resolve_tree(counter_document["state"])
    bound = tree.find("inc").actions["onTap"]
    assert isinstance(bound.action, SetStateAction)
    assert bound.action.path == "count"


@pytest.mark.unit
def test_resolution_records_metrics(counter, counter_document, metrics):
    counter.resolve_tree(counter_document["state"])
    assert metrics.registry.get_sample_value("screenspec_resolutions_total") == 1.0


@pytest.mark.unit
def test_resolution_exports_cache_counters(counter, counter_document, metrics):
    def sample(name):
        return metrics.registry.get_sample_value(name, {"cache_type": "expression"}) or 0.0

    counter.resolve_tree(counter_document["state"])
    first_misses = sample("screenspec_cache_misses_total")
    first_hits = sample("screenspec_cache_hits_total")
    assert first_misses > 0

    counter.resolve_tree(counter_document["state"])

    assert sample("screenspec_cache_misses_total") == first_misses
    assert sample("screenspec_cache_hits_total") > first_hits
    assert counter.evaluator.cache.stats.take_unreported() == (0, 0)


# ============================================================================
# Variants
# ============================================================================


@pytest.mark.unit
def test_variant_style_follows_selection(counter, counter_document):
    state = dict(counter_document["state"])

    normal = counter.resolve_tree(state).find("tagA")
    assert normal.props["isSelected"] is False
    assert "backgroundColor" not in normal.style

    state["tags"] = ["A"]
    selected = counter.resolve_tree(state).find("tagA")
    assert selected.props["isSelected"] is True
    assert selected.style["backgroundColor"] == "#00FF00"


@pytest.mark.unit
def test_disabled_variant_wins_over_selected():
    document = make_document(
        [
            {
                "type": "button",
                "id": "b",
                "styles": {"normal": "n", "selected": "s", "disabled": "d"},
                "isSelectedBinding": "on",
                "isDisabledBinding": "${locked}",
            }
        ],
        styles={"n": {"opacity": 1}, "s": {"opacity": 0.8}, "d": {"opacity": 0.3}},
    )
    node = DocumentResolver(document).resolve_tree({"on": True, "locked": True}).find("b")

    assert node.style == {"opacity": 0.3}
    assert node.props["isDisabled"] is True


# ============================================================================
# Data sources and inputs
# ============================================================================


@pytest.mark.unit
def test_data_sources():
    document = make_document(
        [
            {"type": "label", "id": "static", "dataSourceId": "s"},
            {"type": "label", "id": "path", "dataSourceId": "p"},
            {"type": "label", "id": "missing", "dataSourceId": "ghost", "text": "ignored"},
            {"type": "label", "id": "inline", "data": {"value": {"type": "binding", "path": "user.name"}}},
        ],
        dataSources={"s": {"type": "static", "value": 42}, "p": {"type": "binding", "path": "cart.count"}},
    )
    tree = DocumentResolver(document).resolve_tree({"cart": {"count": 3}, "user": {"name": "Ada"}})

    assert tree.find("static").text == "42"
    assert tree.find("path").text == "3"
    assert tree.find("missing").text == ""
    assert tree.find("inline").text == "Ada"


@pytest.mark.unit
def test_bound_inputs():
    document = make_document(
        [
            {"type": "textfield", "id": "name", "bind": "form.name", "placeholder": "Hi ${user}"},
            {"type": "toggle", "id": "dark", "bind": "darkMode", "text": "Dark"},
            {"type": "slider", "id": "vol", "bind": "volume", "minValue": 0, "maxValue": 10},
        ]
    )
    tree = DocumentResolver(document).resolve_tree({"form": {"name": "Ada"}, "user": "you", "volume": 42})

    field = tree.find("name")
    assert field.value == "Ada"
    assert field.placeholder == "Hi you"
    write = field.actions["valueChanged"].action
    assert isinstance(write, SetStateAction)
    assert write.path == "form.name"
    assert write.value == {"$expr": "$event"}

    assert tree.find("dark").value is False
    assert tree.find("vol").value == 10


@pytest.mark.unit
def test_bound_input_keeps_declared_value_changed():
    document = make_document(
        [
            {
                "type": "toggle",
                "id": "t",
                "bind": "flag",
                "actions": {"valueChanged": {"type": "custom", "name": "track"}},
            }
        ]
    )
    action = DocumentResolver(document).resolve_tree({}).find("t").actions["valueChanged"].action

    assert isinstance(action, SequenceAction)
    assert action.steps[0].type == "setState"
    assert action.steps[1].type == "custom"


# ============================================================================
# forEach
# ============================================================================


@pytest.mark.unit
def test_for_each_expands_items(counter, counter_document):
    node = counter.resolve_tree(counter_document["state"]).find("list")

    assert node.kind == "vstack"
    assert node.props["repeated"] == 2
    assert [child.text for child in node.children] == ["0: One", "1: Two"]
    assert [child.id for child in node.children] == ["row[0]", "row[1]"]


@pytest.mark.unit
def test_for_each_binds_locals_into_actions():
    document = make_document(
        [
            {
                "type": "forEach",
                "id": "list",
                "items": "items",
                "template": {
                    "type": "button",
                    "id": "remove",
                    "text": "${item}",
                    "actions": {"onTap": {"type": "removeFromArray", "path": "items", "index": 0}},
                },
            }
        ]
    )
    node = DocumentResolver(document).resolve_tree({"items": ["a", "b"]}).find("list")

    assert node.children[1].actions["onTap"].locals == {"item": "b", "index": 1, "$repeat": (1,)}


@pytest.mark.unit
def test_for_each_empty_view():
    document = make_document(
        [
            {
                "type": "forEach",
                "id": "list",
                "items": "items",
                "layout": "hstack",
                "template": {"type": "label", "text": "${item}"},
                "emptyView": {"type": "label", "id": "empty", "text": "Nothing yet"},
            }
        ]
    )
    node = DocumentResolver(document).resolve_tree({"items": []}).find("list")

    assert node.kind == "hstack"
    assert [child.text for child in node.children] == ["Nothing yet"]


# ============================================================================
# Degradation
# ============================================================================


@pytest.mark.unit
def test_bad_binding_degrades_to_neutral():
    document = make_document([{"type": "label", "id": "l", "text": "Total: ${price * qty} ${broken +}"}])
    node = DocumentResolver(document).resolve_tree({"price": "free"}).find("l")

    assert node.error is None
    assert node.text == ""


@pytest.mark.unit
def test_deeply_nested_binding_leaves_siblings_intact():
    deep = "${" + "(" * 150 + "1" + ")" * 150 + "}"
    document = make_document(
        [
            {"type": "label", "id": "deep", "text": deep},
            {"type": "label", "id": "plain", "text": "Hi ${name}"},
        ]
    )
    tree = DocumentResolver(document).resolve_tree({"name": "Ada"})

    assert tree.find("deep").text == ""
    assert tree.find("deep").error is None
    assert tree.find("plain").text == "Hi Ada"


@pytest.mark.unit
def test_padding_precedence():
    document = make_document(
        [{"type": "label", "id": "l", "styleId": "padded", "padding": {"leading": 20}}],
        styles={"padded": {"padding": {"all": 4, "vertical": 6}}},
    )
    node = DocumentResolver(document).resolve_tree({}).find("l")

    assert node.padding == {"top": 6.0, "bottom": 6.0, "leading": 20.0, "trailing": 4.0}
    assert "padding" not in node.style


# ============================================================================
# Local state
# ============================================================================


def local_card(**extra) -> dict:
    return {
        "type": "vstack",
        "id": "card",
        "state": {"expanded": False, "note": "none"},
        "children": [
            {"type": "toggle", "id": "expand", "localBind": "expanded"},
            {"type": "label", "id": "summary", "text": "${local.expanded ? 'Open' : 'Closed'} ${local.note}"},
            {"type": "label", "id": "source", "data": {"value": {"type": "localBinding", "path": "note"}}},
        ],
        **extra,
    }


@pytest.mark.unit
def test_local_state_defaults_and_local_bind():
    tree = DocumentResolver(make_document([local_card()])).resolve_tree({})

    toggle = tree.find("expand")
    assert toggle.value is False
    assert tree.find("summary").text == "Closed none"
    assert tree.find("source").text == "none"

    write = toggle.actions["valueChanged"]
    assert write.action.path == "local.expanded"
    assert write.locals["$localScope"] == "card"


@pytest.mark.unit
def test_local_state_reads_written_values():
    state = {"$local": {"card": {"expanded": True}}}
    tree = DocumentResolver(make_document([local_card()])).resolve_tree(state)

    assert tree.find("expand").value is True
    assert tree.find("summary").text == "Open none"


@pytest.mark.unit
def test_repeated_local_scopes_are_distinct():
    document = make_document(
        [
            {
                "type": "forEach",
                "id": "list",
                "items": "rows",
                "template": {
                    "type": "toggle",
                    "id": "row",
                    "state": {"on": False},
                    "localBind": "on",
                    "text": "${item}",
                },
            }
        ]
    )
    state = {"rows": ["a", "b"], "$local": {"row_1": {"on": True}}}
    node = DocumentResolver(document).resolve_tree(state).find("list")

    assert [child.value for child in node.children] == [False, True]
    assert [child.actions["valueChanged"].locals["$localScope"] for child in node.children] == ["row_0", "row_1"]


@pytest.mark.unit
def test_tree_carries_both_versions(counter, counter_document):
    tree = counter.resolve_tree(counter_document["state"])

    assert tree.version == "0.1.0"
    assert tree.ir_version == "0.1.0"
