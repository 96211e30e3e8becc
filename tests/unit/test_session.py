"""Tests for document sessions."""

import asyncio
import json

import pytest

from screenspec.actions.presentation import AlertIntent, RecordingPresentationHost
from screenspec.actions.runtime import ActionPhase
from screenspec.core.validate import DocumentError
from screenspec.session import DocumentSession


@pytest.fixture
def session(counter_document, settings, metrics):
    return DocumentSession.from_json(json.dumps(counter_document), settings=settings, metrics=metrics)


# ============================================================================
# Loading
# ============================================================================


@pytest.mark.unit
def test_initial_tree_resolved(session):
    assert session.id.startswith("sess")
    assert session.tree.find("count").text == "Count: 0"
    assert session.store.has_dirty_paths is False


@pytest.mark.unit
def test_load_metrics(counter_document, settings, metrics):
    DocumentSession.from_json(json.dumps(counter_document), settings=settings, metrics=metrics)
    with pytest.raises(DocumentError):
        DocumentSession.from_json("{", settings=settings, metrics=metrics)

    assert metrics.registry.get_sample_value("screenspec_documents_loaded_total", {"status": "success"}) == 1.0
    assert metrics.registry.get_sample_value("screenspec_documents_loaded_total", {"status": "failure"}) == 1.0


# ============================================================================
# Events
# ============================================================================


@pytest.mark.unit
@pytest.mark.asyncio
async def test_tap_updates_tree(session):
    outcome = await session.dispatch("inc", "onTap")

    assert outcome.phase == ActionPhase.COMPLETED
    assert session.tree.find("count").text == "Count: 1"

    await session.dispatch("inc", "onTap")
    assert session.tree.find("count").text == "Count: 2"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_listeners_receive_dirty_paths(session):
    seen = []
    token = session.subscribe(lambda tree, dirty: seen.append((tree.find("tagA").props["isSelected"], dirty)))

    await session.dispatch("tagA", "onTap")

    assert len(seen) == 1
    selected, dirty = seen[0]
    assert selected is True
    assert "tags" in dirty

    assert session.unsubscribe(token) is True
    await session.dispatch("tagA", "onTap")
    assert len(seen) == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_failing_listener_does_not_break_refresh(session):
    def broken(tree, dirty):
        raise RuntimeError("listener bug")

    session.subscribe(broken)
    await session.dispatch("inc", "onTap")

    assert session.tree.find("count").text == "Count: 1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_text_field_writes_event_value(session):
    await session.dispatch("nameField", "valueChanged", "Grace")

    assert session.store.get("name") == "Grace"
    assert session.tree.find("nameField").value == "Grace"
    assert session.tree.find("greeting").text == "Hello Grace"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unhandled_event_returns_none(session):
    assert await session.dispatch("count", "onTap") is None
    assert await session.dispatch("ghost", "onTap") is None


@pytest.mark.unit
@pytest.mark.asyncio
async def test_perform_inline_action(session):
    await session.perform({"type": "setState", "path": "count", "value": {"$expr": "$event * 2"}}, 21)

    assert session.tree.find("count").text == "Count: 42"


# ============================================================================
# Lifecycle
# ============================================================================


def lifecycle_document() -> dict:
    return {
        "id": "lifecycle",
        "state": {"visits": 0},
        "actions": {
            "visit": {"type": "setState", "path": "visits", "value": {"$expr": "visits + 1"}},
            "farewell": {"type": "showAlert", "title": "Bye"},
        },
        "root": {
            "actions": {"onAppear": "visit", "onDisappear": "farewell"},
            "children": [{"type": "label", "id": "visits", "text": "${visits}"}],
        },
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_open_and_close_run_lifecycle_actions(settings, metrics):
    host = RecordingPresentationHost()
    session = DocumentSession.from_json(
        json.dumps(lifecycle_document()), settings=settings, metrics=metrics, presentation=host
    )

    async with session:
        assert session.is_open
        assert session.tree.find("visits").text == "1"
        assert metrics.registry.get_sample_value("screenspec_sessions_active") == 1.0

    assert not session.is_open
    assert host.intents == [AlertIntent(title="Bye", message=None, buttons=host.intents[0].buttons)]
    assert metrics.registry.get_sample_value("screenspec_sessions_active") == 0.0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_writes_after_close_are_dropped(session):
    await session.open()
    await session.close()

    outcome = await session.perform({"type": "setState", "path": "count", "value": 5})

    assert outcome.phase == ActionPhase.FAILED
    assert session.store.get("count") == 0
    assert session.tree.find("count").text == "Count: 0"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_is_idempotent(session, metrics):
    await session.open()
    await session.close()
    await session.close()
    session.teardown()

    assert metrics.registry.get_sample_value("screenspec_sessions_active") == 0.0


# ============================================================================
# Requests
# ============================================================================


def loading_document() -> dict:
    return {
        "id": "loader",
        "state": {"loading": False},
        "actions": {
            "load": {"type": "request", "url": "/items", "loadingPath": "loading", "responsePath": "items"},
        },
        "root": {
            "children": [
                {"type": "label", "id": "status", "text": "${loading ? 'Loading' : 'Idle'}"},
                {"type": "button", "id": "reload", "text": "Reload", "actions": {"onTap": "load"}},
            ]
        },
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_loading_state_rendered_while_request_in_flight(settings, metrics, transport_factory):
    transport = transport_factory(result=["a"])
    transport.gate = asyncio.Event()
    session = DocumentSession.from_json(
        json.dumps(loading_document()), settings=settings, metrics=metrics, transport=transport
    )
    seen = []
    session.subscribe(lambda tree, dirty: seen.append(tree.find("status").text))

    task = asyncio.create_task(session.dispatch("reload", "onTap"))
    await asyncio.sleep(0)

    assert session.tree.find("status").text == "Loading"
    assert seen == ["Loading"]

    transport.gate.set()
    await task

    assert session.tree.find("status").text == "Idle"
    assert seen == ["Loading", "Idle"]
    assert session.store.get("items") == ["a"]


# ============================================================================
# Local state
# ============================================================================


def local_state_document() -> dict:
    return {
        "id": "cards",
        "state": {"cards": ["first", "second"]},
        "root": {
            "children": [
                {
                    "type": "forEach",
                    "id": "list",
                    "items": "cards",
                    "template": {
                        "type": "vstack",
                        "id": "card",
                        "state": {"count": 0},
                        "children": [
                            {"type": "label", "id": "taps", "text": "${item}: ${local.count}"},
                            {
                                "type": "button",
                                "id": "tap",
                                "text": "Tap",
                                "actions": {
                                    "onTap": {"type": "setState", "path": "local.count", "value": {"$expr": "local.count + 1"}}
                                },
                            },
                        ],
                    },
                }
            ]
        },
    }


@pytest.mark.unit
@pytest.mark.asyncio
async def test_local_state_is_kept_per_repetition(settings, metrics):
    session = DocumentSession.from_json(json.dumps(local_state_document()), settings=settings, metrics=metrics)

    card = session.tree.find("list").children[1]
    await session.runtime.execute(card.children[1].actions["onTap"])
    card = session.tree.find("list").children[1]
    await session.runtime.execute(card.children[1].actions["onTap"])

    labels = [child.children[0].text for child in session.tree.find("list").children]
    assert labels == ["first: 0", "second: 2"]
    assert session.store.get("$local") == {"card_1": {"count": 2}}
    assert "count" not in session.store.snapshot()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_local_bind_toggle_round_trip(settings, metrics):
    document = {
        "id": "toggle",
        "root": {
            "state": {"on": True},
            "children": [
                {"type": "toggle", "id": "switch", "localBind": "on"},
                {"type": "label", "id": "status", "text": "${local.on ? 'On' : 'Off'}"},
            ],
        },
    }
    session = DocumentSession.from_json(json.dumps(document), settings=settings, metrics=metrics)
    assert session.tree.find("status").text == "On"

    await session.dispatch("switch", "valueChanged", False)

    assert session.tree.find("switch").value is False
    assert session.tree.find("status").text == "Off"
    assert session.store.get("$local.root.on") is False
