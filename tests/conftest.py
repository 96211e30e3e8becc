"""Pytest configuration and fixtures."""

import asyncio
import os
from typing import Any

import pytest
from prometheus_client import CollectorRegistry
from returns.result import Failure, Success

from screenspec.clients.transport import TransportError
from screenspec.core.config import get_settings
from screenspec.document.parser import DocumentParser
from screenspec.expressions.evaluator import ExpressionEvaluator
from screenspec.monitoring.metrics import MetricsCollector
from screenspec.state.store import StateStore


# ============================================================================
# Pytest Hooks
# ============================================================================


def pytest_configure(config):
    """Configure pytest with environment variables."""
    os.environ["SCREENSPEC_LOG_LEVEL"] = "DEBUG"
    os.environ["SCREENSPEC_BASE_URL"] = "https://api.example.test"
    get_settings.cache_clear()


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def settings():
    """Test settings."""
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture
def metrics():
    """Metrics collector on a private registry, so tests never collide."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def evaluator():
    return ExpressionEvaluator()


@pytest.fixture
def store():
    return StateStore({"count": 0, "tags": ["A", "B"], "user": {"name": "Ada"}})


@pytest.fixture
def parser():
    return DocumentParser()


# ============================================================================
# Document Fixtures
# ============================================================================


@pytest.fixture
def counter_document() -> dict[str, Any]:
    """Small but complete document: styles, state, data sources and actions."""
    return {
        "id": "counter",
        "version": "0.1.0",
        "state": {"count": 0, "tags": [], "name": "Ada", "items": [{"title": "One"}, {"title": "Two"}]},
        "styles": {
            "base": {"fontSize": 14, "color": "#fff"},
            "title": {"inherits": "base", "fontWeight": "bold"},
            "selected": {"inherits": "base", "backgroundColor": "00ff00"},
        },
        "dataSources": {
            "greeting": {"type": "binding", "template": "Hello ${name}"},
            "version": {"type": "static", "value": "v1"},
        },
        "actions": {
            "increment": {
                "type": "setState",
                "path": "count",
                "value": {"$expr": "${count} + 1"},
            },
            "toggleA": {"type": "toggleInArray", "path": "tags", "value": "A"},
        },
        "root": {
            "backgroundColor": "#abc",
            "children": [
                {"type": "label", "id": "greeting", "dataSourceId": "greeting", "styleId": "title"},
                {"type": "label", "id": "count", "text": "Count: ${count}"},
                {"type": "button", "id": "inc", "text": "Add", "actions": {"onTap": "increment"}},
                {
                    "type": "button",
                    "id": "tagA",
                    "text": "A",
                    "isSelectedBinding": "${tags.contains('A')}",
                    "styles": {"normal": "base", "selected": "selected"},
                    "actions": {"onTap": "toggleA"},
                },
                {"type": "textfield", "id": "nameField", "bind": "name", "placeholder": "Name"},
                {
                    "type": "forEach",
                    "id": "list",
                    "items": "items",
                    "template": {"type": "label", "id": "row", "text": "${index}: ${item.title}"},
                },
            ],
        },
    }


# ============================================================================
# Collaborator Fakes
# ============================================================================


class FakeTransport:
    """Transport double: records calls and replays a queued result."""

    def __init__(self, result: Any = None, error: TransportError | None = None) -> None:
        self.calls: list[dict[str, Any]] = []
        self.result = result
        self.error = error
        self.gate: asyncio.Event | None = None

    async def perform(self, method, url, body=None, headers=None, query=None):
        self.calls.append({"method": method, "url": url, "body": body, "headers": headers, "query": query})
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            return Failure(self.error)
        return Success(self.result)


@pytest.fixture
def fake_transport():
    return FakeTransport(result={"items": [1, 2, 3]})


@pytest.fixture
def transport_factory():
    """Build FakeTransport instances with a chosen result or error."""
    return FakeTransport
