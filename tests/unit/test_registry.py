"""Tests for the custom action registry."""

import pytest

from screenspec.actions.registry import CustomActionRegistry


async def noop(params, store):
    return None


@pytest.mark.unit
def test_register_and_lookup():
    registry = CustomActionRegistry()
    registry.register("track", noop)

    assert "track" in registry
    assert registry.get("track") is noop
    assert registry.get("other") is None
    assert len(registry) == 1


@pytest.mark.unit
def test_decorator_registers_and_returns_handler():
    registry = CustomActionRegistry()

    @registry.action("addToCart")
    async def add_to_cart(params, store):
        store.append_to_array("cart", params["sku"])

    assert registry.get("addToCart") is add_to_cart
    assert registry.list_all() == ["addToCart"]


@pytest.mark.unit
def test_replacing_logs_warning(mocker):
    log = mocker.patch("screenspec.actions.registry.logger")
    registry = CustomActionRegistry()

    async def other(params, store):
        return None

    registry.register("track", noop)
    registry.register("track", other)

    assert registry.get("track") is other
    log.warning.assert_called_once_with("custom_action_replaced", action="track")


@pytest.mark.unit
def test_unregister():
    registry = CustomActionRegistry()
    registry.register("b", noop)
    registry.register("a", noop)

    registry.unregister("b")
    registry.unregister("missing")

    assert registry.list_all() == ["a"]
