"""
Custom Action Registry
Host-supplied handlers for `custom` actions, populated before document load
"""

from typing import Any, Awaitable, Callable

from ..core.logging_config import get_logger
from ..state.store import StateStore

logger = get_logger(__name__)

CustomActionHandler = Callable[[dict[str, Any], StateStore], Awaitable[None]]
"""async handler(params, store)"""


class CustomActionRegistry:
    """
    Name to handler map for custom actions.

    Examples:
        >>> registry = CustomActionRegistry()
        >>> async def add_to_cart(params, store):
        ...     store.append_to_array("cart", params["sku"])
        >>> registry.register("addToCart", add_to_cart)
    """

    def __init__(self) -> None:
        self.handlers: dict[str, CustomActionHandler] = {}

    def register(self, name: str, handler: CustomActionHandler) -> None:
        """
        Register a handler.

        Args:
            name: Action name used in documents
            handler: Coroutine function taking (params, store)
        """
        if name in self.handlers:
            logger.warning("custom_action_replaced", action=name)
        self.handlers[name] = handler
        logger.debug("custom_action_registered", action=name)

    def action(self, name: str) -> Callable[[CustomActionHandler], CustomActionHandler]:
        """Decorator form of `register`."""

        def decorator(handler: CustomActionHandler) -> CustomActionHandler:
            self.register(name, handler)
            return handler

        return decorator

    def unregister(self, name: str) -> None:
        if self.handlers.pop(name, None) is not None:
            logger.debug("custom_action_unregistered", action=name)

    def get(self, name: str) -> CustomActionHandler | None:
        return self.handlers.get(name)

    def list_all(self) -> list[str]:
        return sorted(self.handlers)

    def __contains__(self, name: str) -> bool:
        return name in self.handlers

    def __len__(self) -> int:
        return len(self.handlers)
