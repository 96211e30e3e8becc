"""State Store - path-addressed document state with change notification."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Callable

from ..core.id import generate_raw
from ..core.logging_config import get_logger
from ..expressions.values import json_equal
from .paths import (
    Segment,
    StatePathError,
    ancestor_paths,
    descendant_paths,
    format_path,
    get_in,
    parse_path,
    paths_overlap,
    set_in,
)

logger = get_logger(__name__)

_MISSING = object()


@dataclass(frozen=True)
class StateChange:
    """
    One published mutation.

    Attributes:
        path: Canonical path that was written
        operation: Store operation that produced the change
        paths: The written path, every ancestor, and every descendant present
            before or after the write
    """

    path: str
    operation: str
    paths: frozenset[str]

    def affects(self, path: str) -> bool:
        """
        True if a binding on `path` may observe this change.

        Any path at, above or below the written one matches, including paths
        that did not exist in the tree, such as `items.count` after `items`.
        """
        try:
            return paths_overlap(format_path(parse_path(path)), self.path)
        except StatePathError:
            return False


StateChangeCallback = Callable[[StateChange], None]


class StateStore:
    """
    Mutable JSON-like state for one document instance.

    All mutations are synchronous and go through the methods below. Each one
    records dirty paths and notifies subscribers. After `release()` the store
    drops further writes, which keeps late network callbacks from touching
    torn-down state.

    Examples:
        >>> store = StateStore({"tags": ["A", "B"]})
        >>> store.toggle_in_array("tags", "A")
        >>> store.get("tags")
        ['B']
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._state: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._dirty: set[str] = set()
        self._written: set[str] = set()
        self._subscribers: dict[str, StateChangeCallback] = {}
        self._released = False

    # Reads

    def get(self, path: str) -> Any:
        """Read the value at `path`; None when any step is missing."""
        try:
            segments = parse_path(path)
        except StatePathError as e:
            logger.warning("state_path_invalid", path=path, error=str(e))
            return None
        return copy.deepcopy(get_in(self._state, segments))

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the whole state tree."""
        return copy.deepcopy(self._state)

    # Writes

    def set(self, path: str, value: Any) -> None:
        """Write `value` at `path`, creating intermediate containers."""
        self._write(path, "set", lambda _: copy.deepcopy(value))

    def append_to_array(self, path: str, value: Any) -> None:
        """Append to the array at `path`. Duplicates are kept."""

        def update(current: Any) -> Any:
            items = list(current) if isinstance(current, list) else []
            items.append(copy.deepcopy(value))
            return items

        self._write(path, "appendToArray", update)

    def toggle_in_array(self, path: str, value: Any) -> None:
        """Remove the first element equal to `value`, or append it when absent."""

        def update(current: Any) -> Any:
            items = list(current) if isinstance(current, list) else []
            for position, item in enumerate(items):
                if json_equal(item, value):
                    del items[position]
                    return items
            items.append(copy.deepcopy(value))
            return items

        self._write(path, "toggleInArray", update)

    def remove_from_array(self, path: str, value: Any = _MISSING, index: int | None = None) -> None:
        """
        Remove elements from the array at `path`.

        With `value`, every equal element is removed; with `index`, the element
        at that position. A missing array or out-of-range index is a no-op write.
        """
        if value is _MISSING and index is None:
            raise ValueError("remove_from_array needs a value or an index")

        def update(current: Any) -> Any:
            items = list(current) if isinstance(current, list) else []
            if index is not None:
                if 0 <= index < len(items):
                    del items[index]
                return items
            return [item for item in items if not json_equal(item, value)]

        self._write(path, "removeFromArray", update)

    def toggle_state(self, path: str) -> None:
        """Flip a boolean; anything that is not a boolean counts as false first."""
        self._write(path, "toggleState", lambda current: not current if isinstance(current, bool) else True)

    def restore(self, snapshot: dict[str, Any]) -> None:
        """Replace the whole tree, publishing every top-level key as changed."""
        if self._released:
            logger.warning("state_write_after_release", operation="restore")
            return
        old = self._state
        self._state = copy.deepcopy(snapshot)
        paths: set[str] = set()
        for key in set(old) | set(self._state):
            paths.add(key)
            paths.update(descendant_paths(old.get(key), (key,)))
            paths.update(descendant_paths(self._state.get(key), (key,)))
        self._publish(StateChange(path="", operation="restore", paths=frozenset(paths)))

    # Subscriptions

    def subscribe(self, callback: StateChangeCallback) -> str:
        """Register a change callback; returns the token for `unsubscribe`."""
        token = generate_raw()
        self._subscribers[token] = callback
        return token

    def unsubscribe(self, token: str) -> bool:
        return self._subscribers.pop(token, None) is not None

    # Dirty tracking

    def consume_dirty_paths(self) -> set[str]:
        """Return and clear the paths changed since the last call."""
        dirty = self._dirty
        self._dirty = set()
        self._written = set()
        return dirty

    def is_dirty(self, path: str) -> bool:
        """True if a write since the last consume landed at, above or below `path`."""
        try:
            canonical = format_path(parse_path(path))
        except StatePathError:
            return False
        return any(paths_overlap(canonical, written) for written in self._written)

    @property
    def has_dirty_paths(self) -> bool:
        return bool(self._dirty or self._written)

    # Lifecycle

    def release(self) -> None:
        """Drop subscribers and refuse further writes."""
        self._released = True
        self._subscribers.clear()
        self._dirty.clear()
        self._written.clear()

    @property
    def is_released(self) -> bool:
        return self._released

    # Internals

    def _write(self, path: str, operation: str, update: Callable[[Any], Any]) -> None:
        if self._released:
            logger.warning("state_write_after_release", path=path, operation=operation)
            return
        segments = parse_path(path)
        old = get_in(self._state, segments)
        new = update(old)
        set_in(self._state, segments, new)
        logger.debug("state_changed", path=path, operation=operation)
        self._publish(
            StateChange(
                path=format_path(segments),
                operation=operation,
                paths=frozenset(self._affected_paths(segments, old, new)),
            )
        )

    @staticmethod
    def _affected_paths(segments: tuple[Segment, ...], old: Any, new: Any) -> set[str]:
        paths = {format_path(segments)}
        paths.update(ancestor_paths(segments))
        paths.update(descendant_paths(old, segments))
        paths.update(descendant_paths(new, segments))
        return paths

    def _publish(self, change: StateChange) -> None:
        self._dirty.update(change.paths)
        self._written.add(change.path)
        for token, callback in list(self._subscribers.items()):
            try:
                callback(change)
            except Exception as e:
                logger.error("state_subscriber_failed", token=token, error=str(e), exc_info=True)
