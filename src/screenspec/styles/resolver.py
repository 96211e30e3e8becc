"""Style Resolver - single-parent style inheritance with inline overrides."""

import copy
from typing import Any, Mapping

from ..core.cache import LRUCache
from ..core.hash import hash_value
from ..core.logging_config import get_logger
from ..core.validate import CycleError, DocumentError
from ..document.models import StyleSpec
from .properties import merge_properties, normalize_style

logger = get_logger(__name__)


class StyleResolver:
    """
    Flattens named styles into property bags.

    Styles are held in an index table: `_names[i]` has properties
    `_properties[i]` and parent `_parents[i]` (an index, or None for a root).
    Chains are walked iteratively with a visited set, so a cycle raises
    CycleError instead of recursing forever.

    Examples:
        >>> resolver = StyleResolver({
        ...     "base": StyleSpec(fontSize=14),
        ...     "title": StyleSpec(inherits="base", fontWeight="bold"),
        ... })
        >>> resolver.resolve("title")
        {'fontSize': 14, 'fontWeight': 'bold'}
    """

    def __init__(self, styles: Mapping[str, StyleSpec] | None = None, cache_size: int = 256) -> None:
        styles = styles or {}
        self._names: list[str] = list(styles)
        self._index: dict[str, int] = {name: i for i, name in enumerate(self._names)}
        self._properties: list[dict[str, Any]] = [styles[name].properties for name in self._names]
        self._parent_names: list[str | None] = [styles[name].inherits for name in self._names]
        self._parents: list[int | None] = [
            self._index.get(parent) if parent is not None else None for parent in self._parent_names
        ]
        self._cache: LRUCache[dict[str, Any]] = LRUCache(max_size=cache_size)

    @property
    def cache(self) -> LRUCache[dict[str, Any]]:
        return self._cache

    def __contains__(self, style_id: str) -> bool:
        return style_id in self._index

    def validate(self) -> None:
        """
        Check every style once at load time.

        Raises:
            DocumentError: A style inherits from an undefined style
            CycleError: A chain loops back on itself
        """
        for position, name in enumerate(self._names):
            parent = self._parent_names[position]
            if parent is not None and self._parents[position] is None:
                raise DocumentError(f"unknown parent style {parent!r}", f"styles.{name}.inherits")
            self.chain(name)

    def chain(self, style_id: str) -> list[str]:
        """
        Inheritance chain for a style, root ancestor first.

        Raises:
            KeyError: Unknown style
            CycleError: The chain revisits a style
        """
        return [self._names[i] for i in self._chain_indices(self._index[style_id])]

    def _chain_indices(self, start: int) -> list[int]:
        visited: set[int] = set()
        walk: list[int] = []
        current: int | None = start
        while current is not None:
            if current in visited:
                names = [self._names[i] for i in walk[walk.index(current):]]
                raise CycleError(names + [self._names[current]])
            visited.add(current)
            walk.append(current)
            parent = self._parents[current]
            if parent is None and self._parent_names[current] is not None:
                logger.warning(
                    "style_parent_missing",
                    style=self._names[current],
                    parent=self._parent_names[current],
                )
            current = parent
        walk.reverse()
        return walk

    def resolve(self, style_id: str | None, overrides: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """
        Resolve a style and merge inline overrides on top.

        Args:
            style_id: Named style, or None for overrides only
            overrides: Inline per-node properties (highest precedence)

        Returns:
            Flat property bag with colors normalized
        """
        key = f"{style_id or ''}\x00{hash_value(dict(overrides) if overrides else None)}"
        cached = self._cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        merged: dict[str, Any] = {}
        if style_id is not None:
            position = self._index.get(style_id)
            if position is None:
                logger.warning("style_unknown", style_id=style_id)
            else:
                for index in self._chain_indices(position):
                    merged = merge_properties(merged, self._properties[index])
        if overrides:
            merged = merge_properties(merged, overrides)

        resolved = normalize_style(merged)
        self._cache.set(key, resolved)
        return copy.deepcopy(resolved)
