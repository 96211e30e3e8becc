"""Bounded LRU cache for resolution results.

Backs the compiled-expression and resolved-style caches. A document's styles
and templates are immutable once loaded, so entries never go stale and are
only ever evicted for space. Keys are reduced to xxhash digests, which keeps
long template sources out of the table.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, TypeVar

from .hash import hash_string

T = TypeVar("T")


@dataclass
class Stats:
    """Running counters for one cache."""

    size: int = 0
    max_size: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    reported_hits: int = 0
    reported_misses: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def take_unreported(self) -> tuple[int, int]:
        """
        Hits and misses counted since the previous call.

        Metrics counters only go up, so each lookup must be exported once.
        """
        hits = self.hits - self.reported_hits
        misses = self.misses - self.reported_misses
        self.reported_hits = self.hits
        self.reported_misses = self.misses
        return hits, misses


class LRUCache(Generic[T]):
    """
    Least-recently-used cache with hit and miss counters.

    Examples:
        >>> cache = LRUCache[str](max_size=2)
        >>> cache.set("${name}", "compiled")
        >>> cache.get("${name}")
        'compiled'
        >>> cache.stats.hits
        1
    """

    def __init__(self, max_size: int = 100) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")

        self.max_size = max_size
        self._entries: OrderedDict[str, T] = OrderedDict()
        self._stats = Stats(max_size=max_size)

    @staticmethod
    def _digest(key: str) -> str:
        return hash_string(key, truncate=16)

    def get(self, key: str) -> T | None:
        """Cached value, or None on a miss. A hit becomes the most recent entry."""
        digest = self._digest(key)
        if digest not in self._entries:
            self._stats.misses += 1
            return None
        self._entries.move_to_end(digest)
        self._stats.hits += 1
        return self._entries[digest]

    def set(self, key: str, value: T) -> None:
        digest = self._digest(key)
        self._entries[digest] = value
        self._entries.move_to_end(digest)
        if len(self._entries) > self.max_size:
            self._entries.popitem(last=False)
            self._stats.evictions += 1
        self._stats.size = len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._stats.size = 0

    @property
    def stats(self) -> Stats:
        return self._stats

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Membership test; does not touch recency or counters."""
        return self._digest(key) in self._entries


__all__ = ["LRUCache", "Stats"]
