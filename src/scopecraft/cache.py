"""In-process caches keyed by structured tuples.

Keys are tuples whose first element names the operation
(``("status", "/path/to/worktree")``) so entries for similarly named
operations cannot collide.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

V = TypeVar("V")

CacheKey = tuple[Hashable, ...]


@dataclass(frozen=True)
class _Entry(Generic[V]):
    value: V
    stored_at: float


class TtlCache(Generic[V]):
    """Map of cache keys to values that expire after ``ttl_seconds``.

    ``ttl_seconds=None`` keeps entries for the life of the process.

    Example:
        >>> cache = TtlCache[int](ttl_seconds=None)
        >>> cache.get_or_compute(("answer",), lambda: 42)
        42
        >>> cache.get(("answer",))
        42
    """

    def __init__(
        self,
        ttl_seconds: float | None = 30.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, _Entry[V]] = {}

    def _expired(self, entry: _Entry[V]) -> bool:
        if self._ttl is None:
            return False
        return self._clock() - entry.stored_at > self._ttl

    def get(self, key: CacheKey) -> V | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._expired(entry):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: CacheKey, value: V) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def get_or_compute(self, key: CacheKey, producer: Callable[[], V]) -> V:
        entry = self._entries.get(key)
        if entry is not None and not self._expired(entry):
            return entry.value
        value = producer()
        self.set(key, value)
        return value

    def invalidate(self, key: CacheKey) -> None:
        self._entries.pop(key, None)

    def invalidate_matching(self, *prefix: Hashable) -> None:
        """Drop every entry whose key starts with ``prefix``."""
        size = len(prefix)
        for key in [key for key in self._entries if key[:size] == prefix]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple):
            return False
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
