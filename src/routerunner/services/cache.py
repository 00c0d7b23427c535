"""Time-based memoizing cache shared by the provider adapters."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(slots=True)
class _Entry(Generic[V]):
    value: V
    stored_at: float


class TTLCache(Generic[K, V]):
    """Key/value store whose entries expire ``ttl_seconds`` after insertion.

    Expired entries are evicted lazily when they are read. Writes use
    insert-if-absent semantics unless ``replace=True`` is passed, so
    concurrent resolutions of the same key keep the first stored value.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[K, _Entry[V]] = {}
        self.hits = 0
        self.misses = 0

    def _is_fresh(self, entry: _Entry[V]) -> bool:
        return self._clock() - entry.stored_at < self.ttl_seconds

    def get(self, key: K) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if not self._is_fresh(entry):
            del self._entries[key]
            self.misses += 1
            logger.debug(f"Cache entry expired for {key}")
            return None
        self.hits += 1
        return entry.value

    def set(self, key: K, value: V, *, replace: bool = False) -> V:
        """Store ``value`` and return whichever value is now cached for ``key``."""
        existing = self._entries.get(key)
        if existing is not None and self._is_fresh(existing) and not replace:
            return existing.value
        self._entries[key] = _Entry(value=value, stored_at=self._clock())
        return value

    def purge_expired(self) -> int:
        stale = [key for key, entry in self._entries.items() if not self._is_fresh(entry)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict[str, float]:
        lookups = self.hits + self.misses
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hits / lookups if lookups else 0.0,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and self._is_fresh(entry)
