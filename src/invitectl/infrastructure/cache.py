"""KeyedCache — lazy per-key cache with explicit invalidation.

Values are produced by a loader on first lookup and kept until someone
invalidates them. There is no TTL: writers to the store must invalidate
the affected keys themselves before the next read is guaranteed fresh.

Loads are not deduplicated. Two threads missing the same key may both
run the loader and the last write wins. A load still in flight when the
cache is invalidated is handed to its caller but never stored.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry[K, V]:
    """A materialized value owned by a :class:`KeyedCache`."""

    key: K
    value: V
    populated: bool = True


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    loads: int = 0
    invalidations: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "loads": self.loads,
            "invalidations": self.invalidations,
        }


class KeyedCache[K: Hashable, V]:
    """Map-with-loader guarded by a lock.

    The lock protects the entry map only; the loader runs outside it so a
    slow store query never blocks readers of other keys.
    """

    def __init__(self, loader: Callable[[K], V], *, name: str = "cache") -> None:
        self._loader = loader
        self._name = name
        self._entries: dict[K, CacheEntry[K, V]] = {}
        self._lock = threading.Lock()
        self._stats = CacheStats()
        # Bumped by every invalidation; loads started under an older value are discarded.
        self._generation = 0

    @property
    def name(self) -> str:
        return self._name

    def get(self, key: K) -> V:
        """Return the cached value for *key*, loading it on a miss."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.populated:
                self._stats.hits += 1
                return entry.value
            self._stats.misses += 1
            generation = self._generation

        value = self._loader(key)

        with self._lock:
            self._stats.loads += 1
            if generation == self._generation:
                self._entries[key] = CacheEntry(key=key, value=value)
        return value

    def peek(self, key: K) -> V | None:
        """Return the cached value without loading, or None."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry is not None and entry.populated else None

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value)

    def invalidate(self, key: K) -> None:
        """Drop one entry. No-op when absent."""
        with self._lock:
            self._generation += 1
            if self._entries.pop(key, None) is not None:
                self._stats.invalidations += 1
        logger.debug("cache %s: invalidated %r", self._name, key)

    def invalidate_all(self) -> None:
        """Drop every entry held by this cache."""
        with self._lock:
            self._generation += 1
            self._stats.invalidations += len(self._entries)
            self._entries.clear()
        logger.debug("cache %s: invalidated all entries", self._name)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return self._stats.to_dict()


class GuildCache[V]:
    """Guild-namespaced cache: one :class:`KeyedCache` per guild.

    Invalidating a guild clears only that guild's namespace, so a
    whole-guild restore never disturbs other guilds' entries.
    """

    def __init__(self, loader: Callable[[str, str], V], *, name: str = "guild") -> None:
        self._loader = loader
        self._name = name
        self._guilds: dict[str, KeyedCache[str, V]] = {}
        self._lock = threading.Lock()

    def _namespace(self, guild_id: str) -> KeyedCache[str, V]:
        with self._lock:
            cache = self._guilds.get(guild_id)
            if cache is None:
                cache = self._guilds[guild_id] = KeyedCache(
                    lambda key: self._loader(guild_id, key),
                    name=f"{self._name}:{guild_id}",
                )
            return cache

    def get(self, guild_id: str, key: str) -> V:
        return self._namespace(guild_id).get(key)

    def set(self, guild_id: str, key: str, value: V) -> None:
        self._namespace(guild_id).set(key, value)

    def invalidate(self, guild_id: str, key: str) -> None:
        with self._lock:
            cache = self._guilds.get(guild_id)
        if cache is not None:
            cache.invalidate(key)

    def invalidate_guild(self, guild_id: str) -> None:
        with self._lock:
            cache = self._guilds.pop(guild_id, None)
        if cache is not None:
            cache.invalidate_all()

    def invalidate_all(self) -> None:
        with self._lock:
            caches = list(self._guilds.values())
            self._guilds.clear()
        for cache in caches:
            cache.invalidate_all()

    def contains(self, guild_id: str, key: str) -> bool:
        with self._lock:
            cache = self._guilds.get(guild_id)
        return cache is not None and key in cache
