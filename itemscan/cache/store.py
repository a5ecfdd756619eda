"""
Bounded TTL + LRU cache.
"""

import json
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from itemscan.cache.persistence import PersistenceAdapter
from itemscan.cache.stats import StatsTracker
from itemscan.core.clock import Clock, get_clock
from itemscan.core.types import CacheEntry


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 100
DEFAULT_TTL = 5 * 60.0


def _detached(value):
    """Shallow copy of list values, so callers never share the cached list."""
    return list(value) if isinstance(value, list) else value


class CacheStore(Generic[T]):
    """
    Key -> value cache with per-entry expiry and least-recently-used eviction.

    Entries expire `ttl` seconds after they are written. Expired entries are
    dropped when read or when cleanup_expired() sweeps them. When a write
    takes the cache over max_entries, the entries with the oldest
    last_accessed go first; among equals, the one used longest ago.

    Empty keys and empty values are ignored by set().
    """

    def __init__(
        self,
        name: str = "cache",
        max_entries: int = DEFAULT_MAX_ENTRIES,
        default_ttl: float = DEFAULT_TTL,
        clock: Optional[Clock] = None,
        persistence: Optional[PersistenceAdapter] = None,
        stats: Optional[StatsTracker] = None,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.name = name
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self.clock = clock or get_clock()
        self.persistence = persistence
        self.tracker = stats or StatsTracker()
        self._lock = threading.RLock()
        # Iteration order is recency order, oldest first
        self._entries: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()

        if self.persistence is not None:
            self._entries.update(self.persistence.load())
            if self._evict():
                self._persist()
            logger.debug("Cache '%s' restored %d entries", name, len(self._entries))

    def get(self, key: str) -> Optional[T]:
        """
        Get a cached value.

        Returns None if the key is unknown or its entry has expired.
        """
        if not key:
            return None

        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.tracker.record(hit=False)
                return None

            now = self.clock.now()
            if not entry.is_valid(now):
                del self._entries[key]
                self.tracker.record(hit=False)
                logger.debug("Cache '%s' entry expired: %s", self.name, key)
                self._persist()
                return None

            entry.touch(now)
            self._entries.move_to_end(key)
            self.tracker.record(hit=True)
            return _detached(entry.data)

    def peek(self, key: str) -> Optional[CacheEntry[T]]:
        """Look at an entry without counting or touching it."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, value: T, ttl: Optional[float] = None) -> None:
        """Cache a value. ttl defaults to the store's default_ttl."""
        if not key or not value:
            return

        with self._lock:
            now = self.clock.now()
            ttl = self.default_ttl if ttl is None else ttl
            entry = CacheEntry(
                data=_detached(value),
                timestamp=now,
                expires_at=now + ttl,
                access_count=1,
                last_accessed=now,
            )
            self._entries.pop(key, None)
            self._entries[key] = entry
            self._evict()
            self._persist()

    def _evict(self) -> int:
        """Drop least recently used entries until within max_entries."""
        evicted = 0
        while len(self._entries) > self.max_entries:
            # min() keeps the first of equal keys, i.e. the least recent
            victim = min(self._entries, key=lambda k: self._entries[k].last_accessed)
            del self._entries[victim]
            evicted += 1
            logger.debug("Cache '%s' evicted: %s", self.name, victim)
        return evicted

    def cleanup_expired(self) -> int:
        """Remove every expired entry. Returns how many were removed."""
        with self._lock:
            now = self.clock.now()
            expired = [k for k, e in self._entries.items() if not e.is_valid(now)]
            for key in expired:
                del self._entries[key]
            if expired:
                self._persist()
            return len(expired)

    def clear(self) -> None:
        """Clear the cache."""
        with self._lock:
            self._entries.clear()
            self.tracker.reset()
            if self.persistence is not None:
                self.persistence.clear()

    def save(self) -> None:
        """Force a snapshot write."""
        with self._lock:
            self._persist()

    def _persist(self) -> None:
        if self.persistence is not None:
            self.persistence.save(dict(self._entries))

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def size_bytes(self, encode: Optional[Callable[[T], Any]] = None) -> int:
        """Approximate JSON size of everything cached."""
        with self._lock:
            return sum(
                len(json.dumps(e.to_dict(encode=encode)).encode("utf-8"))
                for e in self._entries.values()
            )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        return {
            "name": self.name,
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self.tracker.hits,
            "misses": self.tracker.misses,
            "hit_rate": self.tracker.hit_rate,
        }
