"""
Text and image search caches behind one object.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from itemscan.cache.persistence import PersistenceAdapter
from itemscan.cache.stats import StatsTracker
from itemscan.cache.storage import BlobStore
from itemscan.cache.store import CacheStore
from itemscan.config import Config, get_config
from itemscan.core.clock import Clock, Scheduled, get_clock
from itemscan.core.types import (
    Item,
    RecognitionResult,
    items_from_dicts,
    items_to_dicts,
    results_from_dicts,
    results_to_dicts,
)


logger = logging.getLogger(__name__)


STORAGE_KEYS = {
    "text": "itemscan_text_search_cache",
    "image": "itemscan_image_search_cache",
    "stats": "itemscan_cache_stats",
}

POPULAR_SEARCHES = [
    "ak-74m",
    "bitcoin",
    "ifak",
    "paca",
    "m4a1",
    "labs keycard",
    "red keycard",
    "thicc case",
    "graphics card",
    "tetriz",
]


def normalize_query(query: str) -> str:
    """Text cache key for a query."""
    return (query or "").lower().strip()


class SearchCache:
    """
    Owns the text-search and image-search caches.

    Create one per process or session, call start() to enable the periodic
    expiry sweep and close() when done. Both caches share one hit/miss
    tracker, so the hit rate covers every lookup.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        store: Optional[BlobStore] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config or get_config()
        self.clock = clock or get_clock()
        self.blob_store = store if self.config.persist_cache else None
        self._sweep: Optional[Scheduled] = None
        self._closed = False

        self.tracker = self._load_stats()

        self.text = CacheStore[List[Item]](
            name="text",
            max_entries=self.config.cache_max_entries,
            default_ttl=self.config.cache_default_ttl,
            clock=self.clock,
            persistence=self._adapter("text", items_to_dicts, items_from_dicts),
            stats=self.tracker,
        )
        self.image = CacheStore[List[RecognitionResult]](
            name="image",
            max_entries=self.config.cache_max_entries,
            default_ttl=self.config.cache_default_ttl,
            clock=self.clock,
            persistence=self._adapter("image", results_to_dicts, results_from_dicts),
            stats=self.tracker,
        )

    def _adapter(self, kind: str, encode, decode) -> Optional[PersistenceAdapter]:
        if self.blob_store is None:
            return None
        return PersistenceAdapter(
            self.blob_store,
            STORAGE_KEYS[kind],
            clock=self.clock,
            encode=encode,
            decode=decode,
        )

    # ---------- text search ----------
    def get_cached_text_search(self, query: str) -> Optional[List[Item]]:
        key = normalize_query(query)
        if not key:
            return None
        result = self.text.get(key)
        self._save_stats()
        return result

    def set_cached_text_search(
        self, query: str, results: List[Item], ttl: Optional[float] = None
    ) -> None:
        self.text.set(normalize_query(query), results, ttl=ttl)

    # ---------- image search ----------
    def get_cached_image_search(self, fingerprint: str) -> Optional[List[RecognitionResult]]:
        if not fingerprint:
            return None
        result = self.image.get(fingerprint)
        self._save_stats()
        return result

    def set_cached_image_search(
        self,
        fingerprint: str,
        results: List[RecognitionResult],
        ttl: Optional[float] = None,
    ) -> None:
        self.image.set(fingerprint, results, ttl=ttl)

    # ---------- management ----------
    def clear_cache(self) -> None:
        """Empty both caches, reset the counters and drop the snapshots."""
        self.text.clear()
        self.image.clear()
        self.tracker.reset()
        if self.blob_store is not None:
            try:
                self.blob_store.remove(STORAGE_KEYS["stats"])
            except Exception as e:
                logger.warning("Could not remove stats snapshot: %s", e)
        logger.info("Search cache cleared")

    def cleanup_expired(self) -> int:
        removed = self.text.cleanup_expired() + self.image.cleanup_expired()
        if removed:
            logger.debug("Swept %d expired cache entries", removed)
        return removed

    def get_cache_stats(self) -> Dict[str, Any]:
        return {
            "text_entries": len(self.text),
            "image_entries": len(self.image),
            "total_size_bytes": (
                self.text.size_bytes(encode=items_to_dicts)
                + self.image.size_bytes(encode=results_to_dicts)
            ),
            "hit_rate": self.tracker.hit_rate,
            "hits": self.tracker.hits,
            "misses": self.tracker.misses,
        }

    def preload_popular_searches(
        self,
        fetch: Callable[[str], List[Item]],
        queries: Optional[Iterable[str]] = None,
    ) -> int:
        """
        Warm the text cache with results for common queries.

        Queries already cached are skipped. Returns how many were loaded.
        """
        loaded = 0
        for query in queries or POPULAR_SEARCHES:
            key = normalize_query(query)
            if not key or self.text.peek(key) is not None:
                continue
            try:
                results = fetch(query)
            except Exception as e:
                logger.warning("Preload of '%s' failed: %s", query, e)
                continue
            if results:
                self.text.set(key, results)
                loaded += 1
        logger.info("Preloaded %d popular searches", loaded)
        return loaded

    # ---------- lifecycle ----------
    def start(self) -> "SearchCache":
        """Begin sweeping expired entries every cache_cleanup_interval."""
        if self._sweep is None and not self._closed:
            self._schedule_sweep()
        return self

    def _schedule_sweep(self) -> None:
        self._sweep = self.clock.after(self.config.cache_cleanup_interval, self._run_sweep)

    def _run_sweep(self) -> None:
        if self._closed:
            return
        try:
            self.cleanup_expired()
        finally:
            self._schedule_sweep()

    def close(self) -> None:
        """Stop the sweep and write final snapshots."""
        self._closed = True
        if self._sweep is not None:
            self._sweep.cancel()
            self._sweep = None
        self.text.save()
        self.image.save()
        self._save_stats()

    def __enter__(self) -> "SearchCache":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------- stats persistence ----------
    def _load_stats(self) -> StatsTracker:
        if self.blob_store is None:
            return StatsTracker()
        try:
            raw = self.blob_store.get(STORAGE_KEYS["stats"])
            if raw:
                return StatsTracker.from_dict(json.loads(raw))
        except Exception as e:
            logger.warning("Stats snapshot unreadable, starting from zero: %s", e)
        return StatsTracker()

    def _save_stats(self) -> None:
        if self.blob_store is None:
            return
        try:
            self.blob_store.set(STORAGE_KEYS["stats"], json.dumps(self.tracker.to_dict()))
        except Exception as e:
            logger.warning("Could not save stats snapshot: %s", e)
