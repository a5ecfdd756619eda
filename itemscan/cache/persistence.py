"""
Saving and restoring cache contents across sessions.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from itemscan.cache.storage import BlobStore
from itemscan.core.clock import Clock, get_clock
from itemscan.core.exceptions import PersistenceError
from itemscan.core.types import CacheEntry


logger = logging.getLogger(__name__)


class PersistenceAdapter:
    """
    Serializes a cache's entries to a BlobStore under one key.

    Storage problems never reach the caller: a snapshot that cannot be read
    gives an empty (cold) cache, and a failed write is logged and dropped.
    """

    def __init__(
        self,
        store: BlobStore,
        key: str,
        clock: Optional[Clock] = None,
        encode: Optional[Callable[[Any], Any]] = None,
        decode: Optional[Callable[[Any], Any]] = None,
    ):
        self.store = store
        self.key = key
        self.clock = clock or get_clock()
        self.encode = encode
        self.decode = decode
        self.last_error: Optional[PersistenceError] = None

    def load(self) -> Dict[str, CacheEntry]:
        """Restore live entries, least recently used first."""
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            self._fail("storage read failed", e)
            return {}

        if raw is None:
            return {}

        try:
            parsed = json.loads(raw)
            if not isinstance(parsed, dict):
                raise ValueError(f"expected an object, got {type(parsed).__name__}")
            entries = {
                str(k): CacheEntry.from_dict(v, decode=self.decode)
                for k, v in parsed.items()
            }
        except Exception as e:
            self._fail("snapshot is corrupt, starting cold", e)
            return {}

        now = self.clock.now()
        live = {k: e for k, e in entries.items() if e.is_valid(now)}
        pruned = len(entries) - len(live)
        if pruned:
            logger.debug("Pruned %d expired entries from '%s'", pruned, self.key)

        ordered = sorted(live.items(), key=lambda kv: kv[1].last_accessed)
        return dict(ordered)

    def save(self, entries: Dict[str, CacheEntry]) -> bool:
        """Write the full map. Returns False if the write failed."""
        try:
            payload = {k: e.to_dict(encode=self.encode) for k, e in entries.items()}
            blob = json.dumps(payload, separators=(",", ":"))
        except Exception as e:
            self._fail("serialization failed", e)
            return False

        try:
            self.store.set(self.key, blob)
        except Exception as e:
            self._fail("storage write failed", e)
            return False

        self.last_error = None
        return True

    def clear(self) -> None:
        """Drop the stored snapshot."""
        try:
            self.store.remove(self.key)
        except Exception as e:
            self._fail("storage remove failed", e)

    def _fail(self, message: str, cause: Exception) -> None:
        self.last_error = PersistenceError(self.key, message, cause=cause)
        logger.warning("%s: %s", self.last_error, cause)
