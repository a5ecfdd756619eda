"""
Hit/miss counters for a cache.
"""

import threading
from typing import Any, Dict


class StatsTracker:
    """Counts cache lookups."""

    def __init__(self, hits: int = 0, misses: int = 0):
        self._lock = threading.Lock()
        self._hits = hits
        self._misses = misses

    def record(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def total(self) -> int:
        return self._hits + self._misses

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups that hit, 0.0 before any lookup."""
        total = self.total
        return self._hits / total if total > 0 else 0.0

    def reset(self) -> None:
        with self._lock:
            self._hits = 0
            self._misses = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self._hits,
            "misses": self._misses,
            "total_requests": self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatsTracker":
        return cls(hits=int(data.get("hits", 0)), misses=int(data.get("misses", 0)))
