"""
Caching: TTL/LRU stores, snapshots and the search cache facade.
"""

from itemscan.cache.store import CacheStore
from itemscan.cache.storage import BlobStore, FileStore, MemoryStore
from itemscan.cache.search_cache import SearchCache

__all__ = ["CacheStore", "BlobStore", "FileStore", "MemoryStore", "SearchCache"]
