"""
itemscan - cached item search by text and by screenshot

Identifies game items in screenshots with a vision model, falls back to
catalog name matching, and caches text and image searches with TTL and
LRU eviction.
"""

from itemscan.core.types import (
    Item,
    ImageInput,
    RecognitionResult,
    ResultSource,
    SearchOptions,
)
from itemscan.core.exceptions import (
    ItemScanError,
    InvalidInputError,
    HashingError,
    RecognitionError,
    PersistenceError,
)
from itemscan.core.catalog import ItemCatalog, load_catalog
from itemscan.cache.search_cache import SearchCache
from itemscan.recognizers.orchestrator import RecognitionOrchestrator

__version__ = "0.1.0"

__all__ = [
    # Types
    "Item",
    "ImageInput",
    "RecognitionResult",
    "ResultSource",
    "SearchOptions",
    # Exceptions
    "ItemScanError",
    "InvalidInputError",
    "HashingError",
    "RecognitionError",
    "PersistenceError",
    # Catalog
    "ItemCatalog",
    "load_catalog",
    # Cache
    "SearchCache",
    # Search
    "RecognitionOrchestrator",
]
