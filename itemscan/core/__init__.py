"""
Core types, exceptions, catalog and hashing.
"""

from itemscan.core.types import (
    Item,
    Rect,
    RecognitionMetadata,
    RecognitionResult,
    ResultSource,
    SearchOptions,
    CacheEntry,
    ImageInput,
)
from itemscan.core.exceptions import (
    ItemScanError,
    InvalidInputError,
    HashingError,
    RecognitionError,
    RecognitionTimeoutError,
    ImageDecodeError,
    PersistenceError,
    CatalogError,
    RetryExhaustedError,
    ConfigurationError,
)
from itemscan.core.clock import Clock, ManualClock, SystemClock
from itemscan.core.hashing import fingerprint, hash_image

__all__ = [
    "Item",
    "Rect",
    "RecognitionMetadata",
    "RecognitionResult",
    "ResultSource",
    "SearchOptions",
    "CacheEntry",
    "ImageInput",
    "ItemScanError",
    "InvalidInputError",
    "HashingError",
    "RecognitionError",
    "RecognitionTimeoutError",
    "ImageDecodeError",
    "PersistenceError",
    "CatalogError",
    "RetryExhaustedError",
    "ConfigurationError",
    "Clock",
    "ManualClock",
    "SystemClock",
    "fingerprint",
    "hash_image",
]
