"""
Dependency injection for FastAPI endpoints.

The search cache, catalog and orchestrator are built once per process and
shared by every request; the app's lifespan closes the cache on shutdown.
"""

from functools import lru_cache
from typing import Optional

from itemscan.cache.search_cache import SearchCache
from itemscan.cache.storage import FileStore
from itemscan.config import Config, get_config
from itemscan.core.catalog import ItemCatalog, load_catalog
from itemscan.recognizers.catalog_recognizer import CatalogRecognizer
from itemscan.recognizers.gemini_recognizer import GeminiRecognizer
from itemscan.recognizers.orchestrator import RecognitionOrchestrator


@lru_cache()
def get_cached_config() -> Config:
    """Get the singleton config instance."""
    return get_config()


@lru_cache()
def get_cached_catalog() -> ItemCatalog:
    """Get the singleton item catalog."""
    return load_catalog(get_cached_config().catalog_path)


@lru_cache()
def get_cached_search_cache() -> SearchCache:
    """Get the singleton search cache, with its expiry sweep running."""
    config = get_cached_config()
    store = FileStore(config.cache_dir) if config.persist_cache else None
    return SearchCache(config=config, store=store).start()


@lru_cache()
def get_cached_orchestrator() -> RecognitionOrchestrator:
    """Get the singleton recognition orchestrator."""
    config = get_cached_config()
    catalog = get_cached_catalog()
    return RecognitionOrchestrator(
        cache=get_cached_search_cache(),
        primary=GeminiRecognizer(catalog, config=config),
        fallback=CatalogRecognizer(catalog),
        config=config,
    )


def check_gemini_api() -> tuple[bool, Optional[str]]:
    """
    Check if Gemini API is configured.

    Returns:
        Tuple of (is_available, error_message)
    """
    config = get_cached_config()
    if not config.google_api_key:
        return False, "GOOGLE_API_KEY not configured"
    return True, None


class ReadinessStatus:
    """Container for readiness check results."""

    def __init__(self):
        self.catalog_items = 0
        self.gemini_available = False
        self.gemini_error: Optional[str] = None

    @property
    def ready(self) -> bool:
        """
        Overall readiness status.

        Gemini is optional: without it every search takes the catalog
        fallback path.
        """
        return self.catalog_items > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON response."""
        return {
            "ready": self.ready,
            "catalog_items": self.catalog_items,
            "gemini": {
                "available": self.gemini_available,
                "error": self.gemini_error,
            },
        }


def check_readiness() -> ReadinessStatus:
    """Perform all readiness checks."""
    status = ReadinessStatus()
    status.catalog_items = len(get_cached_catalog())
    status.gemini_available, status.gemini_error = check_gemini_api()
    return status
