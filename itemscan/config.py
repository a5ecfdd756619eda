"""
Configuration and API key management.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Config:
    """itemscan configuration with sensible defaults."""

    # API Keys
    google_api_key: Optional[str] = field(default=None)

    # Cache Settings
    cache_max_entries: int = 100
    cache_default_ttl: float = 300.0
    cache_cleanup_interval: float = 60.0
    persist_cache: bool = True
    cache_dir: Optional[str] = field(default=None)

    # Catalog
    catalog_path: Optional[str] = field(default=None)

    # Image Search
    max_image_bytes: int = 10 * 1024 * 1024
    default_max_results: int = 10
    default_min_confidence: float = 0.3
    history_size: int = 10

    # Gemini Settings
    gemini_vision_model: str = "gemini-2.0-flash"

    # Retry Settings
    max_retries: int = 2
    retry_base_delay: float = 0.5
    retry_max_delay: float = 5.0

    # Timeouts (seconds)
    recognition_timeout: float = 30.0

    log_level: str = "INFO"

    def __post_init__(self):
        """Load from environment if not provided."""
        if self.google_api_key is None:
            self.google_api_key = os.environ.get("GOOGLE_API_KEY")
        if self.cache_dir is None:
            self.cache_dir = os.environ.get(
                "ITEMSCAN_CACHE_DIR", os.path.join("~", ".itemscan", "cache")
            )
        if self.catalog_path is None:
            self.catalog_path = os.environ.get("ITEMSCAN_CATALOG")
        self.log_level = os.environ.get("ITEMSCAN_LOG_LEVEL", self.log_level).upper()


# Global default config
_default_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the default config."""
    global _default_config
    if _default_config is None:
        _default_config = Config()
    return _default_config


def set_config(config: Config) -> None:
    """Set the default config."""
    global _default_config
    _default_config = config
