"""
Image search: cache lookup, primary recognizer with fallback, merge and rank.
"""

import logging
import threading
import time
from collections import deque
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Sequence, Tuple

from itemscan.cache.search_cache import SearchCache
from itemscan.config import Config, get_config
from itemscan.core.exceptions import (
    ConfigurationError,
    ImageDecodeError,
    InvalidInputError,
    ItemScanError,
)
from itemscan.core.hashing import fingerprint, read_image_bytes
from itemscan.core.types import ImageInput, RecognitionResult, SearchOptions
from itemscan.recognizers.base import Recognizer
from itemscan.utils.image import sniff_content_type
from itemscan.utils.retry import RetryConfig, call_with_timeout, retry_call


logger = logging.getLogger(__name__)

# Primary failures that would only repeat if retried
PERMANENT_ERRORS = (ConfigurationError, ImageDecodeError)


def merge_results(per_image: Iterable[List[RecognitionResult]]) -> List[RecognitionResult]:
    """
    Union per-image results, one entry per item.

    A later duplicate replaces an earlier one only with strictly higher
    confidence, and takes over its position.
    """
    merged: Dict[str, RecognitionResult] = {}
    for results in per_image:
        for result in results:
            existing = merged.get(result.item.id)
            if existing is None or result.confidence > existing.confidence:
                merged[result.item.id] = result
    return list(merged.values())


def filter_and_rank(results: List[RecognitionResult], options: SearchOptions) -> List[RecognitionResult]:
    """Drop low-confidence results, sort best first, honor single-item mode."""
    kept = [r for r in results if r.confidence >= options.min_confidence]
    kept.sort(key=lambda r: r.confidence, reverse=True)
    if not options.detect_multiple_items and len(kept) > 1:
        kept = kept[:1]
    return kept


class RecognitionOrchestrator:
    """
    Runs image searches against the image cache and two recognizers.

    Strategy per image:
    1. Primary recognizer, with retries and a deadline per attempt
    2. If it fails or finds nothing, the fallback recognizer
    Recognizer failures only cost that image its results; the search as a
    whole fails only on invalid input or unreadable images.

    Every search bumps a generation counter. A search that finishes after a
    newer one has started still returns its results but does not write them
    to the cache.
    """

    def __init__(
        self,
        cache: SearchCache,
        primary: Recognizer,
        fallback: Recognizer,
        config: Optional[Config] = None,
        sleep=time.sleep,
    ):
        self.cache = cache
        self.primary = primary
        self.fallback = fallback
        self.config = config or get_config()
        self._sleep = sleep

        self._lock = threading.Lock()
        self._generation = 0
        self._in_flight = 0

        self.history: Deque[List[RecognitionResult]] = deque(maxlen=self.config.history_size)
        self.last_search_ms: Optional[float] = None
        self.last_error: Optional[str] = None

        # Track statistics
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            "searches": 0,
            "cache_hits": 0,
            "primary_attempts": 0,
            "primary_successes": 0,
            "fallbacks": 0,
            "fallback_successes": 0,
            "superseded_writes": 0,
        }

    @property
    def stats(self) -> dict:
        """Get search statistics."""
        return self._stats.copy()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_searching(self) -> bool:
        return self._in_flight > 0

    def default_options(self) -> SearchOptions:
        return SearchOptions(
            max_results=self.config.default_max_results,
            min_confidence=self.config.default_min_confidence,
        )

    # ---------- validation ----------
    def _coerce(self, image) -> ImageInput:
        if isinstance(image, ImageInput):
            return image
        if isinstance(image, (str, Path)):
            return ImageInput.from_path(image)
        if isinstance(image, (bytes, bytearray)):
            data = bytes(image)
            return ImageInput.from_bytes(
                data, content_type=sniff_content_type(data) or "application/octet-stream"
            )
        if hasattr(image, "read"):
            data = read_image_bytes(image)
            name = Path(getattr(image, "name", "upload")).name
            content_type = None if Path(name).suffix else sniff_content_type(data)
            return ImageInput(name=name, content_type=content_type, data=data)
        raise InvalidInputError(f"Unsupported image input: {type(image).__name__}")

    def validate(self, images: Sequence) -> Tuple[List[ImageInput], List[str]]:
        """
        Split inputs into usable images and names of rejected ones.

        Inputs of an unsupported type are rejected like any other non-image.
        Raises HashingError if a file-like input cannot be read.
        """
        valid: List[ImageInput] = []
        rejected: List[str] = []
        for raw in images:
            try:
                image = self._coerce(raw)
            except InvalidInputError as e:
                logger.info("Rejected input: %s", e)
                rejected.append(f"<{type(raw).__name__}>")
                continue
            size = image.size
            if image.is_image and 0 <= size <= self.config.max_image_bytes:
                valid.append(image)
            else:
                logger.info(
                    "Rejected '%s' (type=%s, size=%d)", image.name, image.content_type, size
                )
                rejected.append(image.name)
        return valid, rejected

    # ---------- recognition ----------
    def _try_primary(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        """Attempt the primary recognizer with retry and deadline."""
        self._stats["primary_attempts"] += 1

        retry_config = RetryConfig(
            max_attempts=max(1, self.config.max_retries),
            base_delay=self.config.retry_base_delay,
            max_delay=self.config.retry_max_delay,
            give_up_on=PERMANENT_ERRORS,
        )

        def _primary():
            return call_with_timeout(
                self.primary.recognize,
                self.config.recognition_timeout,
                image,
                options,
                name=self.primary.name,
            )

        try:
            results = retry_call(_primary, config=retry_config, sleep=self._sleep)
        except ConfigurationError as e:
            logger.debug("Primary recognizer unavailable: %s", e)
            return []
        except Exception as e:
            logger.warning("Primary recognizer failed on '%s': %s", image.name, e)
            return []

        if results:
            self._stats["primary_successes"] += 1
        else:
            logger.debug("Primary recognizer found nothing in '%s'", image.name)
        return list(results or [])

    def _try_fallback(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        """Attempt the fallback recognizer."""
        self._stats["fallbacks"] += 1
        try:
            results = call_with_timeout(
                self.fallback.recognize,
                self.config.recognition_timeout,
                image,
                options,
                name=self.fallback.name,
            )
        except Exception as e:
            logger.warning("Fallback recognizer failed on '%s': %s", image.name, e)
            return []

        if results:
            self._stats["fallback_successes"] += 1
        return list(results or [])

    def recognize_image(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        """Results for one image: primary first, fallback if that gives nothing."""
        start = time.time()
        results = self._try_primary(image, options)
        if not results:
            results = self._try_fallback(image, options)

        elapsed_ms = (time.time() - start) * 1000
        for result in results:
            if result.processing_time_ms is None:
                result.processing_time_ms = elapsed_ms
        return results

    # ---------- entry point ----------
    def search_by_images(
        self,
        images: Sequence,
        options: Optional[SearchOptions] = None,
    ) -> List[RecognitionResult]:
        """
        Find the items shown in one or more images.

        Args:
            images: ImageInput objects, file paths, raw bytes or binary files
            options: Search options (defaults come from the config)

        Returns:
            Matches, best first. Empty if nothing was recognized.

        Raises:
            InvalidInputError: no images, or none of them usable
            HashingError: an image could not be read
        """
        options = options or self.default_options()
        start = time.time()

        with self._lock:
            self._in_flight += 1
        try:
            if not images:
                raise InvalidInputError("No images provided")

            valid, rejected = self.validate(images)
            if not valid:
                raise InvalidInputError(
                    "No valid images found. Check file type and size "
                    f"(max {self.config.max_image_bytes // (1024 * 1024)} MB).",
                    rejected=rejected,
                )

            key = fingerprint(valid)

            with self._lock:
                self._generation += 1
                generation = self._generation
            self._stats["searches"] += 1

            cached = self.cache.get_cached_image_search(key)
            if cached is not None:
                self._stats["cache_hits"] += 1
                logger.debug("Image search cache hit: %s", key[:12])
                return self._finish(cached, start)

            per_image = [self.recognize_image(image, options) for image in valid]
            results = filter_and_rank(merge_results(per_image), options)

            with self._lock:
                current = generation == self._generation
            if current:
                self.cache.set_cached_image_search(key, results)
            else:
                self._stats["superseded_writes"] += 1
                logger.info("Search %d superseded, not caching its results", generation)

            return self._finish(results, start)

        except ItemScanError as e:
            self.last_error = str(e)
            raise
        finally:
            with self._lock:
                self._in_flight -= 1

    def _finish(self, results: List[RecognitionResult], start: float) -> List[RecognitionResult]:
        self.last_error = None
        self.last_search_ms = (time.time() - start) * 1000
        self.history.appendleft(list(results))
        return results

    def clear_history(self) -> None:
        self.history.clear()
        self.last_search_ms = None
        self.last_error = None

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self._stats = self._empty_stats()
