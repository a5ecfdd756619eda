"""
Fallback recognizer that guesses items from a name hint.
"""

import logging
import re
import time
from typing import List, Optional

from itemscan.core.catalog import ItemCatalog
from itemscan.core.types import (
    ImageInput,
    RecognitionMetadata,
    RecognitionResult,
    ResultSource,
    SearchOptions,
)
from itemscan.recognizers.base import Recognizer


logger = logging.getLogger(__name__)

# Fallback matches never claim more than this
BASE_CONFIDENCE = 0.5
CONFIDENCE_SPAN = 0.3


def hint_from_name(filename: str) -> str:
    """Turn an upload name like 'AK-74M_stash.png' into 'ak-74m stash'."""
    stem = filename.rsplit("/", 1)[-1].split(".")[0]
    return re.sub(r"[_\s]+", " ", stem).strip().lower()


class CatalogRecognizer(Recognizer):
    """
    Looks the hint up in the item catalog.

    Much less precise than looking at the pixels: the hint is usually the
    upload's file name. Confidence is 0.5-0.8 depending on how well the
    hint matches an item name or alias. Never raises.
    """

    def __init__(self, catalog: ItemCatalog, min_match: float = 0.5):
        self.catalog = catalog
        self.min_match = min_match

    @property
    def name(self) -> str:
        return "catalog"

    def recognize(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        return self.recognize_by_name(hint_from_name(image.name), options)

    def recognize_by_name(
        self, hint: str, options: Optional[SearchOptions] = None
    ) -> List[RecognitionResult]:
        options = options or SearchOptions()
        if not hint or not hint.strip():
            return []

        start = time.time()
        try:
            scored = self.catalog.score(hint, limit=len(self.catalog), threshold=self.min_match)
        except Exception as e:
            logger.warning("Catalog lookup for '%s' failed: %s", hint, e)
            return []

        if not options.include_variants:
            scored = [(item, s) for item, s in scored if not item.is_variant]

        elapsed_ms = (time.time() - start) * 1000
        results = [
            RecognitionResult(
                item=item,
                confidence=BASE_CONFIDENCE + CONFIDENCE_SPAN * score,
                processing_time_ms=elapsed_ms,
                metadata=RecognitionMetadata(
                    has_multiple_items=False,
                    background_type="inventory",
                    image_quality=0.7,
                ),
                source=ResultSource.FALLBACK,
            )
            for item, score in scored[: max(options.max_results, 0)]
        ]
        logger.debug("Catalog fallback for '%s' found %d items", hint, len(results))
        return results
