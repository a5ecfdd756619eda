"""
Primary recognizer using Gemini vision.

The image goes to Gemini together with a prompt asking for the items it
shows as JSON. Every name Gemini returns is resolved against the item
catalog; names the catalog does not know are dropped.
"""

import json
import logging
import re
import time
from typing import List, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field, ValidationError

from itemscan.config import Config, get_config
from itemscan.core.catalog import ItemCatalog
from itemscan.core.exceptions import ConfigurationError, ImageDecodeError, RecognitionError
from itemscan.core.types import (
    ImageInput,
    Item,
    RecognitionResult,
    Rect,
    ResultSource,
    SearchOptions,
)
from itemscan.recognizers.base import Recognizer
from itemscan.utils.image import analyze_image, decode_image, resize_for_api


logger = logging.getLogger(__name__)


RECOGNIZE_PROMPT = '''This is a screenshot from the game Escape from Tarkov.
Identify the in-game items visible in it. {multi}

Known item names include: {names}

For each item give its name exactly as listed above when possible, a
confidence between 0 and 1, and its bounding box in pixels of the image.

RESPOND JSON only:
{{"items": [{{"name": "Physical Bitcoin", "confidence": 0.92, "box": [x, y, width, height]}}]}}
{{"items": []}}'''

MULTI_HINT = "There may be several items; list each one."
SINGLE_HINT = "Report only the most prominent item."

# How close a returned name must be to a catalog name
NAME_MATCH_THRESHOLD = 0.8
MAX_PROMPT_NAMES = 200


class RecognizedCandidate(BaseModel):
    """One item as Gemini reports it."""
    name: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0, le=1)
    box: Optional[List[int]] = None


class RecognitionReply(BaseModel):
    """Gemini's full reply."""
    items: List[RecognizedCandidate] = Field(default_factory=list)


def parse_reply(text: str) -> RecognitionReply:
    """
    Parse Gemini's reply, tolerating markdown fences around the JSON.

    Raises ValueError if no valid JSON object can be found.
    """
    cleaned = text.strip()
    fenced = re.search(r"```(?:json)?\s*(.*?)```", cleaned, re.DOTALL)
    if fenced:
        cleaned = fenced.group(1).strip()
    else:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start != -1 and end > start:
            cleaned = cleaned[start:end + 1]

    try:
        return RecognitionReply.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Unparseable recognizer reply: {e}") from e


class GeminiRecognizer(Recognizer):
    """Identifies items by showing the image to Gemini."""

    def __init__(
        self,
        catalog: ItemCatalog,
        config: Optional[Config] = None,
        model=None,
    ):
        self.catalog = catalog
        self.config = config or get_config()
        self._model = model

        # Configure Gemini
        if self._model is None and self.config.google_api_key:
            genai.configure(api_key=self.config.google_api_key)

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self):
        """Lazy-load the Gemini vision model."""
        if self._model is None:
            if not self.config.google_api_key:
                raise ConfigurationError("GOOGLE_API_KEY not configured")
            self._model = genai.GenerativeModel(self.config.gemini_vision_model)
        return self._model

    def _resolve(self, name: str) -> Optional[Item]:
        item = self.catalog.find(name)
        if item is not None:
            return item
        matches = self.catalog.score(name, limit=1, threshold=NAME_MATCH_THRESHOLD)
        return matches[0][0] if matches else None

    def _prompt(self, options: SearchOptions) -> str:
        names = [item.name for item in self.catalog][:MAX_PROMPT_NAMES]
        return RECOGNIZE_PROMPT.format(
            multi=MULTI_HINT if options.detect_multiple_items else SINGLE_HINT,
            names=", ".join(names),
        )

    def recognize(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        start = time.time()

        try:
            img = decode_image(image.read())
        except (OSError, ValueError) as e:
            raise ImageDecodeError(self.name, f"cannot decode '{image.name}'", cause=e)

        metadata = analyze_image(img)

        try:
            response = self.model.generate_content([self._prompt(options), resize_for_api(img)])
            reply = parse_reply(response.text)
        except ConfigurationError:
            raise
        except Exception as e:
            raise RecognitionError(self.name, str(e), cause=e)

        elapsed_ms = (time.time() - start) * 1000
        results: List[RecognitionResult] = []
        for cand in reply.items:
            item = self._resolve(cand.name)
            if item is None:
                logger.debug("Gemini named unknown item '%s'", cand.name)
                continue
            if item.is_variant and not options.include_variants:
                continue

            bbox = None
            if cand.box and len(cand.box) == 4:
                bbox = Rect(*cand.box)

            results.append(RecognitionResult(
                item=item,
                confidence=cand.confidence,
                bounding_box=bbox,
                processing_time_ms=elapsed_ms,
                metadata=metadata,
                source=ResultSource.PRIMARY,
            ))

        if len(results) > 1:
            metadata.has_multiple_items = True

        results.sort(key=lambda r: r.confidence, reverse=True)
        return results[: max(options.max_results, 0)]
