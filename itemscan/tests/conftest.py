"""
Pytest fixtures for itemscan tests.
"""

from io import BytesIO
from typing import List, Optional

import pytest
from PIL import Image

from itemscan.cache.search_cache import SearchCache
from itemscan.cache.storage import MemoryStore
from itemscan.config import Config, set_config
from itemscan.core.catalog import ItemCatalog
from itemscan.core.clock import ManualClock
from itemscan.core.types import (
    ImageInput,
    Item,
    RecognitionResult,
    SearchOptions,
)
from itemscan.recognizers.base import Recognizer


class FakeRecognizer(Recognizer):
    """Recognizer that returns canned results (or raises) and records calls."""

    def __init__(self, results=None, error: Optional[Exception] = None, name: str = "fake"):
        self.results = results or {}
        self.error = error
        self.calls: List[str] = []
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def recognize(self, image: ImageInput, options: SearchOptions) -> List[RecognitionResult]:
        self.calls.append(image.name)
        if self.error is not None:
            raise self.error
        if callable(self.results):
            return self.results(image)
        return list(self.results.get(image.name, []))


def make_item(item_id: str, variant_of: Optional[str] = None) -> Item:
    return Item(id=item_id, name=item_id.replace("-", " ").title(), variant_of=variant_of)


def make_result(item_id: str, confidence: float, **kwargs) -> RecognitionResult:
    variant_of = kwargs.pop("variant_of", None)
    return RecognitionResult(item=make_item(item_id, variant_of), confidence=confidence, **kwargs)


def png_bytes(color="white", size=(64, 64)) -> bytes:
    img = Image.new("RGB", size, color=color)
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration."""
    config = Config(
        google_api_key="test-key",
        cache_max_entries=10,
        persist_cache=False,
        cache_dir=str(tmp_path / "cache"),
        max_retries=1,
        retry_base_delay=0.0,
        recognition_timeout=0,
    )
    set_config(config)
    return config


@pytest.fixture
def clock():
    """A clock that only moves when advanced."""
    return ManualClock()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def catalog():
    return ItemCatalog.builtin()


@pytest.fixture
def search_cache(test_config, clock):
    """A fresh in-memory search cache."""
    return SearchCache(config=test_config, clock=clock)


@pytest.fixture
def image_a():
    return ImageInput(name="a.png", content_type="image/png", data=png_bytes("white"))


@pytest.fixture
def image_b():
    return ImageInput(name="b.png", content_type="image/png", data=png_bytes("black"))


@pytest.fixture
def result_factory():
    """Build RecognitionResult objects: result_factory("bitcoin", 0.9)."""
    return make_result


@pytest.fixture
def recognizer_factory():
    """Build FakeRecognizer objects."""
    return FakeRecognizer


@pytest.fixture
def png_factory():
    """Encode a solid-color PNG: png_factory("red", (32, 32))."""
    return png_bytes
