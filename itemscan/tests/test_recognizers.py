"""
Tests for the Gemini and catalog recognizers.
"""

import json

import pytest

from itemscan.config import Config
from itemscan.core.exceptions import ConfigurationError, ImageDecodeError, RecognitionError
from itemscan.core.types import ImageInput, Rect, ResultSource, SearchOptions
from itemscan.recognizers.catalog_recognizer import CatalogRecognizer, hint_from_name
from itemscan.recognizers.gemini_recognizer import (
    SINGLE_HINT,
    GeminiRecognizer,
    parse_reply,
)


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Stands in for genai.GenerativeModel."""

    def __init__(self, text="", error=None):
        self.text = text
        self.error = error
        self.prompts = []

    def generate_content(self, parts):
        self.prompts.append(parts[0])
        if self.error is not None:
            raise self.error
        return FakeResponse(self.text)


def reply(*items):
    return json.dumps({"items": [
        {"name": name, "confidence": conf, "box": box} for name, conf, box in items
    ]})


@pytest.fixture
def screenshot(png_factory):
    return ImageInput(name="stash.png", data=png_factory("black", (120, 80)))


class TestParseReply:
    """Tests for reading Gemini's JSON reply."""

    def test_plain_json(self):
        parsed = parse_reply('{"items": [{"name": "IFAK", "confidence": 0.8}]}')
        assert parsed.items[0].name == "IFAK"
        assert parsed.items[0].box is None

    def test_markdown_fence(self):
        parsed = parse_reply('```json\n{"items": []}\n```')
        assert parsed.items == []

    def test_surrounding_prose(self):
        parsed = parse_reply('Here you go: {"items": [{"name": "PACA", "confidence": 0.5}]} Hope it helps')
        assert parsed.items[0].name == "PACA"

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_reply("I cannot see any items")

    def test_confidence_out_of_range(self):
        with pytest.raises(ValueError):
            parse_reply('{"items": [{"name": "IFAK", "confidence": 3}]}')


class TestGeminiRecognizer:
    """Tests for the primary recognizer with a fake model."""

    def test_resolves_names_against_catalog(self, catalog, test_config, screenshot):
        model = FakeModel(reply(
            ("IFAK", 0.7, None),
            ("Physical Bitcoin", 0.92, [10, 20, 30, 40]),
            ("Mystery Box 9000", 0.9, None),
        ))
        recognizer = GeminiRecognizer(catalog, config=test_config, model=model)

        results = recognizer.recognize(screenshot, SearchOptions())

        assert [r.item.id for r in results] == ["bitcoin", "ifak"]
        assert results[0].bounding_box == Rect(10, 20, 30, 40)
        assert results[0].source == ResultSource.PRIMARY
        assert results[0].metadata.has_multiple_items
        assert results[0].metadata.background_type == "inventory"

    def test_excludes_variants(self, catalog, test_config, screenshot):
        model = FakeModel(reply(("AK-74N", 0.9, None), ("AK-74M", 0.8, None)))
        recognizer = GeminiRecognizer(catalog, config=test_config, model=model)
        results = recognizer.recognize(screenshot, SearchOptions(include_variants=False))
        assert [r.item.id for r in results] == ["ak-74m"]

    def test_max_results(self, catalog, test_config, screenshot):
        model = FakeModel(reply(("IFAK", 0.7, None), ("PACA", 0.6, None), ("Tetriz", 0.5, None)))
        recognizer = GeminiRecognizer(catalog, config=test_config, model=model)
        assert len(recognizer.recognize(screenshot, SearchOptions(max_results=2))) == 2

    def test_single_item_prompt(self, catalog, test_config, screenshot):
        model = FakeModel(reply())
        recognizer = GeminiRecognizer(catalog, config=test_config, model=model)
        recognizer.recognize(screenshot, SearchOptions(detect_multiple_items=False))
        assert SINGLE_HINT in model.prompts[0]
        assert "Physical Bitcoin" in model.prompts[0]

    def test_model_error_wrapped(self, catalog, test_config, screenshot):
        model = FakeModel(error=ConnectionError("quota exceeded"))
        recognizer = GeminiRecognizer(catalog, config=test_config, model=model)
        with pytest.raises(RecognitionError) as exc_info:
            recognizer.recognize(screenshot, SearchOptions())
        assert exc_info.value.recognizer == "gemini"
        assert isinstance(exc_info.value.cause, ConnectionError)

    def test_unparseable_reply(self, catalog, test_config, screenshot):
        recognizer = GeminiRecognizer(catalog, config=test_config, model=FakeModel("no idea"))
        with pytest.raises(RecognitionError):
            recognizer.recognize(screenshot, SearchOptions())

    def test_undecodable_image(self, catalog, test_config):
        recognizer = GeminiRecognizer(catalog, config=test_config, model=FakeModel(reply()))
        with pytest.raises(ImageDecodeError):
            recognizer.recognize(ImageInput(name="bad.png", data=b"not a png"), SearchOptions())

    def test_missing_api_key(self, catalog, screenshot, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        recognizer = GeminiRecognizer(catalog, config=Config(persist_cache=False))
        with pytest.raises(ConfigurationError):
            recognizer.recognize(screenshot, SearchOptions())


class TestCatalogRecognizer:
    """Tests for the name-hint fallback."""

    def test_hint_from_name(self):
        assert hint_from_name("AK-74M_stash.png") == "ak-74m stash"
        assert hint_from_name("uploads/Physical  Bitcoin.jpeg") == "physical bitcoin"

    def test_recognize_by_file_name(self, catalog, png_factory):
        recognizer = CatalogRecognizer(catalog)
        results = recognizer.recognize(ImageInput(name="ak-74m.png", data=png_factory()), SearchOptions())
        ids = [r.item.id for r in results]
        assert ids[0] == "ak-74m"
        assert "ak-74n" in ids
        assert results[0].confidence == pytest.approx(0.8)
        assert all(0.5 <= r.confidence <= 0.8 for r in results)
        assert all(r.source == ResultSource.FALLBACK for r in results)

    def test_excludes_variants(self, catalog):
        results = CatalogRecognizer(catalog).recognize_by_name(
            "ak-74m", SearchOptions(include_variants=False)
        )
        assert "ak-74n" not in [r.item.id for r in results]

    def test_max_results(self, catalog):
        results = CatalogRecognizer(catalog).recognize_by_name("keycard", SearchOptions(max_results=1))
        assert len(results) == 1

    def test_no_hint(self, catalog):
        assert CatalogRecognizer(catalog).recognize_by_name("   ") == []

    def test_no_match(self, catalog):
        assert CatalogRecognizer(catalog).recognize_by_name("qqqqqqqq") == []
