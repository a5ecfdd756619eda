"""
Tests for image decoding and quick screenshot analysis.
"""

import pytest
from PIL import Image, ImageDraw

from itemscan.core.types import Rect
from itemscan.utils.image import (
    analyze_image,
    decode_image,
    draw_results,
    resize_for_api,
    sniff_content_type,
)


def grid_image():
    """Three bright item tiles in a row on a dark background."""
    img = Image.new("RGB", (240, 80), color="black")
    draw = ImageDraw.Draw(img)
    for x in (20, 100, 180):
        draw.rectangle([x, 20, x + 39, 59], fill="white")
    return img


class TestDecode:
    def test_decode(self, png_factory):
        img = decode_image(png_factory("red", (10, 20)))
        assert img.size == (10, 20)
        assert img.mode == "RGB"

    def test_decode_garbage(self):
        with pytest.raises(ValueError):
            decode_image(b"definitely not an image")

    def test_sniff(self, png_factory):
        assert sniff_content_type(png_factory()) == "image/png"
        assert sniff_content_type(b"%PDF-1.4") is None

    def test_resize_for_api(self):
        resized = resize_for_api(Image.new("RGB", (2400, 600)))
        assert resized.size == (1200, 300)

        small = Image.new("RGB", (300, 300))
        assert resize_for_api(small) is small


class TestAnalyze:
    """Tests for background, quality and multi-item heuristics."""

    def test_dark_screen_is_inventory(self):
        meta = analyze_image(Image.new("RGB", (200, 200), color="black"))
        assert meta.background_type == "inventory"
        assert meta.image_quality == 0.0
        assert not meta.has_multiple_items

    def test_half_dark_is_stash(self):
        img = Image.new("RGB", (200, 200), color="white")
        ImageDraw.Draw(img).rectangle([0, 0, 99, 199], fill="black")
        assert analyze_image(img).background_type == "stash"

    def test_bright_is_ground(self):
        assert analyze_image(Image.new("RGB", (200, 200), color="white")).background_type == "ground"

    def test_grid_has_multiple_items(self):
        meta = analyze_image(grid_image())
        assert meta.has_multiple_items
        assert 0.0 < meta.image_quality <= 1.0


class TestDrawResults:
    def test_draws_boxes(self, result_factory, tmp_path):
        img = Image.new("RGB", (100, 100), color="black")
        results = [
            result_factory("ifak", 0.9, bounding_box=Rect(10, 10, 30, 30)),
            result_factory("paca", 0.4),
        ]
        output = tmp_path / "annotated.png"

        annotated = draw_results(img, results, str(output))

        assert output.exists()
        assert annotated.getpixel((10, 25)) != (0, 0, 0)
        assert img.getpixel((10, 25)) == (0, 0, 0)
