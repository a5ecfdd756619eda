"""
Image utilities for decoding, resizing and quick quality analysis.
"""

from io import BytesIO
from typing import List, Optional

import numpy as np
from PIL import Image, ImageDraw, UnidentifiedImageError

from itemscan.core.types import RecognitionMetadata, RecognitionResult


def decode_image(data: bytes) -> Image.Image:
    """
    Decode raw bytes into an RGB PIL Image.

    Raises ValueError if the bytes are not a readable image.
    """
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Not a readable image: {e}") from e
    return img.convert("RGB")


def sniff_content_type(data: bytes) -> Optional[str]:
    """MIME type of encoded image bytes, or None if Pillow cannot tell."""
    try:
        with Image.open(BytesIO(data)) as img:
            return Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        return None


def resize_for_api(img: Image.Image, max_width: int = 1200) -> Image.Image:
    """
    Resize an image for API calls (to reduce latency).

    Args:
        img: Input image
        max_width: Maximum width (maintains aspect ratio)

    Returns:
        Resized image
    """
    if img.width <= max_width:
        return img

    ratio = max_width / img.width
    new_height = int(img.height * ratio)
    return img.resize((max_width, new_height), Image.Resampling.LANCZOS)


def _grayscale(img: Image.Image, max_side: int = 400) -> np.ndarray:
    small = img.convert("L")
    if max(small.size) > max_side:
        small.thumbnail((max_side, max_side), Image.Resampling.LANCZOS)
    return np.asarray(small, dtype=np.float32)


def _edge_magnitude(gray: np.ndarray) -> np.ndarray:
    """Sobel gradient magnitude, clipped to 0..255."""
    if gray.shape[0] < 3 or gray.shape[1] < 3:
        return np.zeros_like(gray)

    p = np.pad(gray, 1, mode="edge")
    gx = (
        (p[:-2, 2:] + 2 * p[1:-1, 2:] + p[2:, 2:])
        - (p[:-2, :-2] + 2 * p[1:-1, :-2] + p[2:, :-2])
    )
    gy = (
        (p[2:, :-2] + 2 * p[2:, 1:-1] + p[2:, 2:])
        - (p[:-2, :-2] + 2 * p[:-2, 1:-1] + p[:-2, 2:])
    )
    return np.clip(np.hypot(gx, gy), 0, 255)


def background_type(gray: np.ndarray) -> str:
    """
    Guess where the screenshot was taken from its darkness.

    Inventory screens are mostly dark, stash screens half dark.
    """
    dark_ratio = float((gray < 85).mean()) if gray.size else 0.0
    if dark_ratio > 0.6:
        return "inventory"
    if dark_ratio > 0.3:
        return "stash"
    return "ground"


def image_quality(edges: np.ndarray) -> float:
    """Sharpness score 0..1 from mean edge strength."""
    if edges.size == 0:
        return 0.0
    return float(min(edges.mean() / 50.0, 1.0))


def count_item_regions(edges: np.ndarray, threshold: float = 100.0, min_size: int = 20) -> int:
    """
    Rough count of separate item-sized regions.

    Looks for runs of strong-edge columns and rows; items in a grid produce
    several distinct runs in at least one direction.
    """
    if edges.size == 0:
        return 0
    strong = edges > threshold
    h, w = strong.shape
    max_w, max_h = int(w * 0.8), int(h * 0.8)

    def runs(profile: np.ndarray, upper: int) -> int:
        count = 0
        length = 0
        for active in profile:
            if active:
                length += 1
                continue
            if min_size <= length <= upper:
                count += 1
            length = 0
        if min_size <= length <= upper:
            count += 1
        return count

    cols = runs(strong.any(axis=0), max_w)
    rows = runs(strong.any(axis=1), max_h)
    return max(cols, rows)


def analyze_image(img: Image.Image) -> RecognitionMetadata:
    """Background type, sharpness and whether several items seem present."""
    gray = _grayscale(img)
    edges = _edge_magnitude(gray)
    return RecognitionMetadata(
        has_multiple_items=count_item_regions(edges) > 1,
        background_type=background_type(gray),
        image_quality=image_quality(edges),
    )



def draw_results(
    img: Image.Image,
    results: List[RecognitionResult],
    output_path: Optional[str] = None,
) -> Image.Image:
    """
    Draw each result's bounding box and label on a copy of the image.

    Results without a bounding box are skipped.
    """
    result_img = img.copy()
    draw = ImageDraw.Draw(result_img)

    for result in results:
        box = result.bounding_box
        if box is None:
            continue

        # Color by confidence
        if result.confidence > 0.8:
            color = "lime"
        elif result.confidence > 0.5:
            color = "yellow"
        else:
            color = "red"

        draw.rectangle([box.x, box.y, box.x + box.width, box.y + box.height], outline=color, width=3)
        label = f"{result.item.short_name or result.item.name} ({result.confidence:.0%})"
        draw.text((box.x, max(0, box.y - 15)), label, fill=color)

    if output_path:
        result_img.save(output_path)

    return result_img
