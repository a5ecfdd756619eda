"""
Content fingerprints for images.

The combined fingerprint ignores the order images were picked in but changes
with any byte of any image.
"""

import hashlib
import os
from typing import Iterable, List, Union

from itemscan.core.exceptions import HashingError
from itemscan.core.types import ImageInput


ImageSource = Union[bytes, bytearray, memoryview, ImageInput, str, os.PathLike]


def read_image_bytes(image) -> bytes:
    """
    Read the raw bytes of an image.

    Accepts bytes, ImageInput, a file path or a binary file-like object.
    """
    try:
        if isinstance(image, (bytes, bytearray, memoryview)):
            return bytes(image)
        if isinstance(image, ImageInput):
            return image.read()
        if isinstance(image, (str, os.PathLike)):
            with open(image, "rb") as fh:
                return fh.read()
        if hasattr(image, "read"):
            data = image.read()
            if hasattr(image, "seek"):
                image.seek(0)
            if isinstance(data, (bytes, bytearray)):
                return bytes(data)
            raise TypeError(f"read() returned {type(data).__name__}, not bytes")
    except HashingError:
        raise
    except Exception as e:
        raise HashingError(f"Could not read image {_describe(image)}: {e}", cause=e)

    raise HashingError(f"Unsupported image type: {type(image).__name__}")


def hash_image(image: ImageSource) -> str:
    """SHA-256 hex digest of one image's bytes."""
    return hashlib.sha256(read_image_bytes(image)).hexdigest()


def fingerprint(images: Iterable[ImageSource]) -> str:
    """
    Combined fingerprint for a set of images.

    Each image is hashed on its own, the digests are sorted and the
    concatenation is hashed again. A single image is its own digest.
    """
    digests: List[str] = [hash_image(img) for img in images]
    if not digests:
        raise HashingError("Cannot fingerprint an empty image set")
    if len(digests) == 1:
        return digests[0]

    combined = "".join(sorted(digests))
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


def _describe(image) -> str:
    name = getattr(image, "name", None)
    if name:
        return f"'{name}'"
    return f"<{type(image).__name__}>"
