"""
Pydantic schemas for API request/response models.
"""

from .common import ItemSchema, RectSchema, RecognitionResultSchema
from .search import ImageUpload, ImageSearchRequest, ImageSearchResponse, TextSearchResponse

__all__ = [
    "ItemSchema",
    "RectSchema",
    "RecognitionResultSchema",
    "ImageUpload",
    "ImageSearchRequest",
    "ImageSearchResponse",
    "TextSearchResponse",
]
