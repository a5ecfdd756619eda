"""
Pydantic schemas for the search endpoints.
"""

from typing import Optional, List
from pydantic import BaseModel, Field

from .common import ItemSchema, RecognitionResultSchema


class ImageUpload(BaseModel):
    """One uploaded image."""
    name: str = Field("upload", description="Original file name")
    content_type: Optional[str] = Field(
        None,
        description="MIME type. Guessed from the name if omitted."
    )
    data: str = Field(..., description="Base64-encoded image bytes")


class ImageSearchRequest(BaseModel):
    """Request body for image search."""
    images: List[ImageUpload] = Field(..., min_length=1, description="Images to search with")
    max_results: int = Field(10, ge=1, le=50, description="Maximum results per image")
    min_confidence: float = Field(0.3, ge=0, le=1, description="Drop results below this confidence")
    include_variants: bool = Field(True, description="Include variants of base items")
    detect_multiple_items: bool = Field(True, description="Report every item, not just the best")

    class Config:
        json_schema_extra = {
            "example": {
                "images": [{"name": "stash.png", "data": "<base64>"}],
                "min_confidence": 0.5,
                "detect_multiple_items": True,
            }
        }


class ImageSearchResponse(BaseModel):
    """Response from image search."""
    results: List[RecognitionResultSchema] = Field(default_factory=list)
    count: int = Field(0, description="Number of results")
    time_ms: Optional[float] = Field(None, description="Search time in milliseconds")


class TextSearchResponse(BaseModel):
    """Response from text search."""
    query: str
    items: List[ItemSchema] = Field(default_factory=list)
    cached: bool = Field(False, description="Whether the results came from the cache")
