"""
Common Pydantic schemas shared across endpoints.
"""

from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field

from itemscan.core.types import Item, RecognitionResult


class ResultSourceSchema(str, Enum):
    """Which recognizer produced a result."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class ItemSchema(BaseModel):
    """A catalog item."""
    id: str
    name: str
    short_name: str = ""
    category: str = "unknown"
    rarity: str = "Common"
    base_price: int = 0
    icon_link: Optional[str] = None
    wiki_link: Optional[str] = None
    types: List[str] = Field(default_factory=list)
    variant_of: Optional[str] = None

    @classmethod
    def from_item(cls, item: Item) -> "ItemSchema":
        return cls(
            id=item.id,
            name=item.name,
            short_name=item.short_name,
            category=item.category,
            rarity=item.rarity,
            base_price=item.base_price,
            icon_link=item.icon_link,
            wiki_link=item.wiki_link,
            types=item.types,
            variant_of=item.variant_of,
        )


class RectSchema(BaseModel):
    """Pixel-coordinate rectangle."""
    x: int = Field(..., description="Left edge x coordinate")
    y: int = Field(..., description="Top edge y coordinate")
    width: int = Field(..., description="Width in pixels")
    height: int = Field(..., description="Height in pixels")

    class Config:
        json_schema_extra = {
            "example": {"x": 245, "y": 120, "width": 64, "height": 64}
        }


class MetadataSchema(BaseModel):
    """What the recognizer could tell about the image."""
    has_multiple_items: bool = False
    background_type: str = "unknown"
    image_quality: float = 0.0


class RecognitionResultSchema(BaseModel):
    """A candidate item match."""
    item: ItemSchema
    confidence: float = Field(..., ge=0, le=1, description="Match confidence (0-1)")
    bounding_box: Optional[RectSchema] = None
    processing_time_ms: Optional[float] = None
    metadata: MetadataSchema
    source: ResultSourceSchema

    @classmethod
    def from_result(cls, result: RecognitionResult) -> "RecognitionResultSchema":
        bbox = result.bounding_box
        return cls(
            item=ItemSchema.from_item(result.item),
            confidence=result.confidence,
            bounding_box=RectSchema(**bbox.to_dict()) if bbox else None,
            processing_time_ms=result.processing_time_ms,
            metadata=MetadataSchema(**result.metadata.to_dict()),
            source=ResultSourceSchema(result.source.value),
        )
