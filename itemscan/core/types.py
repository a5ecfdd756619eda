"""
Core data types for itemscan.
"""

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union


T = TypeVar("T")


class ResultSource(Enum):
    """Which recognizer produced a result."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass
class Item:
    """A catalog item, already validated."""
    id: str
    name: str
    short_name: str = ""
    category: str = "unknown"
    rarity: str = "common"
    base_price: int = 0
    icon_link: Optional[str] = None
    wiki_link: Optional[str] = None
    types: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    variant_of: Optional[str] = None

    @property
    def is_variant(self) -> bool:
        return self.variant_of is not None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "short_name": self.short_name,
            "category": self.category,
            "rarity": self.rarity,
            "base_price": self.base_price,
            "icon_link": self.icon_link,
            "wiki_link": self.wiki_link,
            "types": list(self.types),
            "aliases": list(self.aliases),
            "variant_of": self.variant_of,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            short_name=data.get("short_name", ""),
            category=data.get("category", "unknown"),
            rarity=data.get("rarity", "common"),
            base_price=data.get("base_price", 0),
            icon_link=data.get("icon_link"),
            wiki_link=data.get("wiki_link"),
            types=list(data.get("types", [])),
            aliases=list(data.get("aliases", [])),
            variant_of=data.get("variant_of"),
        )


@dataclass
class Rect:
    """Pixel-coordinate rectangle."""
    x: int
    y: int
    width: int
    height: int

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: dict) -> "Rect":
        return cls(x=data["x"], y=data["y"], width=data["width"], height=data["height"])


@dataclass
class RecognitionMetadata:
    """What the recognizer could tell about the image itself."""
    has_multiple_items: bool = False
    background_type: str = "unknown"
    image_quality: float = 0.0

    def to_dict(self) -> dict:
        return {
            "has_multiple_items": self.has_multiple_items,
            "background_type": self.background_type,
            "image_quality": self.image_quality,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecognitionMetadata":
        return cls(
            has_multiple_items=data.get("has_multiple_items", False),
            background_type=data.get("background_type", "unknown"),
            image_quality=data.get("image_quality", 0.0),
        )


@dataclass
class RecognitionResult:
    """A candidate item match for an image."""
    item: Item
    confidence: float
    bounding_box: Optional[Rect] = None
    processing_time_ms: Optional[float] = None
    metadata: RecognitionMetadata = field(default_factory=RecognitionMetadata)
    source: ResultSource = ResultSource.PRIMARY

    def __post_init__(self):
        # Recognizers are allowed to be sloppy, the cache is not
        self.confidence = min(1.0, max(0.0, float(self.confidence)))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "item": self.item.to_dict(),
            "confidence": self.confidence,
            "bounding_box": self.bounding_box.to_dict() if self.bounding_box else None,
            "processing_time_ms": self.processing_time_ms,
            "metadata": self.metadata.to_dict(),
            "source": self.source.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RecognitionResult":
        """Create from dictionary."""
        bbox = data.get("bounding_box")
        return cls(
            item=Item.from_dict(data["item"]),
            confidence=data["confidence"],
            bounding_box=Rect.from_dict(bbox) if bbox else None,
            processing_time_ms=data.get("processing_time_ms"),
            metadata=RecognitionMetadata.from_dict(data.get("metadata") or {}),
            source=ResultSource(data.get("source", ResultSource.PRIMARY.value)),
        )


@dataclass
class SearchOptions:
    """Options for an image search."""
    max_results: int = 10
    min_confidence: float = 0.3
    include_variants: bool = True
    detect_multiple_items: bool = True


@dataclass
class CacheEntry(Generic[T]):
    """A cached value with its timing and access bookkeeping."""
    data: T
    timestamp: float
    expires_at: float
    access_count: int = 1
    last_accessed: float = 0.0

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def touch(self, now: float) -> None:
        """Record a read."""
        self.access_count += 1
        self.last_accessed = now

    def to_dict(self, encode=None) -> dict:
        return {
            "data": encode(self.data) if encode else self.data,
            "timestamp": self.timestamp,
            "expires_at": self.expires_at,
            "access_count": self.access_count,
            "last_accessed": self.last_accessed,
        }

    @classmethod
    def from_dict(cls, data: dict, decode=None) -> "CacheEntry":
        return cls(
            data=decode(data["data"]) if decode else data["data"],
            timestamp=float(data["timestamp"]),
            expires_at=float(data["expires_at"]),
            access_count=int(data.get("access_count", 1)),
            last_accessed=float(data.get("last_accessed", data["timestamp"])),
        )


@dataclass
class ImageInput:
    """
    An image handed to a search.

    Either holds the bytes directly or points at a file on disk. The content
    type is guessed from the name when not given.
    """
    name: str
    content_type: Optional[str] = None
    data: Optional[bytes] = None
    path: Optional[Union[str, Path]] = None

    def __post_init__(self):
        if self.content_type is None:
            guessed, _ = mimetypes.guess_type(self.name)
            self.content_type = guessed or "application/octet-stream"

    @property
    def is_image(self) -> bool:
        return bool(self.content_type) and self.content_type.startswith("image/")

    @property
    def size(self) -> int:
        """Size in bytes, or -1 if it cannot be determined."""
        if self.data is not None:
            return len(self.data)
        if self.path is not None:
            try:
                return Path(self.path).stat().st_size
            except OSError:
                return -1
        return -1

    def read(self) -> bytes:
        """Return the raw bytes."""
        if self.data is not None:
            return bytes(self.data)
        if self.path is None:
            raise ValueError(f"Image '{self.name}' has neither data nor path")
        return Path(self.path).read_bytes()

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "ImageInput":
        """Create from a file on disk (read lazily)."""
        path = Path(path)
        return cls(name=path.name, content_type=content_type, path=path)

    @classmethod
    def from_bytes(
        cls, data: bytes, name: str = "upload", content_type: Optional[str] = None
    ) -> "ImageInput":
        return cls(name=name, content_type=content_type, data=data)


def results_to_dicts(results: List[RecognitionResult]) -> List[Dict[str, Any]]:
    return [r.to_dict() for r in results]


def results_from_dicts(data: List[Dict[str, Any]]) -> List[RecognitionResult]:
    return [RecognitionResult.from_dict(d) for d in data]


def items_to_dicts(items: List[Item]) -> List[Dict[str, Any]]:
    return [i.to_dict() for i in items]


def items_from_dicts(data: List[Dict[str, Any]]) -> List[Item]:
    return [Item.from_dict(d) for d in data]
