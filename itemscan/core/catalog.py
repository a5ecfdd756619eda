"""
Reference item catalog.

Items arrive as loosely-typed JSON (the external catalog uses camelCase and
omits fields freely). They are validated here and converted to Item before
anything else sees them.
"""

import json
import logging
from difflib import SequenceMatcher
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from itemscan.core.exceptions import CatalogError
from itemscan.core.types import Item


logger = logging.getLogger(__name__)

# Upper bound for a text search; cached text results hold this many at most
MAX_SEARCH_RESULTS = 50


class CatalogItemPayload(BaseModel):
    """One item as the external catalog sends it."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    short_name: Optional[str] = Field(None, alias="shortName")
    category: Optional[str] = None
    rarity: Optional[str] = None
    base_price: Optional[int] = Field(None, alias="basePrice", ge=0)
    icon_link: Optional[str] = Field(None, alias="iconLink")
    wiki_link: Optional[str] = Field(None, alias="wikiLink")
    types: List[str] = Field(default_factory=list)
    aliases: List[str] = Field(default_factory=list)
    variant_of: Optional[str] = Field(None, alias="variantOf")

    class Config:
        populate_by_name = True

    @field_validator("rarity")
    @classmethod
    def _capitalize_rarity(cls, v: Optional[str]) -> Optional[str]:
        return v[:1].upper() + v[1:] if v else v

    def to_item(self) -> Item:
        return Item(
            id=self.id,
            name=self.name,
            short_name=self.short_name or (self.aliases[0] if self.aliases else " ".join(self.name.split()[:2])),
            category=self.category or "unknown",
            rarity=self.rarity or "Common",
            base_price=self.base_price or 0,
            icon_link=self.icon_link,
            wiki_link=self.wiki_link or f"https://escapefromtarkov.fandom.com/wiki/{self.name.replace(' ', '_')}",
            types=self.types or ([self.category.lower()] if self.category else []),
            aliases=self.aliases,
            variant_of=self.variant_of,
        )


BUILTIN_ITEMS = [
    {"id": "ak-74m", "name": "Kalashnikov AK-74M 5.45x39 assault rifle", "shortName": "AK-74M",
     "category": "Weapon", "rarity": "rare", "basePrice": 35000, "aliases": ["ak74m", "ak-74m"]},
    {"id": "ak-74n", "name": "Kalashnikov AK-74N 5.45x39 assault rifle", "shortName": "AK-74N",
     "category": "Weapon", "rarity": "rare", "basePrice": 31000, "aliases": ["ak74n"],
     "variantOf": "ak-74m"},
    {"id": "m4a1", "name": "Colt M4A1 5.56x45 assault rifle", "shortName": "M4A1",
     "category": "Weapon", "rarity": "rare", "basePrice": 47000, "aliases": ["m4"]},
    {"id": "bitcoin", "name": "Physical Bitcoin", "shortName": "0.2BTC",
     "category": "Barter Items", "rarity": "legendary", "basePrice": 100000,
     "aliases": ["btc", "bitcoin"]},
    {"id": "ifak", "name": "IFAK individual first aid kit", "shortName": "IFAK",
     "category": "Meds", "rarity": "common", "basePrice": 8000, "aliases": ["ifak"]},
    {"id": "paca", "name": "PACA Soft Armor", "shortName": "PACA",
     "category": "Armor", "rarity": "common", "basePrice": 20000, "aliases": ["paca"]},
    {"id": "labs-keycard", "name": "TerraGroup Labs access keycard", "shortName": "Labs",
     "category": "Keys", "rarity": "rare", "basePrice": 40000, "aliases": ["labs keycard"]},
    {"id": "red-keycard", "name": "TerraGroup Labs keycard (Red)", "shortName": "Red",
     "category": "Keys", "rarity": "legendary", "basePrice": 9000000, "aliases": ["red keycard"]},
    {"id": "thicc-case", "name": "THICC Items case", "shortName": "Items",
     "category": "Containers", "rarity": "legendary", "basePrice": 6000000,
     "aliases": ["thicc case", "thicc items case"]},
    {"id": "graphics-card", "name": "Graphics card", "shortName": "GPU",
     "category": "Barter Items", "rarity": "rare", "basePrice": 200000,
     "aliases": ["gpu", "graphics card"]},
    {"id": "tetriz", "name": "Tetriz portable game console", "shortName": "Tetriz",
     "category": "Barter Items", "rarity": "rare", "basePrice": 45000, "aliases": ["tetriz"]},
    {"id": "bronze-lion", "name": "Bronze lion figurine", "shortName": "Lion",
     "category": "Barter Items", "rarity": "rare", "basePrice": 150000, "aliases": ["lion"]},
]


def fuzzy_match(target: str, text: str) -> float:
    """Calculate fuzzy match score between target and text."""
    return SequenceMatcher(None, target.lower(), text.lower()).ratio()


def match_score(query: str, text: str) -> float:
    """Score how well text answers query, 0..1."""
    q = query.lower().strip()
    t = text.lower().strip()
    if not q or not t:
        return 0.0
    if q == t:
        return 1.0
    if q in t:
        return 0.95
    if t in q and len(t) >= 4:
        return 0.85 * (len(t) / len(q))
    return fuzzy_match(q, t)


class ItemCatalog:
    """Validated items, searchable by name and alias."""

    def __init__(self, items: Optional[Iterable[Item]] = None):
        self._items: Dict[str, Item] = {}
        for item in items or []:
            self._items[item.id] = item

    @classmethod
    def from_payloads(cls, payloads: Iterable[dict]) -> "ItemCatalog":
        """Validate raw payloads. Invalid entries are skipped."""
        items = []
        for raw in payloads:
            try:
                items.append(CatalogItemPayload.model_validate(raw).to_item())
            except ValidationError as e:
                logger.warning("Skipping invalid catalog item %r: %s", _raw_id(raw), e)
        return cls(items)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ItemCatalog":
        """Load a JSON list of items, or an object with an "items" list."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CatalogError(f"Could not read catalog '{path}': {e}", cause=e)

        if isinstance(data, dict):
            data = data.get("items")
        if not isinstance(data, list):
            raise CatalogError(f"Catalog '{path}' must hold a list of items")
        return cls.from_payloads(data)

    @classmethod
    def builtin(cls) -> "ItemCatalog":
        return cls.from_payloads(BUILTIN_ITEMS)

    def get(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    def find(self, name: str) -> Optional[Item]:
        """Exact match on id, name, short name or alias (case-insensitive)."""
        key = name.lower().strip()
        for item in self._items.values():
            names = [item.id, item.name, item.short_name] + item.aliases
            if any(key == n.lower() for n in names if n):
                return item
        return None

    def score(self, query: str, limit: int = 10, threshold: float = 0.5) -> List[Tuple[Item, float]]:
        """Best matching items with their scores, best first."""
        scored = []
        for item in self._items.values():
            names = [item.name, item.short_name, item.id] + item.aliases
            best = max(match_score(query, n) for n in names if n)
            if best >= threshold:
                scored.append((item, best))

        scored.sort(key=lambda x: x[1], reverse=True)
        return scored[:limit]

    def search(self, query: str, limit: int = MAX_SEARCH_RESULTS) -> List[Item]:
        return [item for item, _ in self.score(query, limit=limit)]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items.values())


def _raw_id(raw) -> str:
    return raw.get("id", "?") if isinstance(raw, dict) else "?"


def load_catalog(path: Optional[Union[str, Path]] = None) -> ItemCatalog:
    """Catalog from a JSON file, or the built-in reference items."""
    if path:
        catalog = ItemCatalog.from_file(path)
        logger.info("Loaded %d catalog items from %s", len(catalog), path)
        return catalog
    return ItemCatalog.builtin()
