"""
Tests for the item catalog and name matching.
"""

import json

import pytest

from itemscan.core.catalog import (
    CatalogItemPayload,
    ItemCatalog,
    load_catalog,
    match_score,
)
from itemscan.core.exceptions import CatalogError


class TestMatchScore:
    """Tests for query/name scoring."""

    def test_exact(self):
        assert match_score("IFAK", "ifak") == 1.0

    def test_substring(self):
        assert match_score("keycard", "TerraGroup Labs access keycard") == 0.95

    def test_name_inside_query(self):
        assert match_score("tetriz console", "tetriz") == pytest.approx(0.85 * 6 / 14)

    def test_empty(self):
        assert match_score("", "ifak") == 0.0


class TestItemCatalog:
    """Tests for catalog lookup and search."""

    def test_builtin(self, catalog):
        assert len(catalog) == 12
        assert catalog.get("bitcoin").name == "Physical Bitcoin"

    def test_find_by_alias(self, catalog):
        assert catalog.find("BTC").id == "bitcoin"
        assert catalog.find("ak-74M").id == "ak-74m"
        assert catalog.find("nothing like it") is None

    def test_search_ranks_matches(self, catalog):
        ids = [item.id for item in catalog.search("keycard")]
        assert set(ids[:2]) == {"labs-keycard", "red-keycard"}

    def test_search_limit(self, catalog):
        assert len(catalog.search("a", limit=3)) <= 3

    def test_variants_marked(self, catalog):
        assert catalog.get("ak-74n").is_variant
        assert not catalog.get("ak-74m").is_variant


class TestCatalogPayloads:
    """Tests for validating external catalog data."""

    def test_camel_case_fields(self):
        item = CatalogItemPayload.model_validate({
            "id": "gpu",
            "name": "Graphics card",
            "shortName": "GPU",
            "basePrice": 200000,
            "rarity": "legendary",
            "category": "Barter Items",
        }).to_item()
        assert item.short_name == "GPU"
        assert item.base_price == 200000
        assert item.rarity == "Legendary"
        assert item.types == ["barter items"]
        assert item.wiki_link.endswith("/Graphics_card")

    def test_invalid_entries_skipped(self):
        catalog = ItemCatalog.from_payloads([
            {"id": "ok", "name": "Fine item"},
            {"id": "no-name"},
            {"id": "neg", "name": "Negative", "basePrice": -5},
            "not even a dict",
        ])
        assert [item.id for item in catalog] == ["ok"]

    def test_from_file_list(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps([{"id": "lion", "name": "Bronze lion"}]))
        assert ItemCatalog.from_file(path).get("lion") is not None

    def test_from_file_object(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps({"items": [{"id": "lion", "name": "Bronze lion"}]}))
        assert len(load_catalog(str(path))) == 1

    def test_from_file_wrong_shape(self, tmp_path):
        path = tmp_path / "items.json"
        path.write_text(json.dumps({"data": 1}))
        with pytest.raises(CatalogError):
            ItemCatalog.from_file(path)

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(CatalogError):
            ItemCatalog.from_file(tmp_path / "missing.json")

    def test_load_catalog_default(self):
        assert len(load_catalog()) == 12
