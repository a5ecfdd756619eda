"""
CLI tests. Gemini is left unconfigured so image searches take the catalog path.
"""

import json

import pytest

from itemscan.cli import main


@pytest.fixture
def cli_config(test_config):
    test_config.google_api_key = None
    test_config.persist_cache = True
    return test_config


def run(capsys, *argv):
    code = main(list(argv))
    return code, capsys.readouterr().out


class TestCLI:
    def test_no_command(self, cli_config, capsys):
        code, _ = run(capsys)
        assert code == 1

    def test_search_text_is_cached_between_runs(self, cli_config, capsys):
        code, out = run(capsys, "search-text", "bitcoin", "--json")
        assert code == 0
        first = json.loads(out)
        assert first["items"][0]["id"] == "bitcoin"
        assert first["cached"] is False

        _, out = run(capsys, "search-text", "Bitcoin", "--json")
        assert json.loads(out)["cached"] is True

    def test_search_text_limit_applies_to_cached_results(self, cli_config, capsys):
        _, out = run(capsys, "search-text", "keycard", "--limit", "1", "--json")
        assert len(json.loads(out)["items"]) == 1

        _, out = run(capsys, "search-text", "keycard", "--json")
        data = json.loads(out)
        assert data["cached"] is True
        assert len(data["items"]) >= 2

    def test_search_image(self, cli_config, capsys, png_factory, tmp_path):
        path = tmp_path / "bitcoin.png"
        path.write_bytes(png_factory("yellow"))

        code, out = run(capsys, "search-image", str(path))
        assert code == 0
        assert "Physical Bitcoin" in out

    def test_search_image_json_single(self, cli_config, capsys, png_factory, tmp_path):
        path = tmp_path / "ak-74m.png"
        path.write_bytes(png_factory("gray"))

        code, out = run(capsys, "search-image", str(path), "--single", "--json")
        assert code == 0
        data = json.loads(out)
        assert data["count"] == 1
        assert data["results"][0]["item"]["id"] == "ak-74m"

    def test_search_image_rejects_non_images(self, cli_config, capsys, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        code, _ = run(capsys, "search-image", str(path))
        assert code == 1

    def test_stats_and_clear(self, cli_config, capsys):
        run(capsys, "search-text", "ifak")
        run(capsys, "search-text", "ifak")

        _, out = run(capsys, "stats", "--json")
        stats = json.loads(out)
        assert stats["text_entries"] == 1
        assert stats["hits"] == 1

        code, _ = run(capsys, "clear")
        assert code == 0
        _, out = run(capsys, "stats", "--json")
        assert json.loads(out)["text_entries"] == 0

    def test_preload(self, cli_config, capsys):
        code, out = run(capsys, "preload", "tetriz", "paca")
        assert code == 0
        assert "Preloaded 2" in out
