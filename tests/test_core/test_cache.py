from __future__ import annotations

import json
import hashlib
from pathlib import Path

import pytest

from docweaver.core.cache import SectionCache, make_key


@pytest.fixture
def cache_path(tmp_path: Path) -> Path:
    return tmp_path / ".docweaver-cache.json"


@pytest.mark.unit
class TestMakeKey:
    """Tests for make_key."""

    def test_sha256_of_joined_parts(self) -> None:
        expected = hashlib.sha256("a\x1fb".encode("utf-8")).hexdigest()

        assert make_key("a", "b") == expected

    def test_separator_prevents_collisions(self) -> None:
        """("ab", "c") and ("a", "bc") must not share a key."""
        assert make_key("ab", "c") != make_key("a", "bc")

    def test_available_on_class(self) -> None:
        assert SectionCache.make_key("x") == make_key("x")


@pytest.mark.unit
class TestSectionCache:
    """Tests for SectionCache."""

    def test_missing_file_is_empty(self, cache_path: Path) -> None:
        cache = SectionCache(cache_path)

        assert len(cache) == 0
        assert cache.get("nope") is None
        assert cache.dirty is False

    def test_put_get(self, cache_path: Path) -> None:
        cache = SectionCache(cache_path)

        cache.put("k", "summary")

        assert cache.get("k") == "summary"
        assert "k" in cache
        assert cache.dirty is True

    def test_save_and_reload(self, cache_path: Path) -> None:
        cache = SectionCache(cache_path)
        cache.put("k", "summary")

        assert cache.save() is True

        document = json.loads(cache_path.read_text(encoding="utf-8"))
        assert document["version"] == 1
        assert document["entries"]["k"]["content"] == "summary"
        assert "created_at" in document["entries"]["k"]
        assert SectionCache(cache_path).get("k") == "summary"

    def test_save_skipped_when_clean(self, cache_path: Path) -> None:
        """Unchanged caches are never rewritten."""
        cache = SectionCache(cache_path)

        assert cache.save() is False
        assert not cache_path.exists()

    def test_corrupt_file_ignored(self, cache_path: Path) -> None:
        cache_path.write_text("{not json", encoding="utf-8")

        assert len(SectionCache(cache_path)) == 0

    def test_wrong_version_ignored(self, cache_path: Path) -> None:
        cache_path.write_text(
            json.dumps({"version": 99, "entries": {"k": {"content": "x"}}}),
            encoding="utf-8",
        )

        assert SectionCache(cache_path).get("k") is None

    def test_missing_entries_table_ignored(self, cache_path: Path) -> None:
        cache_path.write_text(json.dumps({"version": 1, "entries": []}), encoding="utf-8")

        assert len(SectionCache(cache_path)) == 0

    def test_invalid_entries_filtered(self, cache_path: Path) -> None:
        cache_path.write_text(
            json.dumps(
                {
                    "version": 1,
                    "entries": {
                        "good": {"content": "ok"},
                        "bad": {"content": 5},
                        "worse": "text",
                    },
                }
            ),
            encoding="utf-8",
        )

        cache = SectionCache(cache_path)

        assert len(cache) == 1
        assert cache.get("good") == "ok"

    def test_clear(self, cache_path: Path) -> None:
        cache = SectionCache(cache_path)
        cache.put("a", "1")
        cache.put("b", "2")
        cache.save()

        removed = cache.clear()

        assert removed == 2
        assert len(cache) == 0
        assert not cache_path.exists()

    def test_stats(self, cache_path: Path) -> None:
        cache = SectionCache(cache_path)
        assert cache.stats() == {"entries": 0, "path": str(cache_path), "size_bytes": 0}

        cache.put("a", "1")
        cache.save()

        stats = cache.stats()
        assert stats["entries"] == 1
        assert stats["size_bytes"] == cache_path.stat().st_size
