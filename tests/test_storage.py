"""
Tests for storage abstraction and implementations.

Tests the JSON metadata cache (loading, degradation on corrupt files,
write-once flushing), the in-memory store, and the thumbnail catalog.
"""

import json

import pytest

from pinfeed.models.metadata import CatalogEntry, MetadataEntry
from pinfeed.storage.base import MetadataStore
from pinfeed.storage.catalog import ThumbnailCatalog
from pinfeed.storage.json_cache import JsonMetadataCache, MemoryMetadataStore

from tests.test_config import TEST_DATA


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def resolved_entry():
    """A cache entry with an image."""
    return MetadataEntry(
        title="Example",
        image_url="https://example.com/og.jpg",
        fetched_at="2025-01-01T00:00:00+00:00",
    )


# =============================================================================
# MetadataEntry
# =============================================================================

class TestMetadataEntry:
    def test_to_dict_omits_empty_fields(self, resolved_entry):
        assert resolved_entry.to_dict() == {
            "title": "Example",
            "imageUrl": "https://example.com/og.jpg",
            "fetchedAt": "2025-01-01T00:00:00+00:00",
        }

    def test_failure_entry(self):
        entry = MetadataEntry.failure("2025-01-01T00:00:00+00:00")

        assert entry.failed
        assert not entry.is_resolved
        assert entry.to_dict() == {"fetchedAt": "2025-01-01T00:00:00+00:00", "failed": True}

    def test_from_dict_accepts_legacy_timestamp_and_unknown_keys(self):
        entry = MetadataEntry.from_dict({
            "imageUrl": "https://example.com/a.jpg",
            "lastFetched": "2024-05-01T00:00:00Z",
            "somethingElse": 1,
        })

        assert entry.fetched_at == "2024-05-01T00:00:00Z"
        assert entry.is_resolved

    def test_empty_image_is_unresolved(self):
        assert not MetadataEntry.from_dict({"imageUrl": ""}).is_resolved


# =============================================================================
# JsonMetadataCache
# =============================================================================

class TestJsonMetadataCache:
    """Tests for the file-backed cache."""

    def test_is_a_metadata_store(self, tmp_path):
        assert isinstance(JsonMetadataCache(tmp_path / "c.json"), MetadataStore)

    def test_reads_existing_entries(self, cache_file):
        cache = JsonMetadataCache(cache_file)

        entry = cache.get("https://open.spotify.com/album/abc123")

        assert entry.image_url == "https://i.scdn.co/image/abc123.jpg"
        assert entry.site_name == "Spotify"
        assert len(cache) == 2

    def test_lookup_uses_canonical_url(self, cache_file):
        cache = JsonMetadataCache(cache_file)

        assert cache.get("  HTTPS://Open.Spotify.com/album/abc123#frag ") is not None

    def test_missing_file_is_empty(self, tmp_path):
        cache = JsonMetadataCache(tmp_path / "nope.json")

        assert cache.get("https://example.com") is None
        assert len(cache) == 0

    @pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]", ""])
    def test_corrupt_file_is_empty(self, tmp_path, capsys, content):
        """
        GIVEN: A cache file with invalid JSON content
        WHEN: An entry is requested
        THEN: get returns None and a warning is printed, nothing raises
        """
        path = tmp_path / "cache.json"
        path.write_text(content, encoding="utf-8")

        cache = JsonMetadataCache(path)

        assert cache.get("https://example.com") is None
        assert "[cache] Ignoring" in capsys.readouterr().out

    def test_non_object_entries_are_skipped(self, tmp_path):
        path = tmp_path / "cache.json"
        path.write_text(json.dumps({
            "https://a.example.com/": "oops",
            "https://b.example.com/": {"imageUrl": "https://b.example.com/i.png"},
        }), encoding="utf-8")

        cache = JsonMetadataCache(path)

        assert cache.get("https://a.example.com/") is None
        assert cache.get("https://b.example.com/").is_resolved

    def test_flush_without_changes_does_not_write(self, cache_file):
        before = cache_file.read_bytes()
        cache = JsonMetadataCache(cache_file)
        cache.get("https://open.spotify.com/album/abc123")

        assert cache.flush() is False
        assert cache_file.read_bytes() == before

    def test_setting_equal_entry_is_not_a_change(self, cache_file):
        cache = JsonMetadataCache(cache_file)
        url = "https://open.spotify.com/album/abc123"

        cache.set(url, MetadataEntry.from_dict(TEST_DATA["cache"][url]))

        assert not cache.dirty

    def test_set_then_flush_round_trips(self, tmp_path, resolved_entry):
        path = tmp_path / "sub" / "cache.json"
        cache = JsonMetadataCache(path)

        cache.set("https://example.com/page", resolved_entry)
        assert cache.dirty
        assert cache.flush() is True
        assert not cache.dirty

        reloaded = JsonMetadataCache(path)
        assert reloaded.get("https://example.com/page") == resolved_entry

    def test_second_flush_is_byte_identical(self, tmp_path, resolved_entry):
        path = tmp_path / "cache.json"
        first = JsonMetadataCache(path)
        first.set("https://example.com/page", resolved_entry)
        first.flush()
        written = path.read_bytes()

        second = JsonMetadataCache(path)
        second.set("https://example.com/page", resolved_entry)
        second.flush()

        assert path.read_bytes() == written

    def test_flush_leaves_no_temp_files(self, tmp_path, resolved_entry):
        cache = JsonMetadataCache(tmp_path / "cache.json")
        cache.set("https://example.com/page", resolved_entry)
        cache.flush()

        assert [p.name for p in tmp_path.iterdir()] == ["cache.json"]

    def test_file_is_pretty_printed_utf8(self, tmp_path):
        path = tmp_path / "cache.json"
        cache = JsonMetadataCache(path)
        cache.set("https://example.com/é", MetadataEntry(title="Café", image_url="https://x.io/i.png"))
        cache.flush()

        text = path.read_text(encoding="utf-8")
        assert "Café" in text
        assert text.endswith("}\n")
        assert '\n  "https://example.com/é": {' in text


# =============================================================================
# MemoryMetadataStore
# =============================================================================

class TestMemoryMetadataStore:
    def test_get_set(self, memory_store, resolved_entry):
        memory_store.set("https://Example.com/a", resolved_entry)

        assert memory_store.get("https://example.com/a") == resolved_entry

    def test_counts_flushes(self, memory_store):
        memory_store.flush()
        memory_store.flush()

        assert memory_store.flush_count == 2

    def test_clear(self, memory_store, resolved_entry):
        memory_store.set("https://example.com/a", resolved_entry)
        memory_store.clear()

        assert len(memory_store) == 0


# =============================================================================
# ThumbnailCatalog
# =============================================================================

class TestThumbnailCatalog:
    """Tests for the read-only catalog."""

    def test_loads_wrapped_layout(self, catalog_file):
        catalog = ThumbnailCatalog.load(catalog_file)

        assert len(catalog) == 2
        assert catalog.get("vimeo-326204191").reference == "https://cdn.example.com/vimeo-326204191.jpg"

    def test_local_path_used_without_cdn_url(self, catalog_file):
        catalog = ThumbnailCatalog.load(catalog_file)

        assert catalog.get("youtube-dQw4w9WgXcQ").reference == "/media/thumbnails/youtube-dQw4w9WgXcQ.jpg"

    def test_flat_layout(self):
        catalog = ThumbnailCatalog.from_dict({
            "vimeo-1": {"cloudflareUrl": "https://cdn.example.com/1.jpg"},
        })

        assert "vimeo-1" in catalog
        assert catalog.get("vimeo-1") == CatalogEntry(
            platform="vimeo",
            video_id="1",
            cloudflare_url="https://cdn.example.com/1.jpg",
        )

    def test_video_and_spotify_sections_are_merged(self):
        catalog = ThumbnailCatalog.from_dict({
            "videoThumbnails": {"vimeo-1": {"cloudflareUrl": "https://cdn.example.com/1.jpg"}},
            "spotifyThumbnails": {"spotify-album-a1": {"artworkUrl": "https://i.scdn.co/image/a1.jpg"}},
        })

        assert "vimeo-1" in catalog
        assert "spotify-album-a1" in catalog
        assert len(catalog) == 2

    def test_video_id_may_contain_dashes(self):
        catalog = ThumbnailCatalog.from_dict({"youtube-ab-cd_ef-ghi": {"localPath": "/t.jpg"}})

        entry = catalog.get("youtube-ab-cd_ef-ghi")
        assert entry.platform == "youtube"
        assert entry.video_id == "ab-cd_ef-ghi"

    def test_entries_without_reference_are_skipped(self):
        catalog = ThumbnailCatalog.from_dict({
            "vimeo-1": {"platform": "vimeo"},
            "nodash": {"cloudflareUrl": "https://cdn.example.com/x.jpg"},
            "vimeo-2": "not a dict",
        })

        assert len(catalog) == 0

    def test_missing_file_is_empty(self, tmp_path):
        assert len(ThumbnailCatalog.load(tmp_path / "missing.json")) == 0

    def test_corrupt_file_is_empty(self, tmp_path, capsys):
        path = tmp_path / "catalog.json"
        path.write_text("{{{", encoding="utf-8")

        catalog = ThumbnailCatalog.load(path)

        assert len(catalog) == 0
        assert "[catalog]" in capsys.readouterr().out
