"""
Tests for video provider detection and thumbnail resolution.

The resolver tries explicit → catalog → cache → placeholder and stops at
the first hit; these tests pin down that order.
"""

import pytest

from pinfeed.models.metadata import CatalogEntry, MetadataEntry
from pinfeed.models.pin import Pin
from pinfeed.storage.catalog import ThumbnailCatalog
from pinfeed.storage.json_cache import MemoryMetadataStore
from pinfeed.thumbnails.providers import (
    Provider,
    catalog_key,
    detect_provider,
    extract_video_id,
)
from pinfeed.thumbnails.resolver import ThumbnailResolver, ThumbnailTier

from tests.test_config import CONFIG


# =============================================================================
# Providers
# =============================================================================

class TestDetectProvider:
    @pytest.mark.parametrize("url, expected", [
        ("https://vimeo.com/684505621", Provider.VIMEO),
        ("https://player.vimeo.com/video/1", Provider.VIMEO),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", Provider.YOUTUBE),
        ("https://youtu.be/dQw4w9WgXcQ", Provider.YOUTUBE),
        ("https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ", Provider.YOUTUBE),
        ("https://open.spotify.com/album/abc123", Provider.SPOTIFY),
        ("https://example.com/vimeo.com/1", Provider.UNKNOWN),
        ("not a url", Provider.UNKNOWN),
    ])
    def test_detect(self, url, expected):
        assert detect_provider(url) is expected


class TestExtractVideoId:
    @pytest.mark.parametrize("url, expected", [
        ("https://vimeo.com/684505621", "684505621"),
        ("https://vimeo.com/684505621?share=copy", "684505621"),
        ("https://player.vimeo.com/video/326204191?h=abc", "326204191"),
        ("https://vimeo.com/channels/staffpicks/326204191", "326204191"),
        ("https://vimeo.com/groups/shortfilms/videos/326204191", "326204191"),
        ("https://vimeo.com/showcase/123/video/326204191", "326204191"),
        ("https://vimeo.com/user12345", None),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://youtube.com/shorts/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ?t=42", "dQw4w9WgXcQ"),
        ("https://www.youtube.com/@channel", None),
        ("https://open.spotify.com/album/4aawyAB9vmqN3uQ7FjRGTy", "album-4aawyAB9vmqN3uQ7FjRGTy"),
        ("https://open.spotify.com/intl-de/playlist/37i9dQZF1DX?si=x", "playlist-37i9dQZF1DX"),
        ("https://open.spotify.com/track/11dFghVXANMlKmJXsNCbNl", None),
    ])
    def test_extract(self, url, expected):
        assert extract_video_id(url) == expected

    def test_unknown_provider(self):
        assert extract_video_id("https://example.com/123") is None

    def test_catalog_key(self):
        assert catalog_key("https://vimeo.com/684505621") == "vimeo-684505621"
        assert catalog_key("https://youtu.be/dQw4w9WgXcQ") == "youtube-dQw4w9WgXcQ"
        assert catalog_key("https://open.spotify.com/playlist/pl1") == "spotify-playlist-pl1"
        assert catalog_key("https://example.com/1") is None


# =============================================================================
# Resolver
# =============================================================================

@pytest.fixture
def catalog():
    return ThumbnailCatalog({
        "vimeo-326204191": CatalogEntry(
            platform="vimeo",
            video_id="326204191",
            cloudflare_url="https://cdn.example.com/vimeo-326204191.jpg",
        ),
    })


@pytest.fixture
def store():
    return MemoryMetadataStore({
        "https://vimeo.com/326204191": MetadataEntry(image_url="https://i.vimeocdn.com/stale.jpg"),
        "https://example.com/page": MetadataEntry(image_url="https://example.com/og.jpg"),
        "https://example.com/failed": MetadataEntry.failure(),
    })


class TestThumbnailResolver:
    """Tests for tier ordering."""

    def test_explicit_wins_over_everything(self, catalog, store):
        resolver = ThumbnailResolver(catalog, store)
        pin = Pin(url="https://vimeo.com/326204191", thumbnail_url="https://mine.example.com/t.jpg")

        resolution = resolver.resolve(pin)

        assert resolution.reference == "https://mine.example.com/t.jpg"
        assert resolution.tier is ThumbnailTier.EXPLICIT

    def test_catalog_wins_over_cache(self, catalog, store):
        """
        GIVEN: A Vimeo URL with both a catalog entry and a cached image
        WHEN: The thumbnail is resolved
        THEN: The catalog's CDN URL is used, never the cached image
        """
        resolver = ThumbnailResolver(catalog, store)

        resolution = resolver.resolve_url("https://vimeo.com/326204191")

        assert resolution.reference == "https://cdn.example.com/vimeo-326204191.jpg"
        assert resolution.tier is ThumbnailTier.CATALOG

    def test_cache_used_when_catalog_misses(self, catalog, store):
        resolver = ThumbnailResolver(catalog, store)

        resolution = resolver.resolve_url("https://example.com/page")

        assert resolution.reference == "https://example.com/og.jpg"
        assert resolution.tier is ThumbnailTier.CACHE

    def test_vimeo_without_catalog_or_cache_gets_placeholder(self):
        """
        GIVEN: Empty catalog and empty cache
        WHEN: https://vimeo.com/684505621 is resolved
        THEN: The placeholder is returned
        """
        resolver = ThumbnailResolver(ThumbnailCatalog(), MemoryMetadataStore())

        resolution = resolver.resolve_url("https://vimeo.com/684505621")

        assert resolution.reference == CONFIG["placeholder"]
        assert resolution.is_placeholder

    def test_failed_cache_entry_is_a_miss(self, catalog, store):
        resolver = ThumbnailResolver(catalog, store)

        assert resolver.resolve_url("https://example.com/failed").is_placeholder

    def test_blank_explicit_thumbnail_is_ignored(self, catalog, store):
        resolver = ThumbnailResolver(catalog, store)

        resolution = resolver.resolve_url("https://example.com/page", thumbnail_url="  ")

        assert resolution.tier is ThumbnailTier.CACHE

    def test_custom_placeholder(self):
        resolver = ThumbnailResolver(placeholder="/p.svg")

        assert resolver.resolve_url("https://example.com").reference == "/p.svg"

    def test_no_store(self, catalog):
        resolver = ThumbnailResolver(catalog)

        assert resolver.resolve_url("https://example.com/page").is_placeholder


class TestSpotifyArtwork:
    """Spotify albums and playlists resolve through the catalog's artwork."""

    @pytest.fixture
    def spotify_catalog(self):
        return ThumbnailCatalog.from_dict({
            "videoThumbnails": {},
            "spotifyThumbnails": {
                "spotify-album-abc123": {"artworkUrl": "https://i.scdn.co/image/artwork.jpg"},
                "spotify-playlist-pl1": {"artworkUrl": "https://i.scdn.co/image/playlist.jpg"},
            },
        })

    def test_spotify_section_is_loaded(self, spotify_catalog):
        assert len(spotify_catalog) == 2
        entry = spotify_catalog.get("spotify-album-abc123")
        assert entry.platform == "spotify"
        assert entry.video_id == "album-abc123"
        assert entry.reference == "https://i.scdn.co/image/artwork.jpg"

    def test_album_resolves_at_catalog_tier(self, spotify_catalog):
        """
        GIVEN: A Spotify album with catalog artwork and a cached OpenGraph image
        WHEN: The thumbnail is resolved
        THEN: The catalog artwork wins
        """
        store = MemoryMetadataStore({
            "https://open.spotify.com/album/abc123": MetadataEntry(image_url="https://i.scdn.co/image/og.jpg"),
        })
        resolver = ThumbnailResolver(spotify_catalog, store)

        resolution = resolver.resolve_url("https://open.spotify.com/album/abc123")

        assert resolution.reference == "https://i.scdn.co/image/artwork.jpg"
        assert resolution.tier is ThumbnailTier.CATALOG

    def test_playlist_resolves_at_catalog_tier(self, spotify_catalog):
        resolver = ThumbnailResolver(spotify_catalog, MemoryMetadataStore())

        resolution = resolver.resolve_url("https://open.spotify.com/playlist/pl1?si=abc")

        assert resolution.reference == "https://i.scdn.co/image/playlist.jpg"

    def test_track_falls_through_to_placeholder(self, spotify_catalog):
        resolver = ThumbnailResolver(spotify_catalog, MemoryMetadataStore())

        assert resolver.resolve_url("https://open.spotify.com/track/abc123").is_placeholder
