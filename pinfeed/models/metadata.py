"""
Cached metadata records.

MetadataEntry is one value of the URL-keyed OpenGraph cache file.
CatalogEntry is one value of the precomputed video thumbnail catalog.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass
class MetadataEntry:
    """
    OpenGraph metadata cached for a canonical URL.

    An entry with a non-empty image_url is resolved and is not fetched
    again unless a forced refresh is requested. An entry marked failed
    records an attempt that produced no image.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    site_name: Optional[str] = None
    type: Optional[str] = None
    favicon: Optional[str] = None
    fetched_at: Optional[str] = None
    failed: bool = False

    @property
    def is_resolved(self) -> bool:
        """True when the entry carries a usable image."""
        return bool(self.image_url)

    @classmethod
    def failure(cls, fetched_at: Optional[str] = None) -> "MetadataEntry":
        """Create an entry recording a fetch that found nothing."""
        return cls(fetched_at=fetched_at or now_iso(), failed=True)

    def to_dict(self) -> dict:
        """
        Convert to the JSON shape stored in the cache file.

        Empty optional fields are omitted so the file stays compact.
        """
        data = {
            "title": self.title,
            "description": self.description,
            "imageUrl": self.image_url,
            "siteName": self.site_name,
            "type": self.type,
            "favicon": self.favicon,
            "fetchedAt": self.fetched_at,
        }
        data = {key: value for key, value in data.items() if value is not None}
        if self.failed:
            data["failed"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "MetadataEntry":
        """
        Create an entry from a cache file value.

        Accepts the older 'lastFetched' key and ignores unknown keys.
        """
        def text(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None or value == "":
                return None
            return str(value)

        return cls(
            title=text("title"),
            description=text("description"),
            image_url=text("imageUrl"),
            site_name=text("siteName"),
            type=text("type"),
            favicon=text("favicon"),
            fetched_at=text("fetchedAt") or text("lastFetched"),
            failed=bool(data.get("failed", False)),
        )


@dataclass(frozen=True)
class CatalogEntry:
    """A generated thumbnail or artwork URL, keyed '{platform}-{mediaId}'."""

    platform: str
    video_id: str
    cloudflare_url: Optional[str] = None
    local_path: Optional[str] = None
    artwork_url: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.platform}-{self.video_id}"

    @property
    def reference(self) -> Optional[str]:
        """The CDN URL, then Spotify artwork, then the local path."""
        return self.cloudflare_url or self.artwork_url or self.local_path


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()
