"""
Thumbnail catalog.

Read-only view of the thumbnails produced by the separate thumbnail
generation jobs. Two file layouts are accepted:

    {"vimeo-684505621": {"cloudflareUrl": "...", "platform": "vimeo"}}

    {
      "videoThumbnails": {"youtube-dQw4w9WgXcQ": {"localPath": "..."}},
      "spotifyThumbnails": {"spotify-album-4aawyAB9vmqN3uQ7FjRGTy": {"artworkUrl": "..."}}
    }
"""

import json
from pathlib import Path
from typing import Dict, Optional, Union

from pinfeed.config import THUMBNAIL_CATALOG_PATH
from pinfeed.models.metadata import CatalogEntry


# Top-level groups of the catalog file written by the thumbnail jobs
SECTION_KEYS = ("videoThumbnails", "spotifyThumbnails")


class ThumbnailCatalog:
    """
    Lookup of generated thumbnails keyed '{platform}-{mediaId}'.

    A missing or corrupt catalog file behaves as an empty catalog.
    """

    def __init__(self, entries: Optional[Dict[str, CatalogEntry]] = None):
        self._entries: Dict[str, CatalogEntry] = dict(entries or {})

    @classmethod
    def load(cls, path: Union[str, Path, None] = None) -> "ThumbnailCatalog":
        """
        Load the catalog from disk.

        Args:
            path: Catalog file. Defaults to THUMBNAIL_CATALOG_PATH.

        Returns:
            ThumbnailCatalog (empty if the file is missing or unreadable).
        """
        path = Path(path or THUMBNAIL_CATALOG_PATH)
        if not path.exists():
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[catalog] Ignoring unreadable catalog {path}: {e}")
            return cls()

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data) -> "ThumbnailCatalog":
        """Build a catalog from parsed JSON, skipping malformed entries."""
        if not isinstance(data, dict):
            return cls()

        sections = [
            data[name] for name in SECTION_KEYS if isinstance(data.get(name), dict)
        ]
        if not sections and not any(name in data for name in SECTION_KEYS):
            sections = [data]

        entries = {}
        for section in sections:
            for key, value in section.items():
                entry = cls._parse_entry(key, value)
                if entry is not None:
                    entries[entry.key] = entry
        return cls(entries)

    @staticmethod
    def _parse_entry(key: str, value) -> Optional[CatalogEntry]:
        if not isinstance(value, dict) or "-" not in key:
            return None

        platform, video_id = key.split("-", 1)
        cloudflare_url = value.get("cloudflareUrl") or None
        local_path = value.get("localPath") or value.get("path") or None
        artwork_url = value.get("artworkUrl") or None
        if not cloudflare_url and not local_path and not artwork_url:
            return None

        return CatalogEntry(
            platform=platform,
            video_id=video_id,
            cloudflare_url=cloudflare_url,
            local_path=local_path,
            artwork_url=artwork_url,
        )

    def get(self, key: str) -> Optional[CatalogEntry]:
        """Return the entry for a '{platform}-{mediaId}' key, or None."""
        return self._entries.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
