"""
JSON file metadata cache.

The cache is a single JSON object mapping canonical URL to a metadata
entry:

    {
      "https://vimeo.com/684505621": {
        "title": "...",
        "imageUrl": "https://i.vimeocdn.com/...",
        "fetchedAt": "2025-01-01T00:00:00+00:00"
      }
    }

The cache is an optimization: a missing or corrupt file loads as an empty
cache with a warning instead of failing the run.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from pinfeed.config import METADATA_CACHE_PATH
from pinfeed.models.metadata import MetadataEntry
from pinfeed.parsing.urls import canonical_url
from pinfeed.storage.base import MetadataStore


class JsonMetadataCache(MetadataStore):
    """
    Metadata cache persisted as pretty-printed JSON.

    The file is read lazily on first access. flush() writes the whole map
    back in one go, and only when an entry actually changed, so a run that
    resolves nothing new leaves the file byte-for-byte untouched.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        """
        Initialize JsonMetadataCache.

        Args:
            path: Cache file location. Defaults to METADATA_CACHE_PATH.
        """
        self.path = Path(path or METADATA_CACHE_PATH)
        self._entries: Optional[Dict[str, MetadataEntry]] = None
        self._dirty = False

    @property
    def name(self) -> str:
        return "json"

    @property
    def dirty(self) -> bool:
        """True if there are changes not yet flushed."""
        return self._dirty

    def _load(self) -> Dict[str, MetadataEntry]:
        """Load the cache file, degrading to an empty cache on any problem."""
        if self._entries is not None:
            return self._entries

        self._entries = {}

        if not self.path.exists():
            return self._entries

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[cache] Ignoring unreadable cache {self.path}: {e}")
            return self._entries

        if not isinstance(data, dict):
            print(f"[cache] Ignoring cache {self.path}: expected a JSON object")
            return self._entries

        for url, value in data.items():
            if not isinstance(value, dict):
                continue
            self._entries[canonical_url(url)] = MetadataEntry.from_dict(value)

        return self._entries

    def get(self, url: str) -> Optional[MetadataEntry]:
        """Return the cached entry for a URL, or None."""
        return self._load().get(canonical_url(url))

    def set(self, url: str, entry: MetadataEntry) -> None:
        """Insert or overwrite an entry. No-op if the entry is unchanged."""
        entries = self._load()
        key = canonical_url(url)
        if entries.get(key) == entry:
            return
        entries[key] = entry
        self._dirty = True

    def items(self) -> Iterator[Tuple[str, MetadataEntry]]:
        return iter(list(self._load().items()))

    def to_json(self) -> str:
        """Serialize the full cache as the file content."""
        data = {url: entry.to_dict() for url, entry in self._load().items()}
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def flush(self) -> bool:
        """
        Write the cache file if anything changed.

        The file is written to a temp file in the same directory and
        renamed into place, so an interrupted write never truncates it.

        Returns:
            True if the file was written.
        """
        if not self._dirty:
            return False

        content = self.to_json()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        self._dirty = False
        print(f"[cache] Wrote {len(self._entries)} entries to {self.path}")
        return True


class MemoryMetadataStore(MetadataStore):
    """
    In-memory metadata store for testing and dry runs.

    Data is stored in memory and lost when the process ends.
    """

    def __init__(self, entries: Optional[Dict[str, MetadataEntry]] = None):
        self._entries: Dict[str, MetadataEntry] = {}
        self.flush_count = 0
        for url, entry in (entries or {}).items():
            self._entries[canonical_url(url)] = entry

    @property
    def name(self) -> str:
        return "memory"

    def get(self, url: str) -> Optional[MetadataEntry]:
        return self._entries.get(canonical_url(url))

    def set(self, url: str, entry: MetadataEntry) -> None:
        self._entries[canonical_url(url)] = entry

    def flush(self) -> bool:
        """Count flushes so tests can assert write-once behavior."""
        self.flush_count += 1
        return True

    def items(self) -> Iterator[Tuple[str, MetadataEntry]]:
        return iter(list(self._entries.items()))

    def clear(self) -> None:
        """Clear all entries (for testing)."""
        self._entries.clear()
