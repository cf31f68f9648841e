"""
Storage module.

Handles the URL-keyed metadata cache and the read-only thumbnail catalog.
"""

from pinfeed.storage.base import MetadataStore
from pinfeed.storage.json_cache import JsonMetadataCache, MemoryMetadataStore
from pinfeed.storage.catalog import ThumbnailCatalog

__all__ = [
    "MetadataStore",
    "JsonMetadataCache",
    "MemoryMetadataStore",
    "ThumbnailCatalog",
]
