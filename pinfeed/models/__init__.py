"""
Data models module.

Defines the Pin record, cached metadata entries, and collection reference data.
"""

from pinfeed.models.pin import Pin, RawPin
from pinfeed.models.metadata import MetadataEntry, CatalogEntry, now_iso
from pinfeed.models.collection import (
    Collection,
    COLLECTIONS,
    get_collection,
    describe_collections,
)

__all__ = [
    "Pin",
    "RawPin",
    "MetadataEntry",
    "CatalogEntry",
    "now_iso",
    "Collection",
    "COLLECTIONS",
    "get_collection",
    "describe_collections",
]
