"""
Thumbnail resolution.

Picks one thumbnail reference for a pin by trying tiers in a fixed order
and stopping at the first hit:

    1. explicit   - thumbnail_url the author put on the pin
    2. catalog    - generated thumbnail for '{platform}-{videoId}'
    3. cache      - imageUrl from the OpenGraph metadata cache
    4. placeholder

Results from different tiers are never combined.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pinfeed.config import PLACEHOLDER_THUMBNAIL
from pinfeed.models.pin import Pin
from pinfeed.storage.base import MetadataStore
from pinfeed.storage.catalog import ThumbnailCatalog
from pinfeed.thumbnails.providers import Provider, catalog_key, detect_provider


class ThumbnailTier(str, Enum):
    EXPLICIT = "explicit"
    CATALOG = "catalog"
    CACHE = "cache"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class ThumbnailResolution:
    """The chosen thumbnail and the tier that produced it."""

    reference: str
    tier: ThumbnailTier

    @property
    def is_placeholder(self) -> bool:
        return self.tier is ThumbnailTier.PLACEHOLDER


class ThumbnailResolver:
    """
    Resolves a pin's thumbnail against a catalog and a metadata store.

    Usage:
        resolver = ThumbnailResolver(ThumbnailCatalog.load(), JsonMetadataCache())
        resolution = resolver.resolve(pin)
        pin.image_url = resolution.reference
    """

    def __init__(
        self,
        catalog: Optional[ThumbnailCatalog] = None,
        store: Optional[MetadataStore] = None,
        placeholder: Optional[str] = None,
    ):
        self.catalog = catalog if catalog is not None else ThumbnailCatalog()
        self.store = store
        self.placeholder = placeholder or PLACEHOLDER_THUMBNAIL

    def resolve(self, pin: Pin) -> ThumbnailResolution:
        """Resolve a Pin (uses its url and thumbnail_url)."""
        return self.resolve_url(pin.url, thumbnail_url=pin.thumbnail_url)

    def resolve_url(
        self,
        url: str,
        thumbnail_url: Optional[str] = None,
        provider: Optional[Provider] = None,
    ) -> ThumbnailResolution:
        """
        Resolve a thumbnail for a URL.

        Args:
            url: The pin URL.
            thumbnail_url: Explicit thumbnail, used verbatim if present.
            provider: Known provider; detected from the URL if omitted.

        Returns:
            ThumbnailResolution from the first tier that hits.
        """
        if thumbnail_url and thumbnail_url.strip():
            return ThumbnailResolution(thumbnail_url, ThumbnailTier.EXPLICIT)

        reference = self._from_catalog(url, provider)
        if reference:
            return ThumbnailResolution(reference, ThumbnailTier.CATALOG)

        reference = self._from_cache(url)
        if reference:
            return ThumbnailResolution(reference, ThumbnailTier.CACHE)

        return ThumbnailResolution(self.placeholder, ThumbnailTier.PLACEHOLDER)

    def _from_catalog(self, url: str, provider: Optional[Provider]) -> Optional[str]:
        provider = provider or detect_provider(url)
        if provider is Provider.UNKNOWN:
            return None

        key = catalog_key(url, provider)
        if key is None:
            return None

        entry = self.catalog.get(key)
        return entry.reference if entry else None

    def _from_cache(self, url: str) -> Optional[str]:
        if self.store is None:
            return None
        entry = self.store.get(url)
        if entry is None or not entry.is_resolved:
            return None
        return entry.image_url
