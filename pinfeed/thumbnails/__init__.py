"""
Thumbnails module.

Provider detection and the tiered thumbnail resolver.
"""

from pinfeed.thumbnails.providers import (
    Provider,
    PROVIDERS,
    detect_provider,
    extract_video_id,
    catalog_key,
)
from pinfeed.thumbnails.resolver import (
    ThumbnailResolver,
    ThumbnailResolution,
    ThumbnailTier,
)

__all__ = [
    "Provider",
    "PROVIDERS",
    "detect_provider",
    "extract_video_id",
    "catalog_key",
    "ThumbnailResolver",
    "ThumbnailResolution",
    "ThumbnailTier",
]
