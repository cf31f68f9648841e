"""
Pin sources module.

Markdown files of pins, one per external service plus hand-written files.
"""

from pinfeed.sources.base import PinSource, MissingCredentialError
from pinfeed.sources.services import (
    SpotifySource,
    VimeoSource,
    YouTubeSource,
    PinterestSource,
    ManualSource,
    SERVICE_NAMES,
    get_service_sources,
    discover_sources,
)

__all__ = [
    "PinSource",
    "MissingCredentialError",
    "SpotifySource",
    "VimeoSource",
    "YouTubeSource",
    "PinterestSource",
    "ManualSource",
    "SERVICE_NAMES",
    "get_service_sources",
    "discover_sources",
]
