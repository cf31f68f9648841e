"""
Media providers known to the thumbnail catalog.

Each provider has a row in PROVIDERS: the hosts it serves, the patterns
that extract a media ID from its URLs (tried in order), and the prefix of
its catalog keys. A pattern with several groups joins them with "-", so
Spotify album and playlist URLs map to "spotify-album-{id}" and
"spotify-playlist-{id}". Supporting a new provider means adding a row
here; the resolver's control flow does not change.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Pattern, Tuple

from pinfeed.parsing.urls import bare_host, host_matches


class Provider(Enum):
    VIMEO = "vimeo"
    YOUTUBE = "youtube"
    SPOTIFY = "spotify"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProviderSpec:
    """How to recognize a provider's URLs and build its catalog keys."""

    hosts: Tuple[str, ...]
    id_patterns: Tuple[Pattern, ...]
    catalog_prefix: str


PROVIDERS: Dict[Provider, ProviderSpec] = {
    Provider.VIMEO: ProviderSpec(
        hosts=("vimeo.com",),
        id_patterns=(
            # https://player.vimeo.com/video/326204191?h=abc
            re.compile(r"player\.vimeo\.com/video/(\d+)"),
            # https://vimeo.com/channels/staffpicks/326204191
            # https://vimeo.com/groups/shortfilms/videos/326204191
            re.compile(r"vimeo\.com/(?:channels|groups)/[^/]+/(?:videos/)?(\d+)"),
            # https://vimeo.com/showcase/123/video/326204191
            re.compile(r"vimeo\.com/(?:showcase|album)/\d+/video/(\d+)"),
            # https://vimeo.com/326204191
            re.compile(r"vimeo\.com/(\d+)(?:[/?#]|$)"),
        ),
        catalog_prefix="vimeo",
    ),
    Provider.YOUTUBE: ProviderSpec(
        hosts=("youtube.com", "youtu.be", "youtube-nocookie.com"),
        id_patterns=(
            # https://www.youtube.com/watch?v=ID, ...watch?feature=x&v=ID
            re.compile(r"youtube\.com/watch\?(?:[^#]*&)?v=([A-Za-z0-9_-]{11})"),
            # /shorts/ID, /embed/ID, /live/ID, /v/ID
            re.compile(r"youtube(?:-nocookie)?\.com/(?:shorts|embed|live|v)/([A-Za-z0-9_-]{11})"),
            # https://youtu.be/ID
            re.compile(r"youtu\.be/([A-Za-z0-9_-]{11})"),
        ),
        catalog_prefix="youtube",
    ),
    Provider.SPOTIFY: ProviderSpec(
        hosts=("spotify.com",),
        id_patterns=(
            # https://open.spotify.com/album/ID, /intl-de/playlist/ID
            re.compile(r"spotify\.com/(?:intl-[a-z-]+/)?(album|playlist)/([A-Za-z0-9]+)"),
        ),
        catalog_prefix="spotify",
    ),
}


def detect_provider(url: str) -> Provider:
    """Infer the provider from a URL's domain."""
    host = bare_host(url)
    for provider, spec in PROVIDERS.items():
        if any(host_matches(host, domain) for domain in spec.hosts):
            return provider
    return Provider.UNKNOWN


def extract_video_id(url: str, provider: Optional[Provider] = None) -> Optional[str]:
    """
    Extract the provider's media ID from a URL.

    Args:
        url: Video, album or playlist page URL.
        provider: Provider to use; detected from the URL if omitted.

    Returns:
        The media ID, or None if the provider is unknown or no pattern matches.
    """
    provider = provider or detect_provider(url)
    spec = PROVIDERS.get(provider)
    if spec is None:
        return None

    for pattern in spec.id_patterns:
        match = pattern.search(url or "")
        if match:
            return "-".join(match.groups())
    return None


def catalog_key(url: str, provider: Optional[Provider] = None) -> Optional[str]:
    """Build the '{platform}-{videoId}' catalog key for a URL, or None."""
    provider = provider or detect_provider(url)
    video_id = extract_video_id(url, provider)
    if video_id is None:
        return None
    return f"{PROVIDERS[provider].catalog_prefix}-{video_id}"
