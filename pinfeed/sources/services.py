"""
Pin source implementations.

The service sources correspond to the markdown files that each service's
import writes (spotify.md, vimeo.md, youtube.md, pinterest.md). Any other
markdown file in the pins directory is a hand-written ManualSource.
"""

from pathlib import Path
from typing import List, Optional, Union

from pinfeed.sources.base import PinSource


class SpotifySource(PinSource):
    """Saved albums, tracks, and playlists."""

    credential_keys = (
        "SPOTIFY_CLIENT_ID",
        "SPOTIFY_CLIENT_SECRET",
        "SPOTIFY_REFRESH_TOKEN",
    )

    @property
    def name(self) -> str:
        return "spotify"


class VimeoSource(PinSource):
    """Liked Vimeo videos."""

    credential_keys = ("VIMEO_ACCESS_TOKEN",)

    @property
    def name(self) -> str:
        return "vimeo"


class YouTubeSource(PinSource):
    """Liked YouTube videos."""

    credential_keys = (
        "YOUTUBE_CLIENT_ID",
        "YOUTUBE_CLIENT_SECRET",
        "YOUTUBE_REFRESH_TOKEN",
    )

    @property
    def name(self) -> str:
        return "youtube"


class PinterestSource(PinSource):
    """Pins saved to Pinterest boards."""

    credential_keys = ("PINTEREST_ACCESS_TOKEN",)

    @property
    def name(self) -> str:
        return "pinterest"


class ManualSource(PinSource):
    """
    A hand-written markdown file of pins.

    Needs no credentials. Pins without an inferable source are left
    without one rather than being attributed to the file.
    """

    def __init__(self, stem: str):
        self._stem = stem

    @property
    def name(self) -> str:
        return self._stem

    @property
    def default_source(self) -> Optional[str]:
        return None


SERVICE_SOURCES = (SpotifySource, VimeoSource, YouTubeSource, PinterestSource)

SERVICE_NAMES = tuple(cls().name for cls in SERVICE_SOURCES)

# Hand-written file processed before everything else
PRIMARY_FILE = "pins.md"

IGNORED_FILES = ("index.md",)


def get_service_sources() -> List[PinSource]:
    """Instantiate every registered service source."""
    return [cls() for cls in SERVICE_SOURCES]


def discover_sources(pins_dir: Union[str, Path]) -> List[PinSource]:
    """
    List every source for a pins directory.

    Order: pins.md first, then the service sources, then any other
    markdown files alphabetically. Service sources are listed even when
    their file does not exist yet so that credential checks still apply.
    """
    pins_dir = Path(pins_dir)
    services = get_service_sources()
    service_files = {source.filename for source in services}

    manual: List[PinSource] = []
    if pins_dir.is_dir():
        for path in sorted(pins_dir.glob("*.md")):
            if path.name in service_files or path.name in IGNORED_FILES:
                continue
            manual.append(ManualSource(path.stem))

    primary = [s for s in manual if s.filename == PRIMARY_FILE]
    others = [s for s in manual if s.filename != PRIMARY_FILE]
    return primary + services + others
