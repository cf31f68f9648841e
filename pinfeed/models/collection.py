"""
Collection reference data.

Collections are static configuration: a named grouping that pins opt into
with '#collection:<id>' or '#board:<id>' tags.
"""

from dataclasses import dataclass, asdict
from typing import Iterable, List


@dataclass(frozen=True)
class Collection:
    """A named grouping of pins."""

    id: str
    name: str
    description: str = ""
    icon: str = ""
    featured: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


COLLECTIONS: tuple = (
    Collection(
        id="music_library",
        name="Music Library",
        description="Saved albums, tracks, and playlists from various music services",
        icon="🎵",
        featured=True,
    ),
    Collection(
        id="my_playlists",
        name="My Playlists",
        description="Playlists created by me on Spotify and other services",
        icon="🎧",
        featured=True,
    ),
    Collection(
        id="followed_playlists",
        name="Followed Playlists",
        description="Playlists created by others that I follow",
        icon="👂",
        featured=True,
    ),
    Collection(
        id="essential_viewing",
        name="Essential Viewing",
        description="Must-see videos that have influenced my thinking",
        icon="🎬",
    ),
    Collection(
        id="design_inspiration",
        name="Design Inspiration",
        description="Resources that inspire design thinking and creativity",
        icon="✨",
    ),
    Collection(
        id="tools",
        name="Tools",
        description="Useful software, libraries, and utilities",
        icon="🛠️",
    ),
)

_BY_ID = {collection.id: collection for collection in COLLECTIONS}


def get_collection(collection_id: str) -> Collection:
    """
    Look up a collection by id.

    Ids that are not in the reference data get a generated, non-featured
    descriptor with a title-cased name.
    """
    known = _BY_ID.get(collection_id)
    if known is not None:
        return known
    name = collection_id.replace("_", " ").replace("-", " ").strip().title() or collection_id
    return Collection(id=collection_id, name=name)


def describe_collections(collection_ids: Iterable[str]) -> List[Collection]:
    """Resolve ids to Collection records, featured collections first."""
    resolved = [get_collection(cid) for cid in collection_ids]
    return sorted(resolved, key=lambda c: (not c.featured, c.id))
