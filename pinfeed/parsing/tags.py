"""
Tag normalization.

Splits raw '#tag' tokens into structured metadata and free-form tags:

    #type:video          -> content_type = "video"
    #source:vimeo        -> source = "vimeo"
    #collection:tools    -> collections += ["tools"]
    #board:inspiration   -> collections += ["inspiration"]
    #year:2021           -> year = "2021"
    #privacy:private     -> privacy = "private"
    #anything-else       -> tags += ["anything-else"]

Every token ends up in exactly one place. Repeated keys keep all their
values in `metadata`; the single-valued fields use the first one.

When no tag sets them, content type and source are inferred from the URL.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from pinfeed.parsing.urls import bare_host, host_matches, url_path


# Tag key -> metadata field. 'board' is Pinterest's name for a collection.
RECOGNIZED_KEYS: Dict[str, str] = {
    "type": "type",
    "source": "source",
    "collection": "collection",
    "board": "collection",
    "year": "year",
    "privacy": "privacy",
}

DEFAULT_CONTENT_TYPE = "link"

# (content type, domains) checked in order
CONTENT_TYPE_DOMAINS = (
    ("music", ("spotify.com", "bandcamp.com", "soundcloud.com", "tidal.com",
               "music.apple.com", "deezer.com")),
    ("video", ("youtube.com", "youtu.be", "vimeo.com", "twitch.tv",
               "dailymotion.com", "netflix.com", "hulu.com")),
    ("code", ("github.com", "gitlab.com", "bitbucket.org", "stackoverflow.com",
              "npmjs.com", "codesandbox.io")),
    ("design", ("dribbble.com", "behance.net", "figma.com", "sketch.com",
                "adobe.com", "canva.com")),
    ("article", ("medium.com", "dev.to", "hackernoon.com", "substack.com",
                 "nytimes.com", "washingtonpost.com")),
    ("social", ("twitter.com", "x.com", "instagram.com", "facebook.com",
                "linkedin.com", "pinterest.com", "reddit.com")),
)

CONTENT_TYPE_EXTENSIONS = (
    ("music", re.compile(r"\.(mp3|wav|ogg|flac)$", re.IGNORECASE)),
    ("video", re.compile(r"\.(mp4|avi|mov|wmv)$", re.IGNORECASE)),
    ("image", re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)$", re.IGNORECASE)),
    ("document", re.compile(r"\.(pdf|doc|docx|epub)$", re.IGNORECASE)),
)

# Domain -> source name
SOURCE_DOMAINS = (
    ("spotify.com", "spotify"),
    ("vimeo.com", "vimeo"),
    ("youtube.com", "youtube"),
    ("youtu.be", "youtube"),
    ("pinterest.com", "pinterest"),
    ("github.com", "github"),
    ("bandcamp.com", "bandcamp"),
    ("soundcloud.com", "soundcloud"),
    ("medium.com", "medium"),
    ("dev.to", "dev"),
    ("twitter.com", "twitter"),
    ("x.com", "twitter"),
    ("instagram.com", "instagram"),
    ("dribbble.com", "dribbble"),
    ("behance.net", "behance"),
    ("figma.com", "figma"),
)


@dataclass
class NormalizedTags:
    """Result of partitioning a pin's tag tokens."""

    tags: List[str] = field(default_factory=list)
    collections: List[str] = field(default_factory=list)
    metadata: Dict[str, List[str]] = field(default_factory=dict)

    def first(self, key: str) -> Optional[str]:
        values = self.metadata.get(key)
        return values[0] if values else None

    @property
    def content_type(self) -> Optional[str]:
        return self.first("type")

    @property
    def source(self) -> Optional[str]:
        return self.first("source")

    @property
    def year(self) -> Optional[str]:
        return self.first("year")

    @property
    def privacy(self) -> Optional[str]:
        return self.first("privacy")


def _add_unique(values: List[str], value: str) -> None:
    if value not in values:
        values.append(value)


def split_token(token: str) -> Optional[tuple]:
    """
    Split a token into (field, value) if it is a recognized key:value tag.

    Returns None for free-form tags, unknown keys, and empty values.
    """
    name = token[1:] if token.startswith("#") else token
    if ":" not in name:
        return None
    key, value = name.split(":", 1)
    field_name = RECOGNIZED_KEYS.get(key.strip().lower())
    value = value.strip()
    if field_name is None or not value:
        return None
    return field_name, value


def normalize_tags(tokens: Iterable[str]) -> NormalizedTags:
    """
    Partition raw tag tokens into structured fields and free tags.

    Args:
        tokens: Tag tokens, with or without a leading '#'.

    Returns:
        NormalizedTags. Unrecognized tokens are kept verbatim (minus '#').
    """
    result = NormalizedTags()

    for token in tokens:
        token = token.strip()
        if not token:
            continue

        pair = split_token(token)
        if pair is None:
            name = token[1:] if token.startswith("#") and len(token) > 1 else token
            _add_unique(result.tags, name)
            continue

        field_name, value = pair
        _add_unique(result.metadata.setdefault(field_name, []), value)
        if field_name == "collection":
            _add_unique(result.collections, value)

    return result


def infer_content_type(url: str, og_type: Optional[str] = None) -> str:
    """
    Infer a content type from a URL's domain, path extension, or og:type.

    Returns:
        One of music, video, code, design, article, social, image,
        document, or 'link' when nothing matches.
    """
    host = bare_host(url)

    for content_type, domains in CONTENT_TYPE_DOMAINS:
        if any(host_matches(host, domain) for domain in domains):
            return content_type

    if host and host.startswith("blog."):
        return "article"

    path = url_path(url)
    for content_type, pattern in CONTENT_TYPE_EXTENSIONS:
        if pattern.search(path):
            return content_type

    if og_type:
        og_type = og_type.lower()
        if og_type.startswith("music"):
            return "music"
        if og_type.startswith("video"):
            return "video"
        if og_type == "article":
            return "article"

    return DEFAULT_CONTENT_TYPE


def infer_source(url: str) -> Optional[str]:
    """Infer the source platform from a URL's domain, or None."""
    host = bare_host(url)
    for domain, source in SOURCE_DOMAINS:
        if host_matches(host, domain):
            return source
    return None
