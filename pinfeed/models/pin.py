"""
Core data model for pinfeed.

Defines the RawPin record produced by the markdown parser and the Pin
dataclass that flows through normalization, thumbnail resolution, and
serialization.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import urlparse


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated, ASCII word characters only."""
    slug = re.sub(r"\s+", "-", str(text).lower())
    slug = re.sub(r"[^a-z0-9_\-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


@dataclass
class RawPin:
    """
    A pin as it appears on a single markdown line, before normalization.

    Attributes:
        url: The bookmarked URL.
        title: Link text, or the bare URL when the line has no link text.
        tags: Raw tag tokens, each still carrying its leading '#'.
        section: Nearest preceding '## ' heading (or the file default).
        line_number: 1-based line number in the source file.
        thumbnail_url: Inline image on the line, if the author provided one.
        notes: Text of the indented line under the pin, tags removed.
    """

    url: str
    title: str
    tags: List[str] = field(default_factory=list)
    section: str = "General"
    line_number: int = 0
    thumbnail_url: Optional[str] = None
    notes: str = ""


@dataclass
class Pin:
    """
    Represents a single bookmark on the site.

    Built fresh on every run from markdown; only metadata fields
    (description, image_url, favicon, site_name, thumbnail_tier) are
    attached after construction.

    Attributes:
        url: The bookmarked URL (unique within its source file).
        title: Display title; defaults to the URL.
        notes: Free text written under the pin.
        tags: Free-form tags (set semantics, first-seen order).
        content_type: From a 'type:' tag or inferred from the URL.
        collections: From 'collection:' / 'board:' tags.
        source: From a 'source:' tag or inferred from the URL domain.
        year: From a 'year:' tag.
        privacy: From a 'privacy:' tag.
        metadata: Every recognized key mapped to all of its values.
        description: OpenGraph description, if resolved.
        image_url: Resolved thumbnail reference.
        favicon: Site favicon, if resolved.
        site_name: OpenGraph site name or bare host.
        thumbnail_url: Author-provided thumbnail (highest priority).
        thumbnail_tier: Which resolution tier produced image_url.
        section: Heading the pin was listed under.
        source_file: Markdown file the pin came from.
        line_number: Line within source_file.
    """

    # Required fields
    url: str
    title: str = ""
    notes: str = ""

    # Normalized tag data
    tags: List[str] = field(default_factory=list)
    content_type: str = "link"
    collections: List[str] = field(default_factory=list)
    source: Optional[str] = None
    year: Optional[str] = None
    privacy: Optional[str] = None
    metadata: Dict[str, List[str]] = field(default_factory=dict)

    # Resolved metadata
    description: Optional[str] = None
    image_url: Optional[str] = None
    favicon: Optional[str] = None
    site_name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_tier: Optional[str] = None

    # Provenance
    section: str = "General"
    source_file: Optional[str] = None
    line_number: int = 0

    def __post_init__(self) -> None:
        """Validate fields after initialization."""
        self.validate()
        if not self.title or not self.title.strip():
            self.title = self.url

    def validate(self) -> None:
        """
        Validate that required fields are present and valid.

        Raises:
            ValueError: If validation fails.
        """
        if not self.url or not self.url.strip():
            raise ValueError("Pin validation failed: url is required and cannot be empty")

        if not (self.url.startswith("http://") or self.url.startswith("https://")):
            raise ValueError(
                f"Pin validation failed: url must start with http:// or https://, got {self.url}"
            )

    def attach_metadata(
        self,
        description: Optional[str] = None,
        favicon: Optional[str] = None,
        site_name: Optional[str] = None,
        title: Optional[str] = None,
    ) -> None:
        """
        Attach resolved metadata without overwriting authored values.

        The title is only replaced when the pin still carries its URL as
        the title (no link text was given).
        """
        if description and not self.description:
            self.description = description
        if favicon and not self.favicon:
            self.favicon = favicon
        if site_name and not self.site_name:
            self.site_name = site_name
        if title and self.title == self.url:
            self.title = title

    @property
    def slug(self) -> str:
        """
        URL-friendly name for the pin.

        Built from the title, or from the last URL path segment when the
        title is just the URL. Falls back to the host.
        """
        if self.title and self.title != self.url:
            slug = slugify(self.title)
            if slug:
                return slug

        parsed = urlparse(self.url)
        segment = parsed.path.rstrip("/").rsplit("/", 1)[-1]
        return slugify(segment) or slugify(parsed.netloc.replace(".", "-"))

    def to_dict(self) -> dict:
        """
        Convert Pin to a plain dictionary for the site's JSON data.

        Keys are camelCase to match what the site components read.
        """
        return {
            "url": self.url,
            "title": self.title,
            "slug": self.slug,
            "notes": self.notes,
            "tags": list(self.tags),
            "contentType": self.content_type,
            "collections": list(self.collections),
            "source": self.source,
            "year": self.year,
            "privacy": self.privacy,
            "metadata": {key: list(values) for key, values in self.metadata.items()},
            "description": self.description or "",
            "imageUrl": self.image_url or "",
            "favicon": self.favicon or "",
            "siteName": self.site_name or "",
            "thumbnailTier": self.thumbnail_tier,
            "section": self.section,
            "sourceFile": self.source_file,
        }

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"[{self.content_type}] {self.title}"

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"Pin(url={self.url!r}, title={self.title!r}, "
            f"content_type={self.content_type!r}, source_file={self.source_file!r})"
        )
