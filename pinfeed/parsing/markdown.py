"""
Markdown pin parser.

Reads bookmark markdown files and yields one RawPin per list item that
carries a URL:

    - [Cool Song](https://open.spotify.com/album/abc123) #type:music #favorites
    - https://example.com/article #reading
    - [A Film](https://vimeo.com/123) ![thumb](https://cdn.example.com/t.jpg) #collection:essential_viewing

An indented line directly under a pin is that pin's notes; tags on the
notes line belong to the pin. Lines without a parseable URL are skipped
without error. A '## ' heading starts a new section; a leading YAML
frontmatter block is ignored.
"""

import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from pinfeed.models.pin import RawPin


# A link URL may hold one level of balanced parentheses: /wiki/Foo_(bar)
_URL = r"https?://(?:[^()\s]|\([^()\s]*\))+"

# [text](http...) not preceded by '!' (that would be an image)
LINK_PATTERN = re.compile(r"(?<!!)\[([^\]]*)\]\((" + _URL + r")\)")

# ![alt](http...) - author-provided thumbnail
IMAGE_PATTERN = re.compile(r"!\[[^\]]*\]\((" + _URL + r")\)")

BARE_URL_PATTERN = re.compile(r"https?://[^\s)\]>]+")

# '#token' at the start of the text or after whitespace; '#a#b' is two tags
TAG_TOKEN_PATTERN = re.compile(r"(?<!\S)#\S+")

LIST_MARKERS = ("- ", "* ")


def find_tags(text: str) -> List[str]:
    """Return the '#tag' tokens in text, splitting glued tokens like '#a#b'."""
    tags = []
    for token in TAG_TOKEN_PATTERN.findall(text):
        tags.extend("#" + part for part in token.split("#") if part)
    return tags


def parse_notes(line: str) -> Tuple[str, List[str]]:
    """
    Split a notes line into its text and its tag tokens.

    Returns:
        (notes text with the tags removed, tag tokens)
    """
    tags = find_tags(line)
    text = " ".join(TAG_TOKEN_PATTERN.sub(" ", line).split())
    return text, tags


def _is_notes_line(line: str) -> bool:
    """An indented, non-empty line that is neither a list item nor a heading."""
    stripped = line.strip()
    if not stripped or not line[:1].isspace():
        return False
    return not stripped.startswith(LIST_MARKERS) and not stripped.startswith("#")


def default_section(source_name: Optional[str]) -> str:
    """Section used before the first heading: the capitalized file stem."""
    if not source_name or source_name == "pins":
        return "General"
    return source_name[:1].upper() + source_name[1:]


def _strip_frontmatter(lines: list) -> int:
    """Return the index of the first line after a leading '---' block."""
    if not lines or lines[0].strip() != "---":
        return 0
    for index in range(1, len(lines)):
        if lines[index].strip() in ("---", "..."):
            return index + 1
    # Unterminated frontmatter: treat the whole file as body
    return 0


def parse_line(line: str, section: str = "General", line_number: int = 0) -> Optional[RawPin]:
    """
    Parse a single markdown line into a RawPin.

    Args:
        line: One line of markdown.
        section: Section to record on the pin.
        line_number: 1-based line number for diagnostics.

    Returns:
        RawPin, or None if the line is not a list item with a URL.
    """
    stripped = line.strip()
    if not stripped.startswith(LIST_MARKERS):
        return None

    body = stripped[2:]

    # Inline image first so its URL is never mistaken for the pin URL
    thumbnail_url = None
    image_match = IMAGE_PATTERN.search(body)
    if image_match:
        thumbnail_url = image_match.group(1)
        body = body[:image_match.start()] + " " + body[image_match.end():]

    link_match = LINK_PATTERN.search(body)
    if link_match:
        url = link_match.group(2)
        title = link_match.group(1).strip() or url
        rest = body[:link_match.start()] + " " + body[link_match.end():]
    else:
        url_match = BARE_URL_PATTERN.search(body)
        if not url_match:
            return None
        url = url_match.group(0)
        title = url
        rest = body[:url_match.start()] + " " + body[url_match.end():]

    tags = find_tags(rest)

    return RawPin(
        url=url,
        title=title,
        tags=tags,
        section=section,
        line_number=line_number,
        thumbnail_url=thumbnail_url,
    )


def parse_pins(text: str, source_name: Optional[str] = None) -> Iterator[RawPin]:
    """
    Lazily parse markdown text into raw pins, in file order.

    Pure function of its input: calling it again restarts the sequence.

    Args:
        text: Full markdown file content.
        source_name: File stem, used for the default section name.

    Yields:
        RawPin for every list item with a parseable URL.
    """
    lines = (text or "").splitlines()
    section = default_section(source_name)

    index = _strip_frontmatter(lines)
    while index < len(lines):
        stripped = lines[index].strip()
        index += 1
        if not stripped:
            continue

        if stripped.startswith("## "):
            section = stripped[3:].strip() or section
            continue

        if stripped.startswith("#"):
            continue

        raw = parse_line(stripped, section=section, line_number=index)
        if raw is None:
            continue

        # An indented line right under a pin holds its notes
        if index < len(lines) and _is_notes_line(lines[index]):
            raw.notes, note_tags = parse_notes(lines[index])
            raw.tags.extend(note_tags)
            index += 1

        yield raw


def parse_file(path: Union[str, Path]) -> Iterator[RawPin]:
    """
    Parse a markdown file from disk.

    Raises:
        OSError: If the file cannot be read.
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    return parse_pins(text, source_name=path.stem)
