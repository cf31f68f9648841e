"""
Parsing module.

Markdown pin parsing, tag normalization, and URL helpers.
"""

from pinfeed.parsing.markdown import parse_pins, parse_file, parse_line
from pinfeed.parsing.tags import (
    NormalizedTags,
    RECOGNIZED_KEYS,
    normalize_tags,
    infer_content_type,
    infer_source,
)
from pinfeed.parsing.urls import canonical_url, bare_host

__all__ = [
    "parse_pins",
    "parse_file",
    "parse_line",
    "NormalizedTags",
    "RECOGNIZED_KEYS",
    "normalize_tags",
    "infer_content_type",
    "infer_source",
    "canonical_url",
    "bare_host",
]
