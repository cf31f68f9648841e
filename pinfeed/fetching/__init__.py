"""
Fetching module.

Network fetch and scrape of OpenGraph link-preview metadata.
"""

from pinfeed.fetching.opengraph import (
    OpenGraphFetcher,
    OpenGraphData,
    parse_opengraph,
    extract_meta,
    extract_favicon,
)

__all__ = [
    "OpenGraphFetcher",
    "OpenGraphData",
    "parse_opengraph",
    "extract_meta",
    "extract_favicon",
]
