"""
URL helpers shared by the parser, cache store, and resolver.
"""

from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def canonical_url(url: str) -> str:
    """
    Normalize a URL for use as a cache key.

    Surrounding whitespace and the fragment are dropped; scheme and host
    are lowercased. Path and query are preserved since they identify
    content (e.g. YouTube's '?v=').

    Unparseable input is returned stripped but otherwise unchanged.
    """
    url = (url or "").strip()
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((
        parts.scheme.lower(),
        parts.netloc.lower(),
        parts.path,
        parts.query,
        "",
    ))


def bare_host(url: str) -> Optional[str]:
    """Return the lowercased host without a leading 'www.', or None."""
    try:
        host = urlsplit((url or "").strip()).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def url_path(url: str) -> str:
    """Return the path component of a URL ('' if unparseable)."""
    try:
        return urlsplit((url or "").strip()).path
    except ValueError:
        return ""


def host_matches(host: Optional[str], domain: str) -> bool:
    """True if host is domain or a subdomain of it."""
    if not host:
        return False
    return host == domain or host.endswith("." + domain)
