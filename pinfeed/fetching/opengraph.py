"""
OpenGraph metadata fetcher.

Fetches a page and scrapes its link-preview metadata:
- og:image (falls back to twitter:image)
- og:title (falls back to the <title> tag)
- og:description
- og:site_name, og:type
- favicon (from <link rel="icon">, default /favicon.ico)

Meta tags are matched with regular expressions rather than a full HTML
parse: the first matching tag wins and malformed HTML never raises.
BeautifulSoup is only used to locate the favicon link, whose attributes
come in too many shapes for a single pattern.

Non-2xx responses and network errors yield None. There are no retries and
no rate limiting here; the pipeline spaces out successive calls.
"""

import html as html_lib
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlsplit

import requests
from bs4 import BeautifulSoup

from pinfeed.config import REQUEST_TIMEOUT
from pinfeed.models.metadata import MetadataEntry, now_iso


# og tags live in <head>; no need to scan megabytes of body
MAX_HTML_CHARS = 1_000_000

TITLE_PATTERN = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def _meta_patterns(prop: str) -> tuple:
    """Patterns for <meta property|name="prop" content="..."> in either attribute order."""
    p = re.escape(prop)
    name_first = re.compile(
        r"<meta\b[^>]*?\b(?:property|name)\s*=\s*([\"'])" + p + r"\1"
        r"[^>]*?\bcontent\s*=\s*([\"'])(.*?)\2",
        re.IGNORECASE | re.DOTALL,
    )
    content_first = re.compile(
        r"<meta\b[^>]*?\bcontent\s*=\s*([\"'])(.*?)\1"
        r"[^>]*?\b(?:property|name)\s*=\s*([\"'])" + p + r"\3",
        re.IGNORECASE | re.DOTALL,
    )
    return (name_first, 3), (content_first, 2)


META_PATTERNS = {
    prop: _meta_patterns(prop)
    for prop in (
        "og:image",
        "og:image:url",
        "og:image:secure_url",
        "twitter:image",
        "og:title",
        "og:description",
        "description",
        "og:site_name",
        "og:type",
    )
}


def _clean(value: Optional[str]) -> Optional[str]:
    """Unescape entities and collapse whitespace; empty becomes None."""
    if value is None:
        return None
    value = re.sub(r"\s+", " ", html_lib.unescape(value)).strip()
    return value or None


def extract_meta(html: str, prop: str) -> Optional[str]:
    """
    Return the content of the first <meta> tag for a property.

    Both attribute orders are searched; the earliest tag in the document wins.
    """
    best = None
    for pattern, group in META_PATTERNS.get(prop) or _meta_patterns(prop):
        match = pattern.search(html)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), match.group(group))
    return _clean(best[1]) if best else None


def extract_title(html: str) -> Optional[str]:
    """Return the text of the first <title> tag."""
    match = TITLE_PATTERN.search(html)
    return _clean(match.group(1)) if match else None


@dataclass
class OpenGraphData:
    """Link-preview metadata scraped from a page."""

    title: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    site_name: Optional[str] = None
    type: Optional[str] = None
    favicon: Optional[str] = None

    @property
    def has_image(self) -> bool:
        return bool(self.image_url)

    def to_entry(self, fetched_at: Optional[str] = None) -> MetadataEntry:
        """Convert to a cache entry stamped with the fetch time."""
        return MetadataEntry(
            title=self.title,
            description=self.description,
            image_url=self.image_url,
            site_name=self.site_name,
            type=self.type,
            favicon=self.favicon,
            fetched_at=fetched_at or now_iso(),
            failed=not self.has_image,
        )


def parse_opengraph(html: str, base_url: str) -> OpenGraphData:
    """
    Scrape OpenGraph metadata from an HTML document.

    Args:
        html: Page HTML (may be malformed).
        base_url: Final page URL, used to absolutize relative links.

    Returns:
        OpenGraphData; fields are None when absent.
    """
    html = (html or "")[:MAX_HTML_CHARS]

    image = (
        extract_meta(html, "og:image")
        or extract_meta(html, "og:image:secure_url")
        or extract_meta(html, "og:image:url")
        or extract_meta(html, "twitter:image")
    )
    if image:
        image = urljoin(base_url, image)

    return OpenGraphData(
        title=extract_meta(html, "og:title") or extract_title(html),
        description=extract_meta(html, "og:description") or extract_meta(html, "description"),
        image_url=image,
        site_name=extract_meta(html, "og:site_name"),
        type=extract_meta(html, "og:type"),
        favicon=extract_favicon(html, base_url),
    )


def extract_favicon(html: str, base_url: str) -> Optional[str]:
    """
    Locate the page favicon.

    Returns:
        Absolute favicon URL; '/favicon.ico' on the page's host when the
        page declares none; None if base_url has no host.
    """
    href = None
    try:
        soup = BeautifulSoup(html, "html.parser")
        for link in soup.find_all("link", href=True):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            rel = [value.lower() for value in rel]
            if "icon" in rel or "apple-touch-icon" in rel:
                href = link["href"].strip()
                break
    except Exception as e:
        print(f"[opengraph] Could not scan for favicon on {base_url}: {e}")

    if href:
        return urljoin(base_url, href)

    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}/favicon.ico"


class OpenGraphFetcher:
    """
    Fetches pages and scrapes OpenGraph metadata.

    A browser-like User-Agent is sent since many sites serve stripped
    pages (or 403s) to unknown clients.
    """

    USER_AGENT = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize OpenGraphFetcher.

        Args:
            timeout: Request timeout in seconds. Defaults to REQUEST_TIMEOUT.
        """
        self.timeout = timeout or REQUEST_TIMEOUT

    @property
    def name(self) -> str:
        return "opengraph"

    def fetch(self, url: str) -> Optional[OpenGraphData]:
        """
        Fetch a URL and scrape its OpenGraph metadata.

        Args:
            url: Page to fetch.

        Returns:
            OpenGraphData on a 2xx response, None on any failure.
        """
        html, final_url = self._fetch_page(url)
        if html is None:
            return None

        try:
            return parse_opengraph(html, final_url or url)
        except Exception as e:
            print(f"[{self.name}] Error parsing {url}: {e}")
            return None

    def _fetch_page(self, url: str) -> tuple:
        """
        Fetch page HTML.

        Returns:
            (html, final_url), or (None, None) on failure.
        """
        try:
            response = requests.get(
                url,
                headers={
                    "User-Agent": self.USER_AGENT,
                    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            print(f"[{self.name}] Error fetching {url}: {e}")
            return None, None

        if not 200 <= response.status_code < 300:
            print(f"[{self.name}] HTTP {response.status_code} for {url}")
            return None, None

        try:
            text = response.text
        except (UnicodeDecodeError, LookupError) as e:
            print(f"[{self.name}] Could not decode {url}: {e}")
            return None, None

        final_url = getattr(response, "url", None)
        if not isinstance(final_url, str) or not final_url:
            final_url = url
        return text, final_url
