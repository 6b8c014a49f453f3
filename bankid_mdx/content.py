"""HTML extraction, link harvesting and content validation."""

from __future__ import annotations

from typing import Set
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from .utils import host_of, strip_fragment

MIN_CONTENT_CHARS = 100

# More specific containers first; the first selector with a match wins.
CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    ".documentation-content",
    ".doc-content",
    ".markdown-body",
    "#content",
)

STRIP_SELECTORS = (
    "nav",
    "header",
    "footer",
    ".sidebar",
    ".navigation",
    "button",
    ".cookie-banner",
)

ASSET_EXTENSIONS = (
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".svg",
    ".pdf",
    ".css",
    ".js",
    ".woff",
    ".woff2",
    ".ttf",
)


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def _strip_boilerplate(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove navigation and page chrome from a detached fragment."""
    for selector in STRIP_SELECTORS:
        for tag in soup.select(selector):
            if tag.decomposed:
                continue
            tag.decompose()
    return soup


def extract_content(document: BeautifulSoup) -> str:
    """Return the main content of ``document`` as HTML, or ``""`` if none is found."""
    for selector in CONTENT_SELECTORS:
        node = document.select_one(selector)
        if node is None:
            continue
        fragment = BeautifulSoup(str(node), "html.parser")
        return _strip_boilerplate(fragment).decode()
    return ""


def _is_asset(url: str) -> bool:
    path = urlsplit(url).path.lower()
    return path.endswith(ASSET_EXTENSIONS)


def extract_links(document: BeautifulSoup, base_url: str) -> Set[str]:
    """Collect same-host, non-asset links as absolute URLs without fragments."""
    base_host = host_of(base_url)
    links: Set[str] = set()
    for anchor in document.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith("#"):
            continue
        try:
            absolute = urljoin(base_url, href)
            host = host_of(absolute)
            absolute = strip_fragment(absolute)
        except ValueError:
            continue
        if not host or host != base_host:
            continue
        if _is_asset(absolute):
            continue
        links.add(absolute)
    return links


def validate_content(html: str) -> bool:
    """Heuristic check that ``html`` looks like a real documentation page."""
    if len(html) < MIN_CONTENT_CHARS:
        return False
    soup = BeautifulSoup(html, "html.parser")
    return soup.select_one("h1, h2, h3") is not None
