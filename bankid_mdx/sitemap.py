"""Sitemap loading for the precomputed URL list."""

from __future__ import annotations

import logging
from typing import List, Optional

import requests
from bs4 import BeautifulSoup, FeatureNotFound

logger = logging.getLogger("bankid_mdx")


def parse_sitemap(xml: bytes) -> List[str]:
    """Return the text of every ``<loc>`` element in document order."""
    soup = BeautifulSoup(xml, "xml")
    return [loc.get_text(strip=True) for loc in soup.find_all("loc") if loc.get_text(strip=True)]


def fetch_sitemap_urls(
    sitemap_url: str,
    fallback_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = 30.0,
) -> List[str]:
    """Fetch the sitemap, falling back to ``[fallback_url]`` on any problem."""
    if session is None:
        session = requests.Session()
    logger.info("Fetching sitemap from %s", sitemap_url)
    try:
        resp = session.get(sitemap_url, timeout=timeout)
        resp.raise_for_status()
        urls = parse_sitemap(resp.content)
    except (requests.RequestException, FeatureNotFound, ValueError) as exc:
        logger.warning("Error fetching sitemap: %s; falling back to %s", exc, fallback_url)
        return [fallback_url]

    if not urls:
        logger.warning("Sitemap at %s lists no URLs; falling back to %s", sitemap_url, fallback_url)
        return [fallback_url]
    logger.info("Loaded %d URLs from sitemap", len(urls))
    return urls
