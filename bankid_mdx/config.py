"""Configuration objects and constants for the scraper."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

DEFAULT_BASE_URL = "https://developers.bankid.com/"
DEFAULT_OUTPUT_DIR = "./bankid_docs"
DEFAULT_CONTENT_SELECTOR = "main, article, .content, body"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


@dataclass
class ScraperConfig:
    """Top-level settings that control fetching, crawling and output."""

    base_url: str = DEFAULT_BASE_URL
    output_root: Path = Path(DEFAULT_OUTPUT_DIR)
    headless: bool = True
    max_pages: Optional[int] = None
    use_sitemap: bool = True
    sitemap_url: Optional[str] = None
    min_delay: float = 2.0
    max_delay: float = 5.0
    crawl_delay: float = 0.0
    max_retries: int = 3
    navigation_timeout: float = 30.0
    selector_timeout: float = 15.0
    fallback_wait: float = 2.0
    fallback_timeout: float = 5.0
    content_selector: str = DEFAULT_CONTENT_SELECTOR
    download_images: bool = True
    image_timeout: float = 10.0
    image_failure_ttl: float = 0.0
    user_agent: str = DEFAULT_USER_AGENT

    def resolved_sitemap_url(self) -> str:
        """Return the configured sitemap URL or the one at the site root."""
        if self.sitemap_url:
            return self.sitemap_url
        return urljoin(self.base_url, "/sitemap.xml")
