"""Markdown generation helpers backed by markdownify."""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Optional
from urllib.parse import urljoin

import markdownify
from bs4 import BeautifulSoup, Tag

from .images import ImageDownloader

logger = logging.getLogger("bankid_mdx")

SKIPPED_HREF_PREFIXES = ("http://", "https://", "#", "mailto:")
LANGUAGE_CLASS_PREFIXES = ("language-", "lang-")
EXCESS_NEWLINES = re.compile(r"\n{3,}")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def code_language(el: Tag) -> Optional[str]:
    """Find a language hint on a ``<pre>`` block or its ``<code>`` child."""
    candidates = [el]
    code = el.find("code")
    if isinstance(code, Tag):
        candidates.append(code)
    for node in candidates:
        data_language = node.get("data-language")
        if data_language:
            return data_language
        for cls in node.get("class") or []:
            for prefix in LANGUAGE_CLASS_PREFIXES:
                if cls.startswith(prefix) and len(cls) > len(prefix):
                    return cls[len(prefix):]
    return None


def format_timestamp(timestamp: dt.datetime) -> str:
    """Render ``timestamp`` in UTC; naive values are taken to be UTC already."""
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=dt.timezone.utc)
    return timestamp.astimezone(dt.timezone.utc).strftime(TIMESTAMP_FORMAT)


def compose_markdown(source_url: str, body: str, timestamp: dt.datetime) -> str:
    """Prepend the provenance front matter to ``body``."""
    front_matter_lines = [
        "---",
        f"source: {source_url}",
        f"downloaded: {format_timestamp(timestamp)}",
        "---",
        "",
        "",
    ]
    return "\n".join(front_matter_lines) + body


def clean_markdown(markdown: str) -> str:
    return EXCESS_NEWLINES.sub("\n\n", markdown).strip()


class MarkdownConverter:
    """Turn extracted content HTML into a markdown document.

    ``images`` is optional; without it image references are left pointing
    at their original location.
    """

    def __init__(self, images: Optional[ImageDownloader] = None) -> None:
        self.images = images
        self._converter = markdownify.MarkdownConverter(
            heading_style="ATX",
            bullets="-",
            code_language_callback=code_language,
        )

    def convert(self, html: str, source_url: str, timestamp: dt.datetime) -> str:
        soup = BeautifulSoup(html, "html.parser")
        self._absolutize_links(soup, source_url)
        if self.images is not None:
            self._localize_images(soup, source_url)
        body = clean_markdown(self._converter.convert(str(soup)))
        return compose_markdown(source_url, body, timestamp)

    @staticmethod
    def _absolutize_links(soup: BeautifulSoup, base_url: str) -> None:
        for link in soup.find_all("a", href=True):
            href = link["href"]
            if href.startswith(SKIPPED_HREF_PREFIXES):
                continue
            try:
                link["href"] = urljoin(base_url, href)
            except ValueError:
                logger.debug("Leaving unparsable link %r untouched", href)

    def _localize_images(self, soup: BeautifulSoup, page_url: str) -> None:
        assert self.images is not None
        for img in soup.find_all("img", src=True):
            local_path = self.images.resolve_and_cache(img["src"], page_url)
            if local_path:
                img["src"] = f"../{local_path}"
