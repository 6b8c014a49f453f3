"""Crawl frontier: queued and visited URLs for a single host."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Set

from .models import CrawlStats
from .utils import host_of, strip_fragment

logger = logging.getLogger("bankid_mdx")


class CrawlState:
    """Breadth-first frontier restricted to the host of ``base_url``.

    A URL is never both queued and visited. Fragments are stripped before
    any comparison, so ``/a#x`` and ``/a`` are the same page.
    """

    def __init__(self, base_url: str, max_pages: Optional[int] = None) -> None:
        self.base_url = base_url
        self.base_host = host_of(base_url)
        self.max_pages = max_pages
        # insertion-ordered set
        self._queued: Dict[str, None] = {}
        self._visited: Set[str] = set()

    def add(self, url: str) -> bool:
        """Queue ``url`` if it is new, on the base host and within the cap."""
        try:
            host = host_of(url)
            normalized = strip_fragment(url)
        except ValueError:
            logger.debug("Rejecting unparsable URL %r", url)
            return False

        if not host or host != self.base_host:
            return False
        if normalized in self._visited or normalized in self._queued:
            return False
        if self.max_pages is not None and self._total() >= self.max_pages:
            return False

        self._queued[normalized] = None
        return True

    def next(self) -> Optional[str]:
        """Pop the oldest queued URL, or ``None`` when the queue is empty."""
        if not self._queued:
            return None
        url = next(iter(self._queued))
        del self._queued[url]
        return url

    def mark_visited(self, url: str) -> None:
        normalized = strip_fragment(url)
        self._visited.add(normalized)
        self._queued.pop(normalized, None)

    def is_visited(self, url: str) -> bool:
        return strip_fragment(url) in self._visited

    def is_empty(self) -> bool:
        return not self._queued

    def stats(self) -> CrawlStats:
        return CrawlStats(
            visited=len(self._visited),
            queued=len(self._queued),
            total=self._total(),
        )

    def _total(self) -> int:
        return len(self._visited) + len(self._queued)

    def __len__(self) -> int:
        return len(self._queued)
