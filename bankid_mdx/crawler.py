"""High-level orchestration: fetch, extract, convert and save each page."""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
import random
import time
from typing import Awaitable, Callable, List, Optional

from .browser import BrowserController
from .config import ScraperConfig
from .content import extract_content, extract_links, parse_html, validate_content
from .errors import FetchError
from .frontier import CrawlState
from .images import ImageDownloader
from .markdown import MarkdownConverter
from .models import RunStats, RunSummary
from .organizer import FileOrganizer
from .sitemap import fetch_sitemap_urls

logger = logging.getLogger("bankid_mdx")

SleepFunc = Callable[[float], Awaitable[None]]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def format_duration(seconds: float) -> str:
    minutes, remainder = divmod(int(seconds), 60)
    return f"{minutes}m {remainder}s"


class DocsScraper:
    """Drive pages through the pipeline in sitemap or crawl mode.

    ``fetcher`` needs ``navigate_and_wait(url, selector)`` returning rendered
    HTML and raising :class:`FetchError` on failure. Transient fetch errors are
    retried with exponential backoff; anything else fails the page at once.
    """

    def __init__(
        self,
        config: ScraperConfig,
        fetcher,
        organizer: Optional[FileOrganizer] = None,
        converter: Optional[MarkdownConverter] = None,
        frontier: Optional[CrawlState] = None,
        sleep: SleepFunc = asyncio.sleep,
        rng: Optional[random.Random] = None,
        now: Callable[[], dt.datetime] = _utcnow,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.organizer = organizer if organizer is not None else FileOrganizer(config.output_root)
        self.converter = converter if converter is not None else MarkdownConverter()
        if frontier is None:
            frontier = CrawlState(config.base_url, max_pages=config.max_pages)
        self.frontier = frontier
        self._sleep = sleep
        self._rng = rng if rng is not None else random.Random()
        self._now = now
        self._clock = clock
        self.stats = RunStats(started_at=clock())

    async def run(self, urls: Optional[List[str]] = None) -> RunSummary:
        """Process every page, write the index and return the run summary.

        In sitemap mode ``urls`` replaces the downloaded sitemap when given.
        """
        self.stats = RunStats(started_at=self._clock())
        logger.info("Base URL: %s", self.config.base_url)
        logger.info("Output: %s", self.config.output_root)
        logger.info("Max pages: %s", self.config.max_pages or "unlimited")
        logger.info("Strategy: %s", "sitemap" if self.config.use_sitemap else "crawling")

        if self.config.use_sitemap:
            if urls is None:
                urls = fetch_sitemap_urls(
                    self.config.resolved_sitemap_url(),
                    self.config.base_url,
                )
            await self._run_sitemap(urls)
        else:
            await self._run_crawl()

        index_path = self.organizer.generate_index()
        summary = RunSummary(
            total=self.stats.total,
            succeeded=self.stats.succeeded,
            failed=self.stats.failed,
            duration_seconds=self._clock() - self.stats.started_at,
            output_root=self.organizer.output_dir,
            index_path=index_path,
        )
        self._log_summary(summary)
        return summary

    async def _run_sitemap(self, urls: List[str]) -> None:
        logger.info("Found %d URLs in sitemap", len(urls))
        if self.config.max_pages is not None:
            urls = urls[: self.config.max_pages]

        for index, url in enumerate(urls, start=1):
            logger.info("[%d/%d] Processing: %s", index, len(urls), url)
            await self.process_url(url, harvest_links=False)
            if index < len(urls):
                delay = self._rng.uniform(self.config.min_delay, self.config.max_delay)
                logger.info("Waiting %.1fs before next request...", delay)
                await self._sleep(delay)

    async def _run_crawl(self) -> None:
        self.frontier.add(self.config.base_url)
        while True:
            url = self.frontier.next()
            if url is None:
                break
            stats = self.frontier.stats()
            logger.info("[%d/%d] Processing: %s", stats.visited + 1, stats.total + 1, url)
            await self.process_url(url, harvest_links=True)
            if self.config.crawl_delay > 0 and not self.frontier.is_empty():
                await self._sleep(self.config.crawl_delay)

    async def process_url(self, url: str, harvest_links: bool = False) -> bool:
        """Run one URL through the pipeline with retries; True on success."""
        retries = 0
        while True:
            try:
                new_links = await self._process_once(url, harvest_links)
            except FetchError as exc:
                if exc.transient and retries < self.config.max_retries:
                    retries += 1
                    wait_time = 2 ** (retries - 1)
                    logger.warning(
                        "Retry %d/%d for %s after %ds (%s)",
                        retries,
                        self.config.max_retries,
                        url,
                        wait_time,
                        exc.describe(),
                    )
                    await self._sleep(wait_time)
                    continue
                if exc.transient:
                    logger.error("Failed after %d retries: %s: %s", retries, exc.url, exc)
                else:
                    logger.error("Failed to fetch %s: %s", exc.url, exc)
                self._record_failure(url, exc.describe(), harvest_links)
                return False
            except Exception as exc:  # pylint: disable=broad-except
                logger.exception("Unexpected error processing %s", url)
                self._record_failure(url, f"{type(exc).__name__}: {exc}", harvest_links)
                return False

            self.stats.succeeded += 1
            if harvest_links:
                logger.info("Saved %s (found %d new links)", url, new_links)
            else:
                logger.info("Saved %s", url)
            return True

    async def _process_once(self, url: str, harvest_links: bool) -> int:
        html = await self.fetcher.navigate_and_wait(url, self.config.content_selector)
        document = parse_html(html)

        content_html = extract_content(document)
        if not validate_content(content_html):
            logger.warning("Content validation failed for %s, saving anyway", url)

        markdown = self.converter.convert(content_html, url, self._now())
        page = self.organizer.save_page(url, markdown)
        logger.debug("Wrote %s to %s", page.url, page.relative_path)

        if not harvest_links:
            return 0
        self.frontier.mark_visited(url)
        new_links = 0
        # Relative hrefs resolve against the page itself; the frontier
        # enforces the base host.
        for link in sorted(extract_links(document, url)):
            if self.frontier.add(link):
                new_links += 1
        return new_links

    def _record_failure(self, url: str, error: str, crawling: bool) -> None:
        self.organizer.save_failed_url(url, error)
        self.stats.failed += 1
        if crawling:
            self.frontier.mark_visited(url)

    def _log_summary(self, summary: RunSummary) -> None:
        logger.info("=" * 60)
        logger.info("Download complete")
        logger.info("Total pages: %d", summary.total)
        logger.info("Successful: %d", summary.succeeded)
        logger.info("Failed: %d", summary.failed)
        if summary.failed:
            for failure in self.organizer.failures:
                logger.info("  %s", failure.as_line())
            logger.info("  (see %s)", self.organizer.failed_urls_path)
        images = self.converter.images
        if images is not None:
            logger.info("Images: %d in %s", images.stats()["count"], images.stats()["directory"])
        logger.info("Duration: %s", format_duration(summary.duration_seconds))
        logger.info("Output: %s", summary.output_root)
        logger.info("=" * 60)


async def run_scraper(config: ScraperConfig) -> RunSummary:
    """Start the browser, run the scraper and always release the browser."""
    organizer = FileOrganizer(config.output_root)
    images: Optional[ImageDownloader] = None
    if config.download_images:
        images = ImageDownloader(
            config.output_root,
            timeout=config.image_timeout,
            failure_ttl=config.image_failure_ttl,
            user_agent=config.user_agent,
        )
    converter = MarkdownConverter(images)

    async with BrowserController(config) as browser:
        scraper = DocsScraper(config, browser, organizer=organizer, converter=converter)
        return await scraper.run()
