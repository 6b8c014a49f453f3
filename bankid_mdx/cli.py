"""Command-line entry point for the documentation scraper."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Sequence

from playwright.async_api import Error as PlaywrightError

from .config import DEFAULT_BASE_URL, DEFAULT_OUTPUT_DIR, ScraperConfig
from .crawler import run_scraper

logger = logging.getLogger("bankid_mdx.cli")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Must be a positive integer: {value}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Render documentation pages via Playwright and save their main content as Markdown."
        ),
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Run the browser without a window (default: headless)",
    )
    parser.add_argument(
        "--output-dir",
        default=DEFAULT_OUTPUT_DIR,
        type=Path,
        help=f"Directory where Markdown and images are written (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--base-url",
        default=DEFAULT_BASE_URL,
        help=f"Starting URL; only pages on its host are crawled (default: {DEFAULT_BASE_URL})",
    )
    parser.add_argument(
        "--max-pages",
        type=_positive_int,
        default=None,
        help="Maximum number of pages to download (default: unlimited)",
    )
    parser.add_argument(
        "--crawl",
        action="store_true",
        help="Follow links from the base URL instead of reading the sitemap",
    )
    parser.add_argument(
        "--sitemap-url",
        default=None,
        help="Sitemap to read in sitemap mode (default: /sitemap.xml on the base host)",
    )
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Keep remote image references instead of downloading images",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Navigation timeout in seconds",
    )
    parser.add_argument(
        "--crawl-delay",
        type=float,
        default=0.0,
        help="Seconds to pause between pages in crawl mode",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ScraperConfig:
    return ScraperConfig(
        base_url=args.base_url,
        output_root=Path(args.output_dir).resolve(),
        headless=args.headless,
        max_pages=args.max_pages,
        use_sitemap=not args.crawl,
        sitemap_url=args.sitemap_url,
        crawl_delay=args.crawl_delay,
        navigation_timeout=args.timeout,
        download_images=not args.no_images,
    )


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    config = build_config(args)
    logger.info("Mode: %s", "headless" if config.headless else "headed")
    try:
        asyncio.run(run_scraper(config))
    except PlaywrightError as exc:
        logger.error("Browser error: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.error("Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
