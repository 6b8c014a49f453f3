"""Output layout: page files, the index and the failure log."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from .models import FailureRecord, SavedPage
from .utils import url_path_segments

logger = logging.getLogger("bankid_mdx")

INDEX_FILENAME = "INDEX.md"
FAILED_URLS_FILENAME = "failed_urls.txt"
DEFAULT_INDEX_TITLE = "BankID Documentation Index"


def url_to_relative_path(url: str) -> str:
    """Map a page URL onto a relative ``.md`` path.

    The path is percent-decoded, unsafe characters are replaced and ``.``/``..``
    segments are dropped. The query string is ignored.
    """
    segments = url_path_segments(url)
    if not segments:
        return "index.md"
    path = "/".join(segments)
    if not path.endswith(".md"):
        path += ".md"
    return path


class FileOrganizer:
    """Write pages below ``output_dir`` and keep track of what was saved."""

    def __init__(self, output_dir: Path, index_title: str = DEFAULT_INDEX_TITLE) -> None:
        self.output_dir = Path(output_dir)
        self.index_title = index_title
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.saved_pages: List[SavedPage] = []
        self.failures: List[FailureRecord] = []

    @property
    def failed_urls_path(self) -> Path:
        return self.output_dir / FAILED_URLS_FILENAME

    @property
    def index_path(self) -> Path:
        return self.output_dir / INDEX_FILENAME

    def save_page(self, url: str, markdown: str) -> SavedPage:
        relative_path = url_to_relative_path(url)
        destination = self.output_dir / relative_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(markdown, encoding="utf-8")
        logger.debug("Saved Markdown to %s", destination)

        page = SavedPage(url=url, relative_path=relative_path)
        self.saved_pages.append(page)
        return page

    def save_failed_url(self, url: str, error: str) -> FailureRecord:
        record = FailureRecord(url=url, error=error)
        with self.failed_urls_path.open("a", encoding="utf-8") as handle:
            handle.write(record.as_line() + "\n")
        self.failures.append(record)
        return record

    def generate_index(self) -> Path:
        paths = sorted(page.relative_path for page in self.saved_pages)
        lines = [
            f"# {self.index_title}",
            "",
            f"Total pages: {len(paths)}",
            "",
            "## Pages",
            "",
        ]
        lines.extend(f"- [{path}]({path})" for path in paths)
        self.index_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Wrote index with %d page(s) to %s", len(paths), self.index_path)
        return self.index_path
