"""Data models used throughout the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CrawlStats:
    """Snapshot of the frontier sizes."""

    visited: int
    queued: int
    total: int


@dataclass(frozen=True)
class ImageRecord:
    """Downloaded image stored on disk, keyed by its absolute source URL."""

    absolute_url: str
    relative_path: str


@dataclass(frozen=True)
class SavedPage:
    """Markdown page written below the output directory."""

    url: str
    relative_path: str


@dataclass(frozen=True)
class FailureRecord:
    """Permanently failed URL and a description of the error."""

    url: str
    error: str

    def as_line(self) -> str:
        return f"{self.url} - {self.error}"


@dataclass
class RunStats:
    """Mutable tallies owned by the orchestrator for one run."""

    started_at: float
    succeeded: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


@dataclass(frozen=True)
class RunSummary:
    """Final outcome of a run."""

    total: int
    succeeded: int
    failed: int
    duration_seconds: float
    output_root: Path
    index_path: Path
