"""Utility helpers for URL normalization and path handling."""

from __future__ import annotations

import re
from typing import List, Optional
from urllib.parse import unquote, urldefrag, urljoin, urlsplit

UNSAFE_SEGMENT_PATTERN = re.compile(r'[<>:"\\|?*\x00-\x1f]+')
ABSOLUTE_PREFIXES = ("http://", "https://")


def is_absolute_url(url: str) -> bool:
    return url.lower().startswith(ABSOLUTE_PREFIXES)


def host_of(url: str) -> Optional[str]:
    """Return the lowercase host of ``url``; raises ``ValueError`` if unparsable."""
    return urlsplit(url).hostname


def strip_fragment(url: str) -> str:
    return urldefrag(url)[0]


def resolve_url(href: str, base: str) -> str:
    """Resolve ``href`` against ``base``; absolute URLs are returned as-is."""
    if is_absolute_url(href):
        return href
    return urljoin(base, href)


def safe_segment(segment: str) -> str:
    """Make one decoded path segment safe to use as a file or directory name."""
    cleaned = UNSAFE_SEGMENT_PATTERN.sub("_", segment).strip()
    return cleaned


def url_path_segments(url: str) -> List[str]:
    """Split the URL path into decoded, sanitized segments.

    Empty, ``.`` and ``..`` segments are dropped so the result never
    escapes the output directory.
    """
    path = unquote(urlsplit(url).path)
    segments: List[str] = []
    for raw in path.replace("\\", "/").split("/"):
        segment = safe_segment(raw)
        if segment in ("", ".", ".."):
            continue
        segments.append(segment)
    return segments
