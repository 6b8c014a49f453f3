"""Image resolution, downloading and caching utilities."""

from __future__ import annotations

import hashlib
import logging
import posixpath
import time
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib.parse import urlsplit

import requests
from filetype import guess

from .config import DEFAULT_USER_AGENT
from .models import ImageRecord
from .utils import resolve_url

logger = logging.getLogger("bankid_mdx")

IMAGES_DIR = "images"
DEFAULT_EXTENSION = ".png"
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico", ".avif")
IMAGE_PATH_MARKERS = ("/assets/", "/images/", "/img/")


def detect_image_extension(data: bytes) -> Optional[str]:
    """Detect the image type from its signature; returns e.g. ``.jpg``."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            ext = "jpg"
        return f".{ext}"
    return None


def looks_like_image(url: str) -> bool:
    """Cheap guess based on the URL path alone."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    if path.endswith(IMAGE_EXTENSIONS):
        return True
    return any(marker in path for marker in IMAGE_PATH_MARKERS)


def generate_filename(url: str, data: bytes = b"") -> str:
    """Build ``<hash12>-<stem><ext>`` from the absolute URL.

    The hash prefix keeps same-named images from different paths apart.
    """
    url_hash = hashlib.sha256(url.encode("utf-8")).hexdigest()[:12]
    basename = posixpath.basename(urlsplit(url).path)
    stem, extension = posixpath.splitext(basename)
    if not extension:
        extension = detect_image_extension(data) or DEFAULT_EXTENSION
    if stem:
        return f"{url_hash}-{stem}{extension}"
    return f"{url_hash}{extension}"


class ImageDownloader:
    """Download page images once per absolute URL and hand out local paths."""

    def __init__(
        self,
        output_dir: Path,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
        failure_ttl: float = 0.0,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.images_dir = self.output_dir / IMAGES_DIR
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.failure_ttl = failure_ttl
        self.user_agent = user_agent
        self._clock = clock
        self._records: Dict[str, ImageRecord] = {}
        self._failures: Dict[str, float] = {}

    def resolve_and_cache(self, image_ref: str, page_url: str) -> Optional[str]:
        """Return the local relative path for ``image_ref`` or ``None``."""
        if not image_ref or image_ref.startswith("data:"):
            return None
        try:
            absolute_url = resolve_url(image_ref, page_url)
        except ValueError:
            absolute_url = image_ref

        record = self._records.get(absolute_url)
        if record:
            return record.relative_path

        if not looks_like_image(absolute_url):
            return None
        if self._recently_failed(absolute_url):
            logger.debug("Skipping %s: failed less than %.0fs ago", absolute_url, self.failure_ttl)
            return None

        data = self._download(absolute_url)
        if data is None:
            self._remember_failure(absolute_url)
            return None

        filename = generate_filename(absolute_url, data)
        destination = self.images_dir / filename
        try:
            destination.write_bytes(data)
        except OSError as exc:
            logger.warning("Failed to write image %s: %s", destination, exc)
            self._remember_failure(absolute_url)
            return None

        record = ImageRecord(
            absolute_url=absolute_url,
            relative_path=f"{IMAGES_DIR}/{filename}",
        )
        self._records[absolute_url] = record
        self._failures.pop(absolute_url, None)
        logger.debug("Saved image %s -> %s", absolute_url, record.relative_path)
        return record.relative_path

    def stats(self) -> Dict[str, object]:
        return {"count": len(self._records), "directory": str(self.images_dir)}

    def _download(self, url: str) -> Optional[bytes]:
        try:
            resp = self.session.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        except requests.RequestException as exc:
            logger.warning("Failed to fetch image %s: %s", url, exc)
            return None
        if resp.status_code != 200:
            logger.warning("Failed to fetch image %s: HTTP %s", url, resp.status_code)
            return None
        return resp.content

    def _recently_failed(self, url: str) -> bool:
        failed_at = self._failures.get(url)
        if failed_at is None:
            return False
        return self._clock() - failed_at < self.failure_ttl

    def _remember_failure(self, url: str) -> None:
        if self.failure_ttl > 0:
            self._failures[url] = self._clock()
