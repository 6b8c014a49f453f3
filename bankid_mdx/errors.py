"""Error types raised by the fetch layer."""

from __future__ import annotations


class FetchError(Exception):
    """Rendering a page failed.

    ``transient`` tells the retry policy whether another attempt may succeed.
    """

    def __init__(self, url: str, message: str, transient: bool = True) -> None:
        super().__init__(message)
        self.url = url
        self.message = message
        self.transient = transient

    def describe(self) -> str:
        return f"{type(self).__name__}: {self.message}"


class FetchTimeout(FetchError):
    """The page or its content did not appear within the allowed time."""
