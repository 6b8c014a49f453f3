from __future__ import annotations

from typing import Dict, List, Optional, Union

import pytest
import requests

from bankid_mdx.errors import FetchError

BASE_URL = "https://developers.bankid.com/"


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content
        self.headers: Dict[str, str] = {}

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class FakeSession:
    """Maps URLs to canned responses or exceptions and records every GET."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None) -> None:
        self.routes = routes or {}
        self.requested: List[str] = []

    def get(self, url: str, **kwargs) -> FakeResponse:
        self.requested.append(url)
        outcome = self.routes.get(url, FakeResponse(status_code=404))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeFetcher:
    """Serves HTML per URL; a list value yields its items on successive calls."""

    def __init__(self, pages: Dict[str, object]) -> None:
        self.pages = pages
        self.calls: List[str] = []
        self.cleaned_up = False

    async def navigate_and_wait(self, url: str, selector: str = "body") -> str:
        self.calls.append(url)
        outcome = self.pages.get(url)
        if isinstance(outcome, list):
            outcome = outcome.pop(0) if len(outcome) > 1 else outcome[0]
        if outcome is None:
            raise FetchError(url, f"no page for {url}", transient=False)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def cleanup(self) -> None:
        self.cleaned_up = True


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def page_html(title: str, body: str = "", links: str = "") -> str:
    return (
        "<html><body><nav>Site navigation</nav>"
        f"<main><h1>{title}</h1><p>{body or 'x' * 120}</p>{links}</main>"
        "<footer>Footer text</footer></body></html>"
    )


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
