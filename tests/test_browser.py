import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from bankid_mdx import crawler
from bankid_mdx.browser import STEALTH_SCRIPT, BrowserController
from bankid_mdx.config import ScraperConfig
from bankid_mdx.errors import FetchError, FetchTimeout

URL = "https://developers.bankid.com/api"


class FakePage:
    """Stands in for a Playwright page; ``errors`` maps a method (or a
    ``wait_for_selector:<selector>`` key) to the exception it raises."""

    def __init__(self, errors=None, html="<html><body>ok</body></html>"):
        self.errors = errors or {}
        self.html = html
        self.calls = []

    def _maybe_raise(self, key):
        error = self.errors.get(key)
        if error is not None:
            raise error

    async def goto(self, url, **kwargs):
        self.calls.append(("goto", url))
        self._maybe_raise("goto")

    async def wait_for_selector(self, selector, **kwargs):
        self.calls.append(("wait_for_selector", selector, kwargs.get("timeout")))
        self._maybe_raise(f"wait_for_selector:{selector}")

    async def wait_for_timeout(self, timeout):
        self.calls.append(("wait_for_timeout", timeout))

    async def content(self):
        self.calls.append(("content",))
        return self.html


def make_controller(page, **overrides):
    controller = BrowserController(ScraperConfig(**overrides))
    controller._page = page
    return controller


def test_navigate_returns_rendered_html():
    page = FakePage()
    controller = make_controller(page)

    html = asyncio.run(controller.navigate_and_wait(URL, "main"))

    assert html == "<html><body>ok</body></html>"
    assert page.calls == [
        ("goto", URL),
        ("wait_for_selector", "main", 15000.0),
        ("content",),
    ]


def test_navigation_timeout_becomes_fetch_timeout():
    page = FakePage(errors={"goto": PlaywrightTimeoutError("Timeout 30000ms exceeded")})
    controller = make_controller(page)

    with pytest.raises(FetchTimeout) as excinfo:
        asyncio.run(controller.navigate_and_wait(URL))

    assert excinfo.value.transient is True
    assert excinfo.value.url == URL
    assert excinfo.value.describe() == "FetchTimeout: Timeout 30000ms exceeded"


def test_other_playwright_errors_are_transient_fetch_errors():
    page = FakePage(errors={"goto": PlaywrightError("net::ERR_CONNECTION_RESET")})
    controller = make_controller(page)

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(controller.navigate_and_wait(URL))

    assert not isinstance(excinfo.value, FetchTimeout)
    assert excinfo.value.transient is True
    assert "ERR_CONNECTION_RESET" in excinfo.value.message


def test_selector_timeout_falls_back_to_body():
    page = FakePage(errors={"wait_for_selector:main": PlaywrightTimeoutError("selector timed out")})
    controller = make_controller(page)

    html = asyncio.run(controller.navigate_and_wait(URL, "main"))

    assert html == page.html
    assert page.calls[1:] == [
        ("wait_for_selector", "main", 15000.0),
        ("wait_for_timeout", 2000),
        ("wait_for_selector", "body", 5000.0),
        ("content",),
    ]


def test_body_timeout_after_fallback_is_a_fetch_timeout():
    page = FakePage(
        errors={
            "wait_for_selector:main": PlaywrightTimeoutError("selector timed out"),
            "wait_for_selector:body": PlaywrightTimeoutError("body timed out"),
        }
    )
    controller = make_controller(page)

    with pytest.raises(FetchTimeout, match="body timed out"):
        asyncio.run(controller.navigate_and_wait(URL, "main"))
    assert ("content",) not in page.calls


def test_unstarted_controller_fails_permanently():
    controller = BrowserController(ScraperConfig())

    with pytest.raises(FetchError) as excinfo:
        asyncio.run(controller.navigate_and_wait(URL))

    assert excinfo.value.transient is False


def test_cleanup_closes_browser_once():
    class FakeClosable:
        def __init__(self):
            self.closed = 0

        async def close(self):
            self.closed += 1

        async def stop(self):
            self.closed += 1

    browser, playwright = FakeClosable(), FakeClosable()
    controller = make_controller(FakePage())
    controller._browser = browser
    controller._playwright = playwright

    asyncio.run(controller.cleanup())
    asyncio.run(controller.cleanup())

    assert (browser.closed, playwright.closed) == (1, 1)
    assert controller._page is None


def test_stealth_script_masks_automation_markers():
    assert "'webdriver'" in STEALTH_SCRIPT
    assert "Chrome PDF Plugin" in STEALTH_SCRIPT
    assert "permissions.query" in STEALTH_SCRIPT
    assert "Native Client" in STEALTH_SCRIPT
    assert "hardwareConcurrency" in STEALTH_SCRIPT


def test_run_scraper_releases_browser_when_scraper_raises(tmp_path, monkeypatch):
    events = []

    class FakeController:
        def __init__(self, config):
            self.config = config

        async def __aenter__(self):
            events.append("start")
            return self

        async def __aexit__(self, *exc_info):
            events.append(("cleanup", exc_info[0]))

    async def exploding_run(self, urls=None):
        raise RuntimeError("scraper exploded")

    monkeypatch.setattr(crawler, "BrowserController", FakeController)
    monkeypatch.setattr(crawler.DocsScraper, "run", exploding_run)
    config = ScraperConfig(output_root=tmp_path, download_images=False)

    with pytest.raises(RuntimeError, match="scraper exploded"):
        asyncio.run(crawler.run_scraper(config))

    assert events == ["start", ("cleanup", RuntimeError)]
