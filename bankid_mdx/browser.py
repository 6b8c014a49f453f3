"""Playwright-backed page rendering."""

from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import DEFAULT_CONTENT_SELECTOR, ScraperConfig
from .errors import FetchError, FetchTimeout

logger = logging.getLogger("bankid_mdx")

LAUNCH_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]

EXTRA_HTTP_HEADERS = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,"
        "image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9,sv;q=0.8",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en', 'sv']});
Object.defineProperty(navigator, 'plugins', {
  get: () => [
    {
      0: {type: 'application/x-google-chrome-pdf', suffixes: 'pdf', description: 'Portable Document Format'},
      description: 'Portable Document Format',
      filename: 'internal-pdf-viewer',
      length: 1,
      name: 'Chrome PDF Plugin'
    },
    {
      0: {type: 'application/pdf', suffixes: 'pdf', description: 'Portable Document Format'},
      description: 'Portable Document Format',
      filename: 'mhjfbmdgcfjbbpaeojofohoefgiehjai',
      length: 1,
      name: 'Chrome PDF Viewer'
    },
    {
      0: {type: 'application/x-nacl', suffixes: '', description: 'Native Client Executable'},
      1: {type: 'application/x-pnacl', suffixes: '', description: 'Portable Native Client Executable'},
      description: '',
      filename: 'internal-nacl-plugin',
      length: 2,
      name: 'Native Client'
    }
  ]
});
if (!window.chrome) { window.chrome = {runtime: {}}; }
const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) => (
  parameters.name === 'notifications'
    ? Promise.resolve({state: Notification.permission})
    : originalQuery(parameters)
);
Object.defineProperty(navigator, 'connection', {
  get: () => ({downlink: 10, effectiveType: '4g', rtt: 50, saveData: false})
});
Object.defineProperty(navigator, 'deviceMemory', {get: () => 8});
Object.defineProperty(navigator, 'hardwareConcurrency', {get: () => 8});
window.navigator.permissions.query.toString = new Proxy(
  window.navigator.permissions.query.toString,
  {apply: () => 'function query() { [native code] }'}
);
"""


class BrowserController:
    """A single long-lived Chromium page used for every fetch in a run."""

    def __init__(self, config: ScraperConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None

    async def start(self) -> None:
        logger.info("Starting Chromium (%s)", "headless" if self.config.headless else "headed")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=LAUNCH_ARGS,
        )
        context = await self._browser.new_context(
            user_agent=self.config.user_agent,
            viewport={"width": 1920, "height": 1080},
            locale="en-US",
            timezone_id="Europe/Stockholm",
            extra_http_headers=EXTRA_HTTP_HEADERS,
        )
        await context.add_init_script(STEALTH_SCRIPT)
        self._page = await context.new_page()
        self._page.set_default_navigation_timeout(self.config.navigation_timeout * 1000)

    async def navigate_and_wait(self, url: str, selector: str = DEFAULT_CONTENT_SELECTOR) -> str:
        """Load ``url``, wait for ``selector`` to be visible and return the rendered HTML."""
        if self._page is None:
            raise FetchError(url, "browser has not been started", transient=False)
        page = self._page
        try:
            await page.goto(url, wait_until="networkidle")
            try:
                await page.wait_for_selector(
                    selector,
                    state="visible",
                    timeout=self.config.selector_timeout * 1000,
                )
            except PlaywrightTimeoutError:
                logger.debug("Selector %r did not appear on %s; waiting for body", selector, url)
                await page.wait_for_timeout(int(self.config.fallback_wait * 1000))
                await page.wait_for_selector(
                    "body",
                    state="visible",
                    timeout=self.config.fallback_timeout * 1000,
                )
            return await page.content()
        except PlaywrightTimeoutError as exc:
            raise FetchTimeout(url, str(exc)) from exc
        except PlaywrightError as exc:
            raise FetchError(url, str(exc)) from exc

    async def cleanup(self) -> None:
        """Close the browser and stop Playwright; safe to call more than once."""
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        self._page = None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()

    async def __aenter__(self) -> "BrowserController":
        try:
            await self.start()
        except BaseException:
            await self.cleanup()
            raise
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.cleanup()
