"""Browser session backed by Playwright."""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fieldcrawl.core.dom.base import BrowserSession
from fieldcrawl.exceptions import SessionError


class PlaywrightSession(BrowserSession):
    """Playwright-based session using a real Chromium browser.

    The browser is launched on first navigation, so constructing a session is cheap.
    Handles JavaScript-heavy listing pages, "load more" buttons and hover menus.
    Every driver failure, launch included, is raised as SessionError.
    """

    def __init__(self, timeout: int = 30, headless: bool = True):
        """Initialize Playwright session.

        Args:
            timeout: Default page load timeout in seconds
            headless: Run browser in headless mode

        """
        self.timeout = timeout
        self.headless = headless
        self.url = ''
        self._playwright: Any = None
        self._browser: Any = None
        self._page: Any = None
        self.logger = logging.getLogger(__name__)

    @contextmanager
    def _driver_errors(self, url: str | None = None) -> Iterator[None]:
        from playwright.sync_api import Error as PlaywrightError

        try:
            yield
        except PlaywrightError as e:
            raise SessionError(url or self.url, str(e)) from e

    def _get_page(self) -> Any:
        if self._page is not None:
            return self._page

        try:
            from playwright.sync_api import sync_playwright
        except ImportError as err:
            raise ImportError(
                'Playwright not installed. Install with: pip install playwright && playwright install chromium'
            ) from err

        with self._driver_errors():
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(
                headless=self.headless, args=['--disable-blink-features=AutomationControlled', '--no-sandbox']
            )
            context = self._browser.new_context(
                user_agent='Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
                viewport={'width': 1920, 'height': 1080},
                locale='en-US',
            )
            self._page = context.new_page()
        return self._page

    def navigate(self, url: str, timeout: int = 30) -> None:
        page = self._get_page()
        with self._driver_errors(url):
            page.goto(url, wait_until='domcontentloaded', timeout=(timeout or self.timeout) * 1000)
        self.url = url

    def title(self) -> str:
        page = self._get_page()
        with self._driver_errors():
            return page.title()

    def page_markup(self) -> str:
        page = self._get_page()
        with self._driver_errors():
            return page.content()

    def set_implicit_wait(self, wait: int) -> None:
        if wait > 0:
            self._get_page().set_default_timeout(wait)

    def wait_for_selector(self, selector: str, max_wait: int, interval: int) -> bool:
        """Poll for the selector every ``interval`` ms until ``max_wait`` seconds pass."""
        page = self._get_page()
        deadline = time.monotonic() + max_wait
        with self._driver_errors():
            while True:
                if page.locator(selector).count() > 0:
                    return True
                if time.monotonic() >= deadline:
                    break
                page.wait_for_timeout(interval if interval > 0 else 100)

        self.logger.warning(f'Timed out after {max_wait}s waiting for: {selector}')
        return False

    def click(self, selector: str, max_wait: int = 0, interval: int = 0) -> bool:
        page = self._get_page()
        with self._driver_errors():
            links = page.locator(selector)
            if links.count() == 0:
                return False

            if max_wait > 0:
                # Playwright waits for the element to be visible, stable and enabled
                links.first.click(timeout=max_wait * 1000)
            else:
                links.first.click()
            if interval > 0:
                page.wait_for_timeout(interval)
        return True

    def scroll_by(self, x: int, y: int) -> None:
        page = self._get_page()
        with self._driver_errors():
            page.evaluate('([x, y]) => window.scrollBy(x, y)', [x, y])

    def move_to(self, selector: str) -> bool:
        page = self._get_page()
        with self._driver_errors():
            elements = page.locator(selector)
            if elements.count() == 0:
                return False

            elements.first.scroll_into_view_if_needed()
            page.wait_for_timeout(500)
            elements.first.hover()
        return True

    def close(self) -> None:
        if self._browser is not None:
            self._browser.close()
        if self._playwright is not None:
            self._playwright.stop()
        self._page = None
        self._browser = None
        self._playwright = None
