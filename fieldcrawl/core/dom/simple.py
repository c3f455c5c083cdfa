"""Browser session over plain HTTP requests, for pages that need no scripting."""

import logging

import requests
from bs4 import BeautifulSoup

from fieldcrawl.core.dom.base import BrowserSession
from fieldcrawl.exceptions import SessionError

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/124.0 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.9',
    'DNT': '1',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1',
}


class SimpleSession(BrowserSession):
    """Static session that fetches markup with requests.

    Scripts are not executed, so clicks and hovers cannot change the page. They
    still report whether the target element exists, letting the crawler flag a
    missing "load more" link the same way a real browser session would.

    Attributes:
        session: Requests session used for connection pooling
        headers: Headers sent with every request

    """

    def __init__(self, headers: dict[str, str] | None = None):
        """Initialize the HTTP session.

        Args:
            headers: Request headers. Defaults to a desktop Chrome profile.

        """
        self.session = requests.Session()
        self.headers = headers or DEFAULT_HEADERS
        self._html = ''
        self._soup: BeautifulSoup | None = None
        self.logger = logging.getLogger(__name__)

    def navigate(self, url: str, timeout: int = 30) -> None:
        try:
            response = self.session.get(url, headers=self.headers, timeout=timeout, allow_redirects=True)
        except requests.RequestException as e:
            raise SessionError(url, str(e)) from e

        self._html = response.text
        self._soup = BeautifulSoup(self._html, 'lxml')

    def _select_one(self, selector: str):
        if self._soup is None:
            return None
        return self._soup.select_one(selector)

    def title(self) -> str:
        if self._soup is None or self._soup.title is None:
            return ''
        return self._soup.title.get_text(strip=True)

    def page_markup(self) -> str:
        return self._html

    def set_implicit_wait(self, wait: int) -> None:
        pass

    def wait_for_selector(self, selector: str, max_wait: int, interval: int) -> bool:
        return self._select_one(selector) is not None

    def click(self, selector: str, max_wait: int = 0, interval: int = 0) -> bool:
        if self._select_one(selector) is None:
            return False
        self.logger.debug(f'Static session cannot click: {selector}')
        return True

    def scroll_by(self, x: int, y: int) -> None:
        pass

    def move_to(self, selector: str) -> bool:
        return self._select_one(selector) is not None

    def close(self) -> None:
        self.session.close()
