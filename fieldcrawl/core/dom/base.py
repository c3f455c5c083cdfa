"""Abstract browser session used by the crawlers."""

import time
from abc import ABC, abstractmethod


class BrowserSession(ABC):
    """One automated browsing session.

    A session is not safe to share between threads; every crawl owns one and
    must release it with ``close()`` or by using the session as a context manager.
    Durations are milliseconds except ``max_wait``, which is seconds.
    """

    @abstractmethod
    def navigate(self, url: str, timeout: int = 30) -> None:
        """Load a URL, raising SessionError if the browser fails."""

    @abstractmethod
    def title(self) -> str:
        """Return the title of the loaded page."""

    @abstractmethod
    def page_markup(self) -> str:
        """Return the markup of the loaded page as currently rendered."""

    @abstractmethod
    def set_implicit_wait(self, wait: int) -> None:
        """Set how long element lookups wait before giving up."""

    @abstractmethod
    def wait_for_selector(self, selector: str, max_wait: int, interval: int) -> bool:
        """Wait until an element matching the selector is present.

        Returns:
            True if the element appeared within max_wait.

        """

    @abstractmethod
    def click(self, selector: str, max_wait: int = 0, interval: int = 0) -> bool:
        """Click the first element matching the selector.

        When max_wait is positive, waits for the element to become clickable.

        Returns:
            False if no element matches the selector.

        """

    @abstractmethod
    def scroll_by(self, x: int, y: int) -> None:
        """Scroll the window by the given offsets."""

    @abstractmethod
    def move_to(self, selector: str) -> bool:
        """Scroll an element into view and hover over it.

        Returns:
            False if no element matches the selector.

        """

    def sleep(self, duration: int) -> None:
        """Pause for the given number of milliseconds."""
        if duration > 0:
            time.sleep(duration / 1000)

    @abstractmethod
    def close(self) -> None:
        """Release the browser and everything attached to it."""

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
