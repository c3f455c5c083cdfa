"""Debug output for crawls.

Saves the markup of loaded pages so selectors can be checked offline.
"""

from pathlib import Path
from urllib.parse import urlparse

from rich.console import Console

from fieldcrawl.utils.console import make_console
from fieldcrawl.utils.files import get_debug_path


class DebugManager:
    """Manages debug output for the crawlers.

    Saves loaded page markup when debug mode is enabled.
    """

    def __init__(self, console: Console | None = None, enabled: bool = False):
        """Initialize DebugManager.

        Args:
            console: Rich console instance for output.
            enabled: Whether debug mode is enabled.

        """
        self.console = console or make_console()
        self.enabled = enabled
        self.debug_dir = self._ensure_debug_dir() if enabled else None

    def _ensure_debug_dir(self) -> Path:
        debug_dir = get_debug_path()
        debug_dir.mkdir(parents=True, exist_ok=True)
        return debug_dir

    def _get_safe_filename(self, url: str, suffix: str) -> str:
        """Create a safe filename from URL.

        Args:
            url: The URL to create a filename from.
            suffix: Suffix for the filename (e.g., 'html').

        Returns:
            A safe filename string.

        """
        parsed = urlparse(url)
        safe_path = parsed.path.replace('/', '_')[:50]
        return f'{parsed.netloc}{safe_path}.{suffix}'

    def save_page(self, url: str, markup: str, category: str = '') -> Path | None:
        """Save the markup of a loaded page.

        Args:
            url: URL of the page.
            markup: Page markup as rendered by the browser.
            category: Kind of page, e.g. 'TEASER' or 'ARTICLE'.

        Returns:
            The path written, or None if debug is disabled or the write failed.

        """
        if not self.enabled or not self.debug_dir:
            return None

        filepath = self.debug_dir / self._get_safe_filename(url, 'html')
        try:
            filepath.write_text(
                f'<!-- URL: {url} -->\n<!-- Page: {category} -->\n<!-- Length: {len(markup)} chars -->\n\n{markup}',
                encoding='utf-8',
            )
            self.console.print(f'  [dim]↻ Debug HTML saved to: {filepath}[/dim]')
        except OSError as e:
            self.console.print(f'[warning]Failed to save debug HTML: {e}[/warning]')
            return None
        return filepath
