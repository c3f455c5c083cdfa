import io

import logfire
import pytest
from bs4 import BeautifulSoup

from fieldcrawl.core.dom import BrowserSession
from fieldcrawl.exceptions import SessionError
from fieldcrawl.models import SourceConfig
from fieldcrawl.utils.console import make_console


class FakeSession(BrowserSession):
    """In-memory browser session serving static pages by URL.

    Every call is recorded in ``calls`` so tests can check the loading order.
    """

    def __init__(self, pages: dict[str, str]):
        self.pages = pages
        self.url: str | None = None
        self.visits: list[str] = []
        self.calls: list[tuple] = []
        self.closed = False

    def _soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.page_markup(), 'lxml')

    def _present(self, selector: str) -> bool:
        return self.url is not None and self._soup().select_one(selector) is not None

    def navigate(self, url: str, timeout: int = 30) -> None:
        self.calls.append(('navigate', url))
        if url not in self.pages:
            raise SessionError(url, 'net::ERR_NAME_NOT_RESOLVED')
        self.url = url
        self.visits.append(url)

    def title(self) -> str:
        title = self._soup().title
        return title.get_text(strip=True) if title else ''

    def page_markup(self) -> str:
        return self.pages.get(self.url, '') if self.url else ''

    def set_implicit_wait(self, wait: int) -> None:
        self.calls.append(('implicit_wait', wait))

    def wait_for_selector(self, selector: str, max_wait: int, interval: int) -> bool:
        self.calls.append(('wait_for_selector', selector))
        return self._present(selector)

    def click(self, selector: str, max_wait: int = 0, interval: int = 0) -> bool:
        self.calls.append(('click', selector))
        return self._present(selector)

    def scroll_by(self, x: int, y: int) -> None:
        self.calls.append(('scroll_by', x, y))

    def move_to(self, selector: str) -> bool:
        self.calls.append(('move_to', selector))
        return self._present(selector)

    def sleep(self, duration: int) -> None:
        self.calls.append(('sleep', duration))

    def close(self) -> None:
        self.closed = True


@pytest.fixture(scope='session', autouse=True)
def quiet_logfire():
    logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def console():
    return make_console(file=io.StringIO(), width=120)


@pytest.fixture
def listing_html():
    return """
    <html>
    <head><title>Newsroom</title></head>
    <body>
        <div class="teaser">
            <h2>New AI Tool</h2>
            <a href="/news/ai-tool?utm_source=home">Read more</a>
            <time>2024-05-12</time>
        </div>
        <div class="teaser">
            <h2>Cloud Costs Fall</h2>
            <a href="/news/cloud-costs">Read more</a>
            <time>2024-05-11</time>
        </div>
        <div class="teaser">
            <h2>New AI Tool</h2>
            <a href="/news/ai-tool">Read more</a>
            <time>2024-05-12</time>
        </div>
        <div class="teaser">
            <h2>Quarterly Report</h2>
            <a href="/news/quarterly-report">Read more</a>
            <time>2024-05-10</time>
        </div>
        <button class="more">Load more</button>
    </body>
    </html>
    """


@pytest.fixture
def article_html():
    return """
    <html>
    <head>
        <title>New AI Tool | Example</title>
        <meta property="og:image" content="https://example.com/images/AI-Tool.jpg?w=1200">
    </head>
    <body>
        <article class="post">
            <h1>New AI Tool Launched</h1>
            <span class="author">Jane Doe</span>
            <div class="content">
                <p>The new tool helps teams summarise long documents in seconds, without leaving their editor.</p>
                <h3>How it works</h3>
                <p>It runs entirely in the browser.</p>
                <div class="ad"><p>Advertisement</p></div>
            </div>
        </article>
    </body>
    </html>
    """


@pytest.fixture
def error_html():
    return '<html><head><title>Access Denied</title></head><body><h1>Access Denied</h1></body></html>'


@pytest.fixture
def pages(listing_html, article_html):
    return {
        'https://example.com/news': listing_html,
        'https://example.com/news/ai-tool': article_html,
        'https://example.com/news/cloud-costs': article_html,
        'https://example.com/news/quarterly-report': article_html,
    }


@pytest.fixture
def make_session():
    return FakeSession


@pytest.fixture
def fake_session(pages):
    return FakeSession(pages)


@pytest.fixture
def session_factory(pages):
    """Return a factory creating FakeSessions over the shared pages, keeping every session created."""
    created: list[FakeSession] = []

    def factory() -> FakeSession:
        session = FakeSession(pages)
        created.append(session)
        return session

    factory.created = created
    return factory


@pytest.fixture
def make_source():
    """Return a builder for the example source, with overridable sections."""

    def build(name: str = 'example', teaser_loading=None, teaser_fields=None, article_fields=None, urls=None):
        return SourceConfig.model_validate(
            {
                'name': name,
                'base-path': 'https://example.com',
                'image-prefix': 'example',
                'teasers': {
                    'request': {'urls': urls if urls is not None else ['https://example.com/news']},
                    'loading': teaser_loading or {},
                    'fields': teaser_fields
                    or [
                        {
                            'root': 'div.teaser',
                            'title': 'h2',
                            'url': 'a',
                            'published-date': {'selector': 'time', 'date-patterns': ['yyyy-MM-dd']},
                        }
                    ],
                },
                'articles': {
                    'fields': article_fields
                    or [
                        {
                            'root': 'article.post',
                            'title': 'h1',
                            'author': 'span.author',
                            'image': {'selector': {'source': 'META', 'expr': 'og:image'}},
                            'body': {'selector': {'expr': 'div.content', 'exclude': 'div.ad'}},
                        }
                    ],
                },
            }
        )

    return build


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line('markers', 'integration: marks tests as integration tests')
    config.addinivalue_line('markers', 'unit: marks tests as unit tests')


def pytest_collection_modifyitems(config, items):
    """Apply directory-based marks to collected test items."""

    for item in items:
        # Get the test file path
        if hasattr(item, 'fspath'):
            file_path = str(item.fspath)

            # Add marks based on directory
            if '/tests/integration/' in file_path:
                item.add_marker(pytest.mark.integration)
            elif '/tests/unit/' in file_path:
                item.add_marker(pytest.mark.unit)
