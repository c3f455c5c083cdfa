"""Loading policy models for listing and article pages.

Durations follow the browser driver conventions: ``wait``, ``sleep`` and
``interval`` are milliseconds, ``max_wait`` is seconds.
"""

from typing import Any

from pydantic import field_validator, model_validator

from fieldcrawl.models.fields import Fields, RuleModel


class MoreLink(RuleModel):
    """Click policy for a "load more" button."""

    selector: str
    count: int = 1
    interval: int = 500
    max_wait: int = 0

    @model_validator(mode='before')
    @classmethod
    def _from_selector(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {'selector': data}
        return data


class LoadingPolicy(RuleModel):
    """How a page is loaded before extraction."""

    wait: int = 0
    sleep: int = 0
    selector: str | None = None
    interval: int = 0
    max_wait: int = 0
    keywords: tuple[str, ...] = ()
    scroll_x: int = 0
    scroll_y: int = 0
    move_to: str | None = None
    more_link: MoreLink | None = None

    @field_validator('keywords', mode='before')
    @classmethod
    def _split_keywords(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(',')
        if isinstance(value, list | tuple):
            return tuple(keyword.strip().lower() for keyword in value if keyword.strip())
        return value

    @property
    def has_keywords(self) -> bool:
        return len(self.keywords) > 0

    @property
    def has_explicit_wait(self) -> bool:
        return bool(self.selector) and self.max_wait > 0


class ContentRequest(RuleModel):
    """The URLs to load and how to request them."""

    urls: tuple[str, ...] = ()
    anti_cache: bool = False
    trailing_slash: bool = False

    @model_validator(mode='before')
    @classmethod
    def _single_url(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {'urls': [data]}
        if isinstance(data, dict) and 'url' in data:
            data = dict(data)
            data['urls'] = [data.pop('url'), *(data.get('urls') or [])]
        return data


class PageSection(RuleModel):
    """Request, loading policy and field groups for one kind of page."""

    request: ContentRequest = ContentRequest()
    loading: LoadingPolicy = LoadingPolicy()
    fields: tuple[Fields, ...] = ()


class SourceConfig(RuleModel):
    """The full rule set for one content source.

    ``teasers`` describes the listing pages and ``articles`` the detail pages.
    """

    name: str
    base_path: str = ''
    image_prefix: str = ''
    teasers: PageSection = PageSection()
    articles: PageSection = PageSection()


class ErrorPage(RuleModel):
    """Signature of a known error page, matched on the start of the page title."""

    name: str
    title: str
    type: str = ''
    status: int | None = None

    def matches(self, page_title: str | None) -> bool:
        return bool(page_title) and bool(self.title) and page_title.startswith(self.title)


DEFAULT_ERROR_PAGES = (
    ErrorPage(name='access-denied', title='Access Denied', type='BLOCKED', status=403),
    ErrorPage(name='forbidden', title='403 Forbidden', type='BLOCKED', status=403),
    ErrorPage(name='attention-required', title='Attention Required!', type='CHALLENGE', status=403),
    ErrorPage(name='just-a-moment', title='Just a moment...', type='CHALLENGE', status=503),
    ErrorPage(name='rate-limited', title='Too Many Requests', type='RATE_LIMIT', status=429),
    ErrorPage(name='not-found', title='404 Not Found', type='NOT_FOUND', status=404),
    ErrorPage(name='page-not-found', title='Page Not Found', type='NOT_FOUND', status=404),
    ErrorPage(name='service-unavailable', title='503 Service Unavailable', type='UNAVAILABLE', status=503),
)


def is_error_page(title: str | None, error_pages: tuple[ErrorPage, ...] = DEFAULT_ERROR_PAGES) -> bool:
    return any(error_page.matches(title) for error_page in error_pages)
