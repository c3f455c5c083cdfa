"""Crawler driving listing and article extraction for one content source."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import ClassVar, Generic, TypeVar

import logfire
from bs4 import Tag
from rich.console import Console

from fieldcrawl.core.dom import BrowserSession
from fieldcrawl.core.formatting import BodyFormatter, ContentFormatter
from fieldcrawl.core.resolution import FieldResolver, start_of_day_utc
from fieldcrawl.core.resolution.values import add_anti_cache_parameter
from fieldcrawl.exceptions import ConfigurationError, ErrorCode, ExtractionError, SessionError
from fieldcrawl.models.content import ContentRecord, ContentTeaser, PublicationDetails
from fieldcrawl.models.events import EventCategory, EventLog
from fieldcrawl.models.fields import Field, FieldExclude, Fields
from fieldcrawl.models.loading import (
    DEFAULT_ERROR_PAGES,
    ErrorPage,
    LoadingPolicy,
    PageSection,
    SourceConfig,
    is_error_page,
)
from fieldcrawl.models.results import ExtractionFailure
from fieldcrawl.retry import get_retryer, log_retry
from fieldcrawl.storage import CachedListing, DebugManager, TeaserIndex
from fieldcrawl.utils.console import make_console

D = TypeVar('D', bound=PublicationDetails)

TEASER = EventCategory.TEASER
ARTICLE = EventCategory.ARTICLE


class CrawlStatus(str, Enum):
    NOT_CONNECTED = 'NOT_CONNECTED'
    LOADED = 'LOADED'
    EXTRACTING = 'EXTRACTING'
    DONE = 'DONE'


class WebPageCrawler(ABC, Generic[D]):
    """Crawls one content source: its listing pages, then each item's own page.

    A crawler owns one browser session and runs every page operation on it in
    sequence. Rule sets are only read, so one SourceConfig can back many
    crawlers running in parallel.

    Attributes:
        config: Rule set of the source
        session: Browser session used for every page load
        max_results: Ceiling on accepted teasers, 0 for no ceiling
        formatter: Collaborator turning article markup into body and summary
        teaser_index: Optional listing cache shared between crawls
        error_pages: Title signatures of known error pages
        events: Classified events raised during the crawl
        failures: Classified failures of article extraction
        teasers: Teasers accepted by the last listing pass
        status: Where the crawler is in its load and extract cycle
        error_code: Page-level error of the last load, if any
        last_url: Last URL loaded into the session

    """

    STRICT_DATES: ClassVar[bool] = True
    ALWAYS_DEFAULT_DATE: ClassVar[bool] = False

    def __init__(
        self,
        config: SourceConfig,
        session: BrowserSession,
        max_results: int = 0,
        formatter: ContentFormatter | None = None,
        teaser_index: TeaserIndex | None = None,
        error_pages: tuple[ErrorPage, ...] = DEFAULT_ERROR_PAGES,
        debug: DebugManager | None = None,
        console: Console | None = None,
        retries: int = 3,
        timeout: int = 30,
    ):
        """Initialize the crawler.

        Args:
            config: Rule set of the source
            session: Browser session, owned by the caller
            max_results: Ceiling on accepted teasers. Defaults to 0 (no ceiling).
            formatter: Body formatter. Defaults to BodyFormatter.
            teaser_index: Listing cache. Defaults to None (no caching).
            error_pages: Error page signatures. Defaults to DEFAULT_ERROR_PAGES.
            debug: Debug manager saving loaded pages. Defaults to None.
            console: Rich console instance for formatted output. Defaults to None (creates a themed Console).
            retries: Navigation attempts per page. Defaults to 3.
            timeout: Page load timeout in seconds. Defaults to 30.

        """
        self.config = config
        self.session = session
        self.max_results = max_results
        self.formatter = formatter or BodyFormatter()
        self.teaser_index = teaser_index
        self.error_pages = error_pages
        self.debug = debug
        self.console = console or make_console()
        self.retries = retries
        self.timeout = timeout

        self.events = EventLog(config.name)
        self.failures: list[ExtractionFailure] = []
        self.teasers: list[ContentTeaser] = []
        self.status = CrawlStatus.NOT_CONNECTED
        self.error_code = ErrorCode.NONE
        self.last_url: str | None = None
        self.logger = logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return self.config.name

    # ============================================================================
    # Page loading
    # ============================================================================

    def _navigate(self, url: str) -> None:
        retryer = get_retryer(max_attempts=self.retries, wait_min=1, wait_max=10, log_callback=log_retry)
        for attempt in retryer:
            with attempt:
                self.session.navigate(url, timeout=self.timeout)

    def _load_page(self, url: str, section: PageSection, category: EventCategory) -> bool:
        """Navigate to a page and check it is not an error page.

        Returns:
            False if the loaded page matched an error page signature.

        """
        request = section.request
        if request.anti_cache:
            url = add_anti_cache_parameter(url)
        if request.trailing_slash and not url.endswith('/'):
            url += '/'

        self.error_code = ErrorCode.NONE
        self.logger.info(f'Loading page: {url}')
        self._navigate(url)

        title = self.session.title()
        if is_error_page(title, self.error_pages):
            self.error_code = ErrorCode.ERROR_PAGE
            message = f'Loaded error page: {title}'
            self.logger.error(message)
            self.events.error(ErrorCode.ERROR_PAGE, category, message, url)
            self.console.print(f'[danger]✗ {message}[/danger]')
            return False

        self.logger.info(f'Loaded page: {title}')
        return True

    def _apply_explicit_wait(self, loading: LoadingPolicy) -> None:
        if not loading.has_explicit_wait or loading.selector is None:
            return
        self.logger.debug(
            f'Set explicit wait: max-wait={loading.max_wait} interval={loading.interval} selector={loading.selector}'
        )
        if not self.session.wait_for_selector(loading.selector, loading.max_wait, loading.interval):
            self.logger.warning(f'Explicit wait expired for selector: {loading.selector}')

    def _click_more_link(self, loading: LoadingPolicy, category: EventCategory) -> None:
        more_link = loading.more_link
        if more_link is None:
            return
        for click in range(more_link.count):
            self.logger.debug(f'More link click {click + 1} of {more_link.count}')
            if not self.session.click(more_link.selector, more_link.max_wait, more_link.interval):
                message = f'More link not found: {more_link.selector}'
                self.logger.warning(message)
                self.events.warn(ErrorCode.MISSING_MORE, category, message, more_link.selector)
                return

    def _apply_movement(self, loading: LoadingPolicy, category: EventCategory) -> None:
        if loading.scroll_x or loading.scroll_y:
            self.session.scroll_by(loading.scroll_x, loading.scroll_y)
        if loading.move_to and not self.session.move_to(loading.move_to):
            message = f'Unable to find move to element: {loading.move_to}'
            self.logger.error(message)
            self.events.error(ErrorCode.MISSING_MOVE, category, message, loading.move_to)

    def _loaded(self, url: str, category: EventCategory) -> None:
        self.last_url = url
        self.status = CrawlStatus.LOADED
        if self.debug is not None:
            self.debug.save_page(url, self.session.page_markup(), category.value)

    def load_teaser_page(self, url: str) -> bool:
        """Load a listing page, then click "load more" links and scroll as configured.

        Loading the URL that is already loaded is a no-op.

        Args:
            url: Listing page URL

        Returns:
            False if the page turned out to be an error page.

        """
        if self.status != CrawlStatus.NOT_CONNECTED and url == self.last_url:
            return True

        loading = self.config.teasers.loading
        with logfire.span('load_teaser_page', source=self.name, url=url):
            self.session.set_implicit_wait(loading.wait)
            if not self._load_page(url, self.config.teasers, TEASER):
                return False
            self._apply_explicit_wait(loading)
            self._click_more_link(loading, TEASER)
            self._apply_movement(loading, TEASER)
            self.session.sleep(loading.sleep)

        self._loaded(url, TEASER)
        return True

    def load_article_page(self, url: str) -> bool:
        """Load an article page, scrolling as configured.

        Args:
            url: Article page URL

        Returns:
            False if the page turned out to be an error page.

        """
        if self.status != CrawlStatus.NOT_CONNECTED and url == self.last_url:
            return True

        loading = self.config.articles.loading
        with logfire.span('load_article_page', source=self.name, url=url):
            self.session.set_implicit_wait(loading.wait)
            if not self._load_page(url, self.config.articles, ARTICLE):
                return False
            self._apply_explicit_wait(loading)
            self._apply_movement(loading, ARTICLE)
            self.session.sleep(loading.sleep)

        self._loaded(url, ARTICLE)
        return True

    def _page_resolver(self) -> FieldResolver:
        return FieldResolver.from_markup(self.session.page_markup(), self.config.base_path)

    # ============================================================================
    # Field resolution
    # ============================================================================

    def _text(self, resolver: FieldResolver, field: Field | None, root: Tag) -> str:
        if field is None:
            return ''
        resolution = resolver.resolve(field, root)
        if resolution.resolved:
            return resolution.value
        if not field.optional:
            raise ExtractionError(resolution.code, resolution.reason, field.name)
        return ''

    def _date(
        self, resolver: FieldResolver, field: Field | None, root: Tag, category: EventCategory
    ) -> datetime | None:
        if field is None:
            return None
        resolution = resolver.resolve_date(field, root)
        if resolution.resolved:
            return resolution.value
        if field.optional:
            return None
        if resolution.code == ErrorCode.PARSE_DATE and not self.STRICT_DATES:
            self.logger.warning(resolution.reason)
            self.events.warn(resolution.code, category, resolution.reason, field.name)
            return None
        raise ExtractionError(resolution.code, resolution.reason, field.name)

    def _url(self, resolver: FieldResolver, field: Field | None, root: Tag) -> str:
        if field is None:
            return ''
        resolution = resolver.resolve_anchor(field, root)
        if resolution.resolved:
            return resolution.value
        if not field.optional:
            raise ExtractionError(resolution.code, resolution.reason, field.name)
        return ''

    def _image(
        self,
        resolver: FieldResolver,
        record: ContentRecord,
        fields: Fields,
        root: Tag,
        category: EventCategory,
    ) -> None:
        # A missing image is cosmetic: it is reported but never aborts the item
        missing = []
        for field in (fields.image, fields.background_image):
            if field is None:
                continue
            resolution = resolver.resolve_image(field, root)
            if resolution.resolved:
                record.attributes.set_image_from_path(self.config.image_prefix, resolution.value)
                return
            if not field.optional:
                missing.append((field, resolution))
        for field, resolution in missing:
            self.events.warn(resolution.code, category, resolution.reason, field.name)

    def populate(
        self,
        record: ContentRecord,
        fields: Fields,
        resolver: FieldResolver,
        root: Tag,
        category: EventCategory,
    ) -> None:
        """Resolve the common fields of a group into a record.

        Values already on the record are kept when the group does not declare
        the field or an optional field resolves to nothing.

        Raises:
            ExtractionError: If a non-optional field cannot be resolved.

        """
        attributes = record.attributes
        title = self._text(resolver, fields.title, root)
        if title:
            attributes.title = title

        published_date = self._date(resolver, fields.published_date, root, category)
        if published_date is not None:
            attributes.published_date = published_date

        summary = self._text(resolver, fields.summary, root)
        if summary:
            attributes.summary = summary

        self._image(resolver, record, fields, root, category)

        url = self._url(resolver, fields.url, root)
        if url:
            attributes.set_url(url)

        for name, field in fields.extra.items():
            value = self._text(resolver, field, root)
            if value:
                record.extra[name] = value

    # ============================================================================
    # Listing pass
    # ============================================================================

    def _limit_reached(self) -> bool:
        return self.max_results > 0 and len(self.teasers) >= self.max_results

    def _accept(self, teaser: ContentTeaser, seen: set[str], loading: LoadingPolicy) -> bool:
        if not teaser.valid:
            return False
        if teaser.unique_id in seen:
            self.logger.debug(f'Skipping duplicate teaser: {teaser.unique_id}')
            return False
        if loading.has_keywords and not teaser.matches(loading.keywords):
            self.logger.info(
                f'Skipping article as it does not match keywords: {teaser.title} ({", ".join(loading.keywords)})'
            )
            return False

        seen.add(teaser.unique_id)
        self.teasers.append(teaser)
        return True

    def build_teaser(self, node: Tag, fields: Fields, resolver: FieldResolver) -> ContentTeaser | None:
        """Build a teaser from one listing node.

        The validator runs first; a node failing validation is returned as an
        invalid teaser without resolving any other field.

        Returns:
            The teaser, or None if a non-optional field could not be resolved.

        """
        teaser = ContentTeaser()
        if fields.validator is not None and not resolver.validate(fields.validator, node):
            teaser.attributes.valid = False
            self.events.info(ErrorCode.NONE, TEASER, 'Validation failed for teaser, skipping', fields.root)
            return teaser

        try:
            self.populate(teaser, fields, resolver, node, TEASER)
        except ExtractionError as e:
            self.logger.warning(str(e))
            self.events.warn(e.code, TEASER, e.message, e.location)
            return None
        return teaser

    def _use_cached(self, cached: CachedListing, seen: set[str]) -> None:
        count = 0
        for teaser in cached.teasers:
            if self._limit_reached():
                break
            if teaser.valid and teaser.unique_id not in seen:
                seen.add(teaser.unique_id)
                self.teasers.append(teaser)
                count += 1
        if count > 0:
            self.events.extend(cached.events)
            self.logger.info(f'Retrieved {count} teasers from cache')

    def _extract_teasers(self, seen: set[str]) -> None:
        section = self.config.teasers
        resolver = self._page_resolver()
        self.status = CrawlStatus.EXTRACTING

        for fields in section.fields:
            if self._limit_reached():
                return
            if not fields.has_root:
                self.error_code = ErrorCode.EMPTY_ROOT
                raise ConfigurationError(f'Root empty for {self.name} teasers')

            nodes = resolver.select(fields.root, resolver.document)
            self.logger.info(f'Found {len(nodes)} teasers for selector: {fields.root}')
            for node in nodes:
                if self._limit_reached():
                    return
                teaser = self.build_teaser(node, fields, resolver)
                if teaser is not None:
                    self._accept(teaser, seen, section.loading)

    def process_teasers(self, cache: bool = False) -> list[ContentTeaser]:
        """Run the listing pass over every configured listing URL.

        Teasers are kept in document order, then selector order, then URL
        order. Duplicates by unique id are dropped in favour of the first seen,
        and the pass stops as soon as max_results teasers are accepted.

        Args:
            cache: Store the accepted teasers in the teaser index

        Returns:
            The accepted teasers.

        Raises:
            ExtractionError: If a listing URL is empty.
            ConfigurationError: If a field group has no root selector.

        """
        section = self.config.teasers
        seen: set[str] = set()
        self.teasers = []

        with logfire.span('process_teasers', source=self.name, urls=len(section.request.urls)):
            for url in section.request.urls:
                if not url:
                    self.error_code = ErrorCode.MISSING_URL
                    raise ExtractionError(ErrorCode.MISSING_URL, 'Root empty for teasers', self.name)
                if self._limit_reached():
                    break

                cached = self.teaser_index.get(self.name, url) if self.teaser_index is not None else None
                if cached is not None:
                    self._use_cached(cached, seen)
                    continue

                if not self.load_teaser_page(url):
                    break

                first_teaser, first_event = len(self.teasers), len(self.events)
                self._extract_teasers(seen)
                if cache and self.teaser_index is not None:
                    self.teaser_index.put(
                        self.name, url, self.teasers[first_teaser:], self.events.events[first_event:]
                    )

            if self.error_code == ErrorCode.NONE:
                self.status = CrawlStatus.DONE
            logfire.info('Teasers processed', source=self.name, teasers=len(self.teasers))

        self.console.print(f'[success]✓ {self.name}: {len(self.teasers)} teasers[/success]')
        return self.teasers

    # ============================================================================
    # Article pass
    # ============================================================================

    @abstractmethod
    def create_details(self, teaser: ContentTeaser) -> D:
        """Promote a teaser into an empty detail record of the crawler's type."""

    def _body_fragments(
        self, field: Field, resolver: FieldResolver, root: Tag
    ) -> tuple[list[str], tuple[FieldExclude, ...]]:
        for selector in field.selectors:
            elements = [root] if selector.is_root else resolver.select(selector.expr, root)
            if elements:
                if not selector.multiple:
                    elements = elements[:1]
                return [str(element) for element in elements], selector.excludes
        return [], ()

    def _extract_body(self, details: D, fields: Fields, resolver: FieldResolver, root: Tag) -> None:
        field = fields.body
        if field is None:
            return

        fragments, excludes = self._body_fragments(field, resolver, root)
        body = self.formatter.format_body(fragments, excludes, field.filters) if fragments else ''
        if not body:
            if not field.optional:
                raise ExtractionError(ErrorCode.MISSING_BODY, 'Body not found for article', field.name)
            return

        details.description = body
        if not details.attributes.summary:
            summary = self.formatter.format_summary(fragments, excludes, field.filters)
            if summary:
                details.attributes.summary = summary
            else:
                self.events.warn(ErrorCode.MISSING_SUMMARY, ARTICLE, 'Summary not found for article', field.name)

    def _populate_details(self, details: D, fields: Fields, resolver: FieldResolver, root: Tag) -> None:
        self.populate(details, fields, resolver, root, ARTICLE)
        if fields.author is not None:
            details.author = self._text(resolver, fields.author, root) or details.author
        if details.attributes.published_date is None and (self.ALWAYS_DEFAULT_DATE or fields.published_date is None):
            details.attributes.published_date = start_of_day_utc()
        self._extract_body(details, fields, resolver, root)

    def _extract_details(self, teaser: ContentTeaser, resolver: FieldResolver) -> D:
        """Extract a detail record with the first field group that fully resolves.

        Each matching group fills a fresh record, so a group failing half way
        leaves nothing behind for the next one.

        Raises:
            ConfigurationError: If a field group has no root selector.
            ExtractionError: The last group failure, or MISSING_ROOT if no root matched.

        """
        groups = self.config.articles.fields
        error: ExtractionError | None = None
        for fields in groups:
            if not fields.has_root:
                self.error_code = ErrorCode.EMPTY_ROOT
                self.events.error(ErrorCode.EMPTY_ROOT, ARTICLE, f'Root empty for {self.name} articles', self.name)
                raise ConfigurationError(f'Root empty for {self.name} articles')

            nodes = resolver.select(fields.root, resolver.document)
            if not nodes:
                self.logger.info(f'Root not found for article, trying next: {fields.root}')
                continue

            self.status = CrawlStatus.EXTRACTING
            details = self.create_details(teaser)
            try:
                self._populate_details(details, fields, resolver, nodes[0])
            except ExtractionError as e:
                self.logger.info(f'Field group failed for article, trying next: {fields.root} ({e.message})')
                error = e
                continue
            return details

        if error is not None:
            raise error
        roots = ', '.join(fields.root for fields in groups)
        raise ExtractionError(ErrorCode.MISSING_ROOT, f'Root not found for {self.name} articles', roots)

    def _fail(self, details: D, code: ErrorCode, message: str, location: str, log_event: bool = True) -> None:
        details.error_code = code
        details.error_message = message
        self.failures.append(ExtractionFailure(code, message, location))
        if log_event:
            self.events.error(code, ARTICLE, message, location)
        self.logger.error(f'{code}: {message} [{location}]')
        self.console.print(f'[danger]✗ {message}[/danger]')

    def get_details(self, teaser: ContentTeaser | str) -> D:
        """Run the article pass for one teaser or bare URL.

        The first field group whose root selector matches the page is used.
        Failures are recorded on the returned record rather than raised.

        Args:
            teaser: The teaser to promote, or the article URL

        Returns:
            The detail record, with error_code set if extraction failed.

        Raises:
            ConfigurationError: If a field group has no root selector.

        """
        if isinstance(teaser, str):
            url = teaser
            teaser = ContentTeaser()
            teaser.attributes.set_url(url)

        details = self.create_details(teaser)
        url = details.attributes.url
        with logfire.span('get_details', source=self.name, url=url):
            try:
                if not url:
                    raise ExtractionError(ErrorCode.MISSING_URL, 'No URL for article', details.unique_id)
                if not self.load_article_page(url):
                    self._fail(details, ErrorCode.ERROR_PAGE, f'Loaded error page: {url}', url, log_event=False)
                    return details
                details = self._extract_details(teaser, self._page_resolver())
            except ExtractionError as e:
                self._fail(details, e.code, e.message, e.location or url)
            except SessionError as e:
                self._fail(details, ErrorCode.EXCEPTION, str(e), url)

        if details.failed:
            return details

        self.status = CrawlStatus.DONE
        if self.teaser_index is not None:
            self.teaser_index.update(self.name, details)
        self.console.print(f'  ✓ {details.attributes.title or url}')
        return details

    def crawl(self, cache: bool = False) -> list[D]:
        """Run the listing pass, then the article pass for every accepted teaser."""
        teasers = self.process_teasers(cache=cache)
        return [self.get_details(teaser) for teaser in teasers]
