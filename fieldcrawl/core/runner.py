"""Runs crawls of many sources in parallel.

Each source gets its own worker thread and its own browser session; rule sets
are shared read-only between workers.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import logfire
from rich.console import Console
from rich.table import Table

from fieldcrawl.config import CrawlerConfig
from fieldcrawl.core.crawler import create_crawler
from fieldcrawl.core.dom import BrowserSession, create_session
from fieldcrawl.exceptions import ConfigurationError, ErrorCode, ExtractionError, SessionError
from fieldcrawl.models.loading import SourceConfig
from fieldcrawl.models.results import CrawlResult, ExtractionFailure
from fieldcrawl.storage import DebugManager, TeaserIndex
from fieldcrawl.utils.console import make_console
from fieldcrawl.utils.logging import PACKAGE_LOGGER, level_number, setup_local_logging


@dataclass
class CrawlJob:
    """One source to crawl.

    Attributes:
        source: Rule set of the source
        content_type: Crawler to use ('publication' or 'ebook'). Defaults to 'publication'.
        details: Also run the article pass for each teaser. Defaults to True.
    """

    source: SourceConfig
    content_type: str = 'publication'
    details: bool = True


class CrawlRunner:
    """Runs crawl jobs on a thread pool, one browser session per job.

    Attributes:
        config: Runtime settings
        session_factory: Callable creating a new session for each job
        teaser_index: Listing cache shared by all jobs, if any
        console: Rich console instance for formatted output
        debug: Debug manager saving loaded pages
        logger: Logger instance for detailed run tracking
        log_file: File receiving the package logs, if enabled

    """

    def __init__(
        self,
        config: CrawlerConfig | None = None,
        session_factory: Callable[[], BrowserSession] | None = None,
        teaser_index: TeaserIndex | None = None,
        console: Console | None = None,
    ):
        """Initialize the runner.

        Args:
            config: Runtime settings. Defaults to CrawlerConfig().
            session_factory: Creates a session per job. Defaults to one built from config.
            teaser_index: Listing cache shared by all jobs. Defaults to None.
            console: Rich console instance. Defaults to None (creates a themed Console).

        """
        self.config = config or CrawlerConfig()
        self.session_factory = session_factory or self._default_session
        self.teaser_index = teaser_index
        self.console = console or make_console()
        self.debug = DebugManager(console=self.console, enabled=self.config.debug)
        self.logger = logging.getLogger(__name__)
        self.log_file: Path | None = None
        if self.config.log_file:
            self.log_file = setup_local_logging(self.config.log_level)
            self.logger.info(f'Logging to {self.log_file}')
        else:
            logging.getLogger(PACKAGE_LOGGER).setLevel(level_number(self.config.log_level))

    def _default_session(self) -> BrowserSession:
        if self.config.session_type == 'playwright':
            return create_session('playwright', timeout=self.config.timeout, headless=self.config.headless)
        return create_session('simple')

    def run_job(self, job: CrawlJob) -> CrawlResult:
        """Crawl one source with its own session.

        Extraction, session and unexpected failures are recorded on the result,
        the latter with code EXCEPTION. A configuration error propagates, as
        retrying cannot fix it.

        Args:
            job: The source to crawl

        Returns:
            Teasers, details, failures and events of the crawl.

        """
        result = CrawlResult(source=job.source.name)
        with logfire.span('crawl_source', source=job.source.name, content_type=job.content_type):
            self.logger.info(f'Crawling source: {job.source.name}')
            with self.session_factory() as session:
                crawler = create_crawler(
                    job.content_type,
                    config=job.source,
                    session=session,
                    max_results=self.config.max_results,
                    teaser_index=self.teaser_index,
                    debug=self.debug,
                    console=self.console,
                    retries=self.config.retries,
                    timeout=self.config.timeout,
                )
                try:
                    result.teasers = crawler.process_teasers(cache=self.teaser_index is not None)
                    if job.details:
                        result.details = [crawler.get_details(teaser) for teaser in result.teasers]
                except ExtractionError as e:
                    result.failures.append(ExtractionFailure(e.code, e.message, e.location))
                except SessionError as e:
                    self.logger.exception(f'Browser session failed for {job.source.name}')
                    result.failures.append(ExtractionFailure(ErrorCode.EXCEPTION, str(e), e.url))
                except ConfigurationError:
                    raise
                except Exception as e:
                    self.logger.exception(f'Unexpected failure crawling {job.source.name}')
                    location = crawler.last_url or job.source.name
                    result.failures.append(ExtractionFailure(ErrorCode.EXCEPTION, f'{type(e).__name__}: {e}', location))
                finally:
                    result.failures[:0] = crawler.failures
                    result.events = list(crawler.events.events)
        return result

    def run(self, jobs: list[CrawlJob]) -> list[CrawlResult]:
        """Crawl every job in parallel.

        Args:
            jobs: Sources to crawl

        Returns:
            One result per job, in job order.

        """
        with logfire.span('run_crawls', jobs=len(jobs), workers=self.config.workers):
            with ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix='crawl') as executor:
                futures = [executor.submit(self.run_job, job) for job in jobs]
                results = [future.result() for future in futures]

            logfire.info(
                'Crawls complete',
                total=len(results),
                successful=sum(1 for result in results if result.success),
                failed=sum(1 for result in results if not result.success),
            )
        return results

    def print_summary(self, results: list[CrawlResult]) -> None:
        """Print a table of teasers, details and failures per source."""
        table = Table(title='Crawl Summary')
        table.add_column('Source', style='cyan')
        table.add_column('Teasers', justify='right')
        table.add_column('Details', justify='right')
        table.add_column('Failures', justify='right')

        for result in results:
            failures = str(len(result.failures))
            table.add_row(
                result.source,
                str(len(result.teasers)),
                str(sum(1 for details in result.details if not details.failed)),
                f'[danger]{failures}[/danger]' if result.failures else failures,
            )
        self.console.print(table)
