"""FieldCrawl - rule-driven content extraction.

Describe fields once, crawl listings and articles forever.
"""

from fieldcrawl.config import CrawlerConfig, configure_logfire, load_config_from_env
from fieldcrawl.core.crawler import EBookCrawler, PublicationCrawler, WebPageCrawler, create_crawler
from fieldcrawl.core.dom import BrowserSession, PlaywrightSession, SimpleSession, create_session
from fieldcrawl.core.formatting import BodyFormatter
from fieldcrawl.core.resolution import FieldResolver, format_url, parse_date
from fieldcrawl.core.runner import CrawlJob, CrawlRunner
from fieldcrawl.exceptions import (
    ConfigurationError,
    ErrorCode,
    ErrorPageError,
    ExtractionError,
    FieldCrawlError,
    SessionError,
)
from fieldcrawl.models import (
    ContentTeaser,
    CrawlResult,
    EBookDetails,
    Field,
    Fields,
    FieldSelector,
    LoadingPolicy,
    PageSection,
    PublicationDetails,
    SourceConfig,
)
from fieldcrawl.storage import TeaserIndex
from fieldcrawl.utils import init_fieldcrawl

__all__ = [
    # Crawlers
    'WebPageCrawler',
    'PublicationCrawler',
    'EBookCrawler',
    'create_crawler',
    'CrawlJob',
    'CrawlRunner',
    # Sessions
    'BrowserSession',
    'PlaywrightSession',
    'SimpleSession',
    'create_session',
    # Resolution and formatting
    'FieldResolver',
    'BodyFormatter',
    'format_url',
    'parse_date',
    # Configuration
    'CrawlerConfig',
    'configure_logfire',
    'load_config_from_env',
    'SourceConfig',
    'PageSection',
    'LoadingPolicy',
    'Fields',
    'Field',
    'FieldSelector',
    # Records
    'ContentTeaser',
    'PublicationDetails',
    'EBookDetails',
    'CrawlResult',
    'TeaserIndex',
    # Errors
    'ErrorCode',
    'FieldCrawlError',
    'ConfigurationError',
    'ExtractionError',
    'ErrorPageError',
    'SessionError',
    # Utilities
    'init_fieldcrawl',
]
