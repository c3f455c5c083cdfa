"""Crawlers for listing and article pages."""

from fieldcrawl.core.crawler.base import CrawlStatus, WebPageCrawler
from fieldcrawl.core.crawler.ebook import EBookCrawler
from fieldcrawl.core.crawler.publication import PublicationCrawler


def create_crawler(content_type: str = 'publication', **kwargs) -> WebPageCrawler:
    """Create a crawler for a content type.

    Args:
        content_type: Type of content ('publication' or 'ebook')
        **kwargs: Arguments for the crawler

    Returns:
        WebPageCrawler instance

    """
    crawlers: dict[str, type[WebPageCrawler]] = {
        'publication': PublicationCrawler,
        'ebook': EBookCrawler,
    }

    if content_type not in crawlers:
        raise ValueError(f'Unknown content type: {content_type}. Choose from: {list(crawlers.keys())}')

    return crawlers[content_type](**kwargs)


__all__ = ['CrawlStatus', 'EBookCrawler', 'PublicationCrawler', 'WebPageCrawler', 'create_crawler']
