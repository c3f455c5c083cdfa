"""Crawler for e-books."""

from fieldcrawl.core.crawler.publication import PublicationCrawler
from fieldcrawl.models.content import ContentTeaser, EBookDetails


class EBookCrawler(PublicationCrawler):
    """Crawls e-book listings.

    E-book pages rarely carry a reliable date: an unparseable date is only
    reported, and a missing one always defaults to the start of the current UTC day.
    """

    STRICT_DATES = False
    ALWAYS_DEFAULT_DATE = True

    def create_details(self, teaser: ContentTeaser) -> EBookDetails:
        return EBookDetails.from_teaser(teaser)
