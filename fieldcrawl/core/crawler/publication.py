"""Crawler for publications such as white papers and reports."""

from fieldcrawl.core.crawler.base import WebPageCrawler
from fieldcrawl.models.content import ContentTeaser, PublicationDetails


class PublicationCrawler(WebPageCrawler[PublicationDetails]):
    """Crawls publication listings and promotes each teaser to full details.

    Title, date, image, URL and source-defined extras are copied from the
    teaser; the article page then overrides whatever its field group declares.
    """

    def create_details(self, teaser: ContentTeaser) -> PublicationDetails:
        return PublicationDetails.from_teaser(teaser)
