"""Per-source cache of listing results, passed explicitly to crawlers."""

import logging
import threading
from dataclasses import dataclass, field

from fieldcrawl.models.content import ContentTeaser, PublicationDetails
from fieldcrawl.models.events import LogEvent


@dataclass
class CachedListing:
    """Teasers and events recorded for one listing URL."""

    teasers: list[ContentTeaser] = field(default_factory=list)
    events: list[LogEvent] = field(default_factory=list)


class TeaserIndex:
    """Index of teasers found on listing pages, keyed by source and listing URL.

    One index can be shared by concurrent crawls; access is serialised.
    """

    def __init__(self):
        self._listings: dict[tuple[str, str], CachedListing] = {}
        self._by_url: dict[tuple[str, str], ContentTeaser] = {}
        self._lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def get(self, source: str, url: str) -> CachedListing | None:
        with self._lock:
            return self._listings.get((source, url))

    def put(self, source: str, url: str, teasers: list[ContentTeaser], events: list[LogEvent]) -> None:
        """Record the teasers and events of a listing page.

        Args:
            source: Name of the content source
            url: Listing URL the teasers were found on
            teasers: Accepted teasers in listing order
            events: Events raised while processing the listing

        """
        with self._lock:
            self._listings[(source, url)] = CachedListing(list(teasers), list(events))
            for teaser in teasers:
                if teaser.attributes.url:
                    self._by_url[(source, teaser.attributes.url)] = teaser

    def teaser_for(self, source: str, url: str) -> ContentTeaser | None:
        with self._lock:
            return self._by_url.get((source, url))

    def update(self, source: str, details: PublicationDetails) -> bool:
        """Check a detail record against the teaser it was promoted from.

        Args:
            source: Name of the content source
            details: The extracted detail record

        Returns:
            True if a teaser with the same URL and unique id is indexed.

        """
        teaser = self.teaser_for(source, details.attributes.url)
        if teaser is None:
            return False
        if teaser.unique_id != details.unique_id:
            self.logger.warning(
                f'Unique id mismatch for {details.attributes.url}: '
                f'teaser={teaser.unique_id} details={details.unique_id}'
            )
            return False
        return True

    def clear(self, source: str | None = None) -> None:
        with self._lock:
            if source is None:
                self._listings.clear()
                self._by_url.clear()
                return
            self._listings = {key: value for key, value in self._listings.items() if key[0] != source}
            self._by_url = {key: value for key, value in self._by_url.items() if key[0] != source}

    def __len__(self) -> int:
        with self._lock:
            return len(self._listings)
