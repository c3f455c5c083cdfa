"""Storage components."""

from fieldcrawl.storage.debug import DebugManager
from fieldcrawl.storage.teasers import CachedListing, TeaserIndex

__all__ = ['CachedListing', 'DebugManager', 'TeaserIndex']
