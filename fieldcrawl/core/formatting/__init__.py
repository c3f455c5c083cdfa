"""Body and summary formatting."""

from fieldcrawl.core.formatting.body import BodyElement, BodyFormatter, ContentFormatter, ElementKind

__all__ = ['BodyElement', 'BodyFormatter', 'ContentFormatter', 'ElementKind']
