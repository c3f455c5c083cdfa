"""Content records produced by a crawl.

Records share a ``ContentAttributes`` struct by composition; extraction code
works against the ``ContentRecord`` protocol rather than a class hierarchy.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from fieldcrawl.exceptions import ErrorCode

_IMAGE_URL_PARAM = re.compile(r'(?:image_url|url)=([^&]+)')
_WWW_PREFIX = re.compile(r'^www\..*?\.com-')


@dataclass
class ContentAttributes:
    """Attributes common to every content record."""

    unique_id: str = ''
    title: str = ''
    published_date: datetime | None = None
    summary: str = ''
    image: str = ''
    image_source: str = ''
    url: str = ''
    valid: bool = True

    def set_url(self, url: str) -> None:
        """Set the URL, which also fixes the unique id on first assignment."""
        self.url = url
        if not self.unique_id:
            self.unique_id = url

    def set_image_from_path(self, prefix: str, path: str) -> None:
        """Record an image URL and derive a stable image filename from it.

        Args:
            prefix: Source-specific filename prefix
            path: The resolved image URL

        """
        if not path:
            return
        self.image_source = path
        match = _IMAGE_URL_PARAM.search(path)
        if match:
            path = match.group(1).replace('%2F', '/')
        name = path.split('?')[0].rstrip('/').split('/')[-1].lower()
        name = _WWW_PREFIX.sub('', name)
        if prefix and not name.startswith(f'{prefix}-'):
            name = f'{prefix}-{name}'
        self.image = name

    def to_dict(self) -> dict[str, Any]:
        return {
            'unique_id': self.unique_id,
            'title': self.title,
            'published_date': self.published_date.isoformat() if self.published_date else None,
            'summary': self.summary,
            'image': self.image,
            'image_source': self.image_source,
            'url': self.url,
        }


class ContentRecord(Protocol):
    """What extraction needs from any record."""

    attributes: ContentAttributes
    extra: dict[str, str]


@dataclass
class ContentTeaser:
    """Lightweight record built from a node of a listing page."""

    attributes: ContentAttributes = field(default_factory=ContentAttributes)
    extra: dict[str, str] = field(default_factory=dict)

    @property
    def unique_id(self) -> str:
        return self.attributes.unique_id

    @property
    def title(self) -> str:
        return self.attributes.title

    @property
    def valid(self) -> bool:
        return self.attributes.valid

    def matches(self, keywords: tuple[str, ...] | list[str]) -> bool:
        """Return True if the title contains any keyword, ignoring case."""
        title = self.attributes.title.lower()
        return any(keyword.lower() in title for keyword in keywords)

    def to_dict(self) -> dict[str, Any]:
        return {**self.attributes.to_dict(), **self.extra}


@dataclass
class PublicationDetails:
    """Full record for a publication, built from its teaser and article page."""

    attributes: ContentAttributes = field(default_factory=ContentAttributes)
    description: str = ''
    author: str = ''
    extra: dict[str, str] = field(default_factory=dict)
    error_code: ErrorCode = ErrorCode.NONE
    error_message: str = ''

    @classmethod
    def from_teaser(cls, teaser: ContentTeaser) -> 'PublicationDetails':
        """Promote a teaser, copying its attributes and extras."""
        attributes = ContentAttributes(**vars(teaser.attributes))
        return cls(attributes=attributes, extra=dict(teaser.extra))

    @property
    def unique_id(self) -> str:
        return self.attributes.unique_id

    @property
    def failed(self) -> bool:
        return self.error_code != ErrorCode.NONE

    def to_dict(self) -> dict[str, Any]:
        data = {**self.attributes.to_dict(), 'description': self.description, 'author': self.author, **self.extra}
        if self.failed:
            data['error_code'] = str(self.error_code)
            data['error_message'] = self.error_message
        return data


@dataclass
class EBookDetails(PublicationDetails):
    """Publication details for an e-book."""

    pass
