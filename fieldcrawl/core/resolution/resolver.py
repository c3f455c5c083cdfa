"""Resolves field rules against a parsed page.

Every lookup returns a ``Resolution`` rather than raising, so optional and
non-optional fields can be treated differently by the caller. Resolution
never modifies the parsed document.
"""

import copy
import logging
import re
from datetime import datetime

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from fieldcrawl.core.resolution.dates import parse_date
from fieldcrawl.core.resolution.values import (
    collapse_whitespace,
    force_protocol,
    format_url,
    transform_value,
)
from fieldcrawl.exceptions import ConfigurationError, ErrorCode
from fieldcrawl.models.fields import Field, FieldSelector, SelectorSource, accepts
from fieldcrawl.models.results import Resolution, first_success

_BLOCK_ANCHORS = ('a', 'div', 'section')
_SCRIPT_CALL = re.compile(r'^\w+\((.+)\);?$', re.DOTALL)
_BACKGROUND_IMAGE = re.compile(r'background-image:(.+?)(?:;|$)', re.DOTALL)
_CSS_URL = re.compile(r'url\((.+)\)', re.DOTALL)
_META_ATTRIBUTES = ('property', 'name', 'itemprop')


def attribute_value(element: Tag, name: str) -> str:
    """Read an attribute as a string, joining multi-valued attributes like class."""
    value = element.get(name)
    if value is None:
        return ''
    if isinstance(value, list):
        return ' '.join(value)
    return value.strip()


def parse_srcset(srcset: str, size: str | None = None) -> str:
    """Pick a URL from a srcset, preferring the given size descriptor.

    Args:
        srcset: The srcset attribute value
        size: Size descriptor to look for, e.g. '800w'

    Returns:
        The URL for the size, or the first candidate URL.

    """
    urls = []
    sizes = {}
    for item in srcset.strip().split(', '):
        url, _, descriptor = item.strip().partition(' ')
        urls.append(url)
        if descriptor:
            sizes[descriptor.strip()] = url
    if size and size in sizes:
        return sizes[size]
    return urls[0] if urls else ''


class FieldResolver:
    """Resolves fields of one page.

    Attributes:
        document: The parsed page, used for metatag lookups
        base_path: Base URL used to make relative links absolute

    """

    def __init__(self, document: BeautifulSoup, base_path: str = ''):
        """Initialize the resolver.

        Args:
            document: The parsed page
            base_path: Base URL of the source site

        """
        self.document = document
        self.base_path = base_path
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_markup(cls, markup: str, base_path: str = '') -> 'FieldResolver':
        return cls(BeautifulSoup(markup, 'lxml'), base_path)

    def select(self, expr: str, root: Tag) -> list[Tag]:
        """Query a sub-tree, treating an invalid selector as a configuration error."""
        try:
            return root.select(expr)
        except SelectorSyntaxError as e:
            raise ConfigurationError(f'Invalid selector [{expr}]: {e}') from e

    def _elements(self, selector: FieldSelector, root: Tag) -> list[Tag]:
        if selector.is_root:
            return [root]
        return self.select(selector.expr, root)

    def metatag(self, value: str) -> str | None:
        """Return the content of the metatag whose property, name or itemprop equals value."""
        for attribute in _META_ATTRIBUTES:
            tag = self.document.find('meta', attrs={attribute: value})
            if tag is not None and attribute_value(tag, 'content'):
                return attribute_value(tag, 'content')
        return None

    def _read(self, selector: FieldSelector, element: Tag) -> str:
        if selector.excludes:
            element = copy.copy(element)
            for child in element.find_all(True):
                if not child.decomposed and any(exclude.matches(child) for exclude in selector.excludes):
                    child.decompose()
        if selector.attribute:
            return attribute_value(element, selector.attribute)
        return collapse_whitespace(element.get_text())

    def _page_value(self, selector: FieldSelector, root: Tag) -> str | None:
        elements = self._elements(selector, root)
        if not elements:
            return None
        if selector.multiple:
            values = [value for value in (self._read(selector, element) for element in elements) if value]
            return selector.separator.join(values)
        return self._read(selector, elements[0])

    def resolve(self, field: Field, root: Tag) -> Resolution[str]:
        """Resolve a text field, returning the first non-empty transformed value.

        Args:
            field: The field rule
            root: Node the selectors are evaluated against

        Returns:
            The resolved value, or a MISSING_ELEM failure.

        """

        def attempt(selector: FieldSelector) -> str | None:
            if selector.source == SelectorSource.META:
                raw = self.metatag(selector.expr)
            else:
                raw = self._page_value(selector, root)
            if not raw:
                return None
            return transform_value(field, raw.strip())

        return first_success(
            field.selectors, attempt, ErrorCode.MISSING_ELEM, f'No value found for field: {field.name}'
        )

    def resolve_date(self, field: Field, root: Tag) -> Resolution[datetime]:
        """Resolve a date field and parse it with the field's date patterns.

        Returns:
            The parsed date, a MISSING_ELEM failure if no text resolved, or a
            PARSE_DATE failure if no pattern fits.

        """
        text = self.resolve(field, root)
        if not text.resolved:
            return Resolution.failure(text.code, text.reason)
        return parse_date(text.value, field.date_patterns)

    def _anchor_value(self, selector: FieldSelector, root: Tag) -> str | None:
        attribute = selector.attribute or 'href'
        elements = self._elements(selector, root)
        if not elements:
            return None

        element = elements[0]
        if element.name in _BLOCK_ANCHORS:
            return attribute_value(element, attribute)
        if element.has_attr(attribute):
            value = attribute_value(element, attribute)
            # eg. onclick="openUrl('https://example.com/post');"
            match = _SCRIPT_CALL.match(value)
            if match:
                value = match.group(1).strip().strip('\'"')
            return value
        return None

    def resolve_anchor(self, field: Field, root: Tag) -> Resolution[str]:
        """Resolve a link field to an absolute URL.

        The matched element is classified as an anchor, a div or section
        carrying the link attribute, or any other element with that attribute.

        Returns:
            The formatted URL, or a MISSING_ANCHOR failure.

        """

        def attempt(selector: FieldSelector) -> str | None:
            if selector.source == SelectorSource.META:
                value = self.metatag(selector.expr)
            else:
                value = self._anchor_value(selector, root)
            if not value:
                return None
            return format_url(self.base_path, value, field.remove_parameters)

        return first_success(
            field.selectors, attempt, ErrorCode.MISSING_ANCHOR, f'No anchor found for field: {field.name}'
        )

    def _image_value(self, field: Field, selector: FieldSelector, root: Tag) -> str | None:
        elements = self._elements(selector, root)
        if not elements:
            return None

        element = elements[0]
        if field.name == 'background-image':
            style = attribute_value(element, 'style')
            match = _BACKGROUND_IMAGE.search(style)
            if not match:
                return None
            url = _CSS_URL.search(match.group(1))
            return re.sub(r'["\']', '', url.group(1)).strip() if url else None
        if selector.attribute:
            return attribute_value(element, selector.attribute)
        if element.has_attr('srcset'):
            return parse_srcset(attribute_value(element, 'srcset'), selector.size)
        return attribute_value(element, 'src')

    def resolve_image(self, field: Field, root: Tag) -> Resolution[str]:
        """Resolve an image field to the URL of the image source.

        Returns:
            The image URL, or a MISSING_IMAGE failure.

        """

        def attempt(selector: FieldSelector) -> str | None:
            if selector.source == SelectorSource.META:
                value = self.metatag(selector.expr)
            else:
                value = self._image_value(field, selector, root)
            if not value:
                return None
            value = format_url(self.base_path, value.replace('../', ''), field.remove_parameters)
            return force_protocol(value, field.force_protocol)

        return first_success(
            field.selectors, attempt, ErrorCode.MISSING_IMAGE, f'No image found for field: {field.name}'
        )

    def validate(self, field: Field, root: Tag) -> bool:
        """Return True if any validator selector matches the node.

        With extractors the extracted value must also be non-empty, and with
        conditions the value must be accepted.
        """
        for selector in field.selectors:
            if not self._elements(selector, root):
                continue
            value = transform_value(field, self._page_value(selector, root) or '')
            if field.extractors and not value:
                continue
            if field.conditions and not accepts(field.conditions, value):
                continue
            return True
        return False
