"""Formats the markup of an article root into a body or a summary."""

import html
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from fieldcrawl.core.resolution.values import collapse_whitespace
from fieldcrawl.models.fields import FieldExclude, FieldFilter, FilterResult, FilterScope, apply_filters

DEFAULT_MIN_LENGTH = 80
DEFAULT_MAX_LENGTH = 400


class ElementKind(str, Enum):
    TEXT = 'TEXT'
    TITLE = 'TITLE'
    QUOTE = 'QUOTE'
    LIST = 'LIST'


@dataclass
class BodyElement:
    """One paragraph-level piece of an article."""

    kind: ElementKind
    text: str


class ContentFormatter(Protocol):
    """What the detail pipeline needs from a body formatter."""

    def format_body(
        self,
        fragments: list[str],
        excludes: tuple[FieldExclude, ...] = (),
        filters: tuple[FieldFilter, ...] = (),
    ) -> str: ...

    def format_summary(
        self,
        fragments: list[str],
        excludes: tuple[FieldExclude, ...] = (),
        filters: tuple[FieldFilter, ...] = (),
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> str: ...


class BodyFormatter:
    """Default formatter turning article markup into paragraphs.

    Noise such as scripts, forms and hidden elements is dropped, excluded
    elements are skipped, and the remaining text is split into titles,
    paragraphs, quotes and list items.
    """

    NOISE_TAGS = ('script', 'style', 'noscript', 'iframe', 'svg', 'form', 'button')
    LEAF_TAGS = ('p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'blockquote', 'pre', 'li', 'figcaption')
    INLINE_TAGS = (
        'a', 'abbr', 'b', 'br', 'cite', 'code', 'em', 'i', 'mark', 'small', 'span', 'strong', 'sub', 'sup', 'time', 'u'
    )
    STRONG_TAGS = ('strong', 'b')

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def parse(self, fragments: list[str], excludes: tuple[FieldExclude, ...] = ()) -> list[BodyElement]:
        """Split markup fragments into body elements.

        Args:
            fragments: Markup of one or more article roots
            excludes: Elements to leave out

        Returns:
            Body elements in document order.

        """
        elements: list[BodyElement] = []
        for fragment in fragments:
            soup = BeautifulSoup(fragment, 'lxml')
            for tag in soup.find_all(list(self.NOISE_TAGS)):
                tag.decompose()
            for tag in soup.find_all(True):
                if not tag.decomposed and (tag.get('hidden') is not None or tag.get('aria-hidden') == 'true'):
                    tag.decompose()
            buffer: list[str] = []
            self._walk(soup.body or soup, excludes, elements, buffer)
            self._flush(elements, buffer)
        return elements

    def _flush(self, elements: list[BodyElement], buffer: list[str]) -> None:
        text = collapse_whitespace(''.join(buffer))
        buffer.clear()
        if text:
            elements.append(BodyElement(ElementKind.TEXT, text))

    def _walk(self, node: Tag, excludes: tuple[FieldExclude, ...], elements: list[BodyElement], buffer: list[str]):
        for child in node.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                buffer.append(str(child))
                continue
            if not isinstance(child, Tag) or any(exclude.matches(child) for exclude in excludes):
                continue

            if child.name in self.INLINE_TAGS:
                buffer.append(' ' if child.name == 'br' else child.get_text())
            elif child.name in self.LEAF_TAGS:
                self._flush(elements, buffer)
                text = collapse_whitespace(child.get_text())
                if text:
                    elements.append(BodyElement(self._kind(child, text), text))
            else:
                self._flush(elements, buffer)
                self._walk(child, excludes, elements, buffer)
                self._flush(elements, buffer)

    def _kind(self, tag: Tag, text: str) -> ElementKind:
        if tag.name.startswith('h'):
            return ElementKind.TITLE
        if tag.name == 'blockquote':
            return ElementKind.QUOTE
        if tag.name == 'li':
            return ElementKind.LIST
        strong = tag.find(list(self.STRONG_TAGS))
        if strong is not None and collapse_whitespace(strong.get_text()) == text:
            return ElementKind.TITLE
        return ElementKind.TEXT

    def format_body(
        self,
        fragments: list[str],
        excludes: tuple[FieldExclude, ...] = (),
        filters: tuple[FieldFilter, ...] = (),
    ) -> str:
        """Render article markup as simple HTML paragraphs.

        Titles become strong paragraphs and consecutive list items one list.

        Returns:
            The formatted body, or an empty string if nothing usable was found.

        """
        parts: list[str] = []
        in_list = False
        for element in self.parse(fragments, excludes):
            result = apply_filters(filters, element.text, FilterScope.BODY)
            if result == FilterResult.STOP:
                break
            if result == FilterResult.SKIP:
                continue

            text = html.escape(element.text, quote=False)
            if element.kind == ElementKind.LIST:
                if not in_list:
                    parts.append('<ul>')
                    in_list = True
                parts.append(f'<li>{text}</li>')
                continue
            if in_list:
                parts.append('</ul>')
                in_list = False

            if element.kind == ElementKind.TITLE:
                parts.append(f'<p><strong>{text}</strong></p>')
            elif element.kind == ElementKind.QUOTE:
                parts.append(f'<blockquote>{text}</blockquote>')
            else:
                parts.append(f'<p>{text}</p>')

        if in_list:
            parts.append('</ul>')
        return '\n'.join(parts)

    def format_summary(
        self,
        fragments: list[str],
        excludes: tuple[FieldExclude, ...] = (),
        filters: tuple[FieldFilter, ...] = (),
        min_length: int = DEFAULT_MIN_LENGTH,
        max_length: int = DEFAULT_MAX_LENGTH,
    ) -> str:
        """Build a plain text summary from the leading paragraphs.

        Titles, quotes and list items are skipped. Paragraphs are collected
        until the summary exceeds min_length, and cut at a word boundary if it
        grows beyond max_length.

        Returns:
            The summary, or an empty string if nothing usable was found.

        """
        summary = ''
        for element in self.parse(fragments, excludes):
            if element.kind != ElementKind.TEXT:
                continue
            result = apply_filters(filters, element.text, FilterScope.SUMMARY)
            if result == FilterResult.STOP:
                break
            if result == FilterResult.SKIP:
                continue

            summary = f'{summary} {element.text}'.strip()
            if len(summary) > max_length:
                summary = summary[:max_length].rsplit(' ', 1)[0].rstrip(',;:') + '...'
                break
            if len(summary) > min_length:
                break
        return summary
