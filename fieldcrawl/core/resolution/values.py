"""Pure value transforms applied after raw extraction."""

import logging
import re
import time
from datetime import UTC, datetime

from fieldcrawl.models.fields import GROUP_REF, Field, FieldExtractor, MatchMode, TextCase

logger = logging.getLogger(__name__)

_PARENT_PREFIX = '../'


def collapse_whitespace(text: str) -> str:
    return ' '.join(text.split())


def format_properties(now: datetime | None = None) -> dict[str, str]:
    """Return the properties available to extractor formats."""
    now = now or datetime.now(UTC)
    return {
        'current-day': f'{now.day:02d}',
        'current-month': f'{now.month:02d}',
        'current-month-name': now.strftime('%B'),
        'current-year': str(now.year),
    }


def _python_template(template: str, properties: dict[str, str]) -> str:
    """Turn a ``$1 ${current-year}`` style format into a re.sub template."""
    for name, value in properties.items():
        template = template.replace(f'${{{name}}}', value)
    template = template.replace('\\', '\\\\')
    return GROUP_REF.sub(r'\\g<\1>', template)


def apply_text_case(text_case: TextCase, value: str) -> str:
    if text_case == TextCase.LOWER:
        return value.lower()
    if text_case == TextCase.UPPER:
        return value.upper()
    if text_case == TextCase.CAPITALIZE:
        return ' '.join(word.capitalize() for word in value.split(' '))
    return value


def apply_extractor(extractor: FieldExtractor, value: str, properties: dict[str, str] | None = None) -> str:
    """Rewrite a value with one extractor.

    The first (or every, for MatchMode.ALL) match of the pattern is replaced by the
    formatted output. A value the pattern does not match is returned unchanged.

    Args:
        extractor: The extractor to apply
        value: The raw value
        properties: Format properties, defaults to the current date properties

    Returns:
        The transformed value.

    """
    pattern = re.compile(extractor.expr, re.DOTALL)
    if not pattern.search(value):
        logger.warning(f'No match found for pattern [{extractor.expr}]: value=[{value}]')
        return value

    template = _python_template(extractor.format, properties or format_properties())
    count = 0 if extractor.match == MatchMode.ALL else 1
    return pattern.sub(template, value, count=count)


def transform_value(field: Field, value: str) -> str:
    """Apply the field's text case and then each of its extractors in order."""
    value = apply_text_case(field.text_case, value)
    if field.extractors:
        properties = format_properties()
        for extractor in field.extractors:
            value = apply_extractor(extractor, value, properties)
    return value.strip()


def is_relative_url(url: str) -> bool:
    return bool(url) and not url.startswith('http') and not url.startswith('//')


def format_url(base_path: str, url: str, remove_parameters: bool = False) -> str:
    """Normalise a URL and make it absolute against a base path.

    Args:
        base_path: Base URL of the source site
        url: The URL as found on the page
        remove_parameters: Drop the query string and fragment

    Returns:
        The formatted URL.

    """
    url = url.replace(' ', '%20')
    if url.startswith(_PARENT_PREFIX):
        url = url[2:]
    if remove_parameters:
        url = re.sub(r'[?#].*$', '', url, flags=re.DOTALL)
    if len(url) > 3 and url.endswith('/'):
        url = url[:-1]

    prefix = ''
    if base_path and is_relative_url(url):
        prefix = base_path.rstrip('/')
        if not url.startswith('/'):
            prefix += '/'
    elif url.startswith('//'):
        prefix = 'https:'
    return f'{prefix}{url}'


def add_anti_cache_parameter(url: str) -> str:
    separator = '&' if '?' in url else '?'
    return f'{url}{separator}_={int(time.time() * 1000)}'


def force_protocol(url: str, protocol: str | None) -> str:
    """Rewrite the scheme of an absolute URL to the given protocol."""
    if not protocol:
        return url
    return re.sub(r'^https?:', f'{protocol.lower()}:', url)
