"""Date parsing with ordered, first-success date patterns.

Patterns use the declarative ``yyyy-MM-dd`` notation and are translated to
``strptime`` directives. The special pattern ``ISO8601`` parses ISO offset
date-times.
"""

import re
from datetime import UTC, datetime

from fieldcrawl.exceptions import ErrorCode
from fieldcrawl.models.results import Resolution, first_success

ISO8601 = 'ISO8601'
DEFAULT_DATE_PATTERNS = (ISO8601, 'yyyy-MM-dd', 'MMMM d, yyyy', 'MMM d, yyyy', 'd MMMM yyyy', 'dd/MM/yyyy')

_ORDINAL = re.compile(r'(?<=\d)( ?st| ?nd| ?rd| ?th)\b', re.IGNORECASE)
_TOKEN = re.compile(r"'[^']*'|([A-Za-z])\1*|%|.", re.DOTALL)

_DIRECTIVES = {
    'yyyy': '%Y',
    'yy': '%y',
    'y': '%Y',
    'MMMM': '%B',
    'MMM': '%b',
    'MM': '%m',
    'M': '%m',
    'dd': '%d',
    'd': '%d',
    'HH': '%H',
    'H': '%H',
    'hh': '%I',
    'h': '%I',
    'mm': '%M',
    'm': '%M',
    'ss': '%S',
    's': '%S',
    'SSS': '%f',
    'a': '%p',
    'EEEE': '%A',
    'EEE': '%a',
    'E': '%a',
    'z': '%Z',
    'Z': '%z',
    'X': '%z',
    'XX': '%z',
    'XXX': '%z',
}


def to_strptime(pattern: str) -> str:
    """Translate a ``dd/MM/yyyy`` style pattern into a strptime format.

    Args:
        pattern: The declarative date pattern

    Returns:
        The equivalent strptime format string.

    Raises:
        ValueError: If the pattern uses a letter with no strptime equivalent.

    """
    parts = []
    for match in _TOKEN.finditer(pattern):
        token = match.group(0)
        if token.startswith("'"):
            parts.append(token[1:-1].replace('%', '%%') or "'")
        elif token == '%':
            parts.append('%%')
        elif token[0].isalpha():
            if token not in _DIRECTIVES:
                raise ValueError(f'Unsupported date pattern letters: {token}')
            parts.append(_DIRECTIVES[token])
        else:
            parts.append(token)
    return ''.join(parts)


def normalise_date_text(value: str) -> str:
    """Strip ordinal suffixes and non-standard month abbreviations."""
    value = value.strip()
    value = _ORDINAL.sub('', value)
    return value.replace('Sept ', 'Sep ')


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_with_pattern(value: str, pattern: str) -> datetime | None:
    """Parse a date string with one pattern.

    Returns:
        A UTC datetime, at the start of the day for date-only patterns, or
        None if the pattern does not fit the value.

    """
    if pattern.startswith(ISO8601):
        try:
            return _as_utc(datetime.fromisoformat(value))
        except ValueError:
            return None

    try:
        parsed = datetime.strptime(value, to_strptime(pattern))
    except ValueError:
        return None
    return _as_utc(parsed)


def parse_date(value: str, patterns: tuple[str, ...] | list[str] = ()) -> Resolution[datetime]:
    """Parse a date string, trying each pattern in order.

    Args:
        value: The raw date text
        patterns: Ordered date patterns, defaults to DEFAULT_DATE_PATTERNS

    Returns:
        The date parsed by the first pattern that fits, or a PARSE_DATE failure.

    """
    text = normalise_date_text(value)
    return first_success(
        patterns or DEFAULT_DATE_PATTERNS,
        lambda pattern: parse_with_pattern(text, pattern),
        ErrorCode.PARSE_DATE,
        f'Unable to parse date [{value}] with patterns {list(patterns or DEFAULT_DATE_PATTERNS)}',
    )


def start_of_day_utc(now: datetime | None = None) -> datetime:
    """Return the start of the current UTC day."""
    now = now or datetime.now(UTC)
    return now.astimezone(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
