"""Field resolution against parsed pages."""

from fieldcrawl.core.resolution.dates import parse_date, start_of_day_utc, to_strptime
from fieldcrawl.core.resolution.resolver import FieldResolver
from fieldcrawl.core.resolution.values import format_url, transform_value

__all__ = ['FieldResolver', 'format_url', 'parse_date', 'start_of_day_utc', 'to_strptime', 'transform_value']
