"""Rule models, content records and result types."""

from fieldcrawl.models.content import (
    ContentAttributes,
    ContentRecord,
    ContentTeaser,
    EBookDetails,
    PublicationDetails,
)
from fieldcrawl.models.events import EventCategory, EventLevel, EventLog, LogEvent
from fieldcrawl.models.fields import (
    ROOT_EXPR,
    ConditionAction,
    Field,
    FieldCondition,
    FieldExclude,
    FieldExtractor,
    FieldFilter,
    Fields,
    FieldSelector,
    FilterResult,
    FilterScope,
    MatchMode,
    SelectorSource,
    TextCase,
)
from fieldcrawl.models.loading import (
    DEFAULT_ERROR_PAGES,
    ContentRequest,
    ErrorPage,
    LoadingPolicy,
    MoreLink,
    PageSection,
    SourceConfig,
)
from fieldcrawl.models.results import CrawlResult, ExtractionFailure, Resolution, first_success

__all__ = [
    'DEFAULT_ERROR_PAGES',
    'ROOT_EXPR',
    'ConditionAction',
    'ContentAttributes',
    'ContentRecord',
    'ContentRequest',
    'ContentTeaser',
    'CrawlResult',
    'EBookDetails',
    'ErrorPage',
    'EventCategory',
    'EventLevel',
    'EventLog',
    'ExtractionFailure',
    'Field',
    'FieldCondition',
    'FieldExclude',
    'FieldExtractor',
    'FieldFilter',
    'FieldSelector',
    'Fields',
    'FilterResult',
    'FilterScope',
    'LoadingPolicy',
    'LogEvent',
    'MatchMode',
    'MoreLink',
    'PageSection',
    'PublicationDetails',
    'Resolution',
    'SelectorSource',
    'SourceConfig',
    'TextCase',
    'first_success',
]
