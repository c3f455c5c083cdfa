"""Field rule models describing how to locate content attributes on a page.

The models are frozen so a rule set can be loaded once and shared read-only
between concurrent crawls. Every model accepts the declarative kebab-case keys
(``date-patterns``, ``text-case``) as well as the Python field names.
"""

import re
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field as PydanticField, model_validator

from fieldcrawl.exceptions import ConfigurationError

ROOT_EXPR = '<root>'
GROUP_REF = re.compile(r'\$(\d+)')


def _kebab(name: str) -> str:
    return name.replace('_', '-')


class _UpperEnum(str, Enum):
    """Enum whose values can be given in any case."""

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.upper():
                    return member
        return None


class SelectorSource(_UpperEnum):
    PAGE = 'PAGE'
    META = 'META'


class TextCase(_UpperEnum):
    NONE = 'NONE'
    LOWER = 'LOWER'
    UPPER = 'UPPER'
    CAPITALIZE = 'CAPITALIZE'


class MatchMode(_UpperEnum):
    FIRST = 'FIRST'
    ALL = 'ALL'


class FilterScope(_UpperEnum):
    ALL = 'ALL'
    BODY = 'BODY'
    SUMMARY = 'SUMMARY'


class FilterResult(_UpperEnum):
    NONE = 'NONE'
    SKIP = 'SKIP'
    STOP = 'STOP'


class ConditionAction(_UpperEnum):
    ACCEPT = 'ACCEPT'
    REJECT = 'REJECT'


class RuleModel(BaseModel):
    """Base class for immutable rule models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=_kebab)


class ExprRuleModel(RuleModel):
    """Rule model that can be declared as a bare expression string."""

    @model_validator(mode='before')
    @classmethod
    def _from_expr(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {'expr': data}
        return data


def _merge_singular(data: dict, singular: str, plural: str) -> dict:
    """Fold a singular declarative key into its plural list."""
    if singular not in data:
        return data
    data = dict(data)
    value = data.pop(singular)
    existing = list(data.get(plural) or [])
    data[plural] = [value, *existing]
    return data


class FieldExclude(ExprRuleModel):
    """An element to strip out, given as ``tag``, ``tag.class`` or ``tag#id``."""

    expr: str

    @property
    def parts(self) -> tuple[str, str, str]:
        """Return the (tag, class, id) parts of the expression."""
        tag, class_name, element_id = self.expr.strip(), '', ''
        if '#' in tag:
            tag, element_id = tag.split('#', 1)
        elif '.' in tag:
            tag, class_name = tag.split('.', 1)
        return tag, class_name, element_id

    def matches(self, element: Any) -> bool:
        """Return True if a parsed element matches this exclude.

        Args:
            element: A BeautifulSoup Tag (anything with ``name`` and ``get``)

        Returns:
            True if every part given in the expression matches the element.

        """
        tag, class_name, element_id = self.parts
        if not tag and not class_name and not element_id:
            return False
        if tag and tag != element.name:
            return False
        if class_name and class_name not in (element.get('class') or []):
            return False
        return not element_id or element_id == element.get('id')


class FieldFilter(ExprRuleModel):
    """A pattern that skips or stops on paragraphs during body formatting."""

    expr: str
    scope: FilterScope = FilterScope.ALL
    stop: bool = False

    def applies(self, scope: FilterScope) -> bool:
        return self.scope == FilterScope.ALL or self.scope == scope

    def matches(self, text: str) -> bool:
        return bool(self.expr) and re.fullmatch(self.expr, text, re.DOTALL) is not None


def apply_filters(filters: tuple[FieldFilter, ...], text: str, scope: FilterScope) -> FilterResult:
    """Apply a filter list to a paragraph.

    Args:
        filters: Filters configured on the field
        text: Paragraph text to check
        scope: Which output is being built (BODY or SUMMARY)

    Returns:
        STOP if a stopping filter matched, SKIP if any other filter matched, else NONE.

    """
    result = FilterResult.NONE
    for field_filter in filters:
        if field_filter.applies(scope) and field_filter.matches(text):
            if field_filter.stop:
                return FilterResult.STOP
            result = FilterResult.SKIP
    return result


class FieldCondition(ExprRuleModel):
    """Accepts or rejects a resolved value matching a pattern."""

    expr: str
    action: ConditionAction = ConditionAction.ACCEPT

    def matches(self, value: str) -> bool:
        return re.search(self.expr, value, re.DOTALL) is not None


def accepts(conditions: tuple[FieldCondition, ...], value: str) -> bool:
    """Return the decision of the first matching condition, accepting when none match."""
    for condition in conditions:
        if condition.matches(value):
            return condition.action == ConditionAction.ACCEPT
    return True


class FieldExtractor(ExprRuleModel):
    """A regex transform applied to a raw value.

    ``format`` uses ``$n`` group references and the ``${current-day}``,
    ``${current-month}``, ``${current-month-name}`` and ``${current-year}`` properties.
    """

    expr: str
    format: str = '$1'
    match: MatchMode = MatchMode.FIRST

    @model_validator(mode='after')
    def _check_pattern(self) -> 'FieldExtractor':
        try:
            pattern = re.compile(self.expr, re.DOTALL)
        except re.error as e:
            raise ConfigurationError(f'Invalid extractor pattern [{self.expr}]: {e}') from e
        for group in GROUP_REF.findall(self.format):
            if int(group) > pattern.groups:
                raise ConfigurationError(
                    f'Extractor format [{self.format}] refers to group ${group} '
                    f'but pattern [{self.expr}] has {pattern.groups} group(s)'
                )
        return self


class FieldSelector(ExprRuleModel):
    """One lookup strategy for a field."""

    source: SelectorSource = SelectorSource.PAGE
    expr: str = ''
    attribute: str | None = None
    multiple: bool = False
    separator: str = ''
    size: str | None = None
    excludes: tuple[FieldExclude, ...] = ()

    @model_validator(mode='before')
    @classmethod
    def _single_exclude(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return _merge_singular(data, 'exclude', 'excludes')
        return data

    @property
    def is_root(self) -> bool:
        """True when the expression refers to the root node itself."""
        return self.expr.strip() == ROOT_EXPR


class Field(RuleModel):
    """A named logical attribute with an ordered list of selectors."""

    MULTIPLE_BY_DEFAULT: ClassVar[set[str]] = {'body'}

    name: str = ''
    selectors: tuple[FieldSelector, ...] = ()
    extractors: tuple[FieldExtractor, ...] = ()
    text_case: TextCase = TextCase.NONE
    date_patterns: tuple[str, ...] = ()
    filters: tuple[FieldFilter, ...] = ()
    conditions: tuple[FieldCondition, ...] = ()
    remove_parameters: bool = True
    force_protocol: str | None = None
    optional: bool = False

    @model_validator(mode='before')
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        if isinstance(data, str):
            data = {'selectors': [data]}
        if not isinstance(data, dict):
            return data
        for singular, plural in (
            ('selector', 'selectors'),
            ('extractor', 'extractors'),
            ('date-pattern', 'date-patterns'),
            ('filter', 'filters'),
            ('condition', 'conditions'),
        ):
            data = _merge_singular(data, singular, plural)
        if data.get('name') in cls.MULTIPLE_BY_DEFAULT:
            data = dict(data)
            data['selectors'] = [_multiple(selector) for selector in data.get('selectors') or []]
        return data

    @property
    def has_selectors(self) -> bool:
        return len(self.selectors) > 0


def _multiple(selector: Any) -> Any:
    if isinstance(selector, str):
        return {'expr': selector, 'multiple': True}
    if isinstance(selector, dict) and 'multiple' not in selector:
        return {**selector, 'multiple': True}
    return selector


def _named(name: str, value: Any) -> Any:
    if isinstance(value, str):
        return {'name': name, 'selectors': [value]}
    if isinstance(value, dict) and not value.get('name'):
        return {**value, 'name': name}
    if isinstance(value, Field) and not value.name:
        return value.model_copy(update={'name': name})
    return value


class Fields(RuleModel):
    """A group of fields sharing one root selector.

    Field names are the declarative keys (``published-date``); open-ended
    source-defined attributes go in ``extra``.
    """

    FIELD_NAMES: ClassVar[tuple[str, ...]] = (
        'validator',
        'title',
        'published-date',
        'image',
        'background-image',
        'url',
        'body',
        'summary',
        'author',
    )

    name: str = ''
    root: str = ''
    validator: Field | None = None
    title: Field | None = None
    published_date: Field | None = None
    image: Field | None = None
    background_image: Field | None = None
    url: Field | None = None
    body: Field | None = None
    summary: Field | None = None
    author: Field | None = None
    extra: dict[str, Field] = PydanticField(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def _name_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key, value in list(data.items()):
            name = _kebab(key)
            if name in cls.FIELD_NAMES and value is not None:
                data[key] = _named(name, value)
            elif key == 'extra' and isinstance(value, dict):
                data[key] = {extra_name: _named(extra_name, field) for extra_name, field in value.items()}
        return data

    @property
    def has_root(self) -> bool:
        return bool(self.root.strip())

    def field(self, name: str) -> Field | None:
        """Return a declared field by its declarative name.

        Args:
            name: The field name, e.g. 'published-date' or an extra attribute

        Returns:
            The field, or None if the group does not declare it.

        """
        if name in self.FIELD_NAMES:
            return getattr(self, name.replace('-', '_'))
        return self.extra.get(name)

    def has(self, name: str) -> bool:
        return self.field(name) is not None
