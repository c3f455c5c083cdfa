"""Result types for resolution attempts and whole crawls."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from fieldcrawl.exceptions import ErrorCode
from fieldcrawl.models.content import ContentTeaser, PublicationDetails
from fieldcrawl.models.events import LogEvent

T = TypeVar('T')
A = TypeVar('A')


@dataclass(frozen=True)
class Resolution(Generic[T]):
    """Outcome of one or more resolution attempts: a value or a typed failure.

    Attributes:
        value: The resolved value, None when unresolved
        code: Error code describing why nothing resolved
        reason: Human readable explanation of the failure
        attempt: Index of the attempt that produced the value

    """

    value: T | None = None
    code: ErrorCode = ErrorCode.NONE
    reason: str = ''
    attempt: int = -1

    @property
    def resolved(self) -> bool:
        return self.value is not None

    @classmethod
    def success(cls, value: T, attempt: int = 0) -> 'Resolution[T]':
        return cls(value=value, attempt=attempt)

    @classmethod
    def failure(cls, code: ErrorCode, reason: str) -> 'Resolution[T]':
        return cls(code=code, reason=reason)

    def value_or(self, default: T) -> T:
        return self.value if self.value is not None else default


def first_success(
    attempts: Iterable[A],
    attempt_fn: Callable[[A], T | None],
    code: ErrorCode,
    reason: str,
) -> Resolution[T]:
    """Run ordered attempts and keep the first that produces a usable value.

    An attempt succeeds when it returns something other than None or an empty
    string. Later attempts are never evaluated once one succeeds.

    Args:
        attempts: Ordered inputs, e.g. selectors or date patterns
        attempt_fn: Function trying one input
        code: Error code to report when every attempt fails
        reason: Failure explanation to report when every attempt fails

    Returns:
        A Resolution holding the first value, or the failure.

    """
    for index, attempt in enumerate(attempts):
        value = attempt_fn(attempt)
        if value is not None and value != '':
            return Resolution.success(value, index)
    return Resolution.failure(code, reason)


@dataclass
class ExtractionFailure:
    """A classified failure for one item or one page."""

    code: ErrorCode
    message: str
    location: str = ''

    def to_dict(self) -> dict[str, str]:
        return {'code': str(self.code), 'message': self.message, 'location': self.location}


@dataclass
class CrawlResult:
    """Everything produced by one crawl of one source."""

    source: str
    teasers: list[ContentTeaser] = field(default_factory=list)
    details: list[PublicationDetails] = field(default_factory=list)
    failures: list[ExtractionFailure] = field(default_factory=list)
    events: list[LogEvent] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures
