"""Extraction log events and their sink."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

import logfire

from fieldcrawl.exceptions import ErrorCode


class EventLevel(str, Enum):
    INFO = 'INFO'
    WARN = 'WARN'
    ERROR = 'ERROR'


class EventCategory(str, Enum):
    TEASER = 'TEASER'
    ARTICLE = 'ARTICLE'


@dataclass(frozen=True)
class LogEvent:
    """One classified event raised during a crawl."""

    level: EventLevel
    code: ErrorCode
    category: EventCategory
    message: str
    location: str = ''
    entity: str = ''
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def persist(self) -> bool:
        return self.code.persist

    def to_dict(self) -> dict[str, str]:
        return {
            'level': self.level.value,
            'code': str(self.code),
            'category': self.category.value,
            'message': self.message,
            'location': self.location,
            'entity': self.entity,
            'created_at': self.created_at.isoformat(),
        }


class EventLog:
    """Collects the events of one crawl and mirrors them to logfire.

    Attributes:
        entity: Name of the source being crawled, stamped on each event
        events: Events in the order they were raised

    """

    def __init__(self, entity: str = ''):
        self.entity = entity
        self.events: list[LogEvent] = []

    def add(
        self,
        level: EventLevel,
        code: ErrorCode,
        category: EventCategory,
        message: str,
        location: str = '',
    ) -> LogEvent:
        """Record an event.

        Args:
            level: Severity of the event
            code: Error code classifying it
            category: Whether it came from the listing or the article pass
            message: Human readable description
            location: Field, selector or URL involved

        Returns:
            The recorded event.

        """
        event = LogEvent(level, code, category, message, location, self.entity)
        self.events.append(event)
        attributes = {
            'message': message,
            'code': str(code),
            'category': category.value,
            'location': location,
            'entity': self.entity,
        }
        if level == EventLevel.ERROR:
            logfire.error('{code}: {message}', **attributes)
        elif level == EventLevel.WARN:
            logfire.warn('{code}: {message}', **attributes)
        else:
            logfire.info('{code}: {message}', **attributes)
        return event

    def warn(self, code: ErrorCode, category: EventCategory, message: str, location: str = '') -> LogEvent:
        return self.add(EventLevel.WARN, code, category, message, location)

    def error(self, code: ErrorCode, category: EventCategory, message: str, location: str = '') -> LogEvent:
        return self.add(EventLevel.ERROR, code, category, message, location)

    def info(self, code: ErrorCode, category: EventCategory, message: str, location: str = '') -> LogEvent:
        return self.add(EventLevel.INFO, code, category, message, location)

    def extend(self, events: list[LogEvent]) -> None:
        """Append events recorded by an earlier pass, e.g. from a teaser cache."""
        self.events.extend(events)

    def codes(self) -> list[ErrorCode]:
        return [event.code for event in self.events]

    @property
    def persistent(self) -> list[LogEvent]:
        return [event for event in self.events if event.persist]

    def __len__(self) -> int:
        return len(self.events)
