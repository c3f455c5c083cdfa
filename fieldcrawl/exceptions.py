"""Custom exceptions and the extraction error taxonomy for fieldcrawl."""

from enum import Enum


class ErrorCode(Enum):
    """Closed set of extraction failure kinds.

    Each member carries a ``persist`` flag telling the reporting layer whether the
    failure deserves operator review or is routine.
    """

    NONE = ('E_NONE', False)
    ERROR_PAGE = ('E_ERROR_PAGE', False)
    MISSING_URL = ('E_MISSING_URL', True)
    MISSING_ROOT = ('E_MISSING_ROOT', True)
    EMPTY_ROOT = ('E_EMPTY_ROOT', True)
    MISSING_BODY = ('E_MISSING_BODY', True)
    MISSING_SUMMARY = ('E_MISSING_SUMMARY', True)
    MISSING_ANCHOR = ('E_MISSING_ANCHOR', True)
    MISSING_ELEM = ('E_MISSING_ELEM', True)
    MISSING_IMAGE = ('E_MISSING_IMAGE', False)
    PARSE_DATE = ('E_PARSE_DATE', True)
    MISSING_MORE = ('E_MISSING_MORE', True)
    MISSING_MOVE = ('E_MISSING_MOVE', True)
    MISSING_SOURCE = ('E_MISSING_SOURCE', True)
    EXCEPTION = ('E_EXCEPTION', True)

    def __init__(self, code: str, persist: bool):
        self.code = code
        self.persist = persist

    def __str__(self) -> str:
        return self.code


class FieldCrawlError(Exception):
    """Base class for all fieldcrawl exceptions."""

    pass


class ConfigurationError(FieldCrawlError):
    """Raised when a rule set or runtime setting is unusable.

    These are programming or configuration mistakes, so they are never retried.
    """

    pass


class ExtractionError(FieldCrawlError):
    """Raised when a non-optional extraction step fails."""

    def __init__(self, code: ErrorCode, message: str, location: str = ''):
        """Initialize extraction error with its classification.

        Args:
            code: The error code classifying the failure
            message: Human readable description
            location: Where the failure happened (field name, URL or selector)

        """
        self.code = code
        self.message = message
        self.location = location
        detail = f' [{location}]' if location else ''
        super().__init__(f'{code}: {message}{detail}')


class ErrorPageError(ExtractionError):
    """Raised when a loaded page matches a known error page signature."""

    def __init__(self, url: str, title: str):
        """Initialize error page error.

        Args:
            url: URL of the page that was loaded
            title: Title of the loaded page

        """
        self.url = url
        self.title = title
        super().__init__(ErrorCode.ERROR_PAGE, f'Error page found: {title}', url)


class SessionError(FieldCrawlError):
    """Raised when the browser session fails underneath the crawler."""

    def __init__(self, url: str, reason: str):
        """Initialize session error.

        Args:
            url: URL being processed when the session failed
            reason: The underlying failure

        """
        self.url = url
        self.reason = reason
        super().__init__(f'Browser session failed on {url}: {reason}')
