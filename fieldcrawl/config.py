"""Runtime settings for crawl runs, loadable from the environment."""

import os
from dataclasses import dataclass

import logfire
from dotenv import load_dotenv

from fieldcrawl.exceptions import ConfigurationError

SESSION_TYPES = ('playwright', 'simple')
LOG_LEVELS = ('ALL', 'DEBUG', 'INFO', 'WARNING', 'ERROR')


@dataclass
class CrawlerConfig:
    """Settings of a crawl run that are not part of a source's rule set.

    Attributes:
        session_type: Browser session to use ('playwright' or 'simple'). Defaults to 'playwright'.
        headless: Run the browser without a window. Defaults to True.
        timeout: Page load timeout in seconds. Defaults to 30.
        max_results: Ceiling on teasers per source, 0 for none. Defaults to 0.
        retries: Navigation attempts per page. Defaults to 3.
        workers: Sources crawled in parallel. Defaults to 4.
        debug: Save loaded pages under .fieldcrawl/debug_html. Defaults to False.
        log_file: Write package logs to .fieldcrawl/logs. Defaults to False.
        log_level: Level of the package loggers and log file. Defaults to 'INFO'.
        logfire_token: Token for sending spans to logfire. Defaults to None.
    """

    session_type: str = 'playwright'
    headless: bool = True
    timeout: int = 30
    max_results: int = 0
    retries: int = 3
    workers: int = 4
    debug: bool = False
    log_file: bool = False
    log_level: str = 'INFO'
    logfire_token: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization.

        Raises:
            ConfigurationError: If a setting is out of range.
        """
        if self.session_type not in SESSION_TYPES:
            raise ConfigurationError(f'Unknown session type: {self.session_type}. Choose from: {list(SESSION_TYPES)}')
        if self.timeout <= 0:
            raise ConfigurationError(f'Timeout must be positive, got {self.timeout}')
        if self.max_results < 0:
            raise ConfigurationError(f'Max results cannot be negative, got {self.max_results}')
        if self.retries < 1:
            raise ConfigurationError(f'Retries must be at least 1, got {self.retries}')
        if self.workers < 1:
            raise ConfigurationError(f'Workers must be at least 1, got {self.workers}')
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f'Unknown log level: {self.log_level}. Choose from: {list(LOG_LEVELS)}')


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError as err:
        raise ConfigurationError(f'{name} must be an integer, got {value!r}') from err


def load_config_from_env(dotenv_path: str | None = None) -> CrawlerConfig:
    """Build a CrawlerConfig from FIELDCRAWL_* environment variables.

    Variables from a .env file are loaded first without overriding the
    environment.

    Args:
        dotenv_path: Path to a .env file. Defaults to None (search upwards).

    Returns:
        The validated configuration.

    Raises:
        ConfigurationError: If a variable has an invalid value.

    """
    load_dotenv(dotenv_path)

    return CrawlerConfig(
        session_type=os.getenv('FIELDCRAWL_SESSION', 'playwright'),
        headless=_env_bool('FIELDCRAWL_HEADLESS', True),
        timeout=_env_int('FIELDCRAWL_TIMEOUT', 30),
        max_results=_env_int('FIELDCRAWL_MAX_RESULTS', 0),
        retries=_env_int('FIELDCRAWL_RETRIES', 3),
        workers=_env_int('FIELDCRAWL_WORKERS', 4),
        debug=_env_bool('FIELDCRAWL_DEBUG', False),
        log_file=_env_bool('FIELDCRAWL_LOG_FILE', False),
        log_level=os.getenv('FIELDCRAWL_LOG_LEVEL', 'INFO'),
        logfire_token=os.getenv('LOGFIRE_TOKEN') or None,
    )


def configure_logfire(config: CrawlerConfig) -> bool:
    """Configure logfire when a token is available.

    Returns:
        True if logfire was configured to send data.

    """
    if not config.logfire_token:
        logfire.configure(send_to_logfire=False, console=False)
        return False
    logfire.configure(token=config.logfire_token, service_name='fieldcrawl')
    return True
