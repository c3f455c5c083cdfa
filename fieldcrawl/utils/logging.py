"""File logging for crawl runs."""

import logging
from datetime import datetime
from pathlib import Path

from fieldcrawl.utils.files import get_logs_path

PACKAGE_LOGGER = 'fieldcrawl'
LOG_FORMAT = '%(asctime)s - %(threadName)s - %(name)s - %(levelname)s - %(message)s'
# NOTSET would defer to the root logger's level
ALL_LEVEL = 1


def level_number(level: str) -> int:
    """Map a level name such as 'INFO' to its number; 'ALL' logs everything."""
    name = level.upper()
    if name == 'ALL':
        return ALL_LEVEL
    return logging.getLevelNamesMapping().get(name, logging.DEBUG)


def setup_local_logging(level: str = 'DEBUG', logs_dir: Path | None = None) -> Path:
    """Send the package's log records to a timestamped file.

    Only the ``fieldcrawl`` logger is configured, so host applications keep
    their own root logging. A file handler added by an earlier run is
    replaced, which keeps repeated runs in one process from duplicating lines.
    Worker threads are named in each line since sources are crawled in parallel.

    Args:
        level: Logging level (e.g., 'DEBUG', 'INFO', 'ALL'). Defaults to 'DEBUG'.
        logs_dir: Directory of the log file. Defaults to .fieldcrawl/logs/.

    Returns:
        Path: The path to the created log file.

    """
    logs_dir = logs_dir or get_logs_path()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f'crawl_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.FileHandler):
            logger.removeHandler(handler)
            handler.close()

    numeric_level = level_number(level)
    logger.setLevel(numeric_level)
    file_handler = logging.FileHandler(log_file, encoding='utf-8')
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    return log_file
