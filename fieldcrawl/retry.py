"""Retry policies for browser navigation.

Navigation is the only step retried; rule and configuration failures are not.
"""

from collections.abc import Callable
from typing import Any

import logfire
from tenacity import (
    BaseRetrying,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fieldcrawl.exceptions import SessionError


def get_retryer(
    max_attempts: int = 3,
    wait_min: float = 1.0,
    wait_max: float = 10.0,
    wait_multiplier: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (SessionError,),
    log_callback: Callable[[Any], None] | None = None,
    reraise: bool = True,
) -> BaseRetrying:
    """Create a tenacity Retrying object for session operations.

    Args:
        max_attempts: Maximum number of attempts, including the first.
        wait_min: Minimum wait time between attempts in seconds.
        wait_max: Maximum wait time between attempts in seconds.
        wait_multiplier: Multiplier for exponential backoff.
        exceptions: Exception types that trigger another attempt.
        log_callback: Optional before_sleep callback receiving the retry state.
        reraise: Whether to reraise the last exception once attempts run out.

    Returns:
        A configured tenacity.Retrying object.

    """
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=wait_multiplier, min=wait_min, max=wait_max),
        retry=retry_if_exception_type(exceptions),
        before_sleep=log_callback,
        reraise=reraise,
    )


def log_retry(retry_state: Any) -> None:
    """Log a retried navigation attempt with logfire.

    Args:
        retry_state: The tenacity retry state object.

    """
    exception = retry_state.outcome.exception()
    attempt = retry_state.attempt_number
    logfire.warn('Retrying navigation', attempt=attempt, error=str(exception) if exception else 'Unknown error')
