"""Backoff policy and failure classification.

This module provides:
- backoff_delay: pure exponential backoff, capped at a maximum
- is_eligible: whether a record may be attempted at a given time
- is_permanent_failure: tells validation rejections apart from transient errors
- describe_error: human readable reason stored on the record
"""

from __future__ import annotations

import logging

import httpx

from orderqueue.client.api import APIError, RejectedError
from orderqueue.client.queue.types import PendingMutation

logger = logging.getLogger(__name__)

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INITIAL_BACKOFF = 1.0  # seconds
DEFAULT_MAX_BACKOFF = 60.0  # seconds
DEFAULT_BACKOFF_MULTIPLIER = 2.0

# Exponent cap; 2**64 seconds is far past any sane max_delay
_MAX_EXPONENT = 64

# Network-related exceptions that indicate connectivity issues
NETWORK_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
)


def backoff_delay(
    attempt_count: int,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
) -> float:
    """Seconds to wait after ``attempt_count`` failed attempts.

    ``min(initial_backoff * multiplier ** attempt_count, max_backoff)``,
    so with the defaults: 1, 2, 4, 8, 16, 32, 60, 60, ...

    Args:
        attempt_count: Number of attempts that already failed.
        initial_backoff: Delay for attempt_count == 0.
        max_backoff: Upper bound.
        backoff_multiplier: Growth factor per attempt.

    Returns:
        Delay in seconds.
    """
    if attempt_count < 0:
        raise ValueError("attempt_count must not be negative")
    exponent = min(attempt_count, _MAX_EXPONENT)
    return min(initial_backoff * backoff_multiplier**exponent, max_backoff)


def is_eligible(
    record: PendingMutation,
    now: float,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF,
    max_backoff: float = DEFAULT_MAX_BACKOFF,
) -> bool:
    """Check whether a record may be attempted at ``now``.

    Dead-lettered records are never eligible. A record that was never tried
    is always eligible; otherwise its backoff window must have elapsed.
    """
    if record.is_dead_lettered(max_attempts):
        return False
    if record.last_attempt_at is None:
        return True
    wait = backoff_delay(record.attempt_count, initial_backoff, max_backoff)
    return now - record.last_attempt_at >= wait


def is_permanent_failure(exc: BaseException) -> bool:
    """Check whether retrying ``exc`` can never succeed.

    Only explicit rejections by the order store (validation or business rule
    errors) are permanent. Network errors, timeouts, throttling and 5xx
    responses are transient.
    """
    return isinstance(exc, RejectedError)


def describe_error(exc: BaseException) -> str:
    """Build the human readable reason stored in ``last_error``."""
    if isinstance(exc, NETWORK_EXCEPTIONS):
        return f"Network error: {exc}" if str(exc) else "Network error"
    if isinstance(exc, APIError) and exc.status_code is not None:
        return f"HTTP {exc.status_code}: {exc}"
    message = str(exc)
    return message or type(exc).__name__
