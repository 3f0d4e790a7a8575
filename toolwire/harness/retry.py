"""
Retry Logic: Resilience Against Transient Failures.

External fetches fail. Networks drop. This module gives any zero-argument
async operation a bounded number of extra attempts with a fixed pause between
them, so a single hiccup doesn't turn into a failed tool call.

The strategy:
- The first try plus up to ``max_attempts`` retries
- A constant delay between attempts (no exponential growth, no jitter)
- Every failure is logged; only the last one is carried in the final error
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from toolwire.config import RetryConfig
from toolwire.errors import RetryExhaustedError

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_DELAY_MS = 1000


async def delay(ms: float) -> None:
    """Suspend the current task for ``ms`` milliseconds without blocking the loop."""
    await asyncio.sleep(ms / 1000.0)


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay_ms: float = DEFAULT_DELAY_MS,
) -> T:
    """
    Run ``operation`` until it succeeds or the attempts run out.

    Attempt indices run from 0 to ``max_attempts`` inclusive, so the operation
    is invoked at most ``max_attempts + 1`` times. Between a failed attempt and
    the next one the coroutine sleeps for exactly ``delay_ms`` milliseconds.

    Args:
        operation: Zero-argument async callable (use a lambda/closure for args)
        max_attempts: Number of retries after the first try; 0 means one try
        delay_ms: Fixed pause between attempts, in milliseconds

    Returns:
        The result of the first successful attempt

    Raises:
        RetryExhaustedError: every attempt failed; carries the last error
        ValueError: negative ``max_attempts`` or ``delay_ms``
    """
    if max_attempts < 0:
        raise ValueError(f"max_attempts must be >= 0, got {max_attempts}")
    if delay_ms < 0:
        raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")

    last_error: Optional[Exception] = None

    for attempt in range(max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            logger.info(
                "retry.attempt_failed",
                attempt=attempt,
                error_type=type(e).__name__,
                error=str(e)[:200],
            )
            if attempt < max_attempts:
                logger.info("retry.waiting", attempt=attempt, delay_ms=delay_ms)
                await delay(delay_ms)

    logger.warning(
        "retry.exhausted",
        total_attempts=max_attempts,
        error_type=type(last_error).__name__,
        error=str(last_error)[:200],
    )
    raise RetryExhaustedError(max_attempts, last_error) from last_error


async def with_retries(
    operation: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
) -> Any:
    """Run ``operation`` under ``retry_operation`` using a RetryConfig (defaults if omitted)."""
    if config is None:
        config = RetryConfig()
    return await retry_operation(
        operation,
        max_attempts=config.max_attempts,
        delay_ms=config.delay_ms,
    )
