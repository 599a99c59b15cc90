# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# This module provides wait strategies for API testing: a cooperative delay and
# an exponential-backoff retry wrapper for flaky asynchronous operations.
#
# Key Features:
#   - Classic exponential backoff (delay doubles after each failure)
#   - No jitter and no cap, so wait times are predictable in tests
#   - Cooperative suspension via asyncio (other calls keep running)
#   - The last failure is re-raised unchanged
#
# Usage:
#   response = await retry_with_backoff(lambda: client.get("/posts/1"))
#   response = await retry_with_policy(lambda: client.get("/posts"), config.retry)
#
# ================================================================================

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, TypeVar

from loguru import logger

from .config_loader import RetryPolicy


T = TypeVar("T")


async def delay(ms: float) -> None:
    """Suspend the current task for ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000)


def backoff_delays(max_attempts: int, initial_delay_ms: int) -> List[int]:
    """
    Waits (ms) performed between attempts for a given policy.

    The wait after failed attempt ``n`` (1-indexed) is
    ``initial_delay_ms * 2 ** (n - 1)``; there is no wait after the last one.

    Example:
        >>> backoff_delays(4, 100)
        [100, 200, 400]
    """
    return [initial_delay_ms * 2 ** (attempt - 1) for attempt in range(1, max_attempts)]


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay_ms: int = 1000,
) -> T:
    """
    Run an async operation, retrying failures with exponential backoff.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_attempts: Total number of attempts (>= 1)
        initial_delay_ms: Wait after the first failure in milliseconds

    Returns:
        Result of the first successful attempt

    Raises:
        ValueError: If max_attempts < 1 or initial_delay_ms < 0
        Exception: The exception of the final attempt, unchanged

    Example:
        async def fetch_post():
            return await client.get("/posts/1")

        response = await retry_with_backoff(fetch_post, max_attempts=5, initial_delay_ms=200)
    """
    policy = RetryPolicy(max_attempts=max_attempts, initial_delay_ms=initial_delay_ms)

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == policy.max_attempts:
                logger.error(
                    f"All {policy.max_attempts} attempts failed. Last error: {e!r}"
                )
                raise

            wait_ms = policy.initial_delay_ms * 2 ** (attempt - 1)
            logger.warning(
                f"Attempt {attempt}/{policy.max_attempts} failed: {e!r}. "
                f"Retrying in {wait_ms}ms"
            )
            await delay(wait_ms)

    # Unreachable: the final attempt either returns or raises
    raise AssertionError("retry loop exited without result")


async def retry_with_policy(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
) -> T:
    """Same as retry_with_backoff, with settings taken from a RetryPolicy."""
    return await retry_with_backoff(
        operation,
        max_attempts=policy.max_attempts,
        initial_delay_ms=policy.initial_delay_ms,
    )


__all__ = [
    "backoff_delays",
    "delay",
    "retry_with_backoff",
    "retry_with_policy",
]
