"""
Async retry utility for transient infrastructure failures.

Used around database pool creation and connectivity probes only.
Delivery and attribution are never retried here: a failed reward delivery
stays unclaimed and is picked up by the next dispatch pass instead.

Retry policy:
- Exponential backoff with jitter
- Only transient errors are retried (connection resets, timeouts, Postgres errors)
- Domain errors are raised immediately
- The original exception is preserved on final failure
- No logging inside the utility (caller handles logging)
"""

import asyncio
import random
from typing import Any, Callable, Tuple, Type

import asyncpg


DEFAULT_RETRIES = 2
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0


TRANSIENT_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    asyncpg.PostgresError,
    asyncio.TimeoutError,
    ConnectionError,
    OSError,
)


async def retry_async(
    fn: Callable[[], Any],
    *,
    retries: int = DEFAULT_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    retry_on: Tuple[Type[Exception], ...] = TRANSIENT_EXCEPTIONS,
) -> Any:
    """
    Retry an async callable with exponential backoff.

    Args:
        fn: Callable returning an awaitable
        retries: Number of retry attempts (total attempts = retries + 1)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        retry_on: Exception types considered transient

    Returns:
        Result of the awaited call

    Raises:
        The last exception once retries are exhausted; non-retryable
        exceptions immediately.
    """
    for attempt in range(retries + 1):
        try:
            return await fn()
        except retry_on:
            if attempt >= retries:
                raise
            delay = min(base_delay * (2 ** attempt), max_delay)
            # ±20% jitter
            jitter = delay * 0.2 * (random.random() * 2 - 1)
            await asyncio.sleep(max(0.0, delay + jitter))

    raise RuntimeError("retry_async: unexpected end of retry loop")
