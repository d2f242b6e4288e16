"""
Update concurrency limit.

A burst of channel joins fans out into attribution writes, notifications and
reward sends for many inviters at once. The limiter caps how many updates run
their handlers concurrently (MAX_CONCURRENT_UPDATES), which also caps pool
connections in use. Updates beyond the cap wait for a slot; none are dropped.
"""
import asyncio
import logging
from typing import Callable, Awaitable, Dict, Any

from aiogram import BaseMiddleware

logger = logging.getLogger(__name__)


class ConcurrencyLimiterMiddleware(BaseMiddleware):
    """Outer update middleware: at most `limit` handlers in flight."""

    def __init__(self, limit: int):
        super().__init__()
        if limit < 1:
            raise ValueError(f"limit must be >= 1, got {limit}")
        self.limit = limit
        self.in_flight = 0
        self._semaphore = asyncio.Semaphore(limit)
        self._saturated = False

    async def __call__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
        event: Any,
        data: Dict[str, Any],
    ) -> Any:
        if self._semaphore.locked() and not self._saturated:
            # logged once per saturation episode
            self._saturated = True
            logger.warning("UPDATE_CONCURRENCY_SATURATED [limit=%s] updates are queued", self.limit)

        async with self._semaphore:
            self.in_flight += 1
            try:
                return await handler(event, data)
            finally:
                self.in_flight -= 1
                if self._saturated and self.in_flight == 0:
                    self._saturated = False
                    logger.info("UPDATE_CONCURRENCY_RECOVERED [limit=%s]", self.limit)
