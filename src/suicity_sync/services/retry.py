"""Retry-with-backoff for rate-limited remote queries."""

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import ParamSpec, TypeVar

from suicity_sync.errors import RateLimited, RetryExhausted

_logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Retry a query on rate limiting, sleeping a fixed backoff between tries.

    Only `RateLimited` is retried. Any other exception propagates on the
    first occurrence. After `max_attempts` rate-limited calls the policy
    raises `RetryExhausted`.
    """

    max_attempts: int = 10
    backoff_seconds: float = 1.5
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def call(
        self,
        func: Callable[P, Awaitable[T]],
        *args: P.args,
        **kwargs: P.kwargs,
    ) -> T:
        """Invoke `func` under the policy."""
        action = getattr(func, "__name__", "query")
        attempt = 0
        while attempt < self.max_attempts:
            attempt += 1
            try:
                return await func(*args, **kwargs)
            except RateLimited:
                _logger.warning(
                    "Rate limited on %s (attempt %s/%s)",
                    action,
                    attempt,
                    self.max_attempts,
                )
                if attempt < self.max_attempts:
                    await self.sleep(self.backoff_seconds)
        raise RetryExhausted(action, attempt)

    def wrap(self, func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        """Decorate `func` so every call goes through the policy."""

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await self.call(func, *args, **kwargs)

        return wrapper
