"""Exponential backoff for upstream calls.

Used by the completion client (Azure OpenAI) and by the gateway's
completion relay.  ``max_retries`` bounds the total number of attempts:
with ``max_retries=3`` a call is tried at most three times.

Example:
    >>> from glossary.core.retry import ExponentialBackoff
    >>>
    >>> strategy = ExponentialBackoff(max_retries=3, base_delay=0.5)
    >>> [strategy.next_delay(a) for a in range(3)]
    [0.5, 1.0, 2.0]
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass
class ExponentialBackoff:
    """Exponential backoff.

    Delay = min(base_delay * (multiplier ** attempt), max_delay)

    Attributes:
        max_retries: Maximum number of attempts in total
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        multiplier: Exponential multiplier (default: 2)
        retry_on: Predicate classifying an error as retryable (None = all)
    """

    max_retries: int = 3
    base_delay: float = 0.5
    max_delay: float = 30.0
    multiplier: float = 2.0
    retry_on: Callable[[Exception], bool] | None = None

    def next_delay(self, attempt: int) -> float:
        """Delay in seconds before the next attempt (``attempt`` is zero-based)."""
        return min(self.base_delay * (self.multiplier**attempt), self.max_delay)

    def should_retry(self, attempt: int, error: Exception | None = None) -> bool:
        """Whether another attempt is allowed after ``attempt`` attempts."""
        if attempt >= self.max_retries:
            return False
        if error is not None and self.retry_on is not None:
            return self.retry_on(error)
        return True


@dataclass
class RetryContext:
    """Runs an async callable under a backoff strategy and counts attempts.

    Example:
        >>> ctx = RetryContext(ExponentialBackoff(max_retries=3))
        >>> result = await ctx.run_async(call_api)
        >>> ctx.attempts
        1
    """

    strategy: ExponentialBackoff
    on_retry: Callable[[int, Exception, float], None] | None = None
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    attempts: int = field(default=0, init=False)

    async def run_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute ``func`` with retry logic.

        Raises:
            The last exception once the strategy refuses another attempt.
        """
        while True:
            self.attempts += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not self.strategy.should_retry(self.attempts, e):
                    raise

                delay = self.strategy.next_delay(self.attempts - 1)
                if self.on_retry:
                    self.on_retry(self.attempts, e, delay)
                await self.sleep(delay)


__all__ = ["ExponentialBackoff", "RetryContext"]
