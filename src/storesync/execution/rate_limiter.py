"""Minimum-interval rate limiter.

Spaces successive calls by at least a fixed interval, whether or not the
previous call succeeded. It throttles before a call; the retry executor
backs off after a failure. The two are independent.

The only shared state is the timestamp of the last granted turn, owned by
the limiter instance. Calls within one sync run are sequential, so no
locking is needed.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from storesync.core.constants import (
    RATE_LIMIT_AGGRESSIVE,
    RATE_LIMIT_CONSERVATIVE,
    RATE_LIMIT_SHOPIFY_API,
)
from storesync.core.logging import get_logger

P = ParamSpec("P")
R = TypeVar("R")

_logger = get_logger("rate_limiter")


class RateLimiter:
    """Leaky bucket of one: at most one call per ``interval_seconds``.

    Example:
        limiter = RateLimiter(RateLimiter.SHOPIFY_API)
        for item in items:
            await limiter.wait_turn()
            await upload(item)
    """

    SHOPIFY_API = RATE_LIMIT_SHOPIFY_API
    CONSERVATIVE = RATE_LIMIT_CONSERVATIVE
    AGGRESSIVE = RATE_LIMIT_AGGRESSIVE

    def __init__(
        self,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the limiter.

        Args:
            interval_seconds: Minimum spacing between granted turns (0 disables).
            clock: Monotonic clock, injectable for tests.
        """
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self._clock = clock
        self._last_call: float | None = None

    @property
    def last_call(self) -> float | None:
        """Clock reading when the last turn was granted."""
        return self._last_call

    def time_until_next(self) -> float:
        """Seconds the next caller would have to wait right now."""
        if self._last_call is None:
            return 0.0
        elapsed = self._clock() - self._last_call
        return max(0.0, self.interval_seconds - elapsed)

    async def wait_turn(self) -> float:
        """Suspend until the interval since the last turn has passed.

        Returns:
            Seconds actually waited (0.0 after an idle period).
        """
        wait = self.time_until_next()
        if wait > 0:
            _logger.debug("rate_limiter.waiting", wait_seconds=round(wait, 3))
            await asyncio.sleep(wait)
        self._last_call = self._clock()
        return wait

    def wrap(self, fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        """Return an async function that waits its turn before calling ``fn``."""

        @functools.wraps(fn)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            await self.wait_turn()
            return await fn(*args, **kwargs)

        return wrapper

    def reset(self) -> None:
        """Forget the last call so the next turn is granted immediately."""
        self._last_call = None


__all__ = ["RateLimiter"]
