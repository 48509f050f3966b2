"""Resilient execution: retry with backoff and rate limiting."""

from storesync.execution.rate_limiter import RateLimiter
from storesync.execution.retry import (
    ExecutionResult,
    compute_delay,
    execute,
    execute_detailed,
)

__all__ = [
    "ExecutionResult",
    "RateLimiter",
    "compute_delay",
    "execute",
    "execute_detailed",
]
