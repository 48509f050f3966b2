"""Resilient executor: bounded retry with exponential backoff and jitter.

Every remote call runs through ``execute``. A failed attempt is classified
before anything else happens; only transient failures are retried, and
only while attempts remain. The final error propagates unchanged.

Example usage:
    from storesync.execution.retry import execute
    from storesync.core.config import DEFAULT_RETRY_POLICY

    shop = await execute(lambda: client.get_json("shop.json"), DEFAULT_RETRY_POLICY)

    # Per-call overrides layer over the shared default
    policy = DEFAULT_RETRY_POLICY.merge(max_attempts=2)
    result = await execute_detailed(fetch_page, policy)
    if not result.success:
        print(result.error, result.attempts)
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from storesync.core.config.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from storesync.core.constants import JITTER_FRACTION_MAX, TRUNCATE_ERROR_MESSAGE_CHARS
from storesync.core.errors import ClassifiedError, ErrorClassifier
from storesync.core.logging import get_logger

T = TypeVar("T")

Operation = Callable[[], Awaitable[T]]

_logger = get_logger("retry")


@dataclass
class ExecutionResult(Generic[T]):
    """Outcome of ``execute_detailed``.

    Attributes:
        success: Whether an attempt succeeded.
        value: Return value of the successful attempt.
        error: Last error when every attempt failed or a permanent error stopped the loop.
        attempts: Number of times the operation was invoked.
        total_delay_seconds: Sum of backoff delays slept between attempts.
        classification: Classification of the final error, if any.
    """

    success: bool
    value: T | None = None
    error: BaseException | None = None
    attempts: int = 0
    total_delay_seconds: float = 0.0
    classification: ClassifiedError | None = None


def compute_delay(
    policy: RetryPolicy,
    attempt: int,
    jitter_fraction: float | None = None,
) -> float:
    """Compute the backoff delay after a failed attempt.

    ``min(base * multiplier ** (attempt - 1) * (1 + jitter), max_delay)``

    Args:
        policy: Retry policy supplying base, multiplier and cap.
        attempt: 1-indexed number of the attempt that just failed.
        jitter_fraction: Jitter in [0, 0.1). Drawn at random when omitted.

    Returns:
        Delay in seconds, never above ``policy.max_delay_seconds``.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    if jitter_fraction is None:
        jitter_fraction = random.random() * JITTER_FRACTION_MAX

    try:
        exponential = policy.base_delay_seconds * policy.backoff_multiplier ** (attempt - 1)
    except OverflowError:
        return policy.max_delay_seconds
    return min(exponential * (1 + jitter_fraction), policy.max_delay_seconds)


def _truncate(message: str, limit: int = TRUNCATE_ERROR_MESSAGE_CHARS) -> str:
    if len(message) <= limit:
        return message
    return message[: limit - 3] + "..."


async def execute_detailed(
    operation: Operation[T],
    policy: RetryPolicy | None = None,
    *,
    description: str = "operation",
    classifier: ErrorClassifier | None = None,
) -> ExecutionResult[T]:
    """Run ``operation`` with retry and report the outcome instead of raising.

    Args:
        operation: Zero-argument coroutine function to invoke.
        policy: Retry policy (shared default when omitted).
        description: Label used in log entries.
        classifier: Classifier override; built from the policy when omitted.

    Returns:
        ExecutionResult describing the final attempt.
    """
    policy = policy or DEFAULT_RETRY_POLICY
    classifier = classifier or ErrorClassifier.from_policy(policy)
    total_delay = 0.0
    attempt = 0

    # max_attempts >= 1 is enforced by RetryPolicy; the last attempt always returns
    while True:
        attempt += 1
        try:
            value = await operation()
        except Exception as exc:
            classified = classifier.classify(exc)
            last_attempt = attempt >= policy.max_attempts

            if not classified.is_retryable or last_attempt:
                event = "retry.exhausted" if classified.is_retryable else "retry.not_retrying"
                _logger.warning(
                    event,
                    operation=description,
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    error_class=classified.error_class.value,
                    error_code=classified.error_code.value,
                    error=_truncate(str(exc)),
                )
                return ExecutionResult(
                    success=False,
                    error=exc,
                    attempts=attempt,
                    total_delay_seconds=total_delay,
                    classification=classified,
                )

            delay = compute_delay(policy, attempt)
            _logger.warning(
                "retry.attempt_failed",
                operation=description,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                error_code=classified.error_code.value,
                error=_truncate(str(exc)),
                delay_seconds=round(delay, 3),
            )
            await asyncio.sleep(delay)
            total_delay += delay
            continue

        if attempt > 1:
            _logger.info(
                "retry.recovered",
                operation=description,
                attempt=attempt,
                total_delay_seconds=round(total_delay, 3),
            )
        return ExecutionResult(
            success=True,
            value=value,
            attempts=attempt,
            total_delay_seconds=total_delay,
        )


async def execute(
    operation: Operation[T],
    policy: RetryPolicy | None = None,
    *,
    description: str = "operation",
    classifier: ErrorClassifier | None = None,
) -> T:
    """Run ``operation`` with retry, returning its value or raising its last error.

    The raised exception is the operation's own exception object, with a
    note recording how many attempts were made.

    Args:
        operation: Zero-argument coroutine function to invoke.
        policy: Retry policy (shared default when omitted).
        description: Label used in log entries.
        classifier: Classifier override; built from the policy when omitted.

    Returns:
        The operation's return value.
    """
    result = await execute_detailed(
        operation, policy, description=description, classifier=classifier
    )
    error = result.error
    if result.success or error is None:
        return result.value  # type: ignore[return-value]

    max_attempts = (policy or DEFAULT_RETRY_POLICY).max_attempts
    error_class = result.classification.error_class.value if result.classification else "unknown"
    error.add_note(
        f"{description}: gave up after {result.attempts}/{max_attempts} attempts ({error_class})"
    )
    raise error


__all__ = ["ExecutionResult", "Operation", "compute_delay", "execute", "execute_detailed"]
