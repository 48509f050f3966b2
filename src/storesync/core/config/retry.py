"""Retry policy configuration.

A policy is immutable. Call sites start from a shared default and layer
overrides on top with ``merge``, which validates the result.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storesync.core.constants import (
    COMMAND_MAX_ATTEMPTS,
    COMMAND_MAX_DELAY_SECONDS,
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_DELAY_SECONDS,
    DEFAULT_RETRYABLE_ERROR_PATTERNS,
    DEFAULT_RETRYABLE_STATUS_CODES,
)


class RetryPolicy(BaseModel):
    """Configuration for retry with exponential backoff and jitter."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        ge=1,
        description="Total attempts including the first (1 disables retry)",
    )
    base_delay_seconds: float = Field(
        default=DEFAULT_BASE_DELAY_SECONDS, gt=0, description="Delay before the second attempt"
    )
    max_delay_seconds: float = Field(
        default=DEFAULT_MAX_DELAY_SECONDS, gt=0, description="Cap for any single delay"
    )
    backoff_multiplier: float = Field(
        default=DEFAULT_BACKOFF_MULTIPLIER, gt=1, description="Exponential backoff multiplier"
    )
    retryable_status_codes: frozenset[int] = Field(
        default=DEFAULT_RETRYABLE_STATUS_CODES,
        description="HTTP statuses treated as transient",
    )
    retryable_error_patterns: tuple[str, ...] = Field(
        default=DEFAULT_RETRYABLE_ERROR_PATTERNS,
        description="Error codes or message substrings treated as transient",
    )

    @model_validator(mode="after")
    def _validate_delay_range(self) -> RetryPolicy:
        if self.base_delay_seconds > self.max_delay_seconds:
            raise ValueError(
                f"base_delay_seconds ({self.base_delay_seconds}) must not exceed "
                f"max_delay_seconds ({self.max_delay_seconds})"
            )
        return self

    def merge(self, **overrides: Any) -> RetryPolicy:
        """Return a new policy with ``overrides`` layered over this one.

        Keys set to None are ignored so optional CLI values can be passed
        through directly.

        Raises:
            pydantic.ValidationError: If the merged values are invalid.
        """
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return RetryPolicy.model_validate(data)


DEFAULT_RETRY_POLICY = RetryPolicy()
"""Shared default for listing and transport calls."""

COMMAND_RETRY_POLICY = DEFAULT_RETRY_POLICY.merge(
    max_attempts=COMMAND_MAX_ATTEMPTS,
    max_delay_seconds=COMMAND_MAX_DELAY_SECONDS,
)
"""Per-item policy used inside pull and push loops."""


__all__ = ["COMMAND_RETRY_POLICY", "DEFAULT_RETRY_POLICY", "RetryPolicy"]
