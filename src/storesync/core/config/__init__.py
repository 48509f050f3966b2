"""Configuration models for storesync.

Pydantic models for retry behavior and store connection settings.
"""

from storesync.core.config.retry import (
    COMMAND_RETRY_POLICY,
    DEFAULT_RETRY_POLICY,
    RetryPolicy,
)
from storesync.core.config.settings import (
    StoreCredentials,
    StoreSettings,
    resolve_credentials,
)

__all__ = [
    "COMMAND_RETRY_POLICY",
    "DEFAULT_RETRY_POLICY",
    "RetryPolicy",
    "StoreCredentials",
    "StoreSettings",
    "resolve_credentials",
]
