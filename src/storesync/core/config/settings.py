"""Store connection settings and credential resolution."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator

from storesync.core.config.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from storesync.core.constants import (
    API_VERSION,
    ENV_ACCESS_TOKEN,
    ENV_STORE_DOMAIN,
    RATE_LIMIT_SHOPIFY_API,
    REQUEST_TIMEOUT_SECONDS,
)
from storesync.core.errors import CredentialsError


class StoreCredentials(BaseModel):
    """Store domain and admin API access token."""

    site: str = Field(min_length=1, description="Store domain, e.g. my-store.myshopify.com")
    access_token: SecretStr

    @field_validator("site")
    @classmethod
    def _normalize_site(cls, value: str) -> str:
        site = value.strip()
        for prefix in ("https://", "http://"):
            if site.startswith(prefix):
                site = site[len(prefix):]
        return site.rstrip("/")


class StoreSettings(BaseModel):
    """Connection settings shared by every command.

    Example storesync.yaml:
        api_version: "2023-10"
        timeout_seconds: 60
        rate_limit_interval_seconds: 1.0
        retry:
          max_attempts: 4
          base_delay_seconds: 2
    """

    api_version: str = Field(default=API_VERSION, description="Admin API version")
    timeout_seconds: float = Field(
        default=REQUEST_TIMEOUT_SECONDS, gt=0, description="Per-request timeout"
    )
    rate_limit_interval_seconds: float = Field(
        default=RATE_LIMIT_SHOPIFY_API,
        ge=0,
        description="Minimum spacing between requests (0 disables throttling)",
    )
    retry: RetryPolicy = Field(default=DEFAULT_RETRY_POLICY)

    def admin_base_url(self, site: str) -> str:
        """Versioned admin API base URL for a store."""
        return f"https://{site}/admin/api/{self.api_version}"

    @classmethod
    def from_yaml(cls, path: Path) -> StoreSettings:
        """Load settings from a YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)


def resolve_credentials(
    site: str | None = None,
    access_token: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> StoreCredentials:
    """Resolve credentials from explicit values, then environment variables.

    Args:
        site: Store domain from the command line.
        access_token: Access token from the command line.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Validated StoreCredentials.

    Raises:
        CredentialsError: If either value cannot be found.
    """
    env = os.environ if environ is None else environ
    resolved_site = site or env.get(ENV_STORE_DOMAIN)
    resolved_token = access_token or env.get(ENV_ACCESS_TOKEN)

    if not resolved_site or not resolved_token:
        raise CredentialsError(
            "Missing credentials. Provide either:\n"
            "  1. CLI arguments: --site <domain> --access-token <token>\n"
            f"  2. Environment variables: {ENV_STORE_DOMAIN} and {ENV_ACCESS_TOKEN}"
        )
    return StoreCredentials(site=resolved_site, access_token=SecretStr(resolved_token))


__all__ = ["StoreCredentials", "StoreSettings", "resolve_credentials"]
