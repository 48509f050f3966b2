"""Pytest fixtures for storesync tests."""

import logging
from collections.abc import Callable
from typing import Generator

import httpx
import pytest
import structlog
from pydantic import SecretStr

from storesync.api.client import StoreClient
from storesync.core.config import StoreCredentials, StoreSettings
from storesync.execution.rate_limiter import RateLimiter
from tests.helpers import SITE


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset logging state before and after each test.

    This ensures test isolation for logging configuration.
    """
    import storesync.cli as cli_module

    cli_module.helpers.reset_logging_state()

    # Reset structlog to default state
    structlog.reset_defaults()

    # Clear all handlers from root logger
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    cli_module.helpers.reset_logging_state()
    structlog.reset_defaults()

    # Restore original handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture
def credentials() -> StoreCredentials:
    """Credentials for a fake store."""
    return StoreCredentials(site=SITE, access_token=SecretStr("shpat_test"))


@pytest.fixture
def make_client(credentials: StoreCredentials) -> Callable[..., StoreClient]:
    """Build a StoreClient over an httpx.MockTransport handler, without throttling."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        settings: StoreSettings | None = None,
    ) -> StoreClient:
        return StoreClient(
            credentials,
            settings,
            transport=httpx.MockTransport(handler),
            rate_limiter=RateLimiter(0),
        )

    return factory
