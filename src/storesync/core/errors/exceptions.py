"""Exception hierarchy for storesync.

Transport and GraphQL failures carry structured fields (status code,
resource, user errors) so the classifier can decide without parsing
messages whenever possible.
"""

from __future__ import annotations

import json
from typing import Any


class StoreSyncError(Exception):
    """Base class for all storesync errors."""


class CredentialsError(StoreSyncError):
    """Store domain or access token could not be resolved."""


class ResourcePathError(StoreSyncError):
    """A local resource directory is missing or not a directory."""


class StoreApiError(StoreSyncError):
    """Non-2xx response from the admin API.

    Attributes:
        status_code: HTTP status of the response, if one was received.
        resource: Resource type the request was made for.
        body: Raw response text, kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.resource = resource
        self.body = body


class GraphQLError(StoreSyncError):
    """Top-level ``errors`` array in a GraphQL response."""

    def __init__(self, errors: list[dict[str, Any]], resource: str | None = None) -> None:
        self.errors = errors
        self.resource = resource
        label = resource or "request"
        super().__init__(f"GraphQL errors for {label}: {json.dumps(errors)}")


class UserErrorsError(StoreSyncError):
    """``userErrors`` payload returned by a GraphQL mutation.

    These describe business-rule rejections and are never retried.
    """

    def __init__(self, user_errors: list[dict[str, Any]], operation: str | None = None) -> None:
        self.user_errors = user_errors
        self.operation = operation
        super().__init__(f"User errors: {json.dumps(user_errors)}")

    @property
    def messages(self) -> list[str]:
        return [str(e.get("message", "")) for e in self.user_errors]


__all__ = [
    "CredentialsError",
    "GraphQLError",
    "ResourcePathError",
    "StoreApiError",
    "StoreSyncError",
    "UserErrorsError",
]
