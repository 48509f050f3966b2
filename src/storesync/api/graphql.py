"""GraphQL access to the admin API.

Queries and mutations share one transport and one error policy:
top-level ``errors`` raise ``GraphQLError``; a mutation payload with a
non-empty ``userErrors`` list raises ``UserErrorsError``.
"""

from __future__ import annotations

from typing import Any

from storesync.api.client import StoreClient
from storesync.core.constants import GRAPHQL_ENDPOINT
from storesync.core.errors import GraphQLError, UserErrorsError
from storesync.core.logging import get_logger

_logger = get_logger("api.graphql")


def check_user_errors(payload: dict[str, Any] | None, operation: str | None = None) -> None:
    """Raise UserErrorsError when a mutation payload carries userErrors.

    Args:
        payload: The mutation's result object, e.g. ``data["menuUpdate"]``.
        operation: Mutation name, kept on the error for diagnostics.
    """
    if not payload:
        return
    user_errors = payload.get("userErrors") or []
    if user_errors:
        raise UserErrorsError(user_errors, operation=operation)


class GraphQLClient:
    """Runs GraphQL documents against the admin API."""

    def __init__(self, client: StoreClient) -> None:
        self.client = client

    async def query(
        self,
        document: str,
        variables: dict[str, Any] | None = None,
        *,
        resource: str | None = None,
    ) -> dict[str, Any]:
        """Execute a query and return its ``data`` object.

        Raises:
            StoreApiError: For non-2xx HTTP responses.
            GraphQLError: When the response carries top-level errors.
        """
        body = await self.client.post_json(
            GRAPHQL_ENDPOINT,
            {"query": document, "variables": variables or {}},
            resource=resource,
        )
        errors = (body or {}).get("errors")
        if errors:
            _logger.debug("graphql.errors", resource=resource, count=len(errors))
            raise GraphQLError(errors, resource=resource)
        return (body or {}).get("data") or {}

    async def mutation(
        self,
        document: str,
        variables: dict[str, Any] | None = None,
        *,
        resource: str | None = None,
        payload_key: str | None = None,
    ) -> dict[str, Any]:
        """Execute a mutation.

        Args:
            document: GraphQL mutation.
            variables: Mutation variables.
            resource: Resource type for error messages.
            payload_key: Name of the mutation field whose ``userErrors``
                should be checked (e.g. "menuUpdate").

        Returns:
            The mutation's ``data`` object.

        Raises:
            UserErrorsError: When the payload reports userErrors.
        """
        data = await self.query(document, variables, resource=resource)
        if payload_key is not None:
            check_user_errors(data.get(payload_key), operation=payload_key)
        return data


__all__ = ["GraphQLClient", "check_user_errors"]
