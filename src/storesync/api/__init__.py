"""Admin API access: REST transport and GraphQL client."""

from storesync.api.client import SCOPE_HINTS, StoreClient, error_for_response
from storesync.api.graphql import GraphQLClient, check_user_errors

__all__ = [
    "GraphQLClient",
    "SCOPE_HINTS",
    "StoreClient",
    "check_user_errors",
    "error_for_response",
]
