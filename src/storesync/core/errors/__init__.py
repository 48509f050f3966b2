"""Error classification and handling.

Re-exports all public symbols.
"""

from storesync.core.errors.codes import ErrorCategory, ErrorClass, ErrorCode
from storesync.core.errors.exceptions import (
    CredentialsError,
    GraphQLError,
    ResourcePathError,
    StoreApiError,
    StoreSyncError,
    UserErrorsError,
)
from storesync.core.errors.models import ClassifiedError
from storesync.core.errors.classifier import ErrorClassifier, classify

__all__ = [
    "ErrorCategory",
    "ErrorClass",
    "ErrorCode",
    "ClassifiedError",
    "CredentialsError",
    "GraphQLError",
    "ResourcePathError",
    "StoreApiError",
    "StoreSyncError",
    "UserErrorsError",
    "ErrorClassifier",
    "classify",
]
