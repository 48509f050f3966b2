"""Error codes, categories, and retry classes.

This module provides:
- ErrorClass: the three-way retry decision (permanent, transient, unknown)
- ErrorCategory: high-level grouping used in logs and summaries
- ErrorCode: structured codes for each recognised failure signature

Error Code Taxonomy
===================

**E1xx - Authorization**

    | Code | Name | Class |
    |------|------|-------|
    | E101 | AUTH_UNAUTHORIZED | permanent |
    | E102 | AUTH_FORBIDDEN | permanent |

**E2xx - Validation / Business Rules**

    | Code | Name | Class |
    |------|------|-------|
    | E201 | VALIDATION_NOT_FOUND | permanent |
    | E202 | VALIDATION_DUPLICATE | permanent |
    | E203 | VALIDATION_REQUIRED_FIELD | permanent |
    | E204 | VALIDATION_INVALID_FORMAT | permanent |
    | E205 | VALIDATION_LIMIT_EXCEEDED | permanent |
    | E206 | VALIDATION_USER_ERRORS | permanent |
    | E209 | VALIDATION_GENERIC | permanent |

**E3xx - Throttling / Server**

    | Code | Name | Class |
    |------|------|-------|
    | E301 | RATE_LIMITED | transient |
    | E302 | SERVER_ERROR | transient |
    | E303 | REQUEST_TIMEOUT | transient |

**E9xx - Network / Unknown**

    | Code | Name | Class |
    |------|------|-------|
    | E901 | NETWORK_CONNECTION_FAILED | transient |
    | E902 | NETWORK_DNS_ERROR | transient |
    | E903 | NETWORK_TIMEOUT | transient |
    | E904 | NETWORK_PATTERN_MATCH | transient |
    | E999 | UNKNOWN | unknown (not retried) |
"""

from __future__ import annotations

from enum import Enum


class ErrorClass(str, Enum):
    """Retry decision for a failed attempt."""

    PERMANENT = "permanent"
    """Never retried - the same request will fail the same way."""

    TRANSIENT = "transient"
    """Retried with backoff - the failure is expected to clear."""

    UNKNOWN = "unknown"
    """No signature matched - not retried so real bugs stay visible."""

    @property
    def is_retryable(self) -> bool:
        return self is ErrorClass.TRANSIENT


class ErrorCategory(str, Enum):
    """Categories of errors, used for logging and reporting."""

    AUTH = "auth"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ErrorCode(str, Enum):
    """Structured error codes for recognised failure signatures."""

    AUTH_UNAUTHORIZED = "E101"
    AUTH_FORBIDDEN = "E102"

    VALIDATION_NOT_FOUND = "E201"
    VALIDATION_DUPLICATE = "E202"
    VALIDATION_REQUIRED_FIELD = "E203"
    VALIDATION_INVALID_FORMAT = "E204"
    VALIDATION_LIMIT_EXCEEDED = "E205"
    VALIDATION_USER_ERRORS = "E206"
    VALIDATION_GENERIC = "E209"

    RATE_LIMITED = "E301"
    SERVER_ERROR = "E302"
    REQUEST_TIMEOUT = "E303"

    NETWORK_CONNECTION_FAILED = "E901"
    NETWORK_DNS_ERROR = "E902"
    NETWORK_TIMEOUT = "E903"
    NETWORK_PATTERN_MATCH = "E904"

    UNKNOWN = "E999"

    @property
    def category(self) -> ErrorCategory:
        """Get the category this code belongs to."""
        return _CODE_CATEGORIES[self]


_CODE_CATEGORIES: dict[ErrorCode, ErrorCategory] = {
    ErrorCode.AUTH_UNAUTHORIZED: ErrorCategory.AUTH,
    ErrorCode.AUTH_FORBIDDEN: ErrorCategory.AUTH,
    ErrorCode.VALIDATION_NOT_FOUND: ErrorCategory.VALIDATION,
    ErrorCode.VALIDATION_DUPLICATE: ErrorCategory.VALIDATION,
    ErrorCode.VALIDATION_REQUIRED_FIELD: ErrorCategory.VALIDATION,
    ErrorCode.VALIDATION_INVALID_FORMAT: ErrorCategory.VALIDATION,
    ErrorCode.VALIDATION_LIMIT_EXCEEDED: ErrorCategory.VALIDATION,
    ErrorCode.VALIDATION_USER_ERRORS: ErrorCategory.VALIDATION,
    ErrorCode.VALIDATION_GENERIC: ErrorCategory.VALIDATION,
    ErrorCode.RATE_LIMITED: ErrorCategory.RATE_LIMIT,
    ErrorCode.SERVER_ERROR: ErrorCategory.SERVER,
    ErrorCode.REQUEST_TIMEOUT: ErrorCategory.TIMEOUT,
    ErrorCode.NETWORK_CONNECTION_FAILED: ErrorCategory.NETWORK,
    ErrorCode.NETWORK_DNS_ERROR: ErrorCategory.NETWORK,
    ErrorCode.NETWORK_TIMEOUT: ErrorCategory.TIMEOUT,
    ErrorCode.NETWORK_PATTERN_MATCH: ErrorCategory.NETWORK,
    ErrorCode.UNKNOWN: ErrorCategory.UNKNOWN,
}
