"""ErrorClassifier implementation for permanent-vs-transient classification.

Every failed remote call goes through here before the executor decides
whether to retry. Structured fields (status codes, exception types, errno)
are checked before message patterns, and message patterns are kept as
module-level data so they can be reviewed and tested in isolation.

Unrecognised errors classify as ``ErrorClass.UNKNOWN`` and are not retried.
"""

from __future__ import annotations

import errno
import re
import socket
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

import httpx

from storesync.core.constants import (
    DEFAULT_RETRYABLE_ERROR_PATTERNS,
    DEFAULT_RETRYABLE_STATUS_CODES,
)
from storesync.core.logging import get_logger

from .codes import ErrorClass, ErrorCode
from .exceptions import StoreApiError, UserErrorsError
from .models import ClassifiedError

if TYPE_CHECKING:
    from storesync.core.config.retry import RetryPolicy

_logger = get_logger("errors")


# =============================================================================
# Default pattern strings for ErrorClassifier.
# =============================================================================

_DEFAULT_AUTH_PATTERNS: list[str] = [
    r"unauthorized",
    r"forbidden",
    r"invalid.?api.?key",
    r"access.?denied",
]

# Ordered: the first matching group decides the error code.
_DEFAULT_PERMANENT_PATTERNS: list[tuple[ErrorCode, list[str]]] = [
    (ErrorCode.VALIDATION_USER_ERRORS, [
        r"user.?errors",
    ]),
    (ErrorCode.VALIDATION_DUPLICATE, [
        r"already exists",
        r"has already been taken",
        r"duplicate",
    ]),
    (ErrorCode.VALIDATION_NOT_FOUND, [
        r"not found",
        r"does not exist",
    ]),
    (ErrorCode.VALIDATION_REQUIRED_FIELD, [
        r"\brequired\b",
        r"can'?t be blank",
        r"missing.{0,20}field",
    ]),
    (ErrorCode.VALIDATION_INVALID_FORMAT, [
        r"invalid.{0,20}format",
        r"is invalid",
        r"is not a valid",
    ]),
    (ErrorCode.VALIDATION_LIMIT_EXCEEDED, [
        r"exceed(s|ed)?.{0,30}limit",
        r"is too (long|large|big)",
    ]),
]

_DEFAULT_TRANSIENT_PATTERNS: list[str] = [
    r"network",
    r"timed?.?out",
    r"connection.?(reset|refused|aborted|closed|error|lost)",
    r"socket hang up",
    r"temporarily unavailable",
    r"service unavailable",
    r"rate.?limit",
    r"too many requests",
    r"throttl",
    r"fetch failed",
]

# Where a status code hides in a message, e.g. "API request failed (503): ..."
_STATUS_IN_MESSAGE_PATTERNS: list[str] = [
    r"\((\d{3})\)",
    r"status(?:\s*code)?[\s:=]+(\d{3})\b",
    r"failed:\s*(\d{3})\b",
]

_TRANSIENT_ERRNOS = frozenset({
    errno.ECONNRESET,
    errno.ECONNREFUSED,
    errno.ECONNABORTED,
    errno.ETIMEDOUT,
    errno.EHOSTUNREACH,
    errno.ENETUNREACH,
    errno.EPIPE,
})


def _compile_patterns(strings: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile a list of regex strings into case-insensitive Pattern objects."""
    return [re.compile(p, re.IGNORECASE) for p in strings]


def _iter_chain(error: BaseException) -> Iterator[BaseException]:
    """Yield the error followed by its causes, guarding against cycles."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


# =============================================================================
# Error Classifier
# =============================================================================


class ErrorClassifier:
    """Classifies failed remote calls as permanent, transient, or unknown.

    Priority order:
    1. Permanent signatures (GraphQL user errors, 401/403, validation wording,
       404/422 statuses)
    2. Transient signatures (retryable status, transport exceptions,
       configured error patterns, network vocabulary)
    3. Unknown fallback (not retried)
    """

    def __init__(
        self,
        retryable_status_codes: Iterable[int] = DEFAULT_RETRYABLE_STATUS_CODES,
        retryable_error_patterns: Iterable[str] = DEFAULT_RETRYABLE_ERROR_PATTERNS,
    ) -> None:
        """Initialize classifier.

        Args:
            retryable_status_codes: HTTP statuses treated as transient.
            retryable_error_patterns: Substrings matched (case-insensitively)
                against error codes, errno names, exception class names and
                messages to identify transient failures.
        """
        self.retryable_status_codes = frozenset(retryable_status_codes)
        self.retryable_error_patterns = tuple(p.lower() for p in retryable_error_patterns)
        self.auth_patterns = _compile_patterns(_DEFAULT_AUTH_PATTERNS)
        self.permanent_patterns = [
            (code, _compile_patterns(patterns))
            for code, patterns in _DEFAULT_PERMANENT_PATTERNS
        ]
        self.transient_patterns = _compile_patterns(_DEFAULT_TRANSIENT_PATTERNS)
        self.status_patterns = _compile_patterns(_STATUS_IN_MESSAGE_PATTERNS)

    @classmethod
    def from_policy(cls, policy: RetryPolicy) -> ErrorClassifier:
        """Build a classifier from a retry policy's status codes and patterns."""
        return cls(
            retryable_status_codes=policy.retryable_status_codes,
            retryable_error_patterns=policy.retryable_error_patterns,
        )

    def classify(self, error: BaseException) -> ClassifiedError:
        """Classify an error.

        Args:
            error: The exception raised by a remote operation.

        Returns:
            ClassifiedError with the retry decision and matched signature.
        """
        chain = list(_iter_chain(error))
        status = self.extract_status_code(chain)
        message = " | ".join(str(e) for e in chain)

        result = (
            self._classify_permanent(error, chain, status, message)
            or self._classify_transient(error, chain, status, message)
            or ClassifiedError(
                error=error,
                error_class=ErrorClass.UNKNOWN,
                error_code=ErrorCode.UNKNOWN,
                status_code=status,
                reason="no known signature matched",
            )
        )
        _logger.debug(
            "error.classified",
            error_class=result.error_class.value,
            error_code=result.error_code.value,
            status_code=status,
            error_type=type(error).__name__,
            reason=result.reason,
        )
        return result

    def extract_status_code(self, chain: list[BaseException]) -> int | None:
        """Find an HTTP status on the error chain, falling back to its messages."""
        for exc in chain:
            if isinstance(exc, StoreApiError) and exc.status_code is not None:
                return exc.status_code
            if isinstance(exc, httpx.HTTPStatusError):
                return exc.response.status_code
            status = getattr(exc, "status_code", None)
            if isinstance(status, int):
                return status

        for exc in chain:
            text = str(exc)
            for pattern in self.status_patterns:
                match = pattern.search(text)
                if match:
                    value = int(match.group(1))
                    if 100 <= value <= 599:
                        return value
        return None

    def _classify_permanent(
        self,
        error: BaseException,
        chain: list[BaseException],
        status: int | None,
        message: str,
    ) -> ClassifiedError | None:
        def permanent(code: ErrorCode, reason: str) -> ClassifiedError:
            return ClassifiedError(
                error=error,
                error_class=ErrorClass.PERMANENT,
                error_code=code,
                status_code=status,
                reason=reason,
            )

        if any(isinstance(exc, UserErrorsError) for exc in chain):
            return permanent(ErrorCode.VALIDATION_USER_ERRORS, "mutation returned userErrors")

        if status == 401:
            return permanent(ErrorCode.AUTH_UNAUTHORIZED, "status 401")
        if status == 403:
            return permanent(ErrorCode.AUTH_FORBIDDEN, "status 403")
        if status is None and _matches_any(self.auth_patterns, message):
            return permanent(ErrorCode.AUTH_UNAUTHORIZED, "authorization failure in message")

        # A retryable status outranks wording in the response body
        if status is not None and status in self.retryable_status_codes:
            return None

        for code, patterns in self.permanent_patterns:
            if _matches_any(patterns, message):
                return permanent(code, f"validation signature ({code.name.lower()})")

        if status == 404:
            return permanent(ErrorCode.VALIDATION_NOT_FOUND, "status 404")
        if status == 422:
            return permanent(ErrorCode.VALIDATION_GENERIC, "status 422")
        return None

    def _classify_transient(
        self,
        error: BaseException,
        chain: list[BaseException],
        status: int | None,
        message: str,
    ) -> ClassifiedError | None:
        def transient(code: ErrorCode, reason: str) -> ClassifiedError:
            return ClassifiedError(
                error=error,
                error_class=ErrorClass.TRANSIENT,
                error_code=code,
                status_code=status,
                reason=reason,
            )

        if status is not None and status in self.retryable_status_codes:
            if status == 429:
                return transient(ErrorCode.RATE_LIMITED, "status 429")
            if status == 408:
                return transient(ErrorCode.REQUEST_TIMEOUT, "status 408")
            return transient(ErrorCode.SERVER_ERROR, f"status {status}")

        for exc in chain:
            code = self._transport_code(exc)
            if code is not None:
                return transient(code, f"transport error {type(exc).__name__}")

        for exc in chain:
            for candidate in self._pattern_candidates(exc):
                lowered = candidate.lower()
                for pattern in self.retryable_error_patterns:
                    if pattern in lowered:
                        return transient(
                            ErrorCode.NETWORK_PATTERN_MATCH,
                            f"matched retryable pattern {pattern!r}",
                        )

        if _matches_any(self.transient_patterns, message):
            return transient(ErrorCode.NETWORK_PATTERN_MATCH, "network vocabulary in message")
        return None

    @staticmethod
    def _transport_code(exc: BaseException) -> ErrorCode | None:
        """Map transport-level exception types to error codes."""
        if isinstance(exc, httpx.TimeoutException | TimeoutError | socket.timeout):
            return ErrorCode.NETWORK_TIMEOUT
        if isinstance(exc, socket.gaierror):
            return ErrorCode.NETWORK_DNS_ERROR
        if isinstance(exc, httpx.TransportError | ConnectionError):
            return ErrorCode.NETWORK_CONNECTION_FAILED
        if isinstance(exc, OSError) and exc.errno in _TRANSIENT_ERRNOS:
            return ErrorCode.NETWORK_CONNECTION_FAILED
        return None

    @staticmethod
    def _pattern_candidates(exc: BaseException) -> list[str]:
        candidates = [type(exc).__name__, str(exc)]
        code = getattr(exc, "code", None)
        if isinstance(code, str):
            candidates.append(code)
        err_no = getattr(exc, "errno", None)
        if isinstance(err_no, int) and err_no in errno.errorcode:
            candidates.append(errno.errorcode[err_no])
        return candidates


def _matches_any(patterns: list[re.Pattern[str]], text: str) -> bool:
    return any(p.search(text) for p in patterns)


_default_classifier: ErrorClassifier | None = None


def classify(error: BaseException, policy: RetryPolicy | None = None) -> ErrorClass:
    """Classify an error as permanent, transient, or unknown.

    Args:
        error: The exception raised by a remote operation.
        policy: Retry policy supplying status codes and patterns. The
            built-in defaults are used when omitted.

    Returns:
        The ErrorClass for the error.
    """
    global _default_classifier
    if policy is not None:
        return ErrorClassifier.from_policy(policy).classify(error).error_class
    if _default_classifier is None:
        _default_classifier = ErrorClassifier()
    return _default_classifier.classify(error).error_class
