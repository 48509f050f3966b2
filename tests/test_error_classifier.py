"""Tests for ErrorClassifier.

Tests cover:
- classify(): permanent signatures (userErrors, 401/403, validation wording, 404/422)
- classify(): transient signatures (retryable statuses, transport exceptions,
  error-code patterns, network vocabulary)
- classify(): unknown fallback for unrecognised errors
- extract_status_code(): structured fields first, then message patterns
- Cause chains: a transient cause makes the wrapper transient
- Module-level classify() with and without a RetryPolicy
"""

import socket

import httpx
import pytest

from storesync.api.client import error_for_response
from storesync.core.config import RetryPolicy
from storesync.core.errors import (
    ErrorCategory,
    ErrorClass,
    ErrorClassifier,
    ErrorCode,
    GraphQLError,
    StoreApiError,
    UserErrorsError,
    classify,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def classifier() -> ErrorClassifier:
    """Create a default ErrorClassifier instance."""
    return ErrorClassifier()


def _api_error(status: int, body: str = "") -> StoreApiError:
    message = f"API request failed ({status})"
    if body:
        message += f": {body}"
    return StoreApiError(message, status_code=status, body=body)


# =============================================================================
# Permanent signatures
# =============================================================================


class TestPermanentClassification:
    """Errors that must never be retried."""

    def test_user_errors_are_permanent(self, classifier: ErrorClassifier) -> None:
        """Test that a mutation's userErrors classify as permanent."""
        error = UserErrorsError([{"field": ["title"], "message": "Title can't be blank"}])
        result = classifier.classify(error)
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.VALIDATION_USER_ERRORS

    def test_user_errors_win_over_network_words(self, classifier: ErrorClassifier) -> None:
        """Test that permanent signatures are checked before transient ones."""
        error = UserErrorsError([{"message": "network handle timed out"}])
        assert classifier.classify(error).error_class == ErrorClass.PERMANENT

    def test_401_is_permanent(self, classifier: ErrorClassifier) -> None:
        """Test that an unauthorized response is not retried."""
        error = StoreApiError("Unauthorized - invalid access token", status_code=401)
        result = classifier.classify(error)
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.AUTH_UNAUTHORIZED
        assert result.category == ErrorCategory.AUTH

    def test_403_is_permanent(self, classifier: ErrorClassifier) -> None:
        """Test that a forbidden response is not retried."""
        error = StoreApiError("Forbidden - missing required permissions", status_code=403)
        result = classifier.classify(error)
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.AUTH_FORBIDDEN

    def test_auth_wording_without_status(self, classifier: ErrorClassifier) -> None:
        """Test that authorization wording alone is permanent."""
        result = classifier.classify(RuntimeError("Access denied for this shop"))
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.AUTH_UNAUTHORIZED

    @pytest.mark.parametrize(
        "message, code",
        [
            ("Handle has already been taken", ErrorCode.VALIDATION_DUPLICATE),
            ("Page does not exist", ErrorCode.VALIDATION_NOT_FOUND),
            ("Title can't be blank", ErrorCode.VALIDATION_REQUIRED_FIELD),
            ("Target is invalid", ErrorCode.VALIDATION_INVALID_FORMAT),
            ("Body is too long", ErrorCode.VALIDATION_LIMIT_EXCEEDED),
        ],
        ids=["duplicate", "not-found", "required", "invalid", "too-long"],
    )
    def test_validation_wording(
        self, classifier: ErrorClassifier, message: str, code: ErrorCode
    ) -> None:
        """Test that validation messages map to their codes."""
        result = classifier.classify(ValueError(message))
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == code

    def test_404_status_is_permanent(self, classifier: ErrorClassifier) -> None:
        """Test that a 404 without validation wording is permanent."""
        result = classifier.classify(_api_error(404))
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.VALIDATION_NOT_FOUND

    def test_422_status_is_permanent(self, classifier: ErrorClassifier) -> None:
        """Test that an unprocessable entity is permanent."""
        result = classifier.classify(_api_error(422, '{"errors":"bad"}'))
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.VALIDATION_GENERIC

    def test_validation_in_422_body(self, classifier: ErrorClassifier) -> None:
        """Test that the body's wording decides the code of a 422."""
        result = classifier.classify(_api_error(422, '{"errors":{"handle":["has already been taken"]}}'))
        assert result.error_class == ErrorClass.PERMANENT
        assert result.error_code == ErrorCode.VALIDATION_DUPLICATE


# =============================================================================
# Transient signatures
# =============================================================================


class TestTransientClassification:
    """Errors that are retried with backoff."""

    @pytest.mark.parametrize("status", [500, 502, 503, 504])
    def test_server_errors(self, classifier: ErrorClassifier, status: int) -> None:
        """Test that 5xx statuses in the retryable set are transient."""
        result = classifier.classify(_api_error(status))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.SERVER_ERROR
        assert result.status_code == status

    def test_429_is_rate_limited(self, classifier: ErrorClassifier) -> None:
        """Test that throttling responses are transient."""
        result = classifier.classify(_api_error(429))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.RATE_LIMITED
        assert result.category == ErrorCategory.RATE_LIMIT

    @pytest.mark.parametrize(
        "status, body, code",
        [
            (429, '{"errors":"Exceeded the API rate limit, please retry"}', ErrorCode.RATE_LIMITED),
            (503, "Upstream host not found", ErrorCode.SERVER_ERROR),
            (500, "required backend unavailable", ErrorCode.SERVER_ERROR),
        ],
        ids=["429-limit-wording", "503-not-found-wording", "500-required-wording"],
    )
    def test_retryable_status_beats_body_wording(
        self, classifier: ErrorClassifier, status: int, body: str, code: ErrorCode
    ) -> None:
        """Test that validation-like wording in a retryable response body stays transient."""
        response = httpx.Response(status, text=body, request=httpx.Request("GET", "https://x"))
        result = classifier.classify(error_for_response(response, "pages"))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == code
        assert result.status_code == status

    def test_408_is_request_timeout(self, classifier: ErrorClassifier) -> None:
        """Test that a request timeout status is transient."""
        result = classifier.classify(_api_error(408))
        assert result.error_code == ErrorCode.REQUEST_TIMEOUT
        assert result.is_retryable

    def test_httpx_timeout(self, classifier: ErrorClassifier) -> None:
        """Test that httpx timeouts are transient."""
        result = classifier.classify(httpx.ReadTimeout("read operation exceeded"))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.NETWORK_TIMEOUT

    def test_httpx_connect_error(self, classifier: ErrorClassifier) -> None:
        """Test that httpx connection failures are transient."""
        result = classifier.classify(httpx.ConnectError("connection refused"))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.NETWORK_CONNECTION_FAILED

    def test_dns_failure(self, classifier: ErrorClassifier) -> None:
        """Test that name resolution failures are transient."""
        result = classifier.classify(socket.gaierror("dns lookup failed"))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.NETWORK_DNS_ERROR

    def test_connection_reset(self, classifier: ErrorClassifier) -> None:
        """Test that builtin connection errors are transient."""
        result = classifier.classify(ConnectionResetError("peer reset"))
        assert result.error_class == ErrorClass.TRANSIENT

    @pytest.mark.parametrize("code", ["ECONNRESET", "ENOTFOUND", "ECONNREFUSED", "ETIMEDOUT"])
    def test_error_code_patterns(self, classifier: ErrorClassifier, code: str) -> None:
        """Test that transport error codes in a message are transient."""
        result = classifier.classify(RuntimeError(f"request failed: {code}"))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.NETWORK_PATTERN_MATCH

    def test_network_vocabulary(self, classifier: ErrorClassifier) -> None:
        """Test that network wording is transient."""
        result = classifier.classify(RuntimeError("socket hang up"))
        assert result.error_class == ErrorClass.TRANSIENT

    def test_status_in_message(self, classifier: ErrorClassifier) -> None:
        """Test that a status embedded in a plain message is honoured."""
        result = classifier.classify(RuntimeError("API request failed (502): bad gateway"))
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.status_code == 502

    def test_transient_cause(self, classifier: ErrorClassifier) -> None:
        """Test that a wrapper whose cause is transient is transient."""
        try:
            try:
                raise httpx.ReadTimeout("slow")
            except httpx.ReadTimeout as inner:
                raise RuntimeError("listing pages") from inner
        except RuntimeError as outer:
            result = classifier.classify(outer)
        assert result.error_class == ErrorClass.TRANSIENT
        assert result.error_code == ErrorCode.NETWORK_TIMEOUT


# =============================================================================
# Unknown fallback
# =============================================================================


class TestUnknownClassification:
    """Errors with no known signature fail closed."""

    def test_plain_error_is_unknown(self, classifier: ErrorClassifier) -> None:
        """Test that an unrecognised error is unknown and not retryable."""
        result = classifier.classify(KeyError("id"))
        assert result.error_class == ErrorClass.UNKNOWN
        assert result.error_code == ErrorCode.UNKNOWN
        assert not result.is_retryable

    def test_unlisted_status_is_unknown(self, classifier: ErrorClassifier) -> None:
        """Test that a status outside the retryable set is not retried."""
        result = classifier.classify(_api_error(418))
        assert result.error_class == ErrorClass.UNKNOWN
        assert result.status_code == 418

    def test_graphql_error_without_signature(self, classifier: ErrorClassifier) -> None:
        """Test that top-level GraphQL errors with neutral wording are unknown."""
        error = GraphQLError([{"message": "Field 'x' doesn't exist on type 'Shop'"}])
        assert classifier.classify(error).error_class == ErrorClass.UNKNOWN

    def test_message_is_preserved(self, classifier: ErrorClassifier) -> None:
        """Test that the classification keeps the original error."""
        error = RuntimeError("boom")
        result = classifier.classify(error)
        assert result.error is error
        assert result.message == "boom"


# =============================================================================
# Status extraction
# =============================================================================


class TestExtractStatusCode:
    """Tests for ErrorClassifier.extract_status_code()."""

    def test_from_http_status_error(self, classifier: ErrorClassifier) -> None:
        """Test that httpx.HTTPStatusError exposes its response status."""
        request = httpx.Request("GET", "https://example.com")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("server error", request=request, response=response)
        assert classifier.extract_status_code([error]) == 503

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("API request failed (429): slow down", 429),
            ("status code: 504", 504),
            ("request failed: 500", 500),
            ("no status here", None),
            ("(999) out of range", None),
        ],
    )
    def test_from_message(
        self, classifier: ErrorClassifier, message: str, expected: int | None
    ) -> None:
        """Test status extraction from message text."""
        assert classifier.extract_status_code([RuntimeError(message)]) == expected


# =============================================================================
# Module-level classify()
# =============================================================================


class TestClassifyFunction:
    """Tests for storesync.core.errors.classify()."""

    def test_default_policy(self) -> None:
        """Test that the default classifier is used without a policy."""
        assert classify(_api_error(503)) == ErrorClass.TRANSIENT
        assert classify(_api_error(401)) == ErrorClass.PERMANENT
        assert classify(KeyError("x")) == ErrorClass.UNKNOWN

    def test_policy_status_codes(self) -> None:
        """Test that a policy can extend the retryable statuses."""
        policy = RetryPolicy(retryable_status_codes=frozenset({418}))
        assert classify(_api_error(418), policy) == ErrorClass.TRANSIENT
        assert classify(_api_error(503), policy) == ErrorClass.UNKNOWN

    def test_policy_error_patterns(self) -> None:
        """Test that a policy can add retryable error codes."""
        error = RuntimeError("getaddrinfo EAI_AGAIN")
        assert classify(error) == ErrorClass.UNKNOWN
        policy = RetryPolicy(retryable_error_patterns=("EAI_AGAIN",))
        assert classify(error, policy) == ErrorClass.TRANSIENT
