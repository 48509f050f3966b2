"""Tests for the resilient executor.

Tests cover:
- compute_delay(): exponential growth, jitter bounds, cap, overflow, bad attempt
- execute(): transient retry, permanent and unknown fail fast, exhaustion,
  the original exception re-raised with an attempt note
- execute_detailed(): result fields without raising
- RetryPolicy: validation and merge()
"""

from unittest.mock import AsyncMock, patch

import pydantic
import pytest

from storesync.core.config import COMMAND_RETRY_POLICY, DEFAULT_RETRY_POLICY, RetryPolicy
from storesync.core.errors import ErrorClass, ErrorClassifier, StoreApiError, UserErrorsError
from storesync.execution.retry import compute_delay, execute, execute_detailed


def _transient() -> StoreApiError:
    return StoreApiError("API request failed (503): unavailable", status_code=503)


def _permanent() -> StoreApiError:
    return StoreApiError("Unauthorized - invalid access token", status_code=401)


# =============================================================================
# compute_delay()
# =============================================================================


class TestComputeDelay:
    """Tests for compute_delay()."""

    @pytest.mark.parametrize(
        "attempt, expected",
        [(1, 1.0), (2, 2.0), (3, 4.0), (4, 8.0), (5, 16.0)],
    )
    def test_exponential_growth(self, attempt: int, expected: float) -> None:
        """Test that the delay doubles per attempt without jitter."""
        assert compute_delay(DEFAULT_RETRY_POLICY, attempt, jitter_fraction=0.0) == expected

    def test_jitter_is_applied(self) -> None:
        """Test that jitter scales the exponential delay."""
        assert compute_delay(DEFAULT_RETRY_POLICY, 2, jitter_fraction=0.05) == pytest.approx(2.1)

    def test_random_jitter_bounds(self) -> None:
        """Test that random jitter stays within [0, 10%) of the delay."""
        for _ in range(200):
            delay = compute_delay(DEFAULT_RETRY_POLICY, 3)
            assert 4.0 <= delay < 4.4

    def test_delay_is_capped(self) -> None:
        """Test that no delay exceeds max_delay_seconds."""
        assert compute_delay(DEFAULT_RETRY_POLICY, 10, jitter_fraction=0.09) == 30.0

    def test_command_policy_cap(self) -> None:
        """Test that per-item retries use the lower cap."""
        assert compute_delay(COMMAND_RETRY_POLICY, 8, jitter_fraction=0.0) == 10.0

    def test_overflow_returns_cap(self) -> None:
        """Test that huge attempt numbers do not overflow."""
        assert compute_delay(DEFAULT_RETRY_POLICY, 100_000) == 30.0

    def test_attempt_must_be_positive(self) -> None:
        """Test that attempt numbers start at 1."""
        with pytest.raises(ValueError, match="attempt must be >= 1"):
            compute_delay(DEFAULT_RETRY_POLICY, 0)


# =============================================================================
# execute()
# =============================================================================


class TestExecute:
    """Tests for execute()."""

    @pytest.mark.asyncio
    async def test_success_first_try(self) -> None:
        """Test that a successful call returns without sleeping."""
        operation = AsyncMock(return_value={"ok": True})
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await execute(operation)
        assert result == {"ok": True}
        assert operation.await_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transient_then_success(self) -> None:
        """Test that transient failures are retried with growing delays."""
        operation = AsyncMock(side_effect=[_transient(), _transient(), "done"])
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await execute(operation, DEFAULT_RETRY_POLICY)

        assert result == "done"
        assert operation.await_count == 3
        assert mock_sleep.await_count == 2
        first, second = (call.args[0] for call in mock_sleep.await_args_list)
        assert 1.0 <= first < 1.1
        assert 2.0 <= second < 2.2

    @pytest.mark.asyncio
    async def test_permanent_fails_fast(self) -> None:
        """Test that a permanent error is raised after one attempt."""
        error = _permanent()
        operation = AsyncMock(side_effect=error)
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(StoreApiError) as exc_info:
                await execute(operation, description="update page")

        assert exc_info.value is error
        assert operation.await_count == 1
        mock_sleep.assert_not_awaited()
        assert exc_info.value.__notes__ == [
            "update page: gave up after 1/5 attempts (permanent)"
        ]

    @pytest.mark.asyncio
    async def test_user_errors_not_retried(self) -> None:
        """Test that mutation userErrors are raised immediately."""
        operation = AsyncMock(side_effect=UserErrorsError([{"message": "Title is invalid"}]))
        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(UserErrorsError):
                await execute(operation)
        assert operation.await_count == 1

    @pytest.mark.asyncio
    async def test_unknown_fails_closed(self) -> None:
        """Test that unrecognised errors are not retried."""
        operation = AsyncMock(side_effect=KeyError("handle"))
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(KeyError) as exc_info:
                await execute(operation)

        assert operation.await_count == 1
        mock_sleep.assert_not_awaited()
        assert "(unknown)" in exc_info.value.__notes__[0]

    @pytest.mark.asyncio
    async def test_exhaustion_raises_last_error(self) -> None:
        """Test that the last transient error propagates once attempts run out."""
        errors = [_transient(), _transient(), _transient()]
        operation = AsyncMock(side_effect=errors)
        policy = DEFAULT_RETRY_POLICY.merge(max_attempts=3)
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(StoreApiError) as exc_info:
                await execute(operation, policy, description="list pages")

        assert exc_info.value is errors[-1]
        assert operation.await_count == 3
        assert mock_sleep.await_count == 2
        assert exc_info.value.__notes__ == [
            "list pages: gave up after 3/3 attempts (transient)"
        ]

    @pytest.mark.asyncio
    async def test_single_attempt_policy(self) -> None:
        """Test that max_attempts=1 disables retry."""
        operation = AsyncMock(side_effect=_transient())
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(StoreApiError):
                await execute(operation, RetryPolicy(max_attempts=1))
        assert operation.await_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_custom_classifier(self) -> None:
        """Test that an explicit classifier overrides the policy's one."""
        classifier = ErrorClassifier(retryable_status_codes={418})
        teapot = StoreApiError("API request failed (418)", status_code=418)
        operation = AsyncMock(side_effect=[teapot, "brewed"])
        with patch("asyncio.sleep", new_callable=AsyncMock):
            result = await execute(operation, classifier=classifier)
        assert result == "brewed"


# =============================================================================
# execute_detailed()
# =============================================================================


class TestExecuteDetailed:
    """Tests for execute_detailed()."""

    @pytest.mark.asyncio
    async def test_success_result(self) -> None:
        """Test the result of a call that recovers."""
        operation = AsyncMock(side_effect=[_transient(), 42])
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await execute_detailed(operation)

        assert result.success
        assert result.value == 42
        assert result.attempts == 2
        assert result.error is None
        assert result.total_delay_seconds == mock_sleep.await_args_list[0].args[0]

    @pytest.mark.asyncio
    async def test_failure_result(self) -> None:
        """Test the result of a permanently failing call."""
        error = _permanent()
        operation = AsyncMock(side_effect=error)
        with patch("asyncio.sleep", new_callable=AsyncMock):
            result = await execute_detailed(operation)

        assert not result.success
        assert result.error is error
        assert result.attempts == 1
        assert result.total_delay_seconds == 0.0
        assert result.classification is not None
        assert result.classification.error_class == ErrorClass.PERMANENT

    @pytest.mark.asyncio
    async def test_exhausted_result_carries_last_error(self) -> None:
        """Test that the final attempt of a transient failure reports its own error."""
        errors = [_transient(), _transient()]
        operation = AsyncMock(side_effect=errors)
        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await execute_detailed(operation, RetryPolicy(max_attempts=2))

        assert not result.success
        assert result.error is errors[1]
        assert result.attempts == 2
        assert mock_sleep.await_count == 1
        assert result.classification is not None
        assert result.classification.error_class == ErrorClass.TRANSIENT

    @pytest.mark.asyncio
    async def test_none_value_is_success(self) -> None:
        """Test that an operation returning None is returned, not treated as a failure."""
        operation = AsyncMock(return_value=None)
        assert await execute(operation) is None
        assert operation.await_count == 1


# =============================================================================
# RetryPolicy
# =============================================================================


class TestRetryPolicy:
    """Tests for RetryPolicy validation and merging."""

    def test_defaults(self) -> None:
        """Test the shared default policy."""
        assert DEFAULT_RETRY_POLICY.max_attempts == 5
        assert DEFAULT_RETRY_POLICY.base_delay_seconds == 1.0
        assert DEFAULT_RETRY_POLICY.max_delay_seconds == 30.0
        assert DEFAULT_RETRY_POLICY.backoff_multiplier == 2.0
        assert DEFAULT_RETRY_POLICY.retryable_status_codes == frozenset(
            {408, 429, 500, 502, 503, 504}
        )

    def test_command_policy(self) -> None:
        """Test the per-item policy used by pull and push loops."""
        assert COMMAND_RETRY_POLICY.max_attempts == 3
        assert COMMAND_RETRY_POLICY.max_delay_seconds == 10.0

    def test_merge_ignores_none(self) -> None:
        """Test that None overrides keep the base value."""
        merged = DEFAULT_RETRY_POLICY.merge(max_attempts=None, base_delay_seconds=0.5)
        assert merged.max_attempts == 5
        assert merged.base_delay_seconds == 0.5
        assert DEFAULT_RETRY_POLICY.base_delay_seconds == 1.0

    def test_merge_validates(self) -> None:
        """Test that an invalid merge is rejected."""
        with pytest.raises(pydantic.ValidationError):
            DEFAULT_RETRY_POLICY.merge(max_attempts=0)

    def test_base_above_max_rejected(self) -> None:
        """Test that base_delay_seconds must not exceed max_delay_seconds."""
        with pytest.raises(pydantic.ValidationError, match="must not exceed"):
            RetryPolicy(base_delay_seconds=60, max_delay_seconds=30)

    def test_frozen(self) -> None:
        """Test that policies are immutable."""
        with pytest.raises(pydantic.ValidationError):
            DEFAULT_RETRY_POLICY.max_attempts = 2  # type: ignore[misc]
