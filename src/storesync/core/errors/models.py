"""Data models for error classification."""

from __future__ import annotations

from dataclasses import dataclass

from .codes import ErrorCategory, ErrorClass, ErrorCode


@dataclass(frozen=True)
class ClassifiedError:
    """A failure with its retry decision and the signature that produced it.

    Attributes:
        error: The original exception, untouched.
        error_class: Permanent, transient, or unknown.
        error_code: Structured code for the matched signature.
        status_code: HTTP status, when one was found on the error or in its message.
        reason: Short human-readable explanation of the match.
    """

    error: BaseException
    error_class: ErrorClass
    error_code: ErrorCode
    status_code: int | None = None
    reason: str = ""

    @property
    def category(self) -> ErrorCategory:
        return self.error_code.category

    @property
    def is_retryable(self) -> bool:
        return self.error_class.is_retryable

    @property
    def message(self) -> str:
        return str(self.error)
