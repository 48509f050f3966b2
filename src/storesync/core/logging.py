"""Structured logging infrastructure for storesync.

Provides structured logging using structlog with sync-specific context
such as resource, direction, and component names. Supports console and
JSON output, plus an optional rotating log file.

Example usage:
    from storesync.core.logging import get_logger, configure_logging, with_context

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("retry")

    # Log with auto-context
    logger.info("retry.attempt_failed", attempt=2)

    # Use sync context for automatic correlation
    ctx = SyncContext(resource="pages", direction="pull")
    with with_context(ctx):
        logger.info("pull.started")  # Automatically includes resource, run_id
"""

from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Sensitive field patterns that should never be logged
SENSITIVE_PATTERNS = frozenset({
    "access_token",
    "token",
    "secret",
    "password",
    "credential",
    "authorization",
})


@dataclass(frozen=True)
class SyncContext:
    """Immutable context for correlating log entries across one pull or push.

    Attributes:
        resource: Resource being synchronized (e.g., "pages", "menus").
        direction: "pull" or "push".
        run_id: Unique ID per CLI invocation.
        site: Store domain the command talks to.
    """

    resource: str
    direction: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    site: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert context to a dictionary for logging (excludes None values)."""
        result: dict[str, Any] = {
            "resource": self.resource,
            "direction": self.direction,
            "run_id": self.run_id,
        }
        if self.site is not None:
            result["site"] = self.site
        return result


# Using ContextVar ensures proper isolation in async code
_current_context: ContextVar[SyncContext | None] = ContextVar(
    "storesync_context", default=None
)


def get_current_context() -> SyncContext | None:
    """Get the current SyncContext if set."""
    return _current_context.get()


@contextmanager
def with_context(ctx: SyncContext) -> Iterator[SyncContext]:
    """Context manager that sets SyncContext for the duration of a block.

    Args:
        ctx: The SyncContext to use for the block.

    Yields:
        The SyncContext that was set.
    """
    token = _current_context.set(ctx)
    try:
        yield ctx
    finally:
        _current_context.reset(token)


def _sanitize_value(key: str, value: Any) -> Any:
    key_lower = key.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that redacts sensitive fields.

    Args:
        logger: The wrapped logger object.
        method_name: The name of the method called on the logger.
        event_dict: The event dict containing all bound and event data.

    Returns:
        Sanitized event dict with sensitive values redacted.
    """
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {
                k: _sanitize_value(k, v) for k, v in value.items()
            }
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


def _add_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds SyncContext fields to log entries.

    Explicit bindings take precedence over context fields.
    """
    ctx = get_current_context()
    if ctx is not None:
        for key, value in ctx.to_dict().items():
            if key not in event_dict:
                event_dict[key] = value
    return event_dict


class SyncLogger:
    """Logger wrapper around structlog bound to a component name.

    Note: the underlying structlog logger is resolved on every call so that
    loggers created at module import time still respect configuration set
    later via configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    def bind(self, **context: Any) -> SyncLogger:
        """Create a new logger with additional bound context.

        Args:
            **context: Additional context to bind (e.g., handle, url).

        Returns:
            A new SyncLogger with the additional context bound.
        """
        new_logger = SyncLogger.__new__(SyncLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback.

        Should be called from within an exception handler.
        """
        self._get_logger().exception(event, **kw)


def _get_processors(renderer: Processor, include_timestamps: bool) -> list[Processor]:
    """Build the processor chain shared by console and JSON output."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
        _add_context,
    ]

    if include_timestamps:
        processors.append(_add_timestamp)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ])
    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Configure storesync structured logging.

    This should be called once at application startup before any logging occurs.

    Args:
        level: Minimum log level to capture.
        format: "json" for structured output, "console" for human-readable.
        file_path: Optional file path; when set, logs go to a rotating file
            instead of stderr.
        max_file_size_mb: Maximum log file size before rotation (MB).
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to include ISO8601 timestamps in log entries.

    Raises:
        ValueError: If the level or format is not recognised.
    """
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        raise ValueError(f"Unknown log level: {level}")
    if format not in ("json", "console"):
        raise ValueError(f"Unknown log format: {format}")

    log_level = getattr(logging, level)

    handler: logging.Handler
    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            file_path,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    if format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        # No colors when writing to a file
        renderer = structlog.dev.ConsoleRenderer(colors=file_path is None)

    # NOTE: cache_logger_on_first_use=False ensures loggers respect runtime config
    # even when created at module import time before configure_logging() is called
    structlog.configure(
        processors=_get_processors(renderer, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> SyncLogger:
    """Get a logger for a component.

    Args:
        component: The component name (e.g., "retry", "pagination", "cli").
        **initial_context: Additional context to bind.

    Returns:
        A SyncLogger instance bound to the component.
    """
    return SyncLogger(component, **initial_context)


__all__ = [
    "SENSITIVE_PATTERNS",
    "SyncContext",
    "SyncLogger",
    "configure_logging",
    "get_current_context",
    "get_logger",
    "with_context",
]
