"""Shared utilities for storesync CLI commands.

This module contains helpers used across the CLI command modules:
- Output level management (--verbose / --quiet)
- Logging configuration from global options
- Settings loading (--config)
- Running a sync coroutine with consistent error reporting
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Literal, TypeVar

import httpx
import pydantic
import typer
import yaml
from rich.console import Console
from rich.markup import escape

from storesync.core.config import StoreSettings
from storesync.core.errors import StoreSyncError
from storesync.core.logging import configure_logging, get_logger

T = TypeVar("T")

_logger = get_logger("cli")


# =============================================================================
# Output level management
# =============================================================================


class OutputLevel(str, Enum):
    """Output verbosity level."""

    QUIET = "quiet"  # Errors only
    NORMAL = "normal"
    VERBOSE = "verbose"  # Also lowers the default log level to INFO


_output_level: OutputLevel = OutputLevel.NORMAL


def get_output_level() -> OutputLevel:
    return _output_level


def set_output_level(level: OutputLevel) -> None:
    global _output_level
    _output_level = level


def is_verbose() -> bool:
    return _output_level == OutputLevel.VERBOSE


def is_quiet() -> bool:
    return _output_level == OutputLevel.QUIET


# =============================================================================
# Logging configuration
# =============================================================================


@dataclass
class CliLoggingConfig:
    """Logging options collected from the global CLI callbacks.

    ``level`` stays None unless given explicitly, so --verbose can pick
    a lower default.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None
    file: Path | None = None
    format: Literal["json", "console"] = "console"
    configured: bool = False


_log_config = CliLoggingConfig()


def get_log_level() -> str:
    """Effective log level."""
    if _log_config.level is not None:
        return _log_config.level
    return "INFO" if is_verbose() else "WARNING"


def set_log_level(level: str) -> None:
    _log_config.level = level.upper()  # type: ignore[assignment]


def get_log_file() -> Path | None:
    return _log_config.file


def set_log_file(path: Path | None) -> None:
    _log_config.file = path


def get_log_format() -> str:
    return _log_config.format


def set_log_format(fmt: str) -> None:
    _log_config.format = fmt.lower()  # type: ignore[assignment]


def configure_global_logging(console: Console) -> None:
    """Configure logging from the global CLI options, once per session.

    Args:
        console: Rich console for error output.

    Raises:
        typer.Exit: If the options are invalid.
    """
    if _log_config.configured:
        return

    try:
        configure_logging(
            level=get_log_level(),  # type: ignore[arg-type]
            format=_log_config.format,
            file_path=_log_config.file,
        )
        _log_config.configured = True
    except ValueError as e:
        console.print(f"[red]Logging configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


def reset_logging_state() -> None:
    """Reset all global CLI state (used by tests)."""
    global _log_config, _settings_file
    _log_config = CliLoggingConfig()
    _settings_file = None
    set_output_level(OutputLevel.NORMAL)


# =============================================================================
# Settings
# =============================================================================

_settings_file: Path | None = None


def set_settings_file(path: Path | None) -> None:
    global _settings_file
    _settings_file = path


def load_settings(console: Console) -> StoreSettings:
    """Settings from --config, or defaults.

    Raises:
        typer.Exit: If the file cannot be read or is invalid.
    """
    if _settings_file is None:
        return StoreSettings()
    try:
        return StoreSettings.from_yaml(_settings_file)
    except (OSError, yaml.YAMLError, pydantic.ValidationError) as e:
        console.print(f"[red]Error loading config:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


# =============================================================================
# Command execution
# =============================================================================


def run_command(console: Console, coro: Coroutine[Any, Any, T]) -> T:
    """Run a command coroutine and turn failures into exit code 1.

    Store and transport errors print a one-line message; anything else
    propagates with its traceback.
    """
    try:
        return asyncio.run(coro)
    except StoreSyncError as e:
        _logger.error("cli.command_failed", error=str(e), error_type=type(e).__name__)
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None
    except httpx.HTTPError as e:
        _logger.error("cli.command_failed", error=str(e), error_type=type(e).__name__)
        console.print(f"[red]Network error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None


__all__ = [
    "CliLoggingConfig",
    "OutputLevel",
    "configure_global_logging",
    "get_log_file",
    "get_log_format",
    "get_log_level",
    "get_output_level",
    "is_quiet",
    "is_verbose",
    "load_settings",
    "reset_logging_state",
    "run_command",
    "set_log_file",
    "set_log_format",
    "set_log_level",
    "set_output_level",
    "set_settings_file",
]
