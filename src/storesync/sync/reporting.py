"""User-facing progress and summary output for pull and push.

Console output goes through rich; structured events go to the logger.
Dry-run output describes what would change without changing anything.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape

from storesync.core.logging import get_logger

_logger = get_logger("reporting")


@dataclass
class BatchResult:
    """Counts for one per-item loop (download, upload or delete)."""

    processed: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def record_failure(self, key: str, error: BaseException) -> None:
        self.failed += 1
        self.errors.append(f"{key}: {error}")


@dataclass
class SyncReport:
    """Outcome of one pull or push.

    Attributes:
        resource: Resource name.
        direction: "pull" or "push".
        path: Local resource directory.
        dry_run: Whether nothing was changed.
        planned: Items that would be (or were attempted to be) transferred.
        planned_deletions: Keys selected for deletion by mirror mode.
        transferred: Items downloaded or uploaded.
        deleted: Items (or local files, sidecars included) deleted.
        failed: Items that failed after retries.
        errors: Itemized error messages.
    """

    resource: str
    direction: str
    path: str
    dry_run: bool = False
    planned: int = 0
    planned_deletions: list[str] = field(default_factory=list)
    transferred: int = 0
    deleted: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.failed == 0


class SyncReporter:
    """Prints progress, dry-run plans and summaries to a rich console."""

    def __init__(self, console: Console | None = None, dry_run: bool = False) -> None:
        self.console = console or Console()
        self.dry_run = dry_run

    # =========================================================================
    # Dry-run output
    # =========================================================================

    def dry_run_header(self, operation: str) -> None:
        if not self.dry_run:
            return
        self.console.print("\n[bold yellow]=== DRY RUN MODE ===[/bold yellow]")
        self.console.print(f"Operation: {escape(operation)}")
        self.console.print("No changes will be made to the store\n")

    def planned_action(self, action: str, description: str) -> None:
        if self.dry_run:
            self.console.print(f"Would {action} {escape(description)}")
        else:
            _logger.info("sync.action", action=action, description=description)

    def dry_run_summary(
        self,
        item_type: str,
        *,
        to_transfer: int,
        transfer_label: str,
        to_delete: Sequence[str] | None = None,
    ) -> None:
        """Print the change summary of a dry run.

        Args:
            item_type: Capitalized resource name.
            to_transfer: Items that would be downloaded or uploaded.
            transfer_label: "sync" or "upload".
            to_delete: Keys mirror mode would delete, or None outside mirror mode.
        """
        if not self.dry_run:
            return
        self.console.print("\n[bold]--- Changes Summary ---[/bold]")
        self.console.print(f"{item_type} to {transfer_label}: {to_transfer}")
        if to_delete is not None:
            self.console.print(f"{item_type} to delete: {len(to_delete)}")
            if to_delete:
                self.console.print("\nItems to delete:")
                for key in to_delete:
                    self.console.print(f"  - {escape(key)}")
        self.console.print("\nTo apply these changes, run the same command without --dry-run")

    # =========================================================================
    # Progress and results
    # =========================================================================

    def info(self, message: str) -> None:
        self.console.print(escape(message))

    def progress(self, current: int, total: int, message: str) -> None:
        self.console.print(f"[dim]({current}/{total})[/dim] {escape(message)}")

    def warn(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/yellow]")

    def success(self, message: str) -> None:
        self.console.print(f"[green]{escape(message)}[/green]")

    def error_list(self, direction: str, errors: Sequence[str]) -> None:
        if not errors:
            return
        self.console.print(f"\n[yellow]Errors encountered during {direction}:[/yellow]")
        for error in errors:
            self.console.print(f"  - {escape(error)}")

    def summary(self, report: SyncReport) -> None:
        """Print the one-line result followed by any itemized errors."""
        if report.direction == "pull":
            parts = [f"Successfully pulled {report.resource} to {report.path}"]
            if report.transferred:
                parts.append(f"Downloaded: {report.transferred}")
        else:
            parts = [f"Successfully pushed {report.resource}"]
            if report.transferred:
                parts.append(f"Uploaded: {report.transferred}")
        if report.deleted:
            parts.append(f"Deleted: {report.deleted}")
        if report.failed:
            parts.append(f"Failed: {report.failed}")
        self.success(" | ".join(parts))
        self.error_list(report.direction, report.errors)


__all__ = ["BatchResult", "SyncReport", "SyncReporter"]
