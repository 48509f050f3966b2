"""Rich output formatting for the storesync CLI.

All commands print through the shared ``console``. Sync progress goes
through a ``SyncReporter`` whose console honours --quiet.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.table import Table

from storesync.sync.reporting import SyncReporter

from .helpers import is_quiet

# =============================================================================
# Shared console instance
# =============================================================================

console = Console()


def create_reporter(dry_run: bool) -> SyncReporter:
    """Reporter for one pull or push; silent under --quiet."""
    if is_quiet():
        return SyncReporter(Console(quiet=True), dry_run=dry_run)
    return SyncReporter(console, dry_run=dry_run)


# =============================================================================
# Tables
# =============================================================================


def shop_table(shop: dict[str, Any], scopes: Sequence[str]) -> Table:
    """Table describing the store behind a set of credentials."""
    table = Table(title="Store", show_header=False, box=None)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    for label, key in (
        ("Name", "name"),
        ("Domain", "myshopify_domain"),
        ("Primary domain", "domain"),
        ("Plan", "plan_display_name"),
        ("Email", "email"),
    ):
        if shop.get(key):
            table.add_row(label, str(shop[key]))
    table.add_row("Scopes", ", ".join(scopes) if scopes else "[dim]none[/dim]")
    return table


__all__ = ["console", "create_reporter", "shop_table"]
