"""Pagination, mirror reconciliation, and sync reporting."""

from storesync.sync.pagination import (
    Page,
    PageFetcher,
    fetch_all,
    graphql_page_fetcher,
    parse_next_link,
    rest_page_fetcher,
)
from storesync.sync.reconcile import (
    compute_deletions,
    compute_local_deletions,
    delete_local_files,
    find_local_files_to_delete,
    warn_if_capped_mirror,
)
from storesync.sync.reporting import BatchResult, SyncReport, SyncReporter

__all__ = [
    "BatchResult",
    "Page",
    "PageFetcher",
    "SyncReport",
    "SyncReporter",
    "compute_deletions",
    "compute_local_deletions",
    "delete_local_files",
    "fetch_all",
    "find_local_files_to_delete",
    "graphql_page_fetcher",
    "parse_next_link",
    "rest_page_fetcher",
    "warn_if_capped_mirror",
]
