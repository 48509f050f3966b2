"""Base class for per-resource pull and push commands.

A subclass supplies the resource-specific parts (listing, key, file
content, upload, delete); ``ResourceSync`` supplies the flow shared by
every resource:

pull: list remote -> mirror diff against local files -> dry-run summary
      -> delete local extras -> download each item (+ ``.meta`` sidecar)
push: read local files -> list remote -> mirror diff
      -> dry-run summary -> upload each file -> delete remote extras

Each item is transferred through the resilient executor and failures are
collected per item; listing failures abort the command.
"""

from __future__ import annotations

import functools
import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

import yaml

from storesync.api.client import StoreClient
from storesync.api.graphql import GraphQLClient
from storesync.core.config.retry import COMMAND_RETRY_POLICY, RetryPolicy
from storesync.core.errors import ResourcePathError
from storesync.core.logging import SyncContext, get_logger, with_context
from storesync.execution.retry import execute
from storesync.sync.pagination import fetch_all, graphql_page_fetcher, rest_page_fetcher
from storesync.sync.reconcile import (
    compute_deletions,
    delete_local_files,
    find_local_files_to_delete,
    is_sidecar,
    sidecar_path,
    warn_if_capped_mirror,
)
from storesync.sync.reporting import BatchResult, SyncReport, SyncReporter

Item = dict[str, Any]

_logger = get_logger("resources")


@dataclass
class PullOptions:
    """Options of a pull command."""

    output: Path
    max_items: int | None = None
    dry_run: bool = False
    mirror: bool = False


@dataclass
class PushOptions:
    """Options of a push command."""

    input: Path
    dry_run: bool = False
    mirror: bool = False


@dataclass
class LocalItem:
    """A primary file found in a local resource directory.

    Attributes:
        handle: Reconciliation key derived from the file name.
        path: Absolute path of the primary file.
        metadata: Parsed sidecar, or None when missing or unreadable.
        remote: The remote item with the same handle, if any (set by push).
    """

    handle: str
    path: Path
    metadata: dict[str, Any] | None = None
    remote: dict[str, Any] | None = None

    @property
    def remote_id(self) -> Any:
        """ID of the matching remote item, or None when the item is new.

        The sidecar's ``id`` is not trusted; the item may have been deleted
        remotely since the pull.
        """
        if self.remote is None:
            return None
        return self.remote.get("id")

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8")

    def read_json(self) -> Any:
        return json.loads(self.read_text())


def write_metadata(path: Path, metadata: dict[str, Any]) -> Path:
    """Write the YAML sidecar of ``path`` and return its location."""
    meta = sidecar_path(path)
    meta.write_text(
        yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True),
        encoding="utf-8",
    )
    return meta


def read_metadata(path: Path) -> dict[str, Any] | None:
    """Read the YAML sidecar of ``path``.

    Returns:
        The mapping, or None when the sidecar is missing or unreadable.
    """
    meta = sidecar_path(path)
    if not meta.is_file():
        return None
    try:
        data = yaml.safe_load(meta.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        _logger.warning("resources.metadata_unreadable", file=str(meta), error=str(e))
        return None
    return data if isinstance(data, dict) else None


class ResourceSync(ABC):
    """Shared pull/push flow for one resource type."""

    name: ClassVar[str]
    """Resource name; also the directory name under the sync root."""

    extension: ClassVar[str] = ".json"
    """Suffix of primary files."""

    def __init__(
        self,
        client: StoreClient,
        reporter: SyncReporter | None = None,
        *,
        item_policy: RetryPolicy = COMMAND_RETRY_POLICY,
        listing_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the command.

        Args:
            client: Transport for the target store.
            reporter: Console reporter (a default one when omitted).
            item_policy: Retry policy for each per-item transfer.
            listing_policy: Retry policy for each listing page.
        """
        self.client = client
        self.graphql = GraphQLClient(client)
        self.reporter = reporter or SyncReporter()
        self.item_policy = item_policy
        self.listing_policy = listing_policy or client.settings.retry

    # =========================================================================
    # Resource-specific hooks
    # =========================================================================

    @abstractmethod
    async def fetch_remote(self, max_items: int | None = None) -> list[Item]:
        """List remote items, stopping early once ``max_items`` are collected."""

    @abstractmethod
    def handle_of(self, item: Item) -> str:
        """Stable reconciliation key of a remote item."""

    @abstractmethod
    def extract_metadata(self, item: Item) -> dict[str, Any]:
        """Fields stored in the ``.meta`` sidecar."""

    @abstractmethod
    async def upload(self, local: LocalItem) -> None:
        """Create the remote item for a local file, or update ``local.remote``."""

    @abstractmethod
    async def delete_remote(self, item: Item) -> None:
        """Delete a remote item."""

    # =========================================================================
    # Overridable defaults
    # =========================================================================

    @property
    def item_type(self) -> str:
        return self.name.capitalize()

    def file_name(self, item: Item) -> str:
        """Primary file name (relative to the resource directory) of a remote item."""
        return f"{self.handle_of(item)}{self.extension}"

    def resource_path(self, root: Path) -> Path:
        return root / self.name

    def render(self, item: Item) -> str:
        """Text content of the primary file.

        Text resources override this; binary resources override ``download`` instead.
        """
        raise TypeError(f"{type(self).__name__} does not render text content")

    async def download(self, item: Item, directory: Path) -> None:
        """Write the primary file and its sidecar."""
        path = directory / self.file_name(item)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(item), encoding="utf-8")
        write_metadata(path, self.extract_metadata(item))

    async def write_extras(self, directory: Path) -> None:
        """Write files that are not tied to one item. Runs after the downloads."""

    def collect_local(self, directory: Path) -> list[LocalItem]:
        """Primary files of the resource directory, sorted by name."""
        items: list[LocalItem] = []
        for path in sorted(directory.iterdir()):
            if not path.is_file() or is_sidecar(path.name):
                continue
            if not path.name.endswith(self.extension):
                continue
            handle = path.name.removesuffix(self.extension)
            items.append(LocalItem(handle=handle, path=path, metadata=read_metadata(path)))
        return items

    def find_local_deletions(self, directory: Path, remote: Sequence[Item]) -> list[str]:
        remote_names = {self.file_name(item) for item in remote}
        return find_local_files_to_delete(directory, remote_names, extension=self.extension)

    # =========================================================================
    # Listing helpers for subclasses
    # =========================================================================

    async def _fetch_rest(
        self,
        path: str,
        key: str,
        max_items: int | None = None,
        params: dict[str, Any] | None = None,
    ) -> list[Item]:
        fetcher = rest_page_fetcher(self.client, path, key, resource=self.name, params=params)
        return await fetch_all(
            fetcher, max_items, self.listing_policy, description=f"{self.name} listing"
        )

    async def _fetch_graphql(
        self,
        document: str,
        connection_path: str,
        max_items: int | None = None,
        variables: dict[str, Any] | None = None,
    ) -> list[Item]:
        fetcher = graphql_page_fetcher(
            self.graphql,
            document,
            connection_path,
            variables=variables,
            resource=self.name,
        )
        return await fetch_all(
            fetcher, max_items, self.listing_policy, description=f"{self.name} listing"
        )

    # =========================================================================
    # Pull
    # =========================================================================

    async def pull(self, options: PullOptions) -> SyncReport:
        """Download remote items into ``<output>/<resource>``."""
        with with_context(SyncContext(self.name, "pull", site=self.client.site)):
            return await self._pull(options)

    async def _pull(self, options: PullOptions) -> SyncReport:
        reporter = self.reporter
        reporter.dry_run_header(f"Pull {self.name}{' (Mirror Mode)' if options.mirror else ''}")

        path = self.resource_path(options.output)
        reporter.planned_action("pull", f"{self.name} to: {path}")
        if not options.dry_run:
            path.mkdir(parents=True, exist_ok=True)

        if warn_if_capped_mirror(options.max_items, options.mirror, self.name):
            reporter.warn(
                "--max-items only limits downloads; mirror deletions use the full remote listing"
            )

        # Mirror mode needs the complete listing, a cap must not hide remote items
        remote = await self.fetch_remote(None if options.mirror else options.max_items)
        if options.max_items is not None and len(remote) > options.max_items:
            to_download = remote[: options.max_items]
        else:
            to_download = remote

        if options.max_items is not None:
            reporter.info(f"Limited to first {len(to_download)} {self.name} for testing")
        else:
            reporter.info(f"Found {len(remote)} remote {self.name} to sync")

        deletions: list[str] = []
        if options.mirror:
            deletions = self.find_local_deletions(path, remote)
            if deletions:
                reporter.info(f"Mirror mode: {len(deletions)} local files will be deleted")

        reporter.dry_run_summary(
            self.item_type,
            to_transfer=len(to_download),
            transfer_label="sync",
            to_delete=deletions if options.mirror else None,
        )

        report = SyncReport(
            resource=self.name,
            direction="pull",
            path=str(path),
            dry_run=options.dry_run,
            planned=len(to_download),
            planned_deletions=deletions,
        )
        if options.dry_run:
            return report

        if deletions:
            report.deleted = delete_local_files(path, deletions)

        if to_download:
            batch = await self._run_batch(
                to_download,
                "Downloading",
                functools.partial(self._download_item, directory=path),
                self.file_name,
            )
            report.transferred = batch.processed
            report.failed = batch.failed
            report.errors = batch.errors
        else:
            reporter.info(f"No {self.name} to sync")
        await self.write_extras(path)

        reporter.summary(report)
        _logger.info(
            "pull.completed",
            downloaded=report.transferred,
            deleted=report.deleted,
            failed=report.failed,
        )
        return report

    async def _download_item(self, item: Item, directory: Path) -> None:
        await self.download(item, directory)

    # =========================================================================
    # Push
    # =========================================================================

    async def push(self, options: PushOptions) -> SyncReport:
        """Upload ``<input>/<resource>`` to the store."""
        with with_context(SyncContext(self.name, "push", site=self.client.site)):
            return await self._push(options)

    def _require_directory(self, path: Path) -> None:
        if not path.exists():
            raise ResourcePathError(
                f"Directory does not exist: {path}\n"
                f"Expected structure: {path.parent}/{self.name}/"
            )
        if not path.is_dir():
            raise ResourcePathError(f"Path is not a directory: {path}")

    async def _push(self, options: PushOptions) -> SyncReport:
        reporter = self.reporter
        reporter.dry_run_header(f"Push {self.name}{' (Mirror Mode)' if options.mirror else ''}")

        path = self.resource_path(options.input)
        self._require_directory(path)
        reporter.planned_action("push", f"local {self.name} from {path}")

        local = self.collect_local(path)

        # The full listing decides create versus update, and mirror deletions
        remote = await self.fetch_remote()
        remote_by_handle = {self.handle_of(item): item for item in remote}
        for item in local:
            item.remote = remote_by_handle.get(item.handle)

        to_delete: list[Item] = []
        if options.mirror:
            to_delete = compute_deletions({item.handle for item in local}, remote, self.handle_of)
            if to_delete:
                reporter.info(
                    f"Mirror mode: {len(to_delete)} remote {self.name} will be deleted"
                )

        reporter.info(f"Found {len(local)} local {self.name} to upload")
        delete_keys = [self.file_name(item) for item in to_delete]
        reporter.dry_run_summary(
            self.item_type,
            to_transfer=len(local),
            transfer_label="upload",
            to_delete=delete_keys if options.mirror else None,
        )

        report = SyncReport(
            resource=self.name,
            direction="push",
            path=str(path),
            dry_run=options.dry_run,
            planned=len(local),
            planned_deletions=delete_keys,
        )
        if options.dry_run:
            return report

        if local:
            uploads = await self._run_batch(
                local,
                "Uploading",
                self.upload,
                lambda item: f"{item.handle}{self.extension}",
            )
        else:
            uploads = BatchResult()
            reporter.info(f"No {self.name} to upload")

        deletes = BatchResult()
        if to_delete:
            deletes = await self._run_batch(
                to_delete, "Deleting", self.delete_remote, self.handle_of
            )

        report.transferred = uploads.processed
        report.deleted = deletes.processed
        report.failed = uploads.failed + deletes.failed
        report.errors = uploads.errors + deletes.errors

        reporter.summary(report)
        _logger.info(
            "push.completed",
            uploaded=report.transferred,
            deleted=report.deleted,
            failed=report.failed,
        )
        return report

    # =========================================================================
    # Per-item loop
    # =========================================================================

    async def _run_batch(
        self,
        items: Sequence[Any],
        verb: str,
        action: Callable[[Any], Awaitable[None]],
        key_of: Callable[[Any], str],
    ) -> BatchResult:
        """Run ``action`` on each item through the executor, one at a time.

        A failing item is recorded and the loop moves on.
        """
        result = BatchResult()
        total = len(items)
        for index, item in enumerate(items, start=1):
            key = key_of(item)
            self.reporter.progress(index, total, f"{verb} {key}")
            try:
                await execute(
                    functools.partial(action, item),
                    self.item_policy,
                    description=f"{verb.lower()} {key}",
                )
            except Exception as e:
                _logger.warning("resources.item_failed", action=verb.lower(), key=key, error=str(e))
                self.reporter.warn(f"Failed: {key}: {e}")
                result.record_failure(key, e)
            else:
                result.processed += 1
        return result


__all__ = [
    "Item",
    "LocalItem",
    "PullOptions",
    "PushOptions",
    "ResourceSync",
    "read_metadata",
    "write_metadata",
]
