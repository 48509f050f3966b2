"""Mirror-mode reconciliation.

Deletion sets are plain set differences by a stable key:

- push mirror: remote items whose key is absent locally are deleted remotely
- pull mirror: local files whose name is absent remotely are deleted locally,
  together with their ``.meta`` sidecars

Deletion sets are always computed from complete listings. A ``max_items``
cap limits how many items are transferred, never which items count as present.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from collections.abc import Set as AbstractSet
from pathlib import Path
from typing import TypeVar

from storesync.core.constants import META_EXTENSION
from storesync.core.logging import get_logger

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

_logger = get_logger("reconcile")


def sidecar_path(path: Path) -> Path:
    """Path of the ``.meta`` sidecar that belongs to ``path``."""
    return path.with_name(path.name + META_EXTENSION)


def is_sidecar(name: str) -> bool:
    return name.endswith(META_EXTENSION)


def compute_deletions(
    local_keys: AbstractSet[K],
    remote_items: Iterable[T],
    key_of: Callable[[T], K],
) -> list[T]:
    """Remote items whose key is not present locally (push mirror).

    Args:
        local_keys: Keys of the local items.
        remote_items: Complete remote listing.
        key_of: Pure key function, the same one used to name local files.

    Returns:
        The remote items to delete, in listing order.
    """
    to_delete = [item for item in remote_items if key_of(item) not in local_keys]
    _logger.debug("reconcile.deletions_computed", direction="push", count=len(to_delete))
    return to_delete


def compute_local_deletions(local_keys: Iterable[K], remote_keys: AbstractSet[K]) -> list[K]:
    """Local keys that are not present remotely (pull mirror), sorted."""
    to_delete = sorted((k for k in set(local_keys) if k not in remote_keys), key=str)
    _logger.debug("reconcile.deletions_computed", direction="pull", count=len(to_delete))
    return to_delete


def _list_files(directory: Path, recursive: bool) -> set[str]:
    entries = directory.rglob("*") if recursive else directory.iterdir()
    return {p.relative_to(directory).as_posix() for p in entries if p.is_file()}


def find_local_files_to_delete(
    directory: Path,
    remote_names: AbstractSet[str],
    *,
    extension: str | None = None,
    recursive: bool = False,
) -> list[str]:
    """Local files with no remote counterpart, including their sidecars.

    Args:
        directory: Resource directory to scan.
        remote_names: File names (relative, POSIX separators) the remote side has.
        extension: Only primary files with this suffix are considered.
        recursive: Scan subdirectories too.

    Returns:
        Relative names to delete. Each primary file is followed by its
        sidecar when one exists; sidecars whose primary file is gone are
        included as well. Sidecars are never treated as primary files.
    """
    if not directory.is_dir():
        return []

    files = _list_files(directory, recursive)
    to_delete: list[str] = []

    for name in sorted(files):
        if is_sidecar(name):
            continue
        if extension and not name.endswith(extension):
            continue
        if name in remote_names:
            continue
        to_delete.append(name)
        meta = name + META_EXTENSION
        if meta in files:
            to_delete.append(meta)

    for name in sorted(files):
        if not is_sidecar(name):
            continue
        primary = name[: -len(META_EXTENSION)]
        if primary in files or primary in remote_names:
            continue
        if extension and not primary.endswith(extension):
            continue
        to_delete.append(name)

    return to_delete


def delete_local_files(directory: Path, names: Iterable[str]) -> int:
    """Delete files (and each one's sidecar) under ``directory``.

    Missing files and sidecars are skipped silently. A file that cannot be
    removed is logged and skipped.

    Returns:
        Number of files actually removed, sidecars included.
    """
    deleted = 0
    for name in names:
        path = directory / name
        try:
            if path.is_file():
                path.unlink()
                deleted += 1
                _logger.info("reconcile.local_file_deleted", file=name)
            if not is_sidecar(name):
                meta = sidecar_path(path)
                if meta.is_file():
                    meta.unlink()
                    deleted += 1
                    _logger.info("reconcile.local_file_deleted", file=name + META_EXTENSION)
        except OSError as e:
            _logger.error("reconcile.delete_failed", file=name, error=str(e))
    return deleted


def warn_if_capped_mirror(max_items: int | None, mirror: bool, resource: str) -> bool:
    """Log a warning when a sampling cap is combined with mirror mode.

    Returns:
        True if the warning was emitted.
    """
    if mirror and max_items is not None:
        _logger.warning(
            "reconcile.capped_mirror",
            resource=resource,
            max_items=max_items,
            note="deletions use the full listing; the cap only limits transfers",
        )
        return True
    return False


__all__ = [
    "compute_deletions",
    "compute_local_deletions",
    "delete_local_files",
    "find_local_files_to_delete",
    "is_sidecar",
    "sidecar_path",
    "warn_if_capped_mirror",
]
