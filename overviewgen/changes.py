"""Whole-tree snapshots and the change sets computed between them."""

from __future__ import annotations

from pathlib import Path

from .models import ChangeKind, ChangeSet, FileSnapshot
from .scanner import PathFilter, hash_file, iter_files, relative_path


def file_fingerprint(path: Path) -> str:
    """Content hash combined with the modification time in nanoseconds."""
    stat_result = path.stat()
    return f"{hash_file(path)}-{stat_result.st_mtime_ns}"


def take_snapshot(root: Path, path_filter: PathFilter | None = None) -> FileSnapshot:
    """Fingerprint every file below ``root`` that ``path_filter`` keeps."""
    snapshot: FileSnapshot = {}
    for path in iter_files(root, path_filter):
        try:
            snapshot[relative_path(path, root)] = file_fingerprint(path)
        except OSError:
            # Removed between the directory listing and the stat call.
            continue
    return snapshot


def diff_snapshots(old: FileSnapshot, new: FileSnapshot) -> ChangeSet:
    """Classify every path whose fingerprint differs between ``old`` and ``new``."""
    changes: ChangeSet = {}
    for path, fingerprint in old.items():
        if path not in new:
            changes[path] = ChangeKind.DELETED
        elif new[path] != fingerprint:
            changes[path] = ChangeKind.MODIFIED
    for path in new:
        if path not in old:
            changes[path] = ChangeKind.CREATED
    return changes


__all__ = ["diff_snapshots", "file_fingerprint", "take_snapshot"]
