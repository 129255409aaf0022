"""Project tree walking, exclusion rules and file hashing."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple


@dataclass(frozen=True)
class ExcludeRule:
    """Exclusion entry taken from ``excluded_directories`` or ``excluded_files``.

    Bare names (``vendor``) match any path segment with that name. Entries
    containing a slash (``src/legacy``) match that relative path and
    everything beneath it.
    """

    pattern: str

    @property
    def has_slash(self) -> bool:
        return "/" in self.pattern

    def matches(self, rel_path: str) -> bool:
        if not self.pattern:
            return False
        if self.has_slash:
            return rel_path == self.pattern or rel_path.startswith(f"{self.pattern}/")
        return rel_path.rsplit("/", 1)[-1] == self.pattern


def _build_rules(patterns: Iterable[str]) -> Tuple[ExcludeRule, ...]:
    rules: List[ExcludeRule] = []
    for raw in patterns:
        pattern = str(raw).strip().replace("\\", "/").strip("/")
        if pattern:
            rules.append(ExcludeRule(pattern))
    return tuple(rules)


@dataclass(frozen=True)
class PathFilter:
    """Directory and file exclusions applied by every scan."""

    directories: Tuple[ExcludeRule, ...] = field(default_factory=tuple)
    files: Tuple[ExcludeRule, ...] = field(default_factory=tuple)

    @classmethod
    def from_lists(
        cls,
        directories: Sequence[str] = (),
        files: Sequence[str] = (),
    ) -> "PathFilter":
        return cls(directories=_build_rules(directories), files=_build_rules(files))

    def skip_directory(self, rel_path: str) -> bool:
        return any(rule.matches(rel_path) for rule in self.directories)

    def skip_file(self, rel_path: str) -> bool:
        return any(rule.matches(rel_path) for rule in self.files)


def iter_files(root: Path, path_filter: PathFilter | None = None) -> Iterator[Path]:
    """Yield every file below ``root`` that survives ``path_filter``, in sorted order."""
    path_filter = path_filter or PathFilter()
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept_dirs = []
        for name in sorted(dirnames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if path_filter.skip_directory(rel_path):
                continue
            kept_dirs.append(name)
        dirnames[:] = kept_dirs

        for filename in sorted(filenames):
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if path_filter.skip_file(rel_path):
                continue
            yield current_dir / filename


def relative_path(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def hash_files(paths: Iterable[Path]) -> str:
    """Concatenate the content hashes of the existing files in ``paths``."""
    parts: List[str] = []
    for path in paths:
        if path.is_file():
            parts.append(hash_file(path))
    return "".join(parts)


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def read_text(path: Path) -> str | None:
    """Return the file's text, or None when it is missing or unreadable."""
    try:
        if path.is_file():
            return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    return None


__all__ = [
    "ExcludeRule",
    "PathFilter",
    "hash_file",
    "hash_files",
    "hash_text",
    "iter_files",
    "read_text",
    "relative_path",
]
