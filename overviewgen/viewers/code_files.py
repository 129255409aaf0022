"""Full source dump used by the ``generate-all`` variant of the overview."""

from __future__ import annotations

from pathlib import Path
from typing import List, Tuple

from ..logging import get_logger
from ..scanner import PathFilter, iter_files, read_text, relative_path
from .base import Viewer

_logger = get_logger("viewers.code_files")

DEFAULT_EXTENSIONS: Tuple[str, ...] = (
    ".php",
    ".blade.php",
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    ".css",
    ".scss",
    ".sass",
    ".rb",
    ".rake",
    ".gemspec",
    ".ru",
    ".erb",
    ".haml",
    ".slim",
    ".yml",
    ".yaml",
    ".json",
    ".env",
    ".sh",
    ".bash",
)


class AllCodeFilesViewer(Viewer):
    """Embeds every code file of the project. Never cached."""

    name = "All Code Files"
    key = "all_code_files"

    def is_applicable(self, root: Path) -> bool:
        return True

    def fingerprint(self, root: Path) -> str:
        return ""

    def has_changed(self, root: Path) -> bool:
        return True

    @property
    def extensions(self) -> Tuple[str, ...]:
        configured = self.config.get("code_files.extensions")
        if isinstance(configured, list) and configured:
            return tuple(str(ext).lower() for ext in configured)
        return DEFAULT_EXTENSIONS

    def collect(self, root: Path) -> List[Tuple[str, str]]:
        """Return ``(relative_path, content)`` pairs sorted by path."""
        path_filter = PathFilter.from_lists(
            self.config.excluded_directories,
            list(self.config.excluded_files) + [".env", *self.context.output_files],
        )
        extensions = self.extensions
        collected: List[Tuple[str, str]] = []
        skipped = 0
        for path in iter_files(root, path_filter):
            if not path.name.lower().endswith(extensions):
                skipped += 1
                continue
            content = read_text(path)
            if content is None:
                continue
            collected.append((relative_path(path, root), content))
        _logger.debug(
            "Collected %d code files, skipped %d by extension", len(collected), skipped
        )
        return sorted(collected)

    def generate(self, root: Path) -> str:
        parts = [self.heading(), "This section contains all code files in the project.\n\n"]
        files = self.collect(root)
        if not files:
            parts.append("No code files found in the project.\n")
            return "".join(parts)
        for rel_path, content in files:
            parts.append(f"## File: {rel_path}\n\n```\n{content.rstrip()}\n```\n\n")
        return "".join(parts).rstrip("\n") + "\n"


__all__ = ["AllCodeFilesViewer", "DEFAULT_EXTENSIONS"]
