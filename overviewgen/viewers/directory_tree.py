"""Directory layout section rendered as an ASCII tree."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from ..scanner import PathFilter, hash_text
from .base import Viewer


class DirectoryTreeViewer(Viewer):
    """Depth-limited tree of the project, directories listed before files."""

    name = "Directory Tree"
    key = "directory_tree"

    def is_applicable(self, root: Path) -> bool:
        return True

    def fingerprint(self, root: Path) -> str:
        return hash_text("\n".join(self.tree_lines(root)))

    def generate(self, root: Path) -> str:
        lines = [root.name or str(root)] + self.tree_lines(root)
        return self.heading() + "```\n" + "\n".join(lines) + "\n```\n"

    def tree_lines(self, root: Path) -> List[str]:
        lines: List[str] = []
        self._walk(root, "", "", self.context.path_filter(), self.config.max_depth, 0, lines)
        return lines

    def _walk(
        self,
        directory: Path,
        rel_dir: str,
        prefix: str,
        path_filter: PathFilter,
        max_depth: int,
        depth: int,
        lines: List[str],
    ) -> None:
        if depth >= max_depth:
            return
        try:
            entries = list(os.scandir(directory))
        except OSError:
            return

        kept = []
        for entry in entries:
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            is_dir = entry.is_dir()
            if is_dir and path_filter.skip_directory(rel_path):
                continue
            if not is_dir and path_filter.skip_file(rel_path):
                continue
            kept.append((not is_dir, entry.name.lower(), entry.name, is_dir, rel_path))
        kept.sort()

        for index, (_, _, item, is_dir, rel_path) in enumerate(kept):
            is_last = index == len(kept) - 1
            connector = "└── " if is_last else "├── "
            lines.append(f"{prefix}{connector}{item}")
            if is_dir:
                child_prefix = prefix + ("    " if is_last else "│   ")
                self._walk(
                    directory / item,
                    rel_path,
                    child_prefix,
                    path_filter,
                    max_depth,
                    depth + 1,
                    lines,
                )


__all__ = ["DirectoryTreeViewer"]
