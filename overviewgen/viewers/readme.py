"""README section."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

from ..scanner import read_text
from .base import FileViewer

_README_PATTERN = re.compile(r"^readme(\.md)?$", re.IGNORECASE)


class ReadmeViewer(FileViewer):
    name = "README"
    key = "readme"

    def files(self, root: Path) -> List[Path]:
        readme = find_readme(root)
        return [readme] if readme else []

    def generate(self, root: Path) -> str:
        readme = find_readme(root)
        content = read_text(readme) if readme else None
        if content is None:
            return self.heading() + "No README file found in the project root.\n"
        return self.heading() + _demote_headings(content).rstrip("\n") + "\n"


def find_readme(root: Path) -> Optional[Path]:
    try:
        candidates = sorted(path for path in root.iterdir() if path.is_file())
    except OSError:
        return None
    for path in candidates:
        if _README_PATTERN.match(path.name):
            return path
    return None


def _demote_headings(content: str) -> str:
    """Push README headings one level down so the section keeps a single top heading."""
    lines = []
    in_fence = False
    for line in content.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
        if not in_fence and line.startswith("#"):
            line = "#" + line
        lines.append(line)
    return "\n".join(lines)


__all__ = ["ReadmeViewer", "find_readme"]
