"""Package manifest sections (composer.json, package.json)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from ..scanner import read_text
from .base import FileViewer


class ManifestViewer(FileViewer):
    """Pretty-prints a JSON manifest found at the project root."""

    manifest: str = ""

    def files(self, root: Path) -> List[Path]:
        return [root / self.manifest]

    def generate(self, root: Path) -> str:
        content = read_text(root / self.manifest)
        if content is None:
            return self.heading() + f"No {self.manifest} file found in the project root.\n"
        try:
            content = json.dumps(json.loads(content), indent=4, ensure_ascii=False)
        except json.JSONDecodeError:
            content = content.rstrip("\n")
        return self.heading() + "```json\n" + content + "\n```\n"


class ComposerJsonViewer(ManifestViewer):
    name = "Composer JSON"
    key = "composer_json"
    manifest = "composer.json"


class PackageJsonViewer(ManifestViewer):
    name = "Package JSON"
    key = "package_json"
    manifest = "package.json"


__all__ = ["ComposerJsonViewer", "ManifestViewer", "PackageJsonViewer"]
