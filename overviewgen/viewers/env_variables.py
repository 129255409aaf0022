"""Environment variable keys section; values are never emitted."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..scanner import read_text
from .base import FileViewer

_ENV_FILES = (
    (".env.example", "Example Environment Variables"),
    (".env.sample", "Sample Environment Variables"),
    (".env", "Current Environment Variables"),
)


class EnvVariablesViewer(FileViewer):
    name = "Environment Variables"
    key = "env_variables"
    watched_files = tuple(filename for filename, _ in _ENV_FILES)

    def generate(self, root: Path) -> str:
        parts = [
            self.heading(),
            "> Note: Only environment variable keys are shown, "
            "values are omitted for security reasons.\n\n",
        ]
        for filename, title in _ENV_FILES:
            content = read_text(root / filename)
            if content is None:
                continue
            parts.append(f"## {title}\n\n```\n")
            parts.extend(line + "\n" for line in mask_values(content))
            parts.append("```\n\n")
        return "".join(parts).rstrip("\n") + "\n"


def mask_values(content: str) -> List[str]:
    """Keep comments and keys, replace every assigned value with a placeholder."""
    masked: List[str] = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in line:
            masked.append(line)
            continue
        key = line.split("=", 1)[0]
        masked.append(f"{key}=<value omitted>")
    return masked


__all__ = ["EnvVariablesViewer", "mask_values"]
