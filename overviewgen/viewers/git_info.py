"""Version-control metadata section."""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..process import SubprocessFailure
from .base import Viewer

_logger = get_logger("viewers.git_info")

_CREDENTIALS = re.compile(r"(https?://)[^@/\s]*@")
_SENSITIVE = re.compile(r"(password|token|secret|key|credential)", re.IGNORECASE)


class GitInfoViewer(Viewer):
    """Remote URL, branches and local git configuration."""

    name = "Git Information"
    key = "git_info"

    def is_applicable(self, root: Path) -> bool:
        return (root / ".git").exists()

    def fingerprint(self, root: Path) -> str:
        if not self.is_applicable(root):
            return ""
        return (self._git(root, ["rev-parse", "HEAD"]) or "").strip()

    def generate(self, root: Path) -> str:
        sections: List[str] = []

        remote = (self._git(root, ["config", "--get", "remote.origin.url"]) or "").strip()
        if remote:
            remote = _CREDENTIALS.sub(r"\1", remote)
            sections.append(f"## Repository URL\n\n`{remote}`\n")

        branches = [
            line.strip()
            for line in (self._git(root, ["branch", "--all"]) or "").splitlines()
            if line.strip()
        ]
        if branches:
            sections.append("## Branches\n\n```\n" + "\n".join(branches) + "\n```\n")

        config_lines = [
            line
            for line in (self._git(root, ["config", "--list", "--local"]) or "").splitlines()
            if line.strip() and not _SENSITIVE.search(line)
        ]
        if config_lines:
            sections.append("## Git Configuration\n\n```\n" + "\n".join(config_lines) + "\n```\n")

        if not sections:
            return self.heading() + "No Git metadata could be read.\n"
        return self.heading() + "\n".join(sections)

    def _git(self, root: Path, args: Sequence[str]) -> Optional[str]:
        command = ["git", *args]
        try:
            return self.context.runner(command, cwd=root)
        except SubprocessFailure as exc:
            _logger.debug("git query failed: %s", exc)
            return None


__all__ = ["GitInfoViewer"]
