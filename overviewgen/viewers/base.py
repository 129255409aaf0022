"""Base classes for overview viewers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from ..config import Configuration
from ..models import ProjectType
from ..process import Runner, run_command
from ..scanner import PathFilter, hash_files


@dataclass(frozen=True)
class ViewerContext:
    """Shared inputs every viewer receives from the orchestrator."""

    project_type: ProjectType = field(default_factory=ProjectType)
    config: Configuration = field(default_factory=Configuration)
    runner: Runner = run_command
    output_files: tuple = ()

    def path_filter(self) -> PathFilter:
        return PathFilter.from_lists(
            self.config.excluded_directories,
            list(self.config.excluded_files) + list(self.output_files),
        )


class Viewer(ABC):
    """Contract for a single section of the overview document.

    Each instance owns the fingerprint it saw last; ``has_changed`` compares
    against it and then stores the new value.
    """

    name: str = ""
    key: str = ""

    def __init__(self, context: ViewerContext | None = None) -> None:
        self.context = context or ViewerContext()
        self._last_fingerprint: Optional[str] = None

    @property
    def project_type(self) -> ProjectType:
        return self.context.project_type

    @property
    def config(self) -> Configuration:
        return self.context.config

    @abstractmethod
    def is_applicable(self, root: Path) -> bool:
        """Return True when this viewer has something to say about ``root``."""

    @abstractmethod
    def generate(self, root: Path) -> str:
        """Render the Markdown section, starting with ``# {name}``."""

    @abstractmethod
    def fingerprint(self, root: Path) -> str:
        """Hash of everything the rendered section depends on."""

    def has_changed(self, root: Path) -> bool:
        current = self.fingerprint(root)
        if self._last_fingerprint is not None and current == self._last_fingerprint:
            return False
        self._last_fingerprint = current
        return True

    def not_applicable(self) -> str:
        return f"# {self.name}\n\nNot applicable for this project.\n"

    def heading(self) -> str:
        return f"# {self.name}\n\n"


class FileViewer(Viewer):
    """Viewer whose output depends on a fixed set of project files."""

    watched_files: tuple = ()

    def files(self, root: Path) -> Iterable[Path]:
        return [root / name for name in self.watched_files]

    def is_applicable(self, root: Path) -> bool:
        return any(path.is_file() for path in self.files(root))

    def fingerprint(self, root: Path) -> str:
        return hash_files(self.files(root))


__all__ = ["FileViewer", "Viewer", "ViewerContext"]
