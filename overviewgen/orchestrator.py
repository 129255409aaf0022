"""Pipeline orchestration for generate, generate-all, watch and init flows."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence, Tuple

from .changes import take_snapshot
from .config import Configuration, write_default_config
from .detector import ProjectTypeDetector
from .logging import get_logger
from .models import ChangeSet, FileSnapshot
from .process import Runner, run_command
from .viewers import Viewer, ViewerContext, discover_viewers
from .watch import DEFAULT_INTERVAL, DEFAULT_MAX_DURATION, CancellationToken, Watcher, WatchSummary

ROOT_MARKERS: Tuple[str, ...] = ("composer.json", "Gemfile", ".git")


class ProjectRootNotFound(FileNotFoundError):
    """Raised when the project root does not exist or is not a directory."""


class OutputWriteError(RuntimeError):
    """Raised when the overview document cannot be written."""


@dataclass
class GenerationOutcome:
    """Result of a single generate or generate-all run."""

    path: Path
    status: str
    changed: List[str] = field(default_factory=list)

    @property
    def written(self) -> bool:
        return self.status == "written"


def find_project_root(start: Path | None = None) -> Path:
    """Return the nearest ancestor of ``start`` holding a project marker, else ``start``."""
    origin = Path(start or Path.cwd()).expanduser().resolve()
    for candidate in (origin, *origin.parents):
        if any((candidate / marker).exists() for marker in ROOT_MARKERS):
            return candidate
    return origin


def full_dump_name(output_file: str) -> str:
    """``ai-overview.md`` becomes ``ai-overview-all.md``, keeping any directory part."""
    path = PurePosixPath(output_file.replace("\\", "/"))
    return str(path.with_name(f"{path.stem}-all{path.suffix}"))


class Orchestrator:
    """Builds the viewer list for a project and assembles the overview document.

    Viewer instances are created once per orchestrator and reused across runs,
    which is what lets ``generate`` skip the write when nothing changed.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        config: Configuration | None = None,
        detector: ProjectTypeDetector | None = None,
        runner: Runner | None = None,
        viewers: Optional[Iterable[Viewer]] = None,
        include_code_files: bool = False,
    ) -> None:
        root_path = Path(root).expanduser()
        if not root_path.is_dir():
            raise ProjectRootNotFound(f"Project root not found: {root_path}")
        self.root = root_path.resolve()
        self.logger = get_logger("orchestrator")
        self.config = config or Configuration.load(self.root)
        self.detector = detector or ProjectTypeDetector()
        self.project_type = self.detector.detect(self.root)
        self.include_code_files = include_code_files
        self.context = ViewerContext(
            project_type=self.project_type,
            config=self.config,
            runner=runner or run_command,
            output_files=self.output_files,
        )
        self._viewer_overrides = list(viewers) if viewers is not None else None
        self._viewers: Optional[List[Viewer]] = None
        self._full_viewers: Optional[List[Viewer]] = None
        self.logger.debug("Detected %s at %s", self.project_type.description, self.root)

    @property
    def output_files(self) -> Tuple[str, str]:
        output_file = self.config.output_file
        return output_file, full_dump_name(output_file)

    @property
    def output_path(self) -> Path:
        return self.root / self.output_files[0]

    @property
    def full_output_path(self) -> Path:
        return self.root / self.output_files[1]

    def register_viewers(self, *, include_code_files: bool = False) -> List[Viewer]:
        """Instantiate the enabled viewers for this project in section order."""
        if self._viewer_overrides is not None:
            return [
                viewer
                for viewer in self._viewer_overrides
                if self.config.is_viewer_enabled(viewer.key)
            ]
        return discover_viewers(self.context, include_code_files=include_code_files)

    @property
    def viewers(self) -> List[Viewer]:
        if self._viewers is None:
            self._viewers = self.register_viewers()
        return self._viewers

    @property
    def full_viewers(self) -> List[Viewer]:
        if self._full_viewers is None:
            self._full_viewers = self.register_viewers(include_code_files=True)
        return self._full_viewers

    def generate(self) -> GenerationOutcome:
        """Write the overview unless no viewer reports a change."""
        return self._generate(self.viewers, self.output_path)

    def generate_all(self) -> GenerationOutcome:
        """Write the overview plus the full source dump to ``{stem}-all{suffix}``."""
        return self._generate(self.full_viewers, self.full_output_path)

    def snapshot(self) -> FileSnapshot:
        return take_snapshot(self.root, self.context.path_filter())

    def watch(
        self,
        token: CancellationToken | None = None,
        *,
        interval: float = DEFAULT_INTERVAL,
        max_duration: float = DEFAULT_MAX_DURATION,
        watcher_factory=Watcher,
    ) -> WatchSummary:
        """Generate once, then regenerate whenever the project tree changes."""
        regenerate = self.generate_all if self.include_code_files else self.generate
        self._report(regenerate())

        def _on_change(changes: ChangeSet) -> None:
            self.logger.info("Detected %d changed file(s), regenerating", len(changes))
            self._report(regenerate())

        watcher = watcher_factory(
            self.snapshot,
            _on_change,
            interval=interval,
            max_duration=max_duration,
            token=token,
        )
        return watcher.run()

    def init_config(self) -> bool:
        created = write_default_config(self.root)
        if created:
            self.logger.info("Created configuration file in %s", self.root)
        else:
            self.logger.info("Configuration file already exists in %s", self.root)
        return created

    def _generate(self, viewers: Sequence[Viewer], target: Path) -> GenerationOutcome:
        applicable = [(viewer, viewer.is_applicable(self.root)) for viewer in viewers]
        # Every applicable viewer must see has_changed so its fingerprint stays current.
        changed = [viewer.name for viewer, ok in applicable if ok and viewer.has_changed(self.root)]

        if not changed and target.exists():
            self.logger.debug("No viewer reported changes; leaving %s untouched", target.name)
            return GenerationOutcome(path=target, status="unchanged")

        parts: List[str] = []
        for viewer, ok in applicable:
            if ok:
                self.logger.debug("Rendering %s", viewer.name)
                parts.append(viewer.generate(self.root) + "\n")
            else:
                parts.append(viewer.not_applicable())

        _atomic_write(target, "".join(parts))
        return GenerationOutcome(path=target, status="written", changed=changed)

    def _report(self, outcome: GenerationOutcome) -> None:
        if outcome.written:
            self.logger.info("Overview written to %s", outcome.path)
        else:
            self.logger.info("No changes detected; %s is up to date", outcome.path.name)


def _atomic_write(path: Path, content: str) -> None:
    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            tmp_name = handle.name
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        # NamedTemporaryFile creates 0600 files.
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(f"Failed to write {path}: {exc}") from exc


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


__all__ = [
    "GenerationOutcome",
    "Orchestrator",
    "OutputWriteError",
    "ProjectRootNotFound",
    "ROOT_MARKERS",
    "find_project_root",
    "full_dump_name",
]
