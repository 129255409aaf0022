"""Viewer implementations and discovery utilities."""

from __future__ import annotations

from dataclasses import dataclass
from importlib import metadata
from typing import Callable, Iterable, List, Optional, Set

from ..logging import get_logger
from .base import FileViewer, Viewer, ViewerContext
from .code_files import AllCodeFilesViewer
from .directory_tree import DirectoryTreeViewer
from .env_variables import EnvVariablesViewer
from .git_info import GitInfoViewer
from .laravel import LaravelRoutesViewer, LaravelSchemaViewer
from .manifests import ComposerJsonViewer, PackageJsonViewer
from .project_info import ProjectInfoViewer
from .rails import RailsGemsViewer, RailsRoutesViewer, RailsSchemaViewer
from .readme import ReadmeViewer

_ENTRY_POINT_GROUP = "overviewgen.viewers"

_logger = get_logger("viewers")

ViewerFactory = Callable[[ViewerContext], Viewer]


@dataclass(frozen=True)
class ViewerRegistration:
    """A built-in viewer and the conditions under which it is registered."""

    key: str
    factory: ViewerFactory
    trait: Optional[str] = None
    full_dump_only: bool = False


_BUILTIN_VIEWERS: tuple[ViewerRegistration, ...] = (
    ViewerRegistration("project_info", ProjectInfoViewer),
    ViewerRegistration("directory_tree", DirectoryTreeViewer),
    ViewerRegistration("composer_json", ComposerJsonViewer),
    ViewerRegistration("package_json", PackageJsonViewer),
    ViewerRegistration("readme", ReadmeViewer),
    ViewerRegistration("git_info", GitInfoViewer),
    ViewerRegistration("env_variables", EnvVariablesViewer),
    ViewerRegistration("laravel_routes", LaravelRoutesViewer, trait="laravel"),
    ViewerRegistration("laravel_schema", LaravelSchemaViewer, trait="laravel"),
    ViewerRegistration("rails_routes", RailsRoutesViewer, trait="rails"),
    ViewerRegistration("rails_schema", RailsSchemaViewer, trait="rails"),
    ViewerRegistration("rails_gems", RailsGemsViewer, trait="rails"),
    ViewerRegistration("all_code_files", AllCodeFilesViewer, full_dump_only=True),
)


def discover_viewers(context: ViewerContext, *, include_code_files: bool = False) -> List[Viewer]:
    """Return instantiated viewers in registration order.

    Built-ins are filtered by project trait and configuration; plugins from the
    ``overviewgen.viewers`` entry-point group follow, filtered by configuration.
    """
    viewers: List[Viewer] = []
    seen: Set[str] = set()

    def _add(key: str, factory: Callable[[], Viewer]) -> None:
        if key in seen or not context.config.is_viewer_enabled(key):
            return
        instance = factory()
        if not isinstance(instance, Viewer):
            raise TypeError(f"Viewer factory for '{key}' did not return a Viewer instance")
        viewers.append(instance)
        seen.add(key)

    for registration in _BUILTIN_VIEWERS:
        if registration.full_dump_only and not include_code_files:
            continue
        if registration.trait and not context.project_type.has_trait(registration.trait):
            continue
        _add(registration.key, lambda factory=registration.factory: factory(context))

    for entry in _iter_entry_points():
        name = entry.name
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - depends on installed plugins
            raise RuntimeError(f"Failed to load viewer entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Viewer:
            return _coerce_viewer(obj, context)

        _add(name, _factory)

    _logger.debug("Registered viewers: %s", ", ".join(type(viewer).__name__ for viewer in viewers))
    return viewers


def _coerce_viewer(obj: object, context: ViewerContext) -> Viewer:
    if isinstance(obj, Viewer):
        return obj
    if isinstance(obj, type) and issubclass(obj, Viewer):
        return obj(context)
    if callable(obj):
        instance = obj(context)
        if isinstance(instance, Viewer):
            return instance
    raise TypeError("Viewer entry point must be a Viewer subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    entry_points = metadata.entry_points()
    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]
    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "AllCodeFilesViewer",
    "ComposerJsonViewer",
    "DirectoryTreeViewer",
    "EnvVariablesViewer",
    "FileViewer",
    "GitInfoViewer",
    "LaravelRoutesViewer",
    "LaravelSchemaViewer",
    "PackageJsonViewer",
    "ProjectInfoViewer",
    "RailsGemsViewer",
    "RailsRoutesViewer",
    "RailsSchemaViewer",
    "ReadmeViewer",
    "Viewer",
    "ViewerContext",
    "ViewerRegistration",
    "discover_viewers",
]
