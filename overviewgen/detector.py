"""Framework detection for the inspected project."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from .logging import get_logger
from .models import ProjectType
from .scanner import read_text

_logger = get_logger("detector")

_LOCK_VERSION = re.compile(r"v?(\d+)")
_CONSTRAINT_VERSION = re.compile(r"\^?(\d+)")
_GEMFILE_RAILS = re.compile(r"""^\s*gem\s+['"]rails['"]""", re.IGNORECASE | re.MULTILINE)
_GEMFILE_RAILS_VERSION = re.compile(
    r"""^\s*gem\s+['"]rails['"]\s*,\s*['"][~><=!\s]*(\d+)""", re.IGNORECASE | re.MULTILINE
)
_GEMFILE_LOCK_RAILS = re.compile(r"^\s+rails \((\d+)", re.MULTILINE)


@dataclass(frozen=True)
class FrameworkSignature:
    """Side-effect-free predicate plus version extractor for one framework."""

    trait: str
    matches: Callable[[Path], bool]
    version: Optional[Callable[[Path], Optional[str]]] = None
    extra_traits: Tuple[str, ...] = ()

    @property
    def version_key(self) -> str:
        return f"{self.trait}_version"


def _load_json(path: Path) -> Dict[str, Any]:
    text = read_text(path)
    if text is None:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        _logger.debug("Skipping malformed %s", path.name)
        return {}
    return data if isinstance(data, dict) else {}


def _composer_requires(root: Path, package: str) -> Optional[str]:
    composer = _load_json(root / "composer.json")
    for section in ("require", "require-dev"):
        requirements = composer.get(section)
        if isinstance(requirements, dict) and package in requirements:
            return str(requirements[package])
    return None


def _is_php(root: Path) -> bool:
    return (root / "composer.json").is_file() or (root / "artisan").is_file()


def _is_laravel(root: Path) -> bool:
    if (root / "artisan").is_file():
        return True
    if (root / "app" / "Http" / "Controllers").is_dir():
        return True
    return _composer_requires(root, "laravel/framework") is not None


def _laravel_version(root: Path) -> Optional[str]:
    lock = _load_json(root / "composer.lock")
    packages = lock.get("packages")
    if isinstance(packages, list):
        for package in packages:
            if isinstance(package, dict) and package.get("name") == "laravel/framework":
                match = _LOCK_VERSION.search(str(package.get("version", "")))
                if match:
                    return match.group(1)

    constraint = _composer_requires(root, "laravel/framework")
    if constraint:
        match = _CONSTRAINT_VERSION.search(constraint)
        if match:
            return match.group(1)
    return None


def _is_rails(root: Path) -> bool:
    application = read_text(root / "config" / "application.rb")
    if application and "Rails::Application" in application:
        return True
    gemfile = read_text(root / "Gemfile")
    if gemfile and _GEMFILE_RAILS.search(gemfile):
        return True
    return (root / "app" / "controllers").is_dir() and (root / "app" / "models").is_dir()


def _rails_version(root: Path) -> Optional[str]:
    gemfile = read_text(root / "Gemfile")
    if gemfile:
        match = _GEMFILE_RAILS_VERSION.search(gemfile)
        if match:
            return match.group(1)
    lockfile = read_text(root / "Gemfile.lock")
    if lockfile:
        match = _GEMFILE_LOCK_RAILS.search(lockfile)
        if match:
            return match.group(1)
    return None


DEFAULT_SIGNATURES: Tuple[FrameworkSignature, ...] = (
    FrameworkSignature(trait="php", matches=_is_php),
    FrameworkSignature(
        trait="laravel",
        matches=_is_laravel,
        version=_laravel_version,
        extra_traits=("php",),
    ),
    FrameworkSignature(
        trait="rails",
        matches=_is_rails,
        version=_rails_version,
        extra_traits=("ruby",),
    ),
)


class ProjectTypeDetector:
    """Evaluates each framework signature independently against a project root."""

    def __init__(self, signatures: Sequence[FrameworkSignature] | None = None) -> None:
        self.signatures = tuple(signatures) if signatures is not None else DEFAULT_SIGNATURES

    def detect(self, root: Path) -> ProjectType:
        project_type = ProjectType()
        root = Path(root)
        for signature in self.signatures:
            if not self._safe_call(signature.matches, root, default=False):
                continue
            project_type.add_trait(signature.trait)
            for trait in signature.extra_traits:
                project_type.add_trait(trait)
            if signature.version is None:
                continue
            version = self._safe_call(signature.version, root, default=None)
            if version:
                project_type.set_metadata(signature.version_key, version)
        _logger.debug("Detected traits: %s", ", ".join(project_type.traits) or "none")
        return project_type

    @staticmethod
    def _safe_call(func: Callable[[Path], Any], root: Path, *, default: Any) -> Any:
        try:
            return func(root)
        except OSError as exc:
            _logger.debug("Detection check %s failed: %s", getattr(func, "__name__", func), exc)
            return default


__all__ = ["DEFAULT_SIGNATURES", "FrameworkSignature", "ProjectTypeDetector"]
