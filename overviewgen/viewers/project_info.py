"""Project summary section: framework, traits and manifest metadata."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..logging import get_logger
from ..scanner import hash_files, read_text
from .base import Viewer

_logger = get_logger("viewers.project_info")

_FINGERPRINT_FILES = (
    "composer.json",
    "composer.lock",
    "package.json",
    "Gemfile",
    "Gemfile.lock",
    ".ruby-version",
    "config/database.yml",
)


class ProjectInfoViewer(Viewer):
    """Always-applicable summary of what kind of project was found."""

    name = "Project Information"
    key = "project_info"

    def is_applicable(self, root: Path) -> bool:
        return True

    def fingerprint(self, root: Path) -> str:
        return hash_files(root / name for name in _FINGERPRINT_FILES)

    def generate(self, root: Path) -> str:
        project_type = self.project_type
        lines: List[str] = [f"- **Project Type**: {project_type.description}"]
        if project_type.traits:
            lines.append(f"- **Traits**: {', '.join(project_type.traits)}")

        manifest = _load_manifest(root / "composer.json") or _load_manifest(root / "package.json")
        for field_name, label in (("name", "Project Name"), ("description", "Description")):
            value = manifest.get(field_name)
            if isinstance(value, str) and value:
                lines.append(f"- **{label}**: {value}")
        license_value = manifest.get("license")
        if isinstance(license_value, list):
            license_value = ", ".join(str(item) for item in license_value)
        if license_value:
            lines.append(f"- **License**: {license_value}")

        if project_type.has_trait("php"):
            php_constraint = _php_constraint(root)
            if php_constraint:
                lines.append(f"- **PHP Requirement**: {php_constraint}")

        if project_type.has_trait("ruby"):
            ruby_version = (read_text(root / ".ruby-version") or "").strip()
            if ruby_version:
                lines.append(f"- **Ruby Version**: {ruby_version}")

        if project_type.has_trait("rails"):
            adapter = _database_adapter(root)
            if adapter:
                lines.append(f"- **Database Adapter**: {adapter}")

        for key, value in project_type.metadata.items():
            label = key.replace("_", " ").title()
            lines.append(f"- **{label}**: {value}")

        return self.heading() + "\n".join(lines) + "\n"


def _load_manifest(path: Path) -> Dict[str, Any]:
    text = read_text(path)
    if not text:
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        _logger.debug("Could not parse %s", path.name)
        return {}
    return data if isinstance(data, dict) else {}


def _php_constraint(root: Path) -> Optional[str]:
    requirements = _load_manifest(root / "composer.json").get("require")
    if isinstance(requirements, dict) and requirements.get("php"):
        return str(requirements["php"])
    return None


def _database_adapter(root: Path) -> Optional[str]:
    """Return the adapter of the development (or first) environment in database.yml."""
    text = read_text(root / "config" / "database.yml")
    if not text:
        return None
    try:
        # ERB tags make some files unparsable; those simply omit the adapter.
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        _logger.debug("Could not parse database.yml: %s", exc)
        return None
    if not isinstance(data, dict):
        return None

    candidates = [data.get("development")] + list(data.values())
    for entry in candidates:
        if isinstance(entry, dict) and entry.get("adapter"):
            return str(entry["adapter"])
    return None


__all__ = ["ProjectInfoViewer"]
