"""Configuration loading for overviewgen (.ai-tools.json)."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .logging import get_logger

CONFIG_FILENAME = ".ai-tools.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "output_file": "ai-overview.md",
    "excluded_directories": [".git", "vendor", "node_modules"],
    "excluded_files": [],
    "directory_tree": {
        "max_depth": 4,
    },
    "viewers": {
        "project_info": True,
        "directory_tree": True,
        "composer_json": True,
        "package_json": True,
        "readme": True,
        "git_info": True,
        "env_variables": True,
        "laravel_routes": True,
        "laravel_schema": True,
        "rails_routes": True,
        "rails_schema": True,
        "rails_gems": True,
        "all_code_files": True,
    },
}

_logger = get_logger("config")


class ConfigParseError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


def deep_merge(defaults: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` onto ``defaults``.

    Nested mappings are merged key by key. Any other value, lists included,
    replaces the default outright.
    """
    result: Dict[str, Any] = copy.deepcopy(dict(defaults))
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


class Configuration:
    """Merged view of compiled-in defaults and project overrides."""

    def __init__(
        self,
        overrides: Mapping[str, Any] | None = None,
        *,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        base = defaults if defaults is not None else DEFAULT_CONFIG
        self._data = deep_merge(base, overrides or {})

    @classmethod
    def load(cls, root: Path) -> "Configuration":
        """Load ``.ai-tools.json`` from ``root``; malformed files leave defaults in place."""
        config_file = _resolve_config_path(root)
        if not config_file.exists():
            return cls()
        try:
            overrides = _read_config(config_file)
        except ConfigParseError as exc:
            _logger.warning("Ignoring %s: %s", config_file.name, exc)
            return cls()
        return cls(overrides)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at a dotted ``key`` such as ``directory_tree.max_depth``."""
        value: Any = self._data
        for segment in key.split("."):
            if not isinstance(value, Mapping) or segment not in value:
                return default
            value = value[segment]
        return value

    def is_viewer_enabled(self, name: str) -> bool:
        return bool(self.get(f"viewers.{name}", True))

    def all(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @property
    def output_file(self) -> str:
        return _as_str(self.get("output_file")) or str(DEFAULT_CONFIG["output_file"])

    @property
    def excluded_directories(self) -> List[str]:
        return _as_str_list(self.get("excluded_directories", []))

    @property
    def excluded_files(self) -> List[str]:
        return _as_str_list(self.get("excluded_files", []))

    @property
    def max_depth(self) -> int:
        depth = _as_int(self.get("directory_tree.max_depth"))
        return 4 if depth is None else depth


def write_default_config(root: Path) -> bool:
    """Create ``.ai-tools.json`` with the default settings.

    Returns False without touching anything when the file already exists. When
    a ``.gitignore`` is present it gains an entry for the config file.
    """
    config_file = _resolve_config_path(root)
    if config_file.exists():
        return False

    config_file.write_text(json.dumps(DEFAULT_CONFIG, indent=4) + "\n", encoding="utf-8")

    gitignore = config_file.parent / ".gitignore"
    if gitignore.exists():
        content = gitignore.read_text(encoding="utf-8")
        entries = {line.strip() for line in content.splitlines()}
        if not entries & {CONFIG_FILENAME, f"/{CONFIG_FILENAME}"}:
            separator = "\n" if content and not content.endswith("\n") else ""
            gitignore.write_text(f"{content}{separator}{CONFIG_FILENAME}\n", encoding="utf-8")
    return True


def _resolve_config_path(root: Path) -> Path:
    root = Path(root).expanduser()
    if root.name == CONFIG_FILENAME:
        return root.resolve()
    return (root / CONFIG_FILENAME).resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigParseError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigParseError(f"Failed to parse {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigParseError(f"{path.name} must contain a JSON object at the root")
    return data


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and str(value) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigParseError",
    "Configuration",
    "DEFAULT_CONFIG",
    "deep_merge",
    "write_default_config",
]
