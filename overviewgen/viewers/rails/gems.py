"""Gemfile dependencies grouped by Bundler group."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ...rendering import render
from ...scanner import hash_files, read_text
from ...textscan import split_top_level, string_literals, strip_comments
from ..base import Viewer

RUNTIME = ()
SOURCE_OPTIONS = ("github", "git", "path", "branch", "tag", "ref")

_GEM = re.compile(r"""^\s*gem\s+(?P<args>["'].*)$""")
_GROUP = re.compile(r"^\s*group\s+(?P<names>.+?)\s+do\b")
_BLOCK_OPEN = re.compile(r"\bdo\s*(?:\|[^|]*\|)?\s*$")
_BLOCK_CLOSE = re.compile(r"^\s*end\b")
_KEYWORD_OPEN = re.compile(r"^\s*(?:if|unless|case|while|until|begin|def)\b")
_KEYWORD = re.compile(r"""^(?::(?P<rocket>\w+)\s*=>|(?P<key>\w+):)\s*(?P<value>.+)$""", re.DOTALL)

_GROUP_TITLES: Dict[Tuple[str, ...], str] = {
    RUNTIME: "Runtime Gems",
    ("development", "test"): "Development & Test Gems",
    ("development",): "Development Gems",
    ("test",): "Test Gems",
}


@dataclass(frozen=True)
class GemSpec:
    """A single ``gem`` declaration."""

    name: str
    requirements: Tuple[str, ...] = ()
    options: Tuple[Tuple[str, str], ...] = ()

    def describe(self) -> str:
        details = list(self.requirements)
        details.extend(f"{key}: {value}" for key, value in self.options)
        return f"{self.name} ({', '.join(details)})" if details else self.name


@dataclass
class GemGroup:
    names: Tuple[str, ...]
    gems: List[GemSpec] = field(default_factory=list)

    @property
    def title(self) -> str:
        title = _GROUP_TITLES.get(self.names)
        if title:
            return title
        return " & ".join(name.replace("_", " ").title() for name in self.names) + " Gems"


class RailsGemsViewer(Viewer):
    name = "Rails Gems"
    key = "rails_gems"

    def is_applicable(self, root: Path) -> bool:
        return self.project_type.has_trait("rails") and (root / "Gemfile").is_file()

    def fingerprint(self, root: Path) -> str:
        return hash_files([root / "Gemfile", root / "Gemfile.lock"])

    def generate(self, root: Path) -> str:
        groups = parse_gemfile(read_text(root / "Gemfile") or "")
        if not any(group.gems for group in groups):
            return self.heading() + "No gems declared in the Gemfile.\n"
        return self.heading() + render("gems.md.j2", groups=groups).rstrip("\n") + "\n"


def parse_gemfile(content: str) -> List[GemGroup]:
    """Return the runtime group first, then named groups in first-seen order."""
    groups: Dict[Tuple[str, ...], GemGroup] = {RUNTIME: GemGroup(RUNTIME)}
    stack: List[Optional[Tuple[str, ...]]] = []

    for line in strip_comments(content, ("#",), block=False).splitlines():
        if _BLOCK_CLOSE.match(line):
            if stack:
                stack.pop()
            continue

        group_match = _GROUP.match(line)
        if group_match:
            stack.append(_group_names(group_match.group("names")))
            continue

        gem_match = _GEM.match(line)
        if gem_match:
            parsed = _parse_gem(gem_match.group("args"))
            if parsed is not None:
                spec, inline_group = parsed
                current = next((names for names in reversed(stack) if names is not None), RUNTIME)
                names = inline_group or current
                groups.setdefault(names, GemGroup(names)).gems.append(spec)

        if _BLOCK_OPEN.search(line) or _KEYWORD_OPEN.match(line):
            stack.append(None)

    return list(groups.values())


def _group_names(raw: str) -> Tuple[str, ...]:
    names = re.findall(r":(\w+)", raw) + string_literals(raw)
    return tuple(dict.fromkeys(names))


def _parse_gem(raw: str) -> Optional[Tuple[GemSpec, Optional[Tuple[str, ...]]]]:
    arguments = split_top_level(_BLOCK_OPEN.sub("", raw))
    names = string_literals(arguments[0]) if arguments else []
    if not names:
        return None
    name = names[0]
    requirements: List[str] = []
    options: List[Tuple[str, str]] = []
    group: Optional[Tuple[str, ...]] = None

    for argument in arguments[1:]:
        keyword = _KEYWORD.match(argument.strip())
        if keyword is None:
            requirements.extend(string_literals(argument))
            continue
        key = keyword.group("rocket") or keyword.group("key")
        value = keyword.group("value").strip()
        if key in ("group", "groups"):
            group = _group_names(value)
        elif key in SOURCE_OPTIONS:
            literals = string_literals(value)
            options.append((key, literals[0] if literals else value.lstrip(":")))

    return GemSpec(name=name, requirements=tuple(requirements), options=tuple(options)), group


__all__ = ["GemGroup", "GemSpec", "RailsGemsViewer", "parse_gemfile"]
