"""Rails routes section: ``rails routes`` first, ``config/routes.rb`` second."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ...extraction import FromTool, extract_with_fallback
from ...models import Route
from ...rendering import render
from ...scanner import hash_files, read_text
from ...textscan import split_top_level, string_literals, strip_comments
from ..base import Viewer
from .schema_parser import singularize

ROUTES_COMMAND: Tuple[str, ...] = ("bundle", "exec", "rails", "routes")
ROUTES_FILE = Path("config") / "routes.rb"

# name_template, verb, path_suffix, action
RESOURCE_ROUTES: Tuple[Tuple[str, str, str, str], ...] = (
    ("{r}_index", "GET", "", "index"),
    ("new_{r}", "GET", "/new", "new"),
    ("{r}_create", "POST", "", "create"),
    ("{r}_show", "GET", "/:id", "show"),
    ("edit_{r}", "GET", "/:id/edit", "edit"),
    ("{r}_update", "PATCH/PUT", "/:id", "update"),
    ("{r}_destroy", "DELETE", "/:id", "destroy"),
)

_TABLE_ROW = re.compile(
    r"^\s*(?:(?P<name>\w+)\s+)?"
    r"(?P<verb>(?:GET|POST|PUT|PATCH|DELETE|OPTIONS|HEAD|ANY)(?:\|[A-Z]+)*)\s+"
    r"(?P<path>\S+)\s+(?P<action>\S.*?)\s*$"
)
_BLOCK_OPEN = re.compile(r"\bdo\s*(?:\|[^|]*\|)?\s*$")
_BLOCK_CLOSE = re.compile(r"^\s*end\b")
_NAMESPACE = re.compile(r"^\s*namespace\s+:(\w+)")
_RESOURCES = re.compile(r"^\s*resources\s+(?P<names>:\w+(?:\s*,\s*:\w+\b(?!\s*=>))*)(?P<options>.*)$")
_KEYWORD_OPEN = re.compile(r"^\s*(?:if|unless|case|while|until|begin|def|class|module)\b")
_ROOT = re.compile(r"""^\s*root\s+(?:to:\s*|:to\s*=>\s*)?["'](?P<target>[\w/]+#\w+)["']""")
_VERB_ROUTE = re.compile(r"^\s*(?P<verb>get|post|put|patch|delete)\s+(?P<args>.+)$")
_ROCKET_TARGET = re.compile(r"""["'](?P<path>[^"']+)["']\s*=>\s*["'](?P<target>[^"']+)["']""")
_KEYWORD = re.compile(r"""^(?::(?P<rocket>\w+)\s*=>|(?P<key>\w+):)\s*(?P<value>.+)$""", re.DOTALL)
_PERCENT_ARRAY = re.compile(r"%[iIwW]\[([^\]]*)\]")


@dataclass
class _Scope:
    kind: str
    name: str = ""


class RailsRoutesViewer(Viewer):
    name = "Rails Routes"
    key = "rails_routes"

    def is_applicable(self, root: Path) -> bool:
        return self.project_type.has_trait("rails") and (root / ROUTES_FILE).is_file()

    def fingerprint(self, root: Path) -> str:
        return hash_files([root / ROUTES_FILE])

    def generate(self, root: Path) -> str:
        routes_source = read_text(root / ROUTES_FILE) or ""
        result = extract_with_fallback(
            lambda: parse_routes_table(self.context.runner(list(ROUTES_COMMAND), cwd=root)),
            lambda: parse_routes_file(routes_source),
            command=ROUTES_COMMAND,
        )
        parts = [self.heading()]
        if isinstance(result, FromTool):
            parts.append(render("routes.md.j2", title="Routes (from rails routes)", routes=result.value))
        elif result.value:
            parts.append("Could not run `rails routes`; parsed config/routes.rb instead.\n\n")
            parts.append(render("routes.md.j2", title="Parsed Routes", routes=result.value))
        else:
            parts.append("## Routes from config/routes.rb\n\n")
            parts.append(f"```ruby\n{routes_source.rstrip()}\n```\n")
        return "".join(parts).rstrip("\n") + "\n"


def parse_routes_table(output: str) -> Optional[List[Route]]:
    """Parse the text table printed by ``rails routes``; None when no row parses."""
    routes: List[Route] = []
    for line in output.splitlines():
        match = _TABLE_ROW.match(line)
        if not match:
            continue
        routes.append(
            Route(
                verb=match.group("verb"),
                path=match.group("path").replace("(.:format)", ""),
                action=match.group("action"),
                name=match.group("name") or "",
            )
        )
    return routes or None


def parse_routes_file(content: str) -> List[Route]:
    """Expand the common ``routes.rb`` declarations, tracking namespace blocks."""
    routes: List[Route] = []
    stack: List[_Scope] = []
    for line in strip_comments(content, ("#",), block=False).splitlines():
        if not line.strip():
            continue
        if _BLOCK_CLOSE.match(line):
            if stack:
                stack.pop()
            continue

        namespaces = [scope.name for scope in stack if scope.kind == "namespace"]
        parent = next((scope.name for scope in reversed(stack) if scope.kind == "resources"), None)
        opened: Optional[_Scope] = None

        namespace = _NAMESPACE.match(line)
        resources = _RESOURCES.match(line)
        if namespace:
            opened = _Scope("namespace", namespace.group(1))
        elif resources:
            names = [name.strip().lstrip(":") for name in resources.group("names").split(",")]
            for resource in names:
                routes.extend(
                    expand_resources(resource, namespaces, resources.group("options"), parent=parent)
                )
            opened = _Scope("resources", names[-1])
        else:
            route = _root_route(line, namespaces) or _verb_route(line, namespaces)
            if route is not None:
                routes.append(route)

        if _BLOCK_OPEN.search(line) or _KEYWORD_OPEN.match(line):
            stack.append(opened or _Scope("block"))
    return routes


def expand_resources(
    resource: str,
    namespaces: Sequence[str] = (),
    options: str = "",
    *,
    parent: Optional[str] = None,
) -> List[Route]:
    """The seven RESTful routes for ``resources :resource``, filtered by only:/except:."""
    only, except_ = _action_filters(options)
    path_prefix = "".join(f"/{namespace}" for namespace in namespaces)
    if parent:
        path_prefix += f"/{parent}/:{singularize(parent)}_id"
    controller = "/".join([*namespaces, resource])
    name_base = "_".join([*namespaces, *([singularize(parent)] if parent else []), resource])

    routes: List[Route] = []
    for name_template, verb, suffix, action in RESOURCE_ROUTES:
        if only is not None and action not in only:
            continue
        if action in except_:
            continue
        routes.append(
            Route(
                verb=verb,
                path=f"{path_prefix}/{resource}{suffix}",
                action=f"{controller}#{action}",
                name=name_template.format(r=name_base),
            )
        )
    return routes


def _action_filters(options: str) -> Tuple[Optional[set], set]:
    only: Optional[set] = None
    except_: set = set()
    for part in split_top_level(options.strip().lstrip(",").rstrip()):
        part = _BLOCK_OPEN.sub("", part).strip()
        match = _KEYWORD.match(part)
        if not match:
            continue
        key = match.group("rocket") or match.group("key")
        value = match.group("value")
        values = set(re.findall(r":(\w+)", value)) | set(string_literals(value))
        for words in _PERCENT_ARRAY.findall(value):
            values.update(words.split())
        if key == "only":
            only = values
        elif key == "except":
            except_ = values
    return only, except_


def _root_route(line: str, namespaces: Sequence[str]) -> Optional[Route]:
    match = _ROOT.match(line)
    if not match:
        return None
    prefix = "".join(f"/{namespace}" for namespace in namespaces)
    controller, action = match.group("target").split("#", 1)
    return Route(
        verb="GET",
        path=prefix or "/",
        action=f"{'/'.join([*namespaces, controller])}#{action}",
        name="_".join([*namespaces, "root"]),
    )


def _verb_route(line: str, namespaces: Sequence[str]) -> Optional[Route]:
    match = _VERB_ROUTE.match(line)
    if not match:
        return None
    args = _BLOCK_OPEN.sub("", match.group("args"))
    arguments = split_top_level(args)
    if not arguments:
        return None

    path: Optional[str] = None
    target = ""
    name = ""
    rocket = _ROCKET_TARGET.match(arguments[0].strip())
    if rocket:
        path, target = rocket.group("path"), rocket.group("target")
        keywords = arguments[1:]
    else:
        literals = string_literals(arguments[0])
        if not literals:
            return None
        path = literals[0]
        keywords = arguments[1:]
    for keyword in keywords:
        option = _KEYWORD.match(keyword.strip())
        if not option:
            continue
        key = option.group("rocket") or option.group("key")
        value = option.group("value").strip()
        literal = string_literals(value)
        value = literal[0] if literal else value.lstrip(":")
        if key == "to":
            target = value
        elif key == "as":
            name = value

    prefix = "".join(f"/{namespace}" for namespace in namespaces)
    if target and namespaces and "#" in target:
        target = "/".join([*namespaces, target])
    return Route(
        verb=match.group("verb").upper(),
        path=f"{prefix}/{path.lstrip('/')}",
        action=target,
        name="_".join([*namespaces, name]) if name and namespaces else name,
    )


__all__ = [
    "RESOURCE_ROUTES",
    "RailsRoutesViewer",
    "expand_resources",
    "parse_routes_file",
    "parse_routes_table",
]
