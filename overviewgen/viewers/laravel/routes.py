"""Laravel routes section: ``artisan route:list`` first, route files second."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from ...extraction import FromTool, extract_with_fallback
from ...logging import get_logger
from ...models import Route
from ...rendering import render
from ...scanner import hash_files, read_text
from ...textscan import balanced_body, call_chain, split_top_level, string_literals, strip_comments, unquote
from ..base import Viewer

_logger = get_logger("viewers.laravel.routes")

ROUTE_LIST_COMMAND: Tuple[str, ...] = ("php", "artisan", "route:list", "--json")
CONTROLLER_NAMESPACE = "App\\Http\\Controllers\\"
ROUTE_FILES: Tuple[Tuple[str, str], ...] = (("routes/web.php", ""), ("routes/api.php", "api"))
WATCHED_FILES = ("routes/web.php", "routes/api.php", "routes/channels.php", "routes/console.php")

_VERB_CALL = re.compile(r"Route::(get|post|put|patch|delete|options|any|match)\s*\(", re.IGNORECASE)
_RESOURCE_CALL = re.compile(r"Route::(resource|apiResource)\s*\(")

RESOURCE_ACTIONS: Tuple[Tuple[str, str, str], ...] = (
    ("index", "GET|HEAD", ""),
    ("create", "GET|HEAD", "/create"),
    ("store", "POST", ""),
    ("show", "GET|HEAD", "/{param}"),
    ("edit", "GET|HEAD", "/{param}/edit"),
    ("update", "PUT|PATCH", "/{param}"),
    ("destroy", "DELETE", "/{param}"),
)
API_RESOURCE_ACTIONS = ("index", "store", "show", "update", "destroy")


class LaravelRoutesViewer(Viewer):
    name = "Laravel Routes"
    key = "laravel_routes"

    def is_applicable(self, root: Path) -> bool:
        if not self.project_type.has_trait("laravel"):
            return False
        return (root / "artisan").is_file() or any((root / path).is_file() for path, _ in ROUTE_FILES)

    def fingerprint(self, root: Path) -> str:
        return hash_files(root / path for path in WATCHED_FILES)

    def generate(self, root: Path) -> str:
        result = extract_with_fallback(
            lambda: self._routes_from_artisan(root),
            lambda: routes_from_files(root),
            command=ROUTE_LIST_COMMAND,
        )
        parts = [self.heading()]
        routes = result.value
        if isinstance(result, FromTool):
            if not routes:
                parts.append("No routes defined in this Laravel application.\n")
                return "".join(parts)
        else:
            parts.append("Could not retrieve routes using artisan; parsed the route files instead.\n\n")
            if not routes:
                parts.append(_raw_route_files(root))
                return "".join(parts).rstrip("\n") + "\n"

        api_routes = [route for route in routes if is_api_route(route)]
        web_routes = [route for route in routes if not is_api_route(route)]
        if api_routes:
            parts.append(render("routes.md.j2", title="API Routes", routes=api_routes))
        if web_routes:
            parts.append(render("routes.md.j2", title="Web Routes", routes=web_routes))
        return "".join(parts).rstrip("\n") + "\n"

    def _routes_from_artisan(self, root: Path) -> Optional[List[Route]]:
        if not (root / "artisan").is_file():
            return None
        output = self.context.runner(list(ROUTE_LIST_COMMAND), cwd=root)
        return parse_route_list(output)


def is_api_route(route: Route) -> bool:
    return route.path.lstrip("/").startswith("api/") or route.path.strip("/") == "api"


def strip_namespace(action: str) -> str:
    return action.replace(CONTROLLER_NAMESPACE, "")


def parse_route_list(output: str) -> Optional[List[Route]]:
    """Parse ``route:list --json`` output; None when it is not a JSON list."""
    try:
        data: Any = json.loads(output)
    except json.JSONDecodeError:
        _logger.debug("route:list did not return JSON")
        return None
    if not isinstance(data, list):
        return None
    routes: List[Route] = []
    for entry in data:
        if not isinstance(entry, dict) or "uri" not in entry:
            continue
        routes.append(
            Route(
                verb=str(entry.get("method") or ""),
                path=str(entry["uri"]),
                action=strip_namespace(str(entry.get("action") or "")),
                name=str(entry.get("name") or ""),
            )
        )
    return routes


def routes_from_files(root: Path) -> List[Route]:
    routes: List[Route] = []
    for relative, prefix in ROUTE_FILES:
        content = read_text(root / relative)
        if content:
            routes.extend(parse_route_file(content, prefix=prefix))
    return routes


def parse_route_file(content: str, *, prefix: str = "") -> List[Route]:
    """Extract ``Route::<verb>`` and ``Route::resource`` declarations in source order."""
    content = strip_comments(content, ("//", "#"))
    found: List[Tuple[int, List[Route]]] = []

    for match in _VERB_CALL.finditer(content):
        args = balanced_body(content, match.end() - 1)
        if args is None:
            continue
        chain, _ = call_chain(content, match.end() + len(args) + 1)
        route = _verb_route(match.group(1).lower(), split_top_level(args), chain, prefix)
        if route is not None:
            found.append((match.start(), [route]))

    for match in _RESOURCE_CALL.finditer(content):
        args = balanced_body(content, match.end() - 1)
        if args is None:
            continue
        chain, _ = call_chain(content, match.end() + len(args) + 1)
        routes = _resource_routes(match.group(1), split_top_level(args), chain, prefix)
        if routes:
            found.append((match.start(), routes))

    found.sort(key=lambda item: item[0])
    return [route for _, routes in found for route in routes]


def _verb_route(
    verb: str, arguments: Sequence[str], chain: Sequence[Tuple[str, str]], prefix: str
) -> Optional[Route]:
    if verb == "match":
        if len(arguments) < 2:
            return None
        verbs = [value.upper() for value in string_literals(arguments[0])]
        arguments = arguments[1:]
        label = "|".join(verbs)
    elif verb == "any":
        label = "ANY"
    else:
        label = "GET|HEAD" if verb == "get" else verb.upper()

    path = unquote(arguments[0]) if arguments else None
    if path is None:
        return None
    action = _describe_action(arguments[1]) if len(arguments) > 1 else ""
    name = next((unquote(args) or "" for method, args in chain if method == "name"), "")
    return Route(verb=label, path=_join_uri(prefix, path), action=action, name=name)


def _resource_routes(
    kind: str, arguments: Sequence[str], chain: Sequence[Tuple[str, str]], prefix: str
) -> List[Route]:
    resource = unquote(arguments[0]) if arguments else None
    if not resource:
        return []
    controller = _class_name(arguments[1]) if len(arguments) > 1 else ""

    actions = [action for action, _, _ in RESOURCE_ACTIONS]
    if kind == "apiResource":
        actions = [action for action in actions if action in API_RESOURCE_ACTIONS]
    for method, args in chain:
        if method == "only":
            keep = set(string_literals(args))
            actions = [action for action in actions if action in keep]
        elif method == "except":
            drop = set(string_literals(args))
            actions = [action for action in actions if action not in drop]

    base = resource.replace(".", "/")
    parameter = resource.rsplit(".", 1)[-1]
    parameter = parameter[:-1] if parameter.endswith("s") else parameter
    routes: List[Route] = []
    for action, verb, suffix in RESOURCE_ACTIONS:
        if action not in actions:
            continue
        path = base + suffix.replace("{param}", "{" + parameter + "}")
        routes.append(
            Route(
                verb=verb,
                path=_join_uri(prefix, path),
                action=f"{controller}@{action}" if controller else action,
                name=f"{resource}.{action}",
            )
        )
    return routes


def _describe_action(raw: str) -> str:
    raw = raw.strip()
    if raw.startswith("["):
        inner = split_top_level(raw[1:-1]) if raw.endswith("]") else []
        if len(inner) == 2:
            method = unquote(inner[1]) or inner[1]
            return f"{_class_name(inner[0])}@{method}"
    literal = unquote(raw)
    if literal is not None:
        return strip_namespace(literal)
    if raw.startswith(("function", "fn")):
        return "Closure"
    return _class_name(raw)


def _class_name(raw: str) -> str:
    raw = raw.strip().replace("::class", "")
    literal = unquote(raw)
    if literal is not None:
        raw = literal
    return strip_namespace(raw.lstrip("\\"))


def _join_uri(prefix: str, path: str) -> str:
    parts = [part.strip("/") for part in (prefix, path) if part.strip("/")]
    return "/".join(parts) or "/"


def _raw_route_files(root: Path) -> str:
    parts: List[str] = []
    for relative, prefix in ROUTE_FILES:
        content = read_text(root / relative)
        if content is None:
            continue
        title = "API Routes" if prefix else "Web Routes"
        parts.append(f"## {title}\n\n```php\n{content.rstrip()}\n```\n\n")
    return "".join(parts) or "No route files found.\n"


__all__ = [
    "LaravelRoutesViewer",
    "is_api_route",
    "parse_route_file",
    "parse_route_list",
    "routes_from_files",
]
