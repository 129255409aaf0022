"""Parsers for ``db/schema.rb`` and ActiveRecord model files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ...models import Column, ExtractedSchema, ForeignKey, Index, ModelInfo, table_entry
from ...scanner import read_text
from ...textscan import split_top_level, squash, string_literals, strip_comments

_CREATE_TABLE = re.compile(
    r"""create_table\s+["'](?P<name>[^"']+)["'](?P<options>[^\n]*?)\s+do\s*\|(?P<var>\w+)\|"""
    r"""(?P<body>.*?)^\s*end\b""",
    re.DOTALL | re.MULTILINE,
)
_TABLE_INDEX = re.compile(r"""^\s*\w+\.index\s+(?P<args>.+)$""", re.MULTILINE)
_ADD_INDEX = re.compile(r"""^\s*add_index\s+["'](?P<table>[^"']+)["']\s*,\s*(?P<args>.+)$""", re.MULTILINE)
_ADD_FOREIGN_KEY = re.compile(
    r"""^\s*add_foreign_key\s+["'](?P<table>[^"']+)["']\s*,\s*["'](?P<target>[^"']+)["']"""
    r"""(?:\s*,\s*(?P<options>.+))?$""",
    re.MULTILINE,
)
_OPTION = re.compile(r"""^(?::(?P<rocket>\w+)\s*=>|(?P<key>\w+):)\s*(?P<value>.+)$""", re.DOTALL)

_ASSOCIATION = re.compile(
    r"^\s*(belongs_to|has_many|has_one|has_and_belongs_to_many)\s+:(\w+)(?:\s*,\s*([^\n]+))?",
    re.MULTILINE,
)
_VALIDATION = re.compile(r"^\s*(validates(?:_\w+)?)\s+:(\w+)(?:\s*,\s*([^\n]+))?", re.MULTILINE)
_SCOPE = re.compile(r"^\s*scope\s+:(\w+)(?:\s*,\s*([^\n]+))?", re.MULTILINE)
_TABLE_NAME = re.compile(r"""self\.table_name\s*=\s*["']([^"']+)["']""")


def parse_schema_rb(content: str, schema: Optional[ExtractedSchema] = None) -> ExtractedSchema:
    """Extract tables from ``schema.rb``.

    A ``create_table`` block ends at the first line consisting of ``end``, so
    column names that merely contain "end" do not cut a block short.
    """
    schema = schema if schema is not None else {}
    content = strip_comments(content, ("#",), block=False)

    for match in _CREATE_TABLE.finditer(content):
        table = table_entry(schema, match.group("name"))
        variable = re.escape(match.group("var"))
        column_line = re.compile(
            rf"""^\s*{variable}\.(?P<type>\w+)\s+["'](?P<name>[^"']+)["'](?:\s*,\s*(?P<options>.+))?$"""
        )
        for line in match.group("body").splitlines():
            column = column_line.match(line)
            if not column or column.group("type") == "index":
                continue
            table.columns.append(
                Column(
                    name=column.group("name"),
                    type=column.group("type"),
                    attributes=tuple(
                        squash(part) for part in split_top_level(column.group("options") or "")
                    ),
                )
            )
        for index in _TABLE_INDEX.finditer(match.group("body")):
            parsed = _parse_index(index.group("args"))
            if parsed:
                table.indexes.append(parsed)

    for match in _ADD_INDEX.finditer(content):
        table = schema.get(match.group("table"))
        parsed = _parse_index(match.group("args"))
        if table is not None and parsed:
            table.indexes.append(parsed)

    for match in _ADD_FOREIGN_KEY.finditer(content):
        table = schema.get(match.group("table"))
        if table is None:
            continue
        target = match.group("target")
        options = _parse_options(split_top_level(match.group("options") or ""))
        column = _unquoted(options.pop("column", None)) or f"{singularize(target)}_id"
        primary_key = _unquoted(options.pop("primary_key", None)) or "id"
        name = _unquoted(options.pop("name", None))
        table.foreign_keys.append(
            ForeignKey(
                columns=(column,),
                references_table=target,
                references_columns=(primary_key,),
                name=name,
                options=", ".join(f"{key}: {value}" for key, value in options.items()),
            )
        )

    return schema


def _parse_index(raw: str) -> Optional[Index]:
    arguments = split_top_level(raw)
    if not arguments:
        return None
    columns = tuple(string_literals(arguments[0]))
    if not columns:
        return None
    options = _parse_options(arguments[1:])
    unique = options.pop("unique", "false").strip() == "true"
    name = _unquoted(options.pop("name", None))
    return Index(
        columns=columns,
        name=name,
        kind="unique" if unique else "index",
        options=", ".join(f"{key}: {value}" for key, value in options.items()),
    )


def _parse_options(parts: Iterable[str]) -> Dict[str, str]:
    options: Dict[str, str] = {}
    for part in parts:
        match = _OPTION.match(part.strip())
        if match:
            options[match.group("rocket") or match.group("key")] = squash(match.group("value"))
    return options


def _unquoted(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    literals = string_literals(value)
    if literals:
        return literals[0]
    return value.lstrip(":") or None


def singularize(word: str) -> str:
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def pluralize(word: str) -> str:
    if word.endswith("y") and not word.endswith(("ay", "ey", "oy", "uy")):
        return word[:-1] + "ies"
    if word.endswith("s"):
        return word
    return word + "s"


def camelize(snake: str) -> str:
    return "".join(part.capitalize() for part in snake.split("_"))


def model_files(root: Path) -> List[Path]:
    directory = root / "app" / "models"
    if not directory.is_dir():
        return []
    return sorted(
        path
        for path in directory.rglob("*.rb")
        if path.name != "application_record.rb" and "concerns" not in path.relative_to(directory).parts
    )


def parse_models(root: Path, paths: Iterable[Path]) -> List[ModelInfo]:
    models: List[ModelInfo] = []
    directory = root / "app" / "models"
    for path in paths:
        content = read_text(path)
        if content is None:
            continue
        relative = path.relative_to(directory).with_suffix("")
        name = "::".join(camelize(part) for part in relative.parts)
        models.append(parse_model_source(name, content))
    return models


def parse_model_source(name: str, content: str) -> ModelInfo:
    content = strip_comments(content, ("#",), block=False)
    table_match = _TABLE_NAME.search(content)
    table = table_match.group(1) if table_match else pluralize(_underscore(name.rsplit("::", 1)[-1]))
    return ModelInfo(
        name=name,
        table=table,
        associations=[
            _declaration(f"{kind} :{target}", options)
            for kind, target, options in _ASSOCIATION.findall(content)
        ],
        validations=[
            _declaration(f"{kind} :{target}", options)
            for kind, target, options in _VALIDATION.findall(content)
        ],
        scopes=[_declaration(f"scope :{scope}", body) for scope, body in _SCOPE.findall(content)],
    )


def _declaration(head: str, options: str) -> str:
    options = options.strip()
    return f"{head}, {options}" if options else head


def _underscore(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


__all__ = [
    "camelize",
    "model_files",
    "parse_model_source",
    "parse_models",
    "parse_schema_rb",
    "pluralize",
    "singularize",
]
