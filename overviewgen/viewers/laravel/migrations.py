"""Reconstructs a Laravel schema from migration files and Eloquent models."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ...logging import get_logger
from ...models import (
    Column,
    ExtractedSchema,
    ForeignKey,
    Index,
    ModelInfo,
    Relationship,
    TableSchema,
    table_entry,
)
from ...scanner import read_text
from ...textscan import (
    balanced_body,
    call_chain,
    split_top_level,
    squash,
    string_literals,
    strip_comments,
    unquote,
)

_logger = get_logger("viewers.laravel.migrations")

_UP_METHOD = re.compile(r"function\s+up\s*\([^)]*\)\s*(?::\s*\??\w+\s*)?\{")
_SCHEMA_CALL = re.compile(
    r"Schema::(?:connection\([^)]*\)->)?(?P<op>create|table|dropIfExists|drop|rename)\s*\("
)
_CLOSURE_OPEN = re.compile(r"function\s*\([^)]*\)\s*(?:use\s*\([^)]*\)\s*)?(?::\s*\??\w+\s*)?\{")
_TABLE_VARIABLE = re.compile(r"\$(\w+)\s*$")

INDEX_METHODS = {
    "index": "index",
    "unique": "unique",
    "primary": "primary",
    "fullText": "fulltext index",
    "fulltext": "fulltext index",
    "spatialIndex": "spatial index",
}
NON_COLUMN_METHODS = frozenset(
    {
        "foreign",
        "dropColumn",
        "dropColumns",
        "dropIfExists",
        "dropForeign",
        "dropConstrainedForeignId",
        "dropIndex",
        "dropUnique",
        "dropPrimary",
        "dropFullText",
        "dropSpatialIndex",
        "dropTimestamps",
        "dropSoftDeletes",
        "dropMorphs",
        "dropRememberToken",
        "renameColumn",
        "renameIndex",
        "engine",
        "charset",
        "collation",
        "comment",
        "temporary",
    }
)
# Blueprint helpers that add columns without naming them.
IMPLICIT_COLUMNS = {
    "id": (("id", "bigIncrements"),),
    "timestamps": (("created_at", "timestamp"), ("updated_at", "timestamp")),
    "timestampsTz": (("created_at", "timestampTz"), ("updated_at", "timestampTz")),
    "nullableTimestamps": (("created_at", "timestamp"), ("updated_at", "timestamp")),
    "softDeletes": (("deleted_at", "timestamp"),),
    "softDeletesTz": (("deleted_at", "timestampTz"),),
    "rememberToken": (("remember_token", "string"),),
}
_FLAG_MODIFIERS = {
    "nullable": "nullable",
    "unique": "unique",
    "unsigned": "unsigned",
    "index": "index",
    "primary": "primary",
    "autoIncrement": "auto increment",
    "useCurrent": "use current",
    "useCurrentOnUpdate": "use current on update",
}
_FK_ACTIONS = {
    "cascadeOnDelete": "on delete cascade",
    "restrictOnDelete": "on delete restrict",
    "nullOnDelete": "on delete set null",
    "noActionOnDelete": "on delete no action",
    "cascadeOnUpdate": "on update cascade",
    "restrictOnUpdate": "on update restrict",
    "nullOnUpdate": "on update set null",
}


def migration_files(root: Path) -> List[Path]:
    directory = root / "database" / "migrations"
    if not directory.is_dir():
        return []
    return sorted(directory.glob("*.php"), key=lambda path: path.name)


def parse_migrations(paths: Iterable[Path], schema: Optional[ExtractedSchema] = None) -> ExtractedSchema:
    """Apply each migration's ``up()`` in order to an insertion-ordered schema."""
    schema = schema if schema is not None else {}
    count = 0
    for path in paths:
        content = read_text(path)
        if content is None:
            continue
        parse_migration_source(content, schema)
        count += 1
    _logger.debug("Applied %d migrations, %d tables remain", count, len(schema))
    return schema


def parse_migration_source(content: str, schema: ExtractedSchema) -> ExtractedSchema:
    content = _up_body(strip_comments(content, ("//", "#")))
    for call in _SCHEMA_CALL.finditer(content):
        args = balanced_body(content, call.end() - 1)
        if args is None:
            continue
        op = call.group("op")
        literals = string_literals(args.split(",", 1)[0])
        if not literals:
            continue
        table_name = literals[0]

        if op in ("drop", "dropIfExists"):
            schema.pop(table_name, None)
            continue
        if op == "rename":
            new_names = string_literals(args)
            if len(new_names) >= 2 and table_name in schema:
                table = schema.pop(table_name)
                table.name = new_names[1]
                schema[new_names[1]] = table
            continue

        closure = _CLOSURE_OPEN.search(args)
        if closure is None:
            continue
        variable = _blueprint_variable(args[: closure.end()])
        body = balanced_body(args, closure.end() - 1)
        if body is None:
            continue
        _apply_blueprint(table_entry(schema, table_name), body, variable)
    return schema


def _up_body(content: str) -> str:
    match = _UP_METHOD.search(content)
    if not match:
        return content
    body = balanced_body(content, match.end() - 1)
    return body if body is not None else content


def _blueprint_variable(signature: str) -> str:
    params = re.search(r"function\s*\(([^)]*)\)", signature)
    if params:
        variable = _TABLE_VARIABLE.search(params.group(1).split(",")[0].strip())
        if variable:
            return variable.group(1)
    return "table"


def _apply_blueprint(table: TableSchema, body: str, variable: str) -> None:
    """Apply every ``$table->...;`` statement, each one scoped to its own text."""
    prefix = re.compile(rf"^\s*\${re.escape(variable)}\b")
    for statement in split_top_level(body, ";"):
        match = prefix.match(statement)
        if not match:
            continue
        calls, _ = call_chain(statement, match.end())
        if calls:
            _apply_statement(table, calls)


def _apply_statement(table: TableSchema, calls: Sequence[Tuple[str, str]]) -> None:
    method, args = calls[0]
    modifiers = calls[1:]
    arguments = split_top_level(args)

    if method in INDEX_METHODS:
        columns = _column_list(arguments[0]) if arguments else ()
        if columns:
            name = unquote(arguments[1]) if len(arguments) > 1 else None
            table.indexes.append(Index(columns=columns, name=name, kind=INDEX_METHODS[method]))
        return

    if method == "foreign":
        columns = _column_list(arguments[0]) if arguments else ()
        if columns:
            table.foreign_keys.append(_foreign_key(columns, arguments[1:], modifiers))
        return

    if method in ("dropColumn", "dropColumns"):
        dropped = set(string_literals(args))
        table.columns = [column for column in table.columns if column.name not in dropped]
        return

    if method == "renameColumn":
        names = string_literals(args)
        if len(names) >= 2:
            table.columns = [
                Column(names[1], column.type, column.attributes) if column.name == names[0] else column
                for column in table.columns
            ]
        return

    if method in NON_COLUMN_METHODS or method.startswith("drop"):
        return

    name = unquote(arguments[0]) if arguments else None
    if not name:
        if not arguments and method in IMPLICIT_COLUMNS:
            nullable = ("nullable",) if method.startswith(("nullable", "soft")) else ()
            for column, column_type in IMPLICIT_COLUMNS[method]:
                table.columns.append(Column(name=column, type=column_type, attributes=nullable))
        return

    table.columns.append(Column(name=name, type=method, attributes=_column_attributes(modifiers)))
    _apply_inline_keys(table, name, modifiers)


def _column_attributes(modifiers: Sequence[Tuple[str, str]]) -> Tuple[str, ...]:
    attributes: List[str] = []
    for method, args in modifiers:
        if method in _FLAG_MODIFIERS and not args.strip():
            attributes.append(_FLAG_MODIFIERS[method])
        elif method == "nullable" and args.strip().lower() != "false":
            attributes.append("nullable")
        elif method == "default":
            attributes.append(f"default: {squash(args)}")
    return tuple(attributes)


def _apply_inline_keys(table: TableSchema, name: str, modifiers: Sequence[Tuple[str, str]]) -> None:
    for modifier, args in modifiers:
        if modifier == "constrained":
            arguments = split_top_level(args)
            target = unquote(arguments[0]) if arguments else None
            column = unquote(arguments[1]) if len(arguments) > 1 else None
            table.foreign_keys.append(
                ForeignKey(
                    columns=(name,),
                    references_table=target or _guess_table(name),
                    references_columns=(column or "id",),
                    options=_fk_options(modifiers),
                )
            )
        elif modifier == "references":
            targets = _column_list(args)
            on_target = next((unquote(a) for m, a in modifiers if m == "on"), None)
            if targets and on_target:
                table.foreign_keys.append(
                    ForeignKey(
                        columns=(name,),
                        references_table=on_target,
                        references_columns=targets,
                        options=_fk_options(modifiers),
                    )
                )


def _foreign_key(
    columns: Tuple[str, ...], extra_args: Sequence[str], modifiers: Sequence[Tuple[str, str]]
) -> ForeignKey:
    references: Tuple[str, ...] = ("id",)
    target = ""
    for method, args in modifiers:
        if method == "references":
            references = _column_list(args) or references
        elif method == "on":
            target = unquote(args) or target
    name = unquote(extra_args[0]) if extra_args else None
    return ForeignKey(
        columns=columns,
        references_table=target,
        references_columns=references,
        name=name,
        options=_fk_options(modifiers),
    )


def _fk_options(modifiers: Sequence[Tuple[str, str]]) -> str:
    options: List[str] = []
    for method, args in modifiers:
        if method in _FK_ACTIONS:
            options.append(_FK_ACTIONS[method])
        elif method in ("onDelete", "onUpdate"):
            action = unquote(args)
            if action:
                options.append(f"{'on delete' if method == 'onDelete' else 'on update'} {action}")
    return ", ".join(options)


def _column_list(raw: str) -> Tuple[str, ...]:
    raw = raw.strip()
    if raw.startswith("["):
        return tuple(string_literals(raw))
    value = unquote(raw)
    return (value,) if value else ()


def _guess_table(column: str) -> str:
    base = column[: -len("_id")] if column.endswith("_id") else column
    return pluralize(base)


def pluralize(word: str) -> str:
    return word if word.endswith("s") else f"{word}s"


def snake_case(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


_MODEL_MARKERS = re.compile(
    r"extends\s+(?:\\?[\w\\]*\\)?(?:Model|Authenticatable|Pivot)\b|Illuminate\\Database\\Eloquent\\Model"
)
_TABLE_PROPERTY = re.compile(r"protected\s+(?:\??string\s+)?\$table\s*=\s*['\"]([^'\"]+)['\"]")
_FILLABLE_PROPERTY = re.compile(r"protected\s+(?:array\s+)?\$fillable\s*=\s*\[")
_METHOD = re.compile(r"public\s+function\s+(\w+)\s*\([^)]*\)\s*(?::\s*[\w\\]+\s*)?\{")
_RELATION = re.compile(r"\$this\s*->\s*(hasMany|hasOne|belongsTo|belongsToMany)\s*\(\s*([^,)]+)")


def model_files(root: Path) -> List[Path]:
    files: List[Path] = []
    models_dir = root / "app" / "Models"
    if models_dir.is_dir():
        files.extend(sorted(models_dir.rglob("*.php")))
    app_dir = root / "app"
    if app_dir.is_dir():
        files.extend(sorted(path for path in app_dir.glob("*.php") if path.is_file()))
    return files


def parse_models(paths: Iterable[Path]) -> List[ModelInfo]:
    models: List[ModelInfo] = []
    for path in paths:
        content = read_text(path)
        if content is None:
            continue
        model = parse_model_source(path.stem, content)
        if model is not None:
            models.append(model)
    return models


def parse_model_source(name: str, content: str) -> Optional[ModelInfo]:
    """Summarise an Eloquent model, or return None when the class is not one."""
    content = strip_comments(content, ("//", "#"))
    if not _MODEL_MARKERS.search(content):
        return None

    table_match = _TABLE_PROPERTY.search(content)
    table = table_match.group(1) if table_match else snake_case(pluralize(name))

    fillable: List[str] = []
    fillable_match = _FILLABLE_PROPERTY.search(content)
    if fillable_match:
        body = balanced_body(content, fillable_match.end() - 1)
        fillable = string_literals(body or "")

    relationships: List[Relationship] = []
    for method in _METHOD.finditer(content):
        body = balanced_body(content, method.end() - 1)
        if not body:
            continue
        relation = _RELATION.search(body)
        if relation:
            target = relation.group(2).strip().replace("::class", "").strip("'\"")
            relationships.append(
                Relationship(kind=relation.group(1), method=method.group(1), target=target.rsplit("\\", 1)[-1])
            )

    return ModelInfo(name=name, table=table, fillable=fillable, relationships=relationships)


__all__ = [
    "migration_files",
    "model_files",
    "parse_migration_source",
    "parse_migrations",
    "parse_model_source",
    "parse_models",
    "pluralize",
    "snake_case",
]
