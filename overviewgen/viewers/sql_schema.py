"""Pattern-based reader for SQL DDL dumps (``structure.sql``, ``schema:dump``).

The parser is deliberately shallow: it recognises the statements database
dump tools emit (``CREATE TABLE``, ``CREATE INDEX``, ``ALTER TABLE ... ADD
CONSTRAINT``) and ignores everything else.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from ..models import Column, ExtractedSchema, ForeignKey, Index, TableSchema, table_entry
from ..textscan import balanced_body, mask_nested, split_top_level, squash

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"--[^\n]*")

_CREATE_TABLE = re.compile(
    r"\bCREATE\s+(?:(?:GLOBAL\s+|LOCAL\s+)?(?:TEMPORARY|TEMP|UNLOGGED)\s+)?TABLE\s+"
    r"(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>[^\s(]+)\s*\(",
    re.IGNORECASE,
)
_CREATE_INDEX = re.compile(
    r"\bCREATE\s+(?P<unique>UNIQUE\s+)?INDEX\s+(?:CONCURRENTLY\s+)?(?:IF\s+NOT\s+EXISTS\s+)?"
    r"(?P<name>[^\s(]+)\s+ON\s+(?:ONLY\s+)?(?P<table>[^\s(]+)\s*(?:USING\s+\w+\s*)?\(",
    re.IGNORECASE,
)
_ALTER_TABLE = re.compile(
    r"\bALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?(?P<table>[^\s(]+)\s+"
    r"ADD\s+CONSTRAINT\s+(?P<name>[^\s(]+)\s+(?P<body>[^;]*);",
    re.IGNORECASE,
)

_FOREIGN_KEY = re.compile(
    r"^FOREIGN\s+KEY\s*(?:[^\s(]+\s*)?\((?P<columns>[^)]*)\)\s*REFERENCES\s+"
    r"(?P<table>[^\s(]+)\s*(?:\((?P<ref_columns>[^)]*)\))?(?P<options>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_PRIMARY_KEY = re.compile(
    r"^PRIMARY\s+KEY\s*(?:USING\s+\w+\s*)?\((?P<columns>[^)]*)\)(?P<options>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_UNIQUE = re.compile(
    r"^UNIQUE\b\s*(?:KEY|INDEX)?\s*(?P<name>[^\s(]+)?\s*\((?P<columns>[^)]*)\)(?P<options>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_KEY = re.compile(
    r"^(?P<kind>(?:FULLTEXT|SPATIAL)\s+)?(?:KEY|INDEX)\s+(?P<name>[^\s(]+)?\s*"
    r"\((?P<columns>[^)]*)\)(?P<options>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_CONSTRAINT = re.compile(r"^CONSTRAINT\s+(?P<name>[^\s(]+)\s+(?P<body>.*)$", re.IGNORECASE | re.DOTALL)
_INLINE_REFERENCE = re.compile(
    r"\bREFERENCES\s+(?P<table>[^\s(]+)\s*(?:\((?P<columns>[^)]*)\))?", re.IGNORECASE
)
_ATTRIBUTE_START = re.compile(
    r"\b(?:NOT\s+NULL|NULL|DEFAULT|PRIMARY\s+KEY|UNIQUE|REFERENCES|AUTO_INCREMENT|"
    r"AUTOINCREMENT|COLLATE|CHARACTER\s+SET|GENERATED|CHECK|COMMENT|CONSTRAINT|ON\s+UPDATE|"
    r"IDENTITY|STORED|VIRTUAL)\b",
    re.IGNORECASE,
)


def parse_sql_schema(sql: str, schema: Optional[ExtractedSchema] = None) -> ExtractedSchema:
    """Extract tables, indexes and foreign keys from a DDL dump.

    When ``schema`` is given, results are merged into it.
    """
    schema = schema if schema is not None else {}
    sql = _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", sql))

    for match in _CREATE_TABLE.finditer(sql):
        body = balanced_body(sql, match.end() - 1)
        if body is None:
            continue
        table = table_entry(schema, normalize_identifier(match.group("name")))
        for item in split_top_level(body):
            _apply_definition(table, item)

    for match in _CREATE_INDEX.finditer(sql):
        table = schema.get(normalize_identifier(match.group("table")))
        columns = balanced_body(sql, match.end() - 1)
        if table is None or columns is None:
            continue
        close_index = match.end() + len(columns)
        statement_end = sql.find(";", close_index)
        options = sql[close_index + 1 : statement_end if statement_end != -1 else len(sql)]
        table.indexes.append(
            Index(
                columns=split_identifiers(columns),
                name=normalize_identifier(match.group("name")),
                kind="unique" if match.group("unique") else "index",
                options=squash(options),
            )
        )

    for match in _ALTER_TABLE.finditer(sql):
        table = schema.get(normalize_identifier(match.group("table")))
        if table is None:
            continue
        _apply_constraint(table, normalize_identifier(match.group("name")), squash(match.group("body")))

    return schema


def normalize_identifier(raw: str) -> str:
    """Strip quoting and any schema prefix: ``public."users"`` -> ``users``."""
    cleaned = raw.strip().strip(",;")
    cleaned = re.sub(r"[`\"'\[\]]", "", cleaned)
    return cleaned.rsplit(".", 1)[-1]


def split_identifiers(raw: str) -> Tuple[str, ...]:
    return tuple(
        normalize_identifier(part) if re.fullmatch(r"[\w`\"\[\].]+", part.strip()) else squash(part)
        for part in split_top_level(raw)
        if part.strip()
    )


def _apply_definition(table: TableSchema, item: str) -> None:
    item = squash(item)
    constraint = _CONSTRAINT.match(item)
    if constraint:
        _apply_constraint(table, normalize_identifier(constraint.group("name")), constraint.group("body"))
        return
    if _apply_constraint(table, None, item):
        return
    if re.match(r"^(?:CHECK|EXCLUDE|PERIOD)\b", item, re.IGNORECASE):
        return
    _apply_column(table, item)


def _apply_constraint(table: TableSchema, name: Optional[str], body: str) -> bool:
    """Record a table-level constraint; returns False when ``body`` is not one."""
    match = _FOREIGN_KEY.match(body)
    if match:
        ref_columns = match.group("ref_columns")
        table.foreign_keys.append(
            ForeignKey(
                columns=split_identifiers(match.group("columns")),
                references_table=normalize_identifier(match.group("table")),
                references_columns=split_identifiers(ref_columns) if ref_columns else ("id",),
                name=name,
                options=squash(match.group("options")),
            )
        )
        return True
    match = _PRIMARY_KEY.match(body)
    if match:
        table.indexes.append(
            Index(
                columns=split_identifiers(match.group("columns")),
                name=name,
                kind="primary",
                options=squash(match.group("options")),
            )
        )
        return True
    match = _UNIQUE.match(body)
    if match:
        index_name = match.group("name")
        table.indexes.append(
            Index(
                columns=split_identifiers(match.group("columns")),
                name=normalize_identifier(index_name) if index_name else name,
                kind="unique",
                options=squash(match.group("options")),
            )
        )
        return True
    match = _KEY.match(body)
    if match:
        kind = (match.group("kind") or "").strip().lower()
        index_name = match.group("name")
        table.indexes.append(
            Index(
                columns=split_identifiers(match.group("columns")),
                name=normalize_identifier(index_name) if index_name else name,
                kind=f"{kind} index" if kind else "index",
                options=squash(match.group("options")),
            )
        )
        return True
    return False


def _apply_column(table: TableSchema, item: str) -> None:
    name_match = re.match(r"^(`[^`]+`|\"[^\"]+\"|\[[^\]]+\]|\S+)\s*(.*)$", item, re.DOTALL)
    if not name_match:
        return
    name = normalize_identifier(name_match.group(1))
    rest = name_match.group(2)

    masked = mask_nested(rest)
    attribute = _ATTRIBUTE_START.search(masked)
    split_at = attribute.start() if attribute else len(rest)
    column_type = rest[:split_at].strip()
    attributes = rest[split_at:].strip()
    if not column_type:
        return

    table.columns.append(Column(name=name, type=column_type, attributes=(attributes,) if attributes else ()))

    reference = _INLINE_REFERENCE.search(attributes)
    if reference:
        ref_columns = reference.group("columns")
        table.foreign_keys.append(
            ForeignKey(
                columns=(name,),
                references_table=normalize_identifier(reference.group("table")),
                references_columns=split_identifiers(ref_columns) if ref_columns else ("id",),
            )
        )


__all__ = [
    "normalize_identifier",
    "parse_sql_schema",
    "split_identifiers",
]
