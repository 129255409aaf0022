"""Rails database schema section."""

from __future__ import annotations

from pathlib import Path

from ...models import ExtractedSchema
from ...rendering import render
from ...scanner import hash_files, read_text
from ..base import Viewer
from ..sql_schema import parse_sql_schema
from .schema_parser import model_files, parse_models, parse_schema_rb

SCHEMA_RB = Path("db") / "schema.rb"
STRUCTURE_SQL = Path("db") / "structure.sql"


class RailsSchemaViewer(Viewer):
    """Tables from ``db/schema.rb`` (or ``db/structure.sql``) plus model declarations."""

    name = "Rails Database Schema"
    key = "rails_schema"

    def is_applicable(self, root: Path) -> bool:
        if not self.project_type.has_trait("rails"):
            return False
        return (root / SCHEMA_RB).is_file() or (root / STRUCTURE_SQL).is_file()

    def fingerprint(self, root: Path) -> str:
        return hash_files([root / SCHEMA_RB, root / STRUCTURE_SQL, *model_files(root)])

    def generate(self, root: Path) -> str:
        parts = [self.heading()]
        parts.append(
            render(
                "tables.md.j2",
                intro=None,
                tables=list(extract_schema(root).values()),
                empty_message="No database tables found.",
            )
        )
        models = parse_models(root, model_files(root))
        if models:
            parts.append(render("rails_models.md.j2", models=models))
        return "".join(parts).rstrip("\n") + "\n"


def extract_schema(root: Path) -> ExtractedSchema:
    """Prefer ``schema.rb``; fall back to ``structure.sql`` when it yields nothing."""
    schema: ExtractedSchema = {}
    schema_rb = read_text(root / SCHEMA_RB)
    if schema_rb:
        parse_schema_rb(schema_rb, schema)
    if not schema:
        structure = read_text(root / STRUCTURE_SQL)
        if structure:
            parse_sql_schema(structure, schema)
    return schema


__all__ = ["RailsSchemaViewer", "extract_schema"]
