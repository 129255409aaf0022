"""Laravel database schema section."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from ...extraction import FromTool, extract_with_fallback
from ...models import ExtractedSchema
from ...rendering import render
from ...scanner import hash_files, read_text
from ..base import Viewer
from ..sql_schema import parse_sql_schema
from .migrations import migration_files, model_files, parse_migrations, parse_models

SCHEMA_DUMP_COMMAND: Tuple[str, ...] = ("php", "artisan", "schema:dump", "--output")


class LaravelSchemaViewer(Viewer):
    """Tables from ``schema:dump`` when artisan works, otherwise from migrations."""

    name = "Laravel Database Schema"
    key = "laravel_schema"

    def is_applicable(self, root: Path) -> bool:
        if not self.project_type.has_trait("laravel"):
            return False
        return (root / "database" / "migrations").is_dir() or bool(_schema_dumps(root))

    def fingerprint(self, root: Path) -> str:
        return hash_files([*migration_files(root), *_schema_dumps(root), *model_files(root)])

    def generate(self, root: Path) -> str:
        result = extract_with_fallback(
            lambda: self._schema_dump(root),
            lambda: extract_schema(root),
            command=SCHEMA_DUMP_COMMAND,
        )
        parts = [self.heading()]
        if isinstance(result, FromTool):
            parts.append("## Database Schema (from schema:dump)\n\n")
            parts.append(f"```sql\n{result.value.rstrip()}\n```\n\n")
        else:
            parts.append(
                render(
                    "tables.md.j2",
                    intro="Extracted from migration files:",
                    tables=list(result.value.values()),
                    empty_message="No database tables found in migration files.",
                )
            )
        parts.append(render("eloquent_models.md.j2", models=parse_models(model_files(root))))
        return "".join(parts).rstrip("\n") + "\n"

    def _schema_dump(self, root: Path) -> Optional[str]:
        if not (root / "artisan").is_file():
            return None
        output = self.context.runner(list(SCHEMA_DUMP_COMMAND), cwd=root)
        return output if output.strip() else None


def extract_schema(root: Path) -> ExtractedSchema:
    """Committed SQL dumps first, then every migration applied in filename order."""
    schema: ExtractedSchema = {}
    for dump in _schema_dumps(root):
        content = read_text(dump)
        if content:
            parse_sql_schema(content, schema)
    return parse_migrations(migration_files(root), schema)


def _schema_dumps(root: Path) -> List[Path]:
    directory = root / "database" / "schema"
    if not directory.is_dir():
        return []
    return sorted(directory.glob("*.sql"))


__all__ = ["LaravelSchemaViewer", "SCHEMA_DUMP_COMMAND", "extract_schema"]
