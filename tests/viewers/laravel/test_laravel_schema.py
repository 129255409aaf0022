"""Tests for the Laravel database schema viewer."""

from __future__ import annotations

from overviewgen.models import ProjectType
from overviewgen.viewers import LaravelSchemaViewer, ViewerContext
from overviewgen.viewers.laravel.schema import SCHEMA_DUMP_COMMAND, extract_schema
from tests._fixtures.project_builder import FakeRunner, ProjectBuilder

MIGRATION = """
    <?php
    return new class extends Migration {
        public function up(): void
        {
            Schema::create('orders', function (Blueprint $table) {
                $table->id();
                $table->decimal('total', 8, 2)->default(0);
                $table->foreignId('customer_id')->constrained('users');
            });
        }
    };
"""

MODEL = """
    <?php
    namespace App\\Models;

    use Illuminate\\Database\\Eloquent\\Model;

    class Order extends Model
    {
        protected $fillable = ['total'];

        public function customer()
        {
            return $this->belongsTo(User::class, 'customer_id');
        }
    }
"""


def _context(runner) -> ViewerContext:
    project_type = ProjectType()
    project_type.add_trait("laravel")
    return ViewerContext(project_type=project_type, runner=runner)


def _seed(builder: ProjectBuilder) -> None:
    builder.laravel()
    builder.write(
        {
            "database/migrations/2024_01_01_000000_create_orders.php": MIGRATION,
            "app/Models/Order.php": MODEL,
        }
    )


def test_fallback_renders_tables_and_models(project_builder: ProjectBuilder, fake_runner: FakeRunner) -> None:
    _seed(project_builder)
    root = project_builder.path()
    viewer = LaravelSchemaViewer(_context(fake_runner))

    assert viewer.is_applicable(root) is True
    output = viewer.generate(root)

    assert fake_runner.calls == [SCHEMA_DUMP_COMMAND]
    assert output.startswith("# Laravel Database Schema\n\n## Database Tables\n\nExtracted from migration files:\n")
    assert "### Table: `orders`" in output
    assert "| total | decimal | default: 0 |" in output
    assert "- customer_id references id on users" in output
    assert "## Eloquent Models" in output
    assert "| Order | orders | total | belongsTo: customer (User) |" in output


def test_schema_dump_output_is_embedded(project_builder: ProjectBuilder) -> None:
    _seed(project_builder)
    root = project_builder.path()
    runner = FakeRunner({SCHEMA_DUMP_COMMAND: "CREATE TABLE orders (id bigint);\n"})

    output = LaravelSchemaViewer(_context(runner)).generate(root)

    assert "## Database Schema (from schema:dump)\n\n```sql\nCREATE TABLE orders (id bigint);\n```" in output
    assert "### Table:" not in output


def test_sql_dump_seeds_migrations(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "database/schema/mysql-schema.sql": "CREATE TABLE `users` (`id` bigint NOT NULL, PRIMARY KEY (`id`));",
            "database/migrations/2025_01_01_000000_add_name.php": """
                <?php
                return new class extends Migration {
                    public function up(): void
                    {
                        Schema::table('users', function (Blueprint $table) {
                            $table->string('name');
                        });
                    }
                };
            """,
        }
    )

    schema = extract_schema(project_builder.path())

    assert [column.name for column in schema["users"].columns] == ["id", "name"]


def test_empty_project_reports_no_tables(project_builder: ProjectBuilder, fake_runner: FakeRunner) -> None:
    (project_builder.path() / "database" / "migrations").mkdir(parents=True)
    root = project_builder.path()

    output = LaravelSchemaViewer(_context(fake_runner)).generate(root)

    assert "No database tables found in migration files." in output
    assert "No Eloquent models found." in output
