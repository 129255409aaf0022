"""Tests for Laravel migration and Eloquent model extraction."""

from __future__ import annotations

from overviewgen.viewers.laravel.migrations import (
    migration_files,
    parse_migration_source,
    parse_migrations,
    parse_model_source,
    pluralize,
    snake_case,
)
from tests._fixtures.project_builder import ProjectBuilder

CREATE_POSTS = """<?php

use Illuminate\\Database\\Migrations\\Migration;
use Illuminate\\Database\\Schema\\Blueprint;
use Illuminate\\Support\\Facades\\Schema;

return new class extends Migration
{
    public function up(): void
    {
        Schema::create('posts', function (Blueprint $table) {
            $table->string('title');
            $table->index(['title']);
        });
    }

    public function down(): void
    {
        Schema::dropIfExists('posts');
    }
};
"""


def test_single_column_and_index() -> None:
    schema = parse_migration_source(CREATE_POSTS, {})

    assert list(schema) == ["posts"]
    posts = schema["posts"]
    assert [(column.name, column.type) for column in posts.columns] == [("title", "string")]
    assert len(posts.indexes) == 1
    assert posts.indexes[0].columns == ("title",)
    assert posts.indexes[0].kind == "index"


def test_modifiers_stay_with_their_own_column() -> None:
    source = """<?php
    class CreateUsers extends Migration {
        public function up() {
            Schema::create('users', function (Blueprint $t) {
                $t->id();
                $t->string('email')->unique();
                $t->string('nickname')->nullable()->default('anon');
                $t->boolean('active')->default(true);
                $t->timestamps();
            });
        }
    }
    """

    users = parse_migration_source(source, {})["users"]

    columns = {column.name: column for column in users.columns}
    assert list(columns) == ["id", "email", "nickname", "active", "created_at", "updated_at"]
    assert columns["email"].attributes == ("unique",)
    assert columns["nickname"].attributes == ("nullable", "default: 'anon'")
    assert columns["active"].attributes == ("default: true",)
    assert columns["id"].type == "bigIncrements"


def test_foreign_keys_from_foreign_and_constrained() -> None:
    source = """<?php
    return new class extends Migration {
        public function up(): void
        {
            Schema::create('comments', function (Blueprint $table) {
                $table->foreignId('post_id')->constrained()->cascadeOnDelete();
                $table->unsignedBigInteger('author_id');
                $table->foreign('author_id', 'comments_author_fk')->references('id')->on('users')->onDelete('set null');
                $table->unique(['post_id', 'author_id'], 'comments_post_author_unique');
            });
        }
    };
    """

    comments = parse_migration_source(source, {})["comments"]

    assert [column.name for column in comments.columns] == ["post_id", "author_id"]
    constrained, explicit = comments.foreign_keys
    assert constrained.describe() == "post_id references id on posts on delete cascade"
    assert explicit.references_table == "users"
    assert explicit.name == "comments_author_fk"
    assert explicit.options == "on delete set null"
    assert comments.indexes[0].kind == "unique"
    assert comments.indexes[0].columns == ("post_id", "author_id")


def test_migrations_apply_in_filename_order(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "database/migrations/2024_01_02_000000_alter_posts.php": """
                <?php
                return new class extends Migration {
                    public function up(): void
                    {
                        Schema::table('posts', function (Blueprint $table) {
                            $table->text('body')->nullable();
                            $table->dropColumn('legacy');
                            $table->renameColumn('title', 'headline');
                        });
                        Schema::dropIfExists('drafts');
                    }
                };
            """,
            "database/migrations/2024_01_01_000000_create_posts.php": """
                <?php
                return new class extends Migration {
                    public function up(): void
                    {
                        Schema::create('posts', function (Blueprint $table) {
                            $table->string('title');
                            $table->string('legacy'); // removed later
                        });
                        Schema::create('drafts', function (Blueprint $table) {
                            $table->id();
                        });
                    }
                };
            """,
        }
    )

    files = migration_files(project_builder.path())
    schema = parse_migrations(files)

    assert [path.name[:10] for path in files] == ["2024_01_01", "2024_01_02"]
    assert list(schema) == ["posts"]
    assert [column.name for column in schema["posts"].columns] == ["headline", "body"]


def test_down_method_is_ignored() -> None:
    schema = parse_migration_source(CREATE_POSTS, {})

    assert "posts" in schema


def test_eloquent_model_summary() -> None:
    source = """<?php

namespace App\\Models;

use Illuminate\\Database\\Eloquent\\Model;

class BlogPost extends Model
{
    protected $fillable = ['title', 'body'];

    public function author()
    {
        return $this->belongsTo(User::class);
    }

    public function comments(): HasMany
    {
        return $this->hasMany(\\App\\Models\\Comment::class);
    }

    public function summary()
    {
        return substr($this->body, 0, 20);
    }
}
"""

    model = parse_model_source("BlogPost", source)

    assert model is not None
    assert model.table == "blog_posts"
    assert model.fillable == ["title", "body"]
    assert model.relationship_summary() == "belongsTo: author (User); hasMany: comments (Comment)"


def test_explicit_table_and_non_models() -> None:
    model = parse_model_source(
        "Person",
        "<?php class Person extends Authenticatable { protected $table = 'people'; }",
    )
    helper = parse_model_source("Helper", "<?php class Helper { public function run() {} }")

    assert model is not None and model.table == "people"
    assert helper is None


def test_inflection_helpers() -> None:
    assert pluralize("post") == "posts"
    assert pluralize("status") == "status"
    assert snake_case("OrderItem") == "order_item"
