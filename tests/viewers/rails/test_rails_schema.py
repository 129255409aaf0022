"""Tests for Rails schema.rb and model extraction."""

from __future__ import annotations

import textwrap

from overviewgen.models import ProjectType
from overviewgen.viewers import RailsSchemaViewer, ViewerContext
from overviewgen.viewers.rails.schema import extract_schema
from overviewgen.viewers.rails.schema_parser import (
    camelize,
    model_files,
    parse_model_source,
    parse_models,
    parse_schema_rb,
    pluralize,
    singularize,
)
from tests._fixtures.project_builder import ProjectBuilder

SCHEMA_RB = textwrap.dedent(
    """
    ActiveRecord::Schema[7.0].define(version: 2024_01_01_000000) do
      # These are extensions that must be enabled
      enable_extension "plpgsql"

      create_table "users", force: :cascade do |t|
        t.string "email", null: false
        t.datetime "weekend_starts_at"
        t.integer "role", default: 0, null: false
        t.index ["email"], name: "index_users_on_email", unique: true
      end

      create_table "posts", force: :cascade do |t|
        t.bigint "user_id"
        t.text "body"
      end

      add_index "posts", ["user_id"], name: "index_posts_on_user_id"
      add_foreign_key "posts", "users", on_delete: :cascade
    end
    """
)

USER_MODEL = textwrap.dedent(
    """
    class User < ApplicationRecord
      has_many :posts, dependent: :destroy
      has_one :profile, dependent: :destroy

      validates :email, presence: true, uniqueness: true
      validates :username, presence: true, length: { minimum: 3, maximum: 20 }

      scope :active, -> { where(active: true) }

      def full_name
        "#{first_name} #{last_name}"
      end
    end
    """
)


def test_parse_schema_rb_tables_columns_and_indexes() -> None:
    schema = parse_schema_rb(SCHEMA_RB)

    assert list(schema) == ["users", "posts"]
    users = schema["users"]
    assert [(column.name, column.type) for column in users.columns] == [
        ("email", "string"),
        ("weekend_starts_at", "datetime"),
        ("role", "integer"),
    ]
    assert users.columns[0].attributes == ("null: false",)
    assert users.columns[2].attributes == ("default: 0", "null: false")
    assert users.indexes[0].describe() == "unique index_users_on_email on (email)"

    posts = schema["posts"]
    assert posts.indexes[0].name == "index_posts_on_user_id"
    foreign_key = posts.foreign_keys[0]
    assert foreign_key.columns == ("user_id",)
    assert foreign_key.references_table == "users"
    assert foreign_key.options == "on_delete: :cascade"


def test_user_model_declarations() -> None:
    model = parse_model_source("User", USER_MODEL)

    assert model.table == "users"
    assert model.associations == [
        "has_many :posts, dependent: :destroy",
        "has_one :profile, dependent: :destroy",
    ]
    assert model.validations[1] == "validates :username, presence: true, length: { minimum: 3, maximum: 20 }"
    assert model.scopes == ["scope :active, -> { where(active: true) }"]


def test_model_files_and_namespaced_names(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "app/models/application_record.rb": "class ApplicationRecord < ActiveRecord::Base\nend\n",
            "app/models/concerns/sluggable.rb": "module Sluggable\nend\n",
            "app/models/admin/audit_entry.rb": (
                "class Admin::AuditEntry < ApplicationRecord\n  self.table_name = 'audit_log'\nend\n"
            ),
            "app/models/user.rb": USER_MODEL,
        }
    )
    root = project_builder.path()

    models = parse_models(root, model_files(root))

    assert [(model.name, model.table) for model in models] == [
        ("Admin::AuditEntry", "audit_log"),
        ("User", "users"),
    ]


def test_structure_sql_used_when_schema_rb_missing(project_builder: ProjectBuilder) -> None:
    project_builder.write({"db/structure.sql": "CREATE TABLE public.widgets (id bigint NOT NULL);\n"})

    schema = extract_schema(project_builder.path())

    assert list(schema) == ["widgets"]


def test_viewer_renders_tables_and_relationships(project_builder: ProjectBuilder) -> None:
    project_builder.rails()
    project_builder.write({"db/schema.rb": SCHEMA_RB, "app/models/user.rb": USER_MODEL})
    project_type = ProjectType()
    project_type.add_trait("rails")
    viewer = RailsSchemaViewer(ViewerContext(project_type=project_type))
    root = project_builder.path()

    assert viewer.is_applicable(root) is True
    output = viewer.generate(root)

    assert output.startswith("# Rails Database Schema\n\n## Database Tables\n\n### Table: `users`")
    assert "| email | string | null: false |" in output
    assert "## Model Relationships\n\n### User\n\n**Associations:**\n\n- has_many :posts" in output
    assert "**Scopes:**" in output


def test_inflections() -> None:
    assert singularize("categories") == "category"
    assert singularize("users") == "user"
    assert singularize("address") == "address"
    assert pluralize("category") == "categories"
    assert pluralize("day") == "days"
    assert camelize("audit_entry") == "AuditEntry"
