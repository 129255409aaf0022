"""Tests for the SQL DDL dump reader."""

from __future__ import annotations

import textwrap

from overviewgen.viewers.sql_schema import normalize_identifier, parse_sql_schema

MYSQL_DUMP = textwrap.dedent(
    """
    /*!40101 SET NAMES utf8mb4 */;
    CREATE TABLE `users` (
      `id` bigint unsigned NOT NULL AUTO_INCREMENT,
      `email` varchar(255) COLLATE utf8mb4_unicode_ci NOT NULL,
      `price` decimal(8,2) DEFAULT NULL,
      PRIMARY KEY (`id`),
      UNIQUE KEY `users_email_unique` (`email`),
      KEY `users_price_index` (`price`)
    ) ENGINE=InnoDB;

    CREATE TABLE `posts` (
      `id` bigint unsigned NOT NULL AUTO_INCREMENT,
      `user_id` bigint unsigned NOT NULL,
      -- trailing comment, with a comma
      PRIMARY KEY (`id`),
      CONSTRAINT `posts_user_id_foreign` FOREIGN KEY (`user_id`) REFERENCES `users` (`id`) ON DELETE CASCADE
    );
    """
)

POSTGRES_DUMP = textwrap.dedent(
    """
    CREATE TABLE public.comments (
        id bigint NOT NULL,
        post_id bigint REFERENCES posts(id),
        body text
    );

    CREATE UNIQUE INDEX index_comments_on_post_id ON public.comments USING btree (post_id) WHERE (body IS NOT NULL);

    ALTER TABLE ONLY public.comments
        ADD CONSTRAINT fk_rails_comments_posts FOREIGN KEY (post_id) REFERENCES public.posts(id);
    """
)


def test_mysql_dump_columns_and_keys() -> None:
    schema = parse_sql_schema(MYSQL_DUMP)

    assert list(schema) == ["users", "posts"]
    users = schema["users"]
    assert [(column.name, column.type) for column in users.columns] == [
        ("id", "bigint unsigned"),
        ("email", "varchar(255)"),
        ("price", "decimal(8,2)"),
    ]
    assert users.columns[0].attributes == ("NOT NULL AUTO_INCREMENT",)
    assert [(index.kind, index.name, index.columns) for index in users.indexes] == [
        ("primary", None, ("id",)),
        ("unique", "users_email_unique", ("email",)),
        ("index", "users_price_index", ("price",)),
    ]

    foreign_key = schema["posts"].foreign_keys[0]
    assert foreign_key.columns == ("user_id",)
    assert foreign_key.references_table == "users"
    assert foreign_key.references_columns == ("id",)
    assert foreign_key.name == "posts_user_id_foreign"
    assert foreign_key.options == "ON DELETE CASCADE"


def test_postgres_dump_indexes_and_alter_table() -> None:
    schema = parse_sql_schema(POSTGRES_DUMP)

    comments = schema["comments"]
    assert [column.name for column in comments.columns] == ["id", "post_id", "body"]
    index = comments.indexes[0]
    assert index.kind == "unique"
    assert index.name == "index_comments_on_post_id"
    assert index.columns == ("post_id",)
    assert index.options == "WHERE (body IS NOT NULL)"

    assert [(fk.references_table, fk.name) for fk in comments.foreign_keys] == [
        ("posts", None),
        ("posts", "fk_rails_comments_posts"),
    ]


def test_results_merge_into_existing_schema() -> None:
    schema = parse_sql_schema("CREATE TABLE a (id int);")
    parse_sql_schema("CREATE TABLE b (id int); CREATE INDEX a_id ON a (id);", schema)

    assert list(schema) == ["a", "b"]
    assert schema["a"].indexes[0].describe() == "index a_id on (id)"


def test_unrecognised_sql_yields_empty_schema() -> None:
    assert parse_sql_schema("SELECT 1; INSERT INTO t VALUES (1);") == {}


def test_normalize_identifier_strips_quotes_and_schema() -> None:
    assert normalize_identifier('public."users"') == "users"
    assert normalize_identifier("`orders`") == "orders"
