"""Unit tests for sync_engine.generator.ddl_generator."""

from __future__ import annotations

from datetime import date

import pytest

from sync_engine.dialects.type_map import Dialect
from sync_engine.generator.ddl_generator import (
    DDL_MIME_TYPE,
    ENUM_SECTION_HEADER,
    FK_SECTION_HEADER,
    download_filename,
    generate,
    generate_ddl,
    generate_for_graph,
)
from sync_engine.models.diagnostics import GenerationWarningKind
from sync_engine.models.schema_graph import (
    Column,
    ColumnType,
    ConstraintTag,
    EnumType,
    ForeignKeyEdge,
    ReferentialAction,
    SchemaGraph,
    SchemaSettings,
    Table,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _col(title: str, column_type: ColumnType = ColumnType.UUID, *tags: ConstraintTag, enum_name=None) -> Column:
    return Column(title=title, type=column_type, enum_name=enum_name, constraints=list(tags))


def _users() -> Table:
    return Table(
        label="users",
        columns=[
            _col("id", ColumnType.UUID, ConstraintTag.PRIMARY),
            _col("email", ColumnType.VARCHAR, ConstraintTag.UNIQUE),
        ],
    )


def _orders() -> Table:
    return Table(
        label="orders",
        columns=[
            _col("id", ColumnType.UUID, ConstraintTag.PRIMARY),
            _col("user_id", ColumnType.UUID, ConstraintTag.NOT_NULL, ConstraintTag.FOREIGN_KEY),
        ],
    )


def _orders_fk(**kwargs) -> ForeignKeyEdge:
    return ForeignKeyEdge(
        constraint_name="fk_orders_user_id_users",
        source_table="orders",
        source_column="user_id",
        target_table="users",
        target_column="id",
        **kwargs,
    )


INLINE_OFF = SchemaSettings(use_inline_constraints=False)
CASE_SENSITIVE = SchemaSettings(case_sensitive_identifiers=True)


# ---------------------------------------------------------------------------
# Tables and columns
# ---------------------------------------------------------------------------


class TestTables:
    def test_single_table_with_inline_constraints(self):
        sql = generate(Dialect.POSTGRESQL, [_users()])
        assert sql == ("CREATE TABLE users (\n  id UUID PRIMARY KEY,\n  email VARCHAR(255) UNIQUE\n);\n")
        assert "ALTER TABLE" not in sql

    def test_constraint_order(self):
        table = Table(
            label="accounts",
            columns=[_col("id", ColumnType.INT4, ConstraintTag.PRIMARY, ConstraintTag.UNIQUE, ConstraintTag.NOT_NULL)],
        )
        sql = generate("sqlite", [table])
        assert "  id INTEGER NOT NULL UNIQUE PRIMARY KEY\n" in sql

    def test_dialect_types(self):
        table = Table(
            label="payments",
            columns=[_col("id"), _col("amount", ColumnType.MONEY), _col("paid_at", ColumnType.TIMESTAMP)],
        )
        mysql = generate(Dialect.MYSQL, [table])
        assert "id CHAR(36)" in mysql
        assert "amount DECIMAL(19,4)" in mysql
        sqlite = generate(Dialect.SQLITE, [table])
        assert "amount NUMERIC" in sqlite
        assert "paid_at DATETIME" in sqlite

    def test_empty_graph(self):
        assert generate(Dialect.POSTGRESQL, []) == ""

    def test_table_without_columns(self):
        assert generate(Dialect.POSTGRESQL, [Table(label="empty")]) == "CREATE TABLE empty (\n);\n"

    def test_tables_separated_by_blank_line(self):
        sql = generate(Dialect.POSTGRESQL, [_users(), _orders()])
        assert ");\n\nCREATE TABLE orders (" in sql

    def test_composite_primary_key(self):
        table = Table(
            label="memberships",
            columns=[
                _col("user_id", ColumnType.UUID, ConstraintTag.PRIMARY, ConstraintTag.NOT_NULL),
                _col("group_id", ColumnType.UUID, ConstraintTag.PRIMARY, ConstraintTag.NOT_NULL),
            ],
        )
        sql = generate(Dialect.POSTGRESQL, [table])
        assert sql == (
            "CREATE TABLE memberships (\n"
            "  user_id UUID NOT NULL,\n"
            "  group_id UUID NOT NULL,\n"
            "  PRIMARY KEY (user_id, group_id)\n"
            ");\n"
        )


class TestIndexes:
    def test_index_emitted_after_table(self):
        table = Table(
            label="users",
            columns=[_col("id", ColumnType.UUID, ConstraintTag.PRIMARY), _col("email", ColumnType.TEXT, ConstraintTag.INDEX)],
        )
        sql = generate(Dialect.POSTGRESQL, [table])
        assert sql.endswith(");\n\nCREATE INDEX idx_users_email ON users (email);\n")
        assert "INDEX" not in sql.split(");")[0]

    def test_index_never_inlined_in_mysql(self):
        table = Table(label="users", columns=[_col("email", ColumnType.TEXT, ConstraintTag.INDEX)])
        sql = generate(Dialect.MYSQL, [table])
        assert "KEY" not in sql
        assert "CREATE INDEX idx_users_email ON users (email);" in sql


# ---------------------------------------------------------------------------
# Quoting
# ---------------------------------------------------------------------------


class TestQuoting:
    def test_whitespace_name_quoted_without_case_sensitivity(self):
        table = Table(label="Customer Orders", columns=[_col("id")])
        sql = generate(Dialect.POSTGRESQL, [table])
        assert sql.startswith('CREATE TABLE "Customer Orders" (')

    def test_single_word_name_not_quoted(self):
        table = Table(label="orders", columns=[_col("id")])
        assert generate(Dialect.POSTGRESQL, [table]).startswith("CREATE TABLE orders (")

    def test_reserved_word_quoted(self):
        table = Table(label="order", columns=[_col("user", ColumnType.TEXT)])
        sql = generate(Dialect.SQLITE, [table])
        assert 'CREATE TABLE "order" (\n  "user" TEXT\n);' in sql

    def test_case_sensitive_postgres(self):
        sql = generate(Dialect.POSTGRESQL, [_users()], settings=CASE_SENSITIVE)
        assert sql.startswith('CREATE TABLE "users" (\n  "id" UUID PRIMARY KEY,')

    def test_case_sensitive_mysql_uses_backticks(self):
        sql = generate(Dialect.MYSQL, [_users()], settings=CASE_SENSITIVE)
        assert sql.startswith("CREATE TABLE `users` (\n  `id` CHAR(36) PRIMARY KEY,")

    def test_case_sensitive_quotes_constraint_and_index_names(self):
        table = Table(label="users", columns=[_col("email", ColumnType.TEXT, ConstraintTag.INDEX)])
        sql = generate(Dialect.POSTGRESQL, [table], settings=CASE_SENSITIVE)
        assert 'CREATE INDEX "idx_users_email" ON "users" ("email");' in sql


# ---------------------------------------------------------------------------
# Foreign keys
# ---------------------------------------------------------------------------


class TestForeignKeys:
    def test_inline_when_target_already_emitted(self):
        sql = generate(Dialect.POSTGRESQL, [_users(), _orders()], [_orders_fk(on_delete=ReferentialAction.CASCADE)])
        assert (
            "  user_id UUID NOT NULL CONSTRAINT fk_orders_user_id_users REFERENCES users (id) ON DELETE CASCADE\n"
        ) in sql
        assert FK_SECTION_HEADER not in sql

    def test_deferred_when_target_emitted_later(self):
        sql = generate(Dialect.POSTGRESQL, [_orders(), _users()], [_orders_fk()])
        assert sql.endswith(
            "\n\n-- Foreign Key Constraints\n"
            "ALTER TABLE orders ADD CONSTRAINT fk_orders_user_id_users "
            "FOREIGN KEY (user_id) REFERENCES users (id);\n"
        )
        assert "REFERENCES" not in sql.split(FK_SECTION_HEADER)[0]

    def test_inline_disabled(self):
        sql = generate(Dialect.POSTGRESQL, [_users(), _orders()], [_orders_fk()], settings=INLINE_OFF)
        assert FK_SECTION_HEADER in sql
        assert sql.count("REFERENCES") == 1
        assert "CONSTRAINT" not in sql.split(FK_SECTION_HEADER)[0]

    def test_self_reference_inlined(self):
        table = Table(
            label="employees",
            columns=[_col("id", ColumnType.UUID, ConstraintTag.PRIMARY), _col("manager_id")],
        )
        edge = ForeignKeyEdge(
            constraint_name="fk_manager",
            source_table="employees",
            source_column="manager_id",
            target_table="employees",
            target_column="id",
        )
        sql = generate(Dialect.SQLITE, [table], [edge])
        assert "manager_id UUID CONSTRAINT fk_manager REFERENCES employees (id)" in sql

    def test_mysql_inline_as_table_constraint(self):
        edge = _orders_fk(on_delete=ReferentialAction.SET_NULL, on_update=ReferentialAction.CASCADE)
        sql = generate(Dialect.MYSQL, [_users(), _orders()], [edge])
        assert (
            "  user_id CHAR(36) NOT NULL,\n"
            "  CONSTRAINT fk_orders_user_id_users FOREIGN KEY (user_id) REFERENCES users (id) "
            "ON DELETE SET NULL ON UPDATE CASCADE\n"
            ");"
        ) in sql

    def test_alter_statements_in_edge_order(self):
        second = ForeignKeyEdge(
            constraint_name="fk_a",
            source_table="orders",
            source_column="id",
            target_table="users",
            target_column="id",
        )
        sql = generate(Dialect.POSTGRESQL, [_orders(), _users()], [_orders_fk(), second])
        section = sql.split(FK_SECTION_HEADER)[1]
        assert section.index("fk_orders_user_id_users") < section.index("fk_a")

    def test_missing_target_table_skipped_with_warning(self):
        result = generate_ddl(Dialect.POSTGRESQL, [_orders()], [_orders_fk()])
        assert "REFERENCES" not in result.sql
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind == GenerationWarningKind.GRAPH_REFERENCE
        assert warning.subject == "fk_orders_user_id_users"
        assert "users" in warning.message

    def test_missing_column_skipped_with_warning(self):
        edge = _orders_fk().model_copy(update={"target_column": "uuid"})
        result = generate_ddl(Dialect.POSTGRESQL, [_users(), _orders()], [edge])
        assert "REFERENCES" not in result.sql
        assert result.warnings[0].kind == GenerationWarningKind.GRAPH_REFERENCE

    def test_edge_labels_match_case_insensitively(self):
        edge = _orders_fk().model_copy(update={"target_table": "Users"})
        result = generate_ddl(Dialect.POSTGRESQL, [_users(), _orders()], [edge])
        assert result.warnings == []
        assert "REFERENCES users (id)" in result.sql


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TestEnums:
    def _person(self) -> Table:
        return Table(
            label="person",
            columns=[
                _col("id", ColumnType.UUID, ConstraintTag.PRIMARY),
                _col("feeling", ColumnType.ENUM, enum_name="mood"),
            ],
        )

    def test_enum_section_in_postgres(self):
        mood = EnumType(name="mood", values=["happy", "sad"])
        sql = generate(Dialect.POSTGRESQL, [self._person()], enum_types=[mood])
        assert sql == (
            f"{ENUM_SECTION_HEADER}\n"
            'CREATE TYPE mood AS ENUM ("happy", "sad");\n'
            "\n"
            "CREATE TABLE person (\n"
            "  id UUID PRIMARY KEY,\n"
            "  feeling mood\n"
            ");\n"
        )

    @pytest.mark.parametrize("dialect", [Dialect.MYSQL, Dialect.SQLITE])
    def test_enum_falls_back_to_text(self, dialect):
        mood = EnumType(name="mood", values=["happy"])
        result = generate_ddl(dialect, [self._person()], enum_types=[mood])
        assert ENUM_SECTION_HEADER not in result.sql
        assert "feeling TEXT" in result.sql
        assert [w.kind for w in result.warnings] == [GenerationWarningKind.ENUM_FALLBACK]
        assert result.warnings[0].subject == "person.feeling"

    def test_undefined_enum_falls_back_to_text(self):
        result = generate_ddl(Dialect.POSTGRESQL, [self._person()])
        assert "feeling TEXT" in result.sql
        assert result.warnings[0].kind == GenerationWarningKind.ENUM_FALLBACK


class TestUnsupportedTypes:
    def test_column_skipped_with_warning(self):
        broken = Column.model_construct(id="c1", title="shape", type="geometry", enum_name=None, constraints=[])
        table = Table(label="places", columns=[_col("id", ColumnType.UUID, ConstraintTag.PRIMARY)])
        table.columns.append(broken)
        result = generate_ddl(Dialect.POSTGRESQL, [table])
        assert "shape" not in result.sql
        assert result.sql == "CREATE TABLE places (\n  id UUID PRIMARY KEY\n);\n"
        assert result.warnings[0].kind == GenerationWarningKind.UNSUPPORTED_TYPE
        assert result.warnings[0].subject == "places.shape"


# ---------------------------------------------------------------------------
# Determinism and helpers
# ---------------------------------------------------------------------------


class TestDeterminism:
    def test_identical_inputs_give_identical_output(self):
        tables = [_orders(), _users()]
        edges = [_orders_fk(on_delete=ReferentialAction.RESTRICT)]
        first = generate(Dialect.MYSQL, tables, edges, settings=CASE_SENSITIVE)
        second = generate(Dialect.MYSQL, tables, edges, settings=CASE_SENSITIVE)
        assert first == second

    def test_generate_for_graph_uses_graph_settings(self):
        graph = SchemaGraph(tables=[_users()], settings=CASE_SENSITIVE)
        assert generate_for_graph("postgresql", graph).sql.startswith('CREATE TABLE "users"')

    def test_generate_logs_warnings(self, caplog):
        with caplog.at_level("WARNING"):
            generate(Dialect.POSTGRESQL, [_orders()], [_orders_fk()])
        assert "fk_orders_user_id_users" in caplog.text


class TestDownloadFilename:
    def test_name_convention(self):
        assert download_filename(Dialect.MYSQL, date(2026, 10, 16)) == "schema_mysql_2026-10-16.sql"

    def test_defaults_to_today(self):
        assert download_filename("sqlite").startswith("schema_sqlite_")

    def test_mime_type(self):
        assert DDL_MIME_TYPE == "text/plain"
