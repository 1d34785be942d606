"""Tests for cli/cli/display.py -- Rich output formatting helpers."""

from __future__ import annotations

import io

from rich.console import Console

from cli.display import (
    _CONSTRAINT_COLOURS,
    _coloured_constraint,
    display_generation_warnings,
    display_graph_summary,
    display_validation_warnings,
)
from sync_engine.models.diagnostics import (
    GenerationWarning,
    GenerationWarningKind,
    SqlValidationWarning,
    ValidationIssue,
)
from sync_engine.models.schema_graph import (
    Column,
    ColumnType,
    ConstraintTag,
    EnumType,
    ForeignKeyEdge,
    ReferentialAction,
    SchemaGraph,
    Table,
)


def _capture_console() -> tuple[Console, io.StringIO]:
    """Create a Console that writes plain text to a StringIO buffer."""
    buf = io.StringIO()
    console = Console(file=buf, no_color=True, highlight=False, width=120)
    return console, buf


# ---------------------------------------------------------------------------
# _coloured_constraint
# ---------------------------------------------------------------------------


class TestColouredConstraint:
    def test_primary_is_bold_yellow(self):
        assert _coloured_constraint("primary") == "[bold yellow]primary[/bold yellow]"

    def test_unknown_tag_uses_white(self):
        assert "[white]" in _coloured_constraint("check")

    def test_every_tag_has_a_colour(self):
        assert set(_CONSTRAINT_COLOURS) == {tag.value for tag in ConstraintTag}


# ---------------------------------------------------------------------------
# display_graph_summary
# ---------------------------------------------------------------------------


class TestDisplayGraphSummary:
    def test_renders_tables_and_relations(self):
        console, buf = _capture_console()
        graph = SchemaGraph(
            tables=[
                Table(
                    label="users",
                    columns=[
                        Column(title="id", type=ColumnType.UUID, constraints=[ConstraintTag.PRIMARY]),
                        Column(title="feeling", type=ColumnType.ENUM, enum_name="mood"),
                    ],
                ),
                Table(label="orders", columns=[Column(title="user_id", type=ColumnType.UUID)]),
            ],
            edges=[
                ForeignKeyEdge(
                    constraint_name="fk_orders_user",
                    source_table="orders",
                    source_column="user_id",
                    target_table="users",
                    target_column="id",
                    on_delete=ReferentialAction.CASCADE,
                )
            ],
            enum_types=[EnumType(name="mood", values=["ok"])],
        )

        display_graph_summary(console, graph)
        output = buf.getvalue()

        assert "Schema Graph" in output
        assert "Tables:" in output
        assert "users" in output
        assert "enum mood" in output
        assert "primary" in output
        assert "Foreign Keys" in output
        assert "orders.user_id" in output
        assert "CASCADE" in output

    def test_no_relations_table_without_edges(self):
        console, buf = _capture_console()
        display_graph_summary(console, SchemaGraph(tables=[Table(label="a")]))
        assert "Foreign Keys" not in buf.getvalue()


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------


class TestDisplayWarnings:
    def test_generation_warnings(self):
        console, buf = _capture_console()
        warning = GenerationWarning(
            kind=GenerationWarningKind.GRAPH_REFERENCE,
            message="target table 'ghosts' does not exist",
            subject="fk_ghost",
        )
        display_generation_warnings(console, [warning])
        output = buf.getvalue()
        assert "Generation Warnings" in output
        assert "GRAPH_REFERENCE" in output
        assert "fk_ghost" in output

    def test_no_generation_warnings_prints_nothing(self):
        console, buf = _capture_console()
        display_generation_warnings(console, [])
        assert buf.getvalue() == ""

    def test_validation_warnings(self):
        console, buf = _capture_console()
        warning = SqlValidationWarning(
            issue=ValidationIssue.UNBALANCED_PARENS, message="1 unclosed parenthesis", line=4
        )
        display_validation_warnings(console, [warning])
        output = buf.getvalue()
        assert "UNBALANCED_PARENS" in output
        assert "4" in output

    def test_no_validation_warnings(self):
        console, buf = _capture_console()
        display_validation_warnings(console, [])
        assert "No structural problems found." in buf.getvalue()
