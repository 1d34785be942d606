"""Unit tests for sync_engine.reconcile."""

from __future__ import annotations

from sync_engine.models.schema_graph import (
    Column,
    ColumnType,
    EnumType,
    ForeignKeyEdge,
    Position,
    SchemaGraph,
    SchemaSettings,
    Table,
    TableLayout,
)
from sync_engine.reconcile import reconcile


def _table(label: str, *titles: str, layout: TableLayout | None = None) -> Table:
    return Table(
        label=label,
        columns=[Column(title=title, type=ColumnType.UUID) for title in titles],
        layout=layout or TableLayout(),
    )


def _placed(label: str, x: float, y: float, *titles: str) -> Table:
    return _table(label, *titles, layout=TableLayout(position=Position(x=x, y=y), color="#ff0000"))


class TestTableMatching:
    def test_layout_preserved_by_label(self):
        old = SchemaGraph(tables=[_placed("users", 10, 20, "id")])
        new = SchemaGraph(tables=[_table("users", "id", "email")])
        result = reconcile(old, new)
        table = result.tables[0]
        assert table.id == old.tables[0].id
        assert table.layout.position == Position(x=10, y=20)
        assert table.layout.color == "#ff0000"
        assert [c.title for c in table.columns] == ["id", "email"]

    def test_case_insensitive_label_match(self):
        old = SchemaGraph(tables=[_placed("Users", 10, 20, "id")])
        new = SchemaGraph(tables=[_table("users", "id")])
        result = reconcile(old, new)
        assert result.tables[0].label == "users"
        assert result.tables[0].layout.position == Position(x=10, y=20)

    def test_exact_label_wins_over_case_insensitive(self):
        old = SchemaGraph(tables=[_placed("USERS", 1, 1, "id"), _placed("users", 2, 2, "id")])
        new = SchemaGraph(tables=[_table("users", "id")])
        assert reconcile(old, new).tables[0].layout.position == Position(x=2, y=2)

    def test_id_match_wins(self):
        renamed = _placed("people", 5, 5, "id")
        old = SchemaGraph(tables=[renamed, _placed("users", 9, 9, "id")])
        new = SchemaGraph(tables=[Table(id=renamed.id, label="users", columns=[])])
        assert reconcile(old, new).tables[0].layout.position == Position(x=5, y=5)

    def test_old_table_matched_once(self):
        old = SchemaGraph(tables=[_placed("users", 10, 20, "id")])
        new = SchemaGraph(tables=[_table("users", "id"), _table("USERS", "id")])
        first, second = reconcile(old, new).tables
        assert first.layout.position == Position(x=10, y=20)
        assert second.layout.is_unset
        assert second.id != first.id

    def test_new_table_has_unset_layout(self):
        old = SchemaGraph(tables=[_placed("users", 10, 20, "id")])
        new = SchemaGraph(tables=[_table("users", "id"), _table("orders", "id")])
        assert reconcile(old, new).tables[1].layout.is_unset

    def test_removed_tables_dropped(self):
        old = SchemaGraph(tables=[_placed("users", 10, 20, "id"), _placed("legacy", 0, 0, "id")])
        new = SchemaGraph(tables=[_table("users", "id")])
        assert [t.label for t in reconcile(old, new).tables] == ["users"]


class TestContent:
    def test_column_ids_adopted(self):
        old = SchemaGraph(tables=[_table("users", "id", "Email")])
        new = SchemaGraph(tables=[_table("users", "email", "name")])
        result = reconcile(old, new).tables[0]
        assert result.columns[0].id == old.tables[0].columns[1].id
        assert result.columns[0].title == "email"
        assert result.columns[1].id not in {c.id for c in old.tables[0].columns}

    def test_duplicate_column_titles_suffixed(self):
        new = SchemaGraph(tables=[_table("users", "email", "email", "email")])
        result = reconcile(SchemaGraph(), new)
        assert [c.title for c in result.tables[0].columns] == ["email", "email_2", "email_3"]

    def test_edges_come_from_new_graph_with_adopted_ids(self):
        old_edge = ForeignKeyEdge(
            constraint_name="fk1", source_table="orders", source_column="user_id", target_table="users", target_column="id"
        )
        new_edge = old_edge.model_copy(update={"id": "fresh", "target_column": "uid"})
        extra = ForeignKeyEdge(
            constraint_name="fk2", source_table="orders", source_column="a", target_table="b", target_column="id"
        )
        result = reconcile(SchemaGraph(edges=[old_edge]), SchemaGraph(edges=[new_edge, extra]))
        assert [e.id for e in result.edges] == [old_edge.id, extra.id]
        assert result.edges[0].target_column == "uid"

    def test_enum_types_from_new_graph(self):
        old = SchemaGraph(enum_types=[EnumType(name="mood", values=["a"])])
        new = SchemaGraph(enum_types=[EnumType(name="mood", values=["a", "b"])])
        assert reconcile(old, new).enum_types[0].values == ["a", "b"]

    def test_settings_from_old_graph(self):
        settings = SchemaSettings(case_sensitive_identifiers=True, use_inline_constraints=False)
        result = reconcile(SchemaGraph(settings=settings), SchemaGraph())
        assert result.settings == settings

    def test_inputs_not_mutated(self):
        old = SchemaGraph(tables=[_placed("users", 10, 20, "id")])
        new = SchemaGraph(tables=[_table("users", "id")])
        old_dump, new_dump = old.model_dump(), new.model_dump()
        result = reconcile(old, new)
        result.tables[0].layout.position.x = 99
        assert old.model_dump() == old_dump
        assert new.model_dump() == new_dump
