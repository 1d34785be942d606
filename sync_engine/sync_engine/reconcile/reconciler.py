"""Merge a freshly parsed graph with the previously committed one.

The parser knows nothing about layout or identity: every entity it returns
carries a new id and an unset layout.  :func:`reconcile` carries both over
from the old graph so that editing the DDL does not move tables around on
the canvas or change the ids that collaborators hold on to.

Matching a new table to an old one, in order:

1. same id;
2. same label (exact);
3. same label compared case-insensitively.

Each old table is matched at most once.  Schema content (columns, types,
constraints, edges) always comes from the new graph.
"""

from __future__ import annotations

import logging

from sync_engine.models.schema_graph import Column, ForeignKeyEdge, SchemaGraph, Table
from sync_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


def _match_table(new: Table, old_tables: list[Table], used: set[str]) -> Table | None:
    candidates = [t for t in old_tables if t.id not in used]
    for old in candidates:
        if old.id == new.id:
            return old
    for old in candidates:
        if old.label == new.label:
            return old
    folded = new.label.casefold()
    for old in candidates:
        if old.label.casefold() == folded:
            return old
    return None


def _unique_titles(table: Table) -> list[Column]:
    """Suffix repeated column titles (``email``, ``email_2``, ...)."""
    seen: set[str] = set()
    columns: list[Column] = []
    for column in table.columns:
        title = column.title
        if title.casefold() in seen:
            suffix = 2
            while f"{column.title}_{suffix}".casefold() in seen:
                suffix += 1
            title = f"{column.title}_{suffix}"
            logger.info("Renamed duplicate column '%s.%s' to '%s'", table.label, column.title, title)
            column = column.model_copy(update={"title": title})
        seen.add(title.casefold())
        columns.append(column)
    return columns


def _adopt_column_ids(new_columns: list[Column], old: Table) -> list[Column]:
    used: set[str] = set()
    adopted: list[Column] = []
    for column in new_columns:
        match = old.find_column(column.title)
        if match is not None and match.id not in used:
            used.add(match.id)
            column = column.model_copy(update={"id": match.id})
        adopted.append(column)
    return adopted


def _adopt_edge_ids(new_edges: list[ForeignKeyEdge], old_edges: list[ForeignKeyEdge]) -> list[ForeignKeyEdge]:
    old_by_name = {edge.constraint_name: edge for edge in old_edges}
    used: set[str] = set()
    edges: list[ForeignKeyEdge] = []
    for edge in new_edges:
        old = old_by_name.get(edge.constraint_name)
        if old is not None and old.id not in used:
            used.add(old.id)
            edge = edge.model_copy(update={"id": old.id})
        edges.append(edge)
    return edges


@profile_operation("graph.reconcile")
def reconcile(old_graph: SchemaGraph, new_graph: SchemaGraph) -> SchemaGraph:
    """Return *new_graph* enriched with layout and identity from *old_graph*.

    Never raises and never mutates either input.  Tables without a match
    keep their unset layout.  Settings are taken from *old_graph*, since
    parsed graphs carry none of their own.
    """
    used: set[str] = set()
    tables: list[Table] = []
    for new in new_graph.tables:
        columns = _unique_titles(new)
        old = _match_table(new, old_graph.tables, used)
        if old is None:
            logger.debug("Table '%s' is new", new.label)
            tables.append(new.model_copy(update={"columns": columns}))
            continue
        used.add(old.id)
        tables.append(
            new.model_copy(
                update={
                    "id": old.id,
                    "layout": old.layout.model_copy(deep=True),
                    "columns": _adopt_column_ids(columns, old),
                }
            )
        )

    dropped = len(old_graph.tables) - len(used)
    if dropped:
        logger.debug("%d table(s) no longer present after reconcile", dropped)

    return SchemaGraph(
        tables=tables,
        edges=_adopt_edge_ids(new_graph.edges, old_graph.edges),
        enum_types=[enum_type.model_copy(deep=True) for enum_type in new_graph.enum_types],
        settings=old_graph.settings.model_copy(),
    )
