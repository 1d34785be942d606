"""Render a schema graph as dialect-specific DDL text.

Output layout, each block separated by a blank line:

1. ``-- Enum Types`` followed by one ``CREATE TYPE`` per enum (Postgres only).
2. One ``CREATE TABLE`` per table in graph order, each followed by its
   ``CREATE INDEX`` statements.
3. ``-- Foreign Key Constraints`` followed by one ``ALTER TABLE ... ADD
   CONSTRAINT`` per edge that was not inlined, in edge declaration order.

Generation is a pure function of its inputs: identical arguments always
produce byte-identical text.  It never raises for graph problems; broken
edges and unmappable column types are skipped and reported as
:class:`GenerationWarning` entries instead.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from sync_engine.dialects.type_map import Dialect, physical_type, supports_enums
from sync_engine.errors import GraphReferenceError, UnsupportedTypeError
from sync_engine.generator.identifiers import index_name, quote_identifier
from sync_engine.models.diagnostics import GenerationResult, GenerationWarning, GenerationWarningKind
from sync_engine.models.schema_graph import (
    Column,
    ColumnType,
    ConstraintTag,
    EnumType,
    ForeignKeyEdge,
    SchemaGraph,
    SchemaSettings,
    Table,
    find_table,
)
from sync_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

ENUM_SECTION_HEADER = "-- Enum Types"
FK_SECTION_HEADER = "-- Foreign Key Constraints"
DDL_MIME_TYPE = "text/plain"

_INDENT = "  "


@dataclass(frozen=True)
class _ResolvedEdge:
    edge: ForeignKeyEdge
    source: Table
    source_column: Column
    target: Table
    target_column: Column


class _Renderer:
    """Holds the per-call rendering context."""

    def __init__(
        self,
        dialect: Dialect,
        enum_types: Sequence[EnumType],
        settings: SchemaSettings,
    ) -> None:
        self.dialect = dialect
        self.settings = settings
        self.enums = {enum_type.name: enum_type for enum_type in enum_types}
        self.warnings: list[GenerationWarning] = []

    def ident(self, name: str) -> str:
        return quote_identifier(name, self.dialect, case_sensitive=self.settings.case_sensitive_identifiers)

    def warn(self, kind: GenerationWarningKind, message: str, subject: str) -> None:
        logger.warning("DDL generation: %s", message)
        self.warnings.append(GenerationWarning(kind=kind, message=message, subject=subject))

    # -- enum types -----------------------------------------------------------

    def enum_statement(self, enum_type: EnumType) -> str:
        values = ", ".join('"' + value.replace('"', '""') + '"' for value in enum_type.values)
        return f"CREATE TYPE {self.ident(enum_type.name)} AS ENUM ({values});"

    # -- columns --------------------------------------------------------------

    def column_type(self, table: Table, column: Column) -> str | None:
        subject = f"{table.label}.{column.title}"
        if column.type == ColumnType.ENUM:
            enum_name = column.enum_name or ""
            if supports_enums(self.dialect) and enum_name in self.enums:
                return self.ident(enum_name)
            if supports_enums(self.dialect):
                reason = f"enum type '{enum_name}' is not defined"
            else:
                reason = f"dialect '{self.dialect.value}' has no enum types"
            self.warn(
                GenerationWarningKind.ENUM_FALLBACK,
                f"Column '{subject}' rendered as text: {reason}",
                subject,
            )
            return physical_type(self.dialect, ColumnType.TEXT)
        try:
            return physical_type(self.dialect, column.type)
        except UnsupportedTypeError as exc:
            self.warn(GenerationWarningKind.UNSUPPORTED_TYPE, f"Column '{subject}' skipped: {exc}", subject)
            return None

    def references_clause(self, resolved: _ResolvedEdge) -> str:
        clause = f"REFERENCES {self.ident(resolved.target.label)} ({self.ident(resolved.target_column.title)})"
        if resolved.edge.on_delete is not None:
            clause += f" ON DELETE {resolved.edge.on_delete.value}"
        if resolved.edge.on_update is not None:
            clause += f" ON UPDATE {resolved.edge.on_update.value}"
        return clause

    def column_line(
        self, table: Table, column: Column, inline_refs: list[_ResolvedEdge], *, inline_primary: bool = True
    ) -> str | None:
        type_token = self.column_type(table, column)
        if type_token is None:
            return None
        parts = [self.ident(column.title), type_token]
        if column.has(ConstraintTag.NOT_NULL):
            parts.append("NOT NULL")
        if column.has(ConstraintTag.UNIQUE):
            parts.append("UNIQUE")
        if inline_primary and column.has(ConstraintTag.PRIMARY):
            parts.append("PRIMARY KEY")
        for resolved in inline_refs:
            parts.append(f"CONSTRAINT {self.ident(resolved.edge.constraint_name)} {self.references_clause(resolved)}")
        return " ".join(parts)

    # -- tables ---------------------------------------------------------------

    def table_statement(self, table: Table, inline: list[_ResolvedEdge]) -> str:
        # MySQL parses and then ignores column-level REFERENCES, so its inline
        # foreign keys are written as table constraints instead.
        column_level = self.dialect is not Dialect.MYSQL
        # A composite key cannot be declared on a column; it becomes a table constraint.
        primary = [column for column in table.columns if column.has(ConstraintTag.PRIMARY)]
        composite = len(primary) > 1
        lines: list[str] = []
        for column in table.columns:
            refs = [r for r in inline if r.source_column is column] if column_level else []
            line = self.column_line(table, column, refs, inline_primary=not composite)
            if line is not None:
                lines.append(line)
        if composite:
            lines.append(f"PRIMARY KEY ({', '.join(self.ident(column.title) for column in primary)})")
        if not column_level:
            for resolved in inline:
                lines.append(
                    f"CONSTRAINT {self.ident(resolved.edge.constraint_name)} "
                    f"FOREIGN KEY ({self.ident(resolved.source_column.title)}) {self.references_clause(resolved)}"
                )
        body = "".join(f"{_INDENT}{line}{',' if i < len(lines) - 1 else ''}\n" for i, line in enumerate(lines))
        return f"CREATE TABLE {self.ident(table.label)} (\n{body});"

    def index_statements(self, table: Table) -> list[str]:
        return [
            f"CREATE INDEX {self.ident(index_name(table.label, column.title))} "
            f"ON {self.ident(table.label)} ({self.ident(column.title)});"
            for column in table.columns
            if column.has(ConstraintTag.INDEX)
        ]

    def alter_statement(self, resolved: _ResolvedEdge) -> str:
        return (
            f"ALTER TABLE {self.ident(resolved.source.label)} "
            f"ADD CONSTRAINT {self.ident(resolved.edge.constraint_name)} "
            f"FOREIGN KEY ({self.ident(resolved.source_column.title)}) {self.references_clause(resolved)};"
        )


def _resolve_edges(tables: Sequence[Table], edges: Sequence[ForeignKeyEdge], renderer: _Renderer) -> list[_ResolvedEdge]:
    resolved: list[_ResolvedEdge] = []
    for edge in edges:
        try:
            source = find_table(tables, edge.source_table)
            if source is None:
                raise GraphReferenceError(edge.constraint_name, f"source table '{edge.source_table}' does not exist")
            source_column = source.find_column(edge.source_column)
            if source_column is None:
                raise GraphReferenceError(
                    edge.constraint_name, f"column '{edge.source_table}.{edge.source_column}' does not exist"
                )
            target = find_table(tables, edge.target_table)
            if target is None:
                raise GraphReferenceError(edge.constraint_name, f"target table '{edge.target_table}' does not exist")
            target_column = target.find_column(edge.target_column)
            if target_column is None:
                raise GraphReferenceError(
                    edge.constraint_name, f"column '{edge.target_table}.{edge.target_column}' does not exist"
                )
        except GraphReferenceError as exc:
            renderer.warn(GenerationWarningKind.GRAPH_REFERENCE, str(exc), edge.constraint_name)
            continue
        resolved.append(_ResolvedEdge(edge, source, source_column, target, target_column))
    return resolved


@profile_operation("ddl.generate")
def generate_ddl(
    dialect: Dialect | str,
    tables: Sequence[Table],
    edges: Sequence[ForeignKeyEdge] = (),
    enum_types: Sequence[EnumType] = (),
    settings: SchemaSettings | None = None,
) -> GenerationResult:
    """Render the schema as DDL for *dialect*.

    Parameters
    ----------
    dialect:
        ``postgresql``, ``mysql`` or ``sqlite``.
    tables, edges, enum_types:
        The graph content, rendered in the given order.
    settings:
        Quoting and inline-constraint settings.  Defaults to
        :class:`SchemaSettings` defaults.

    Returns
    -------
    GenerationResult
        The DDL text and any warnings about skipped edges or columns.
    """
    renderer = _Renderer(Dialect(dialect), enum_types, settings or SchemaSettings())
    resolved_edges = _resolve_edges(tables, edges, renderer)

    blocks: list[str] = []

    if supports_enums(renderer.dialect) and enum_types:
        blocks.append("\n".join([ENUM_SECTION_HEADER, *(renderer.enum_statement(e) for e in enum_types)]))

    emitted: set[int] = set()
    inlined: set[int] = set()
    for table in tables:
        inline: list[_ResolvedEdge] = []
        if renderer.settings.use_inline_constraints:
            for resolved in resolved_edges:
                # Only reference tables that already exist at this point of the script.
                if resolved.source is table and (id(resolved.target) in emitted or resolved.target is table):
                    inline.append(resolved)
                    inlined.add(id(resolved))
        emitted.add(id(table))
        statements = [renderer.table_statement(table, inline), *renderer.index_statements(table)]
        blocks.append("\n\n".join(statements))

    deferred = [resolved for resolved in resolved_edges if id(resolved) not in inlined]
    if deferred:
        blocks.append("\n".join([FK_SECTION_HEADER, *(renderer.alter_statement(r) for r in deferred)]))

    sql = "\n\n".join(blocks) + "\n" if blocks else ""
    return GenerationResult(sql=sql, warnings=renderer.warnings)


def generate(
    dialect: Dialect | str,
    tables: Sequence[Table],
    edges: Sequence[ForeignKeyEdge] = (),
    enum_types: Sequence[EnumType] = (),
    settings: SchemaSettings | None = None,
) -> str:
    """Like :func:`generate_ddl` but return only the text.

    Warnings are still logged by the renderer.
    """
    return generate_ddl(dialect, tables, edges, enum_types, settings).sql


def generate_for_graph(dialect: Dialect | str, graph: SchemaGraph) -> GenerationResult:
    """Render a whole :class:`SchemaGraph` using its own settings."""
    return generate_ddl(dialect, graph.tables, graph.edges, graph.enum_types, graph.settings)


def download_filename(dialect: Dialect | str, on: date | None = None) -> str:
    """Return the conventional ``schema_<dialect>_<YYYY-MM-DD>.sql`` file name."""
    day = on or date.today()
    return f"schema_{Dialect(dialect).value}_{day.isoformat()}.sql"
