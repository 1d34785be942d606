"""Schema graph -- the canonical in-memory model of a database schema.

The graph holds tables (with their ordered columns and opaque layout
metadata), foreign-key edges, Postgres enum types, and the generation
settings.  It is owned by :class:`sync_engine.sync.controller.SyncController`
and replaced wholesale on every apply cycle; nothing in the engine mutates a
committed graph in place.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def new_id() -> str:
    """Return a fresh, opaque identifier for a graph entity."""
    return uuid.uuid4().hex


class ColumnType(str, Enum):
    """Logical column types understood by every dialect."""

    UUID = "uuid"
    VARCHAR = "varchar"
    TEXT = "text"
    INT4 = "int4"
    MONEY = "money"
    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"
    JSONB = "jsonb"
    DATE = "date"
    TIME = "time"
    ENUM = "enum"  # References an EnumType by name via Column.enum_name


class ConstraintTag(str, Enum):
    """Per-column constraint tags."""

    PRIMARY = "primary"
    UNIQUE = "unique"
    NOT_NULL = "notnull"
    INDEX = "index"
    FOREIGN_KEY = "foreign-key"


class ReferentialAction(str, Enum):
    """ON DELETE / ON UPDATE behaviour of a foreign key."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"
    SET_DEFAULT = "SET DEFAULT"
    RESTRICT = "RESTRICT"
    NO_ACTION = "NO ACTION"


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


class TableLayout(BaseModel):
    """Visual metadata of a table node.  Preserved, never interpreted."""

    position: Position | None = None
    color: str | None = None
    style: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_unset(self) -> bool:
        return self.position is None and self.color is None and not self.style


class Column(BaseModel):
    """A single column of a table."""

    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1, description="Column name, unique within its table.")
    type: ColumnType = Field(..., description="Logical column type.")
    enum_name: str | None = Field(
        default=None,
        description="Name of the referenced EnumType when type is ENUM.",
    )
    constraints: list[ConstraintTag] = Field(
        default_factory=list,
        description="Ordered, de-duplicated constraint tags.",
    )

    @field_validator("constraints")
    @classmethod
    def _dedupe_constraints(cls, v: list[ConstraintTag]) -> list[ConstraintTag]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def _enum_requires_name(self) -> Column:
        if self.type == ColumnType.ENUM and not self.enum_name:
            raise ValueError(f"Column '{self.title}' has type enum but no enum_name")
        return self

    def has(self, tag: ConstraintTag) -> bool:
        return tag in self.constraints


class Table(BaseModel):
    """A table node: schema content plus opaque layout."""

    id: str = Field(default_factory=new_id)
    label: str = Field(..., min_length=1, description="Table name, unique within the graph.")
    columns: list[Column] = Field(default_factory=list)
    layout: TableLayout = Field(default_factory=TableLayout)

    def find_column(self, title: str, *, exact: bool = False) -> Column | None:
        """Look up a column by title.

        An exact match always wins; unless *exact* is set, a
        case-insensitive match is accepted as a fallback.
        """
        for column in self.columns:
            if column.title == title:
                return column
        if exact:
            return None
        folded = title.casefold()
        for column in self.columns:
            if column.title.casefold() == folded:
                return column
        return None


class ForeignKeyEdge(BaseModel):
    """A foreign-key relation between two columns.

    Endpoints are addressed by table label and column title, the same way
    the DDL text addresses them.
    """

    id: str = Field(default_factory=new_id)
    constraint_name: str = Field(..., min_length=1)
    source_table: str
    source_column: str
    target_table: str
    target_column: str
    on_delete: ReferentialAction | None = None
    on_update: ReferentialAction | None = None

    def same_relation(self, other: ForeignKeyEdge) -> bool:
        """True if *other* describes the same relation, ignoring id and name."""
        return (
            self.source_table == other.source_table
            and self.source_column == other.source_column
            and self.target_table == other.target_table
            and self.target_column == other.target_column
            and self.on_delete == other.on_delete
            and self.on_update == other.on_update
        )


class EnumType(BaseModel):
    """A named Postgres enum type."""

    name: str = Field(..., min_length=1)
    values: list[str] = Field(default_factory=list)


class SchemaSettings(BaseModel):
    """Settings that change how a graph is rendered to DDL."""

    model_config = ConfigDict(populate_by_name=True)

    case_sensitive_identifiers: bool = Field(
        default=False,
        alias="caseSensitiveIdentifiers",
        description="Quote every identifier with the dialect's quote character.",
    )
    use_inline_constraints: bool = Field(
        default=True,
        alias="useInlineConstraints",
        description="Emit foreign keys inside CREATE TABLE instead of ALTER TABLE.",
    )


def find_table(tables: Sequence[Table], label: str, *, exact: bool = False) -> Table | None:
    """Find the table labelled *label* in *tables*.

    An exact match always wins; unless *exact* is set, a case-insensitive
    match is accepted as a fallback.
    """
    for table in tables:
        if table.label == label:
            return table
    if exact:
        return None
    folded = label.casefold()
    for table in tables:
        if table.label.casefold() == folded:
            return table
    return None


def _with_foreign_key_tag(column: Column, is_source: bool) -> Column:
    if column.has(ConstraintTag.FOREIGN_KEY) == is_source:
        return column
    tags = [tag for tag in column.constraints if tag != ConstraintTag.FOREIGN_KEY]
    if is_source:
        tags.append(ConstraintTag.FOREIGN_KEY)
    return column.model_copy(update={"constraints": tags})


class SchemaGraph(BaseModel):
    """Tables, relations, enum types and settings of one schema document."""

    model_config = ConfigDict(populate_by_name=True)

    tables: list[Table] = Field(default_factory=list)
    edges: list[ForeignKeyEdge] = Field(default_factory=list)
    enum_types: list[EnumType] = Field(default_factory=list, alias="enumTypes")
    settings: SchemaSettings = Field(default_factory=SchemaSettings)

    @model_validator(mode="after")
    def _unique_enum_names(self) -> SchemaGraph:
        seen: set[str] = set()
        for enum_type in self.enum_types:
            if enum_type.name in seen:
                raise ValueError(f"Duplicate enum type name: '{enum_type.name}'")
            seen.add(enum_type.name)
        return self

    @model_validator(mode="after")
    def _derive_foreign_key_tags(self) -> SchemaGraph:
        """Tag exactly the source columns of edges with ``foreign-key``.

        Tags given on input are overridden by the edges.  Affected columns
        are replaced with copies; the input objects are left as they were.
        """
        sources: set[tuple[str, str]] = set()
        for edge in self.edges:
            table = self.find_table(edge.source_table)
            column = table.find_column(edge.source_column) if table is not None else None
            if column is not None:
                sources.add((table.label, column.title))

        tables: list[Table] = []
        for table in self.tables:
            columns = [_with_foreign_key_tag(c, (table.label, c.title) in sources) for c in table.columns]
            if any(new is not old for new, old in zip(columns, table.columns)):
                table = table.model_copy(update={"columns": columns})
            tables.append(table)
        self.tables = tables
        return self

    def get_table(self, table_id: str) -> Table | None:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None

    def find_table(self, label: str, *, exact: bool = False) -> Table | None:
        """Look up a table by label (exact first, then case-insensitive)."""
        return find_table(self.tables, label, exact=exact)

    def find_enum(self, name: str) -> EnumType | None:
        for enum_type in self.enum_types:
            if enum_type.name == name:
                return enum_type
        return None

    def constraint_names(self) -> list[str]:
        return [edge.constraint_name for edge in self.edges]
