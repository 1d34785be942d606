"""Pydantic models for schema graphs and engine diagnostics."""

from sync_engine.models.diagnostics import (
    ApplyError,
    DdlDownload,
    GenerationResult,
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
    Position,
    ReferentialAction,
    SchemaGraph,
    SchemaSettings,
    Table,
    TableLayout,
    new_id,
)

__all__ = [
    "ApplyError",
    "Column",
    "ColumnType",
    "ConstraintTag",
    "DdlDownload",
    "EnumType",
    "ForeignKeyEdge",
    "GenerationResult",
    "GenerationWarning",
    "GenerationWarningKind",
    "Position",
    "ReferentialAction",
    "SchemaGraph",
    "SchemaSettings",
    "SqlValidationWarning",
    "Table",
    "TableLayout",
    "ValidationIssue",
    "new_id",
]
