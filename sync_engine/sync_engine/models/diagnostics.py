"""Diagnostics surfaced to the caller alongside (or instead of) results."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class GenerationWarningKind(str, Enum):
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    GRAPH_REFERENCE = "GRAPH_REFERENCE"
    ENUM_FALLBACK = "ENUM_FALLBACK"


class GenerationWarning(BaseModel):
    """A non-fatal problem found while rendering a graph to DDL."""

    kind: GenerationWarningKind
    message: str
    subject: str = Field(
        default="",
        description="Table, column or constraint the warning is about.",
    )


class GenerationResult(BaseModel):
    """Rendered DDL text plus every warning raised while rendering it."""

    sql: str
    warnings: list[GenerationWarning] = Field(default_factory=list)


class ValidationIssue(str, Enum):
    EMPTY_INPUT = "EMPTY_INPUT"
    UNBALANCED_PARENS = "UNBALANCED_PARENS"
    UNTERMINATED_STATEMENT = "UNTERMINATED_STATEMENT"
    UNTERMINATED_QUOTE = "UNTERMINATED_QUOTE"


class SqlValidationWarning(BaseModel):
    """Advisory finding of :func:`sync_engine.repair.validate_sql_syntax`."""

    issue: ValidationIssue
    message: str
    line: int | None = Field(default=None, description="1-based line, if known.")


class ApplyError(BaseModel):
    """Error surface shown to the editor when an apply fails."""

    message: str


class DdlDownload(BaseModel):
    """A DDL document offered for download."""

    filename: str
    mime_type: str = "text/plain"
    content: str
