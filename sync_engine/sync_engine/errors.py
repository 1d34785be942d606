"""Error taxonomy for the schema synchronisation engine.

* :class:`UnsupportedTypeError` -- a logical column type has no physical
  mapping for the target dialect (or a physical type token has no logical
  counterpart).  Generation-time: the column is skipped with a warning.
* :class:`GraphReferenceError` -- a foreign-key edge points at a table or
  column that does not exist.  Generation-time: the edge is skipped with a
  warning.
* :class:`SqlParseError` -- DDL text cannot be turned into a schema graph.
  Parse-time: the whole parse fails atomically.
* :class:`InvalidTransitionError` -- a sync controller operation was called
  in a state that does not allow it (e.g. ``apply`` while clean).

Advisory validation findings are not exceptions; see
:class:`sync_engine.models.diagnostics.SqlValidationWarning`.
"""

from __future__ import annotations


class SchemaSyncError(Exception):
    """Base class for every error raised by the engine."""


class UnsupportedTypeError(SchemaSyncError):
    """Raised when a column type cannot be mapped to or from a dialect."""

    def __init__(self, type_name: str, dialect: str | None = None) -> None:
        self.type_name = type_name
        self.dialect = dialect
        if dialect is None:
            message = f"Unsupported column type: '{type_name}'"
        else:
            message = f"Column type '{type_name}' has no mapping for dialect '{dialect}'"
        super().__init__(message)


class GraphReferenceError(SchemaSyncError):
    """Raised when a foreign-key edge references a missing table or column."""

    def __init__(self, constraint_name: str, reason: str) -> None:
        self.constraint_name = constraint_name
        self.reason = reason
        super().__init__(f"Foreign key '{constraint_name}' skipped: {reason}")


class SqlParseError(SchemaSyncError):
    """Raised when DDL text cannot be parsed into a schema graph.

    ``line`` is the 1-based source line where the offending statement (or
    token) starts, and ``statement`` a short excerpt of it, whenever either
    can be determined.
    """

    def __init__(self, reason: str, *, line: int | None = None, statement: str | None = None) -> None:
        self.reason = reason
        self.line = line
        self.statement = statement
        message = reason
        if line is not None:
            message = f"{message} (line {line})"
        if statement:
            message = f"{message}: {statement[:120]}"
        super().__init__(message)


class InvalidTransitionError(SchemaSyncError):
    """Raised when a controller operation is not allowed in the current state."""

    def __init__(self, operation: str, state: str) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while {state}")
