"""Identifier quoting for generated DDL."""

from __future__ import annotations

import re

from sync_engine.dialects.type_map import Dialect, quote_char

_BARE_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_NON_WORD_RE = re.compile(r"[^A-Za-z0-9_]+")

# Words that cannot appear bare as a table or column name in at least one
# supported dialect.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "ALL", "ALTER", "AND", "AS", "ASC", "BETWEEN", "BY", "CASE", "CHECK",
        "COLUMN", "CONSTRAINT", "CREATE", "CROSS", "DEFAULT", "DELETE", "DESC",
        "DISTINCT", "DROP", "ELSE", "END", "EXISTS", "FOREIGN", "FROM", "FULL",
        "GRANT", "GROUP", "HAVING", "IN", "INDEX", "INNER", "INSERT", "INTO",
        "IS", "JOIN", "KEY", "LEFT", "LIKE", "LIMIT", "NOT", "NULL", "ON", "OR",
        "ORDER", "OUTER", "PRIMARY", "REFERENCES", "RIGHT", "SELECT", "SET",
        "TABLE", "THEN", "TO", "UNION", "UNIQUE", "UPDATE", "USER", "USING",
        "VALUES", "WHEN", "WHERE", "WITH",
    }
)  # fmt: skip


def needs_quoting(name: str) -> bool:
    """Return True if *name* can never be emitted as a bare identifier."""
    return not _BARE_IDENTIFIER_RE.match(name) or name.upper() in RESERVED_WORDS


def quote_identifier(name: str, dialect: Dialect | str, *, case_sensitive: bool) -> str:
    """Render *name* for *dialect*.

    With *case_sensitive* the identifier is always quoted.  Otherwise it is
    emitted bare unless it contains whitespace or other characters that
    would split it into several tokens, or is a reserved word.
    """
    if not case_sensitive and not needs_quoting(name):
        return name
    q = quote_char(dialect)
    return f"{q}{name.replace(q, q + q)}{q}"


def sanitize_name(*parts: str) -> str:
    """Join *parts* into a lower-case ``snake_case`` identifier fragment."""
    pieces = [_NON_WORD_RE.sub("_", part).strip("_").lower() for part in parts]
    return "_".join(piece for piece in pieces if piece)


def index_name(table: str, column: str) -> str:
    """Deterministic name of the single-column index on *table*.*column*."""
    return f"idx_{sanitize_name(table, column)}"


def constraint_name(source_table: str, source_column: str, target_table: str) -> str:
    """Default name of a foreign key that was declared without one."""
    return f"fk_{sanitize_name(source_table, source_column, target_table)}"
