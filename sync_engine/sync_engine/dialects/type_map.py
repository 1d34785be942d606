"""Per-dialect column type and identifier quoting rules.

The forward map turns a logical :class:`ColumnType` into the physical type
token emitted for a dialect.  Physical tokens are kept distinct within every
dialect so that parsing generated DDL recovers the original logical type.

The inverse map (:func:`logical_type`) is dialect-agnostic: it accepts the
union of every dialect's tokens plus common synonyms, because hand-edited
DDL frequently mixes them.
"""

from __future__ import annotations

import re
from enum import Enum

from sync_engine.errors import UnsupportedTypeError
from sync_engine.models.schema_graph import ColumnType


class Dialect(str, Enum):
    """Supported SQL dialects."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"


_PHYSICAL_TYPES: dict[Dialect, dict[ColumnType, str]] = {
    Dialect.POSTGRESQL: {
        ColumnType.UUID: "UUID",
        ColumnType.VARCHAR: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INT4: "INTEGER",
        ColumnType.MONEY: "MONEY",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.JSONB: "JSONB",
        ColumnType.DATE: "DATE",
        ColumnType.TIME: "TIME",
    },
    Dialect.MYSQL: {
        ColumnType.UUID: "CHAR(36)",
        ColumnType.VARCHAR: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INT4: "INT",
        ColumnType.MONEY: "DECIMAL(19,4)",
        ColumnType.TIMESTAMP: "TIMESTAMP",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.JSONB: "JSON",
        ColumnType.DATE: "DATE",
        ColumnType.TIME: "TIME",
    },
    Dialect.SQLITE: {
        ColumnType.UUID: "UUID",
        ColumnType.VARCHAR: "VARCHAR(255)",
        ColumnType.TEXT: "TEXT",
        ColumnType.INT4: "INTEGER",
        ColumnType.MONEY: "NUMERIC",
        ColumnType.TIMESTAMP: "DATETIME",
        ColumnType.BOOLEAN: "BOOLEAN",
        ColumnType.JSONB: "JSON",
        ColumnType.DATE: "DATE",
        ColumnType.TIME: "TIME",
    },
}

_QUOTE_CHARS: dict[Dialect, str] = {
    Dialect.POSTGRESQL: '"',
    Dialect.MYSQL: "`",
    Dialect.SQLITE: '"',
}

# Base type names (arguments stripped, whitespace collapsed, upper-cased).
_LOGICAL_TYPES: dict[str, ColumnType] = {
    "UUID": ColumnType.UUID,
    "CHAR": ColumnType.UUID,
    "VARCHAR": ColumnType.VARCHAR,
    "CHARACTER VARYING": ColumnType.VARCHAR,
    "NVARCHAR": ColumnType.VARCHAR,
    "TEXT": ColumnType.TEXT,
    "INTEGER": ColumnType.INT4,
    "INT": ColumnType.INT4,
    "INT4": ColumnType.INT4,
    "SERIAL": ColumnType.INT4,
    "MONEY": ColumnType.MONEY,
    "DECIMAL": ColumnType.MONEY,
    "NUMERIC": ColumnType.MONEY,
    "TIMESTAMP": ColumnType.TIMESTAMP,
    "TIMESTAMPTZ": ColumnType.TIMESTAMP,
    "TIMESTAMP WITH TIME ZONE": ColumnType.TIMESTAMP,
    "TIMESTAMP WITHOUT TIME ZONE": ColumnType.TIMESTAMP,
    "DATETIME": ColumnType.TIMESTAMP,
    "BOOLEAN": ColumnType.BOOLEAN,
    "BOOL": ColumnType.BOOLEAN,
    "JSONB": ColumnType.JSONB,
    "JSON": ColumnType.JSONB,
    "DATE": ColumnType.DATE,
    "TIME": ColumnType.TIME,
    "TIMETZ": ColumnType.TIME,
    "TIME WITH TIME ZONE": ColumnType.TIME,
    "TIME WITHOUT TIME ZONE": ColumnType.TIME,
}

_TYPE_ARGS_RE = re.compile(r"\s*\(.*\)\s*$")
_MULTI_SPACE_RE = re.compile(r"\s+")


def _coerce(dialect: Dialect | str) -> Dialect:
    # Unknown dialect names raise ValueError from the enum itself.
    return Dialect(dialect)


def physical_type(dialect: Dialect | str, column_type: ColumnType | str) -> str:
    """Return the physical type token for *column_type* in *dialect*.

    Raises
    ------
    UnsupportedTypeError
        If the logical type has no mapping (this includes ``enum``, which the
        generator resolves against the graph's enum types).
    """
    resolved = _coerce(dialect)
    try:
        return _PHYSICAL_TYPES[resolved][ColumnType(column_type)]
    except (KeyError, ValueError):
        raise UnsupportedTypeError(str(getattr(column_type, "value", column_type)), resolved.value) from None


def quote_char(dialect: Dialect | str) -> str:
    """Return the identifier quote character of *dialect*."""
    return _QUOTE_CHARS[_coerce(dialect)]


def supports_enums(dialect: Dialect | str) -> bool:
    """Return True if *dialect* has standalone ``CREATE TYPE ... AS ENUM``."""
    return _coerce(dialect) is Dialect.POSTGRESQL


def normalize_type_name(token: str) -> str:
    """Strip type arguments, collapse whitespace and upper-case *token*."""
    base = _TYPE_ARGS_RE.sub("", token.strip())
    return _MULTI_SPACE_RE.sub(" ", base).upper()


def logical_type(token: str) -> ColumnType:
    """Map a physical type token from any dialect back to its logical type.

    ``VARCHAR(100)``, ``varchar`` and ``character varying`` all map to
    :attr:`ColumnType.VARCHAR`.

    Raises
    ------
    UnsupportedTypeError
        If the token is not part of the supported vocabulary.
    """
    result = _LOGICAL_TYPES.get(normalize_type_name(token))
    if result is None:
        raise UnsupportedTypeError(token)
    return result
