"""Dialect type maps and quoting rules."""

from sync_engine.dialects.type_map import (
    Dialect,
    logical_type,
    normalize_type_name,
    physical_type,
    quote_char,
    supports_enums,
)

__all__ = [
    "Dialect",
    "logical_type",
    "normalize_type_name",
    "physical_type",
    "quote_char",
    "supports_enums",
]
