"""Heuristic repair and advisory validation of hand-edited DDL."""

from sync_engine.repair.rules import (
    FIX_RULES,
    FK_SECTION_MARKER,
    balance_parentheses,
    collapse_semicolons,
    fix_common_sql_issues,
    normalize_line_endings,
    quote_multiword_identifiers,
    remove_duplicate_fk_statements,
    remove_trailing_commas,
    repair,
    replace_smart_quotes,
    strip_trailing_whitespace,
    terminate_statements,
)
from sync_engine.repair.validation import validate_sql_syntax

__all__ = [
    "FIX_RULES",
    "FK_SECTION_MARKER",
    "balance_parentheses",
    "collapse_semicolons",
    "fix_common_sql_issues",
    "normalize_line_endings",
    "quote_multiword_identifiers",
    "remove_duplicate_fk_statements",
    "remove_trailing_commas",
    "repair",
    "replace_smart_quotes",
    "strip_trailing_whitespace",
    "terminate_statements",
    "validate_sql_syntax",
]
