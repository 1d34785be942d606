"""DDL text to schema graph."""

from sync_engine.parser.ddl_parser import Ident, parse, parse_sql_to_schema
from sync_engine.parser.tokens import Tok, TokKind, split_statements, tokenize

__all__ = [
    "Ident",
    "Tok",
    "TokKind",
    "parse",
    "parse_sql_to_schema",
    "split_statements",
    "tokenize",
]
