"""Lexing of DDL text on top of the SQLGlot tokenizer.

SQLGlot does the heavy lifting (string escapes, comments, quoted
identifiers); this module flattens its token stream into the handful of
token kinds the DDL parser cares about.  Multi-word keyword tokens such as
``PRIMARY KEY`` are split back into one word token per word so the parser
can treat keywords uniformly.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from sqlglot.errors import TokenError
from sqlglot.tokens import Tokenizer, TokenType

from sync_engine.errors import SqlParseError


class TokKind(str, enum.Enum):
    WORD = "word"
    QUOTED = "quoted"  # double-quoted or backtick identifier
    STRING = "string"  # single-quoted literal
    NUMBER = "number"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    DOT = "."
    SEMICOLON = ";"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class Tok:
    kind: TokKind
    text: str
    line: int
    start: int
    end: int

    @property
    def upper(self) -> str:
        return self.text.upper()

    def is_word(self, *words: str) -> bool:
        return self.kind is TokKind.WORD and (not words or self.text.upper() in words)


class DdlTokenizer(Tokenizer):
    """Accepts both ANSI double quotes and MySQL backticks for identifiers."""

    QUOTES = ["'"]
    IDENTIFIERS = ['"', "`"]


_PUNCTUATION: dict[TokenType, TokKind] = {
    TokenType.L_PAREN: TokKind.LPAREN,
    TokenType.R_PAREN: TokKind.RPAREN,
    TokenType.COMMA: TokKind.COMMA,
    TokenType.DOT: TokKind.DOT,
    TokenType.SEMICOLON: TokKind.SEMICOLON,
    TokenType.STRING: TokKind.STRING,
    TokenType.NUMBER: TokKind.NUMBER,
    TokenType.IDENTIFIER: TokKind.QUOTED,
}

_WORDS_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(?:\s+[A-Za-z_][A-Za-z0-9_$]*)*$")


def tokenize(sql: str) -> list[Tok]:
    """Tokenize *sql* into :class:`Tok` objects.

    Raises
    ------
    SqlParseError
        If the text cannot be tokenized (e.g. an unterminated string).
    """
    try:
        raw_tokens = DdlTokenizer().tokenize(sql)
    except TokenError as exc:
        raise SqlParseError(f"Could not tokenize SQL: {exc}") from exc

    tokens: list[Tok] = []
    for raw in raw_tokens:
        kind = _PUNCTUATION.get(raw.token_type)
        if kind is not None:
            tokens.append(Tok(kind, raw.text, raw.line, raw.start, raw.end))
            continue
        if _WORDS_RE.match(raw.text):
            words = raw.text.split()
            if len(words) == 1:
                tokens.append(Tok(TokKind.WORD, raw.text, raw.line, raw.start, raw.end))
            else:
                tokens.extend(Tok(TokKind.WORD, word, raw.line, raw.start, raw.end) for word in words)
            continue
        tokens.append(Tok(TokKind.OTHER, raw.text, raw.line, raw.start, raw.end))
    return tokens


def split_statements(tokens: list[Tok]) -> list[list[Tok]]:
    """Group *tokens* into statements on ``;``; empty statements are dropped."""
    statements: list[list[Tok]] = []
    current: list[Tok] = []
    for tok in tokens:
        if tok.kind is TokKind.SEMICOLON:
            if current:
                statements.append(current)
            current = []
        else:
            current.append(tok)
    if current:
        statements.append(current)
    return statements
