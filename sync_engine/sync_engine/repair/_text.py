"""Quote- and comment-aware scanning helpers shared by repair and validation."""

from __future__ import annotations

from dataclasses import dataclass

_QUOTES = ("'", '"', "`")


@dataclass(frozen=True)
class ScanResult:
    """``code[i]`` is True when ``sql[i]`` is outside strings, quoted
    identifiers and comments.  ``open_quote_at`` is the offset of a quote
    that is never closed, if any."""

    code: list[bool]
    open_quote_at: int | None = None


def scan(sql: str) -> ScanResult:
    n = len(sql)
    code = [False] * n
    open_quote_at: int | None = None
    i = 0
    while i < n:
        c = sql[i]
        if sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end
            continue
        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if c in _QUOTES:
            j = i + 1
            while j < n:
                if sql[j] == c:
                    if j + 1 < n and sql[j + 1] == c:
                        j += 2
                        continue
                    break
                j += 1
            if j >= n:
                open_quote_at = i
                break
            i = j + 1
            continue
        code[i] = True
        i += 1
    return ScanResult(code=code, open_quote_at=open_quote_at)


def statement_spans(sql: str, code: list[bool]) -> list[tuple[int, int]]:
    """Split *sql* on top-level ``;`` into ``(start, end)`` spans.

    ``end`` is the offset of the terminating semicolon, or ``len(sql)`` for
    a trailing unterminated segment.  Spans without any code are dropped.
    """
    spans: list[tuple[int, int]] = []
    start = 0
    for i, ch in enumerate(sql):
        if ch == ";" and code[i]:
            spans.append((start, i))
            start = i + 1
    spans.append((start, len(sql)))
    return [(s, e) for s, e in spans if any(code[k] and not sql[k].isspace() for k in range(s, e))]


def line_of(sql: str, offset: int) -> int:
    """1-based line number of *offset* in *sql*."""
    return sql.count("\n", 0, offset) + 1


def split_line_comment(line: str) -> tuple[str, str]:
    """Split *line* into its code part and a trailing ``--`` comment."""
    quote: str | None = None
    for i, c in enumerate(line):
        if quote is not None:
            # A doubled quote closes and immediately reopens, which is fine.
            if c == quote:
                quote = None
        elif c in _QUOTES:
            quote = c
        elif line.startswith("--", i):
            return line[:i], line[i:]
    return line, ""
