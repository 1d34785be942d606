"""Advisory structural validation of DDL text.

:func:`validate_sql_syntax` reports problems without fixing them.  Its
result is informational only: it never blocks repair or parsing.
"""

from __future__ import annotations

from sync_engine.models.diagnostics import SqlValidationWarning, ValidationIssue
from sync_engine.repair._text import line_of, scan, statement_spans


def validate_sql_syntax(sql: str) -> list[SqlValidationWarning]:
    """Return advisory warnings about the structure of *sql*.

    Detects empty input, unterminated quotes, unbalanced parentheses per
    statement, and a final statement without a ``;`` terminator.
    """
    if not sql.strip():
        return [SqlValidationWarning(issue=ValidationIssue.EMPTY_INPUT, message="SQL is empty")]

    warnings: list[SqlValidationWarning] = []
    result = scan(sql)
    code = result.code

    if result.open_quote_at is not None:
        quote = sql[result.open_quote_at]
        line = line_of(sql, result.open_quote_at)
        warnings.append(
            SqlValidationWarning(
                issue=ValidationIssue.UNTERMINATED_QUOTE,
                message=f"Unterminated {quote} quote starting on line {line}",
                line=line,
            )
        )

    spans = statement_spans(sql, code)
    for start, end in spans:
        first = next(k for k in range(start, end) if code[k] and not sql[k].isspace())
        line = line_of(sql, first)
        depth = 0
        extra_close = False
        for k in range(start, end):
            if not code[k]:
                continue
            if sql[k] == "(":
                depth += 1
            elif sql[k] == ")":
                if depth == 0:
                    extra_close = True
                else:
                    depth -= 1
        if depth > 0:
            warnings.append(
                SqlValidationWarning(
                    issue=ValidationIssue.UNBALANCED_PARENS,
                    message=f"Statement on line {line} has {depth} unclosed parenthes{'is' if depth == 1 else 'es'}",
                    line=line,
                )
            )
        if extra_close:
            warnings.append(
                SqlValidationWarning(
                    issue=ValidationIssue.UNBALANCED_PARENS,
                    message=f"Statement on line {line} closes a parenthesis that was never opened",
                    line=line,
                )
            )

    if spans and spans[-1][1] == len(sql) and result.open_quote_at is None:
        start = spans[-1][0]
        first = next(k for k in range(start, len(sql)) if code[k] and not sql[k].isspace())
        line = line_of(sql, first)
        warnings.append(
            SqlValidationWarning(
                issue=ValidationIssue.UNTERMINATED_STATEMENT,
                message=f"Statement on line {line} is missing a terminating ';'",
                line=line,
            )
        )

    return warnings
