"""Heuristic repair of hand-edited DDL text.

:func:`repair` runs three passes in a fixed order, each a named pure
``str -> str`` transform that can be tested on its own:

1. :func:`quote_multiword_identifiers` -- wrap two-word bare table names in
   double quotes.
2. :func:`fix_common_sql_issues` -- the explicit rule set in
   :data:`FIX_RULES` (line endings, smart quotes, trailing whitespace,
   missing terminators, unclosed parentheses, trailing commas, doubled
   semicolons).
3. :func:`remove_duplicate_fk_statements` -- drop repeated ``ALTER TABLE
   ... ADD CONSTRAINT`` statements inside foreign-key sections.

Later passes assume the text has been normalised by earlier ones.  Every
pass is idempotent, and so is their composition:
``repair(repair(s)) == repair(s)``.

Repair is only applied to manually edited text.  Generator output is
already well-formed and never goes through here.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from sync_engine.repair._text import scan, split_line_comment, statement_spans
from sync_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

FK_SECTION_MARKER = "Foreign Key Constraints"

# ---------------------------------------------------------------------------
# Pass 1: quote bare multi-word identifiers
# ---------------------------------------------------------------------------

# Words that may legitimately follow CREATE TABLE / ALTER TABLE / REFERENCES
# and therefore must never be read as part of a table name.
_KEYWORDS = (
    "ADD|ALTER|AS|ATTACH|CHANGE|CHECK|COMMENT|CONSTRAINT|DEFAULT|DETACH|DISABLE|DROP|"
    "ENABLE|ENGINE|EXISTS|FOREIGN|IF|INHERIT|KEY|LIKE|MATCH|MODIFY|NO|NOT|OF|ON|ONLY|"
    "OWNER|PARTITION|PRIMARY|REFERENCES|RENAME|RESET|SET|UNIQUE|USING|VALIDATE|WITH"
)
_WORD = rf"(?!(?:{_KEYWORDS})\b)([A-Za-z_]\w*)"
_ALTER_ACTIONS = "ADD|ALTER|ATTACH|CHANGE|DETACH|DISABLE|DROP|ENABLE|MODIFY|OWNER|RENAME|SET|VALIDATE"

_CREATE_TABLE_NAME_RE = re.compile(
    rf"(\bCREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?){_WORD}\s+{_WORD}(?=\s*\()",
    re.IGNORECASE,
)
_ALTER_TABLE_NAME_RE = re.compile(
    rf"(\bALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?){_WORD}\s+{_WORD}(?=\s+(?:{_ALTER_ACTIONS})\b)",
    re.IGNORECASE,
)
_REFERENCES_NAME_RE = re.compile(
    rf"(\bREFERENCES\s+){_WORD}\s+{_WORD}(?=\s*\()",
    re.IGNORECASE,
)


def _quote_pairs(pattern: re.Pattern[str], sql: str) -> str:
    code = scan(sql).code

    def _replace(match: re.Match[str]) -> str:
        # The keyword and both words must be live SQL, not comment or literal text.
        if code[match.start()] and code[match.start(2)] and code[match.end(3) - 1]:
            return f'{match.group(1)}"{match.group(2)} {match.group(3)}"'
        return match.group(0)

    return pattern.sub(_replace, sql)


def quote_multiword_identifiers(sql: str) -> str:
    """Quote two-word bare table names in CREATE/ALTER TABLE and REFERENCES.

    ``CREATE TABLE Customer Orders (`` becomes
    ``CREATE TABLE "Customer Orders" (``.  Names already quoted, single-word
    names, keywords such as ``IF NOT EXISTS`` or ``ADD``, and anything inside
    comments or string literals are left alone.
    """
    result = _quote_pairs(_CREATE_TABLE_NAME_RE, sql)
    result = _quote_pairs(_ALTER_TABLE_NAME_RE, result)
    return _quote_pairs(_REFERENCES_NAME_RE, result)


# ---------------------------------------------------------------------------
# Pass 2: common authoring mistakes
# ---------------------------------------------------------------------------

_SMART_QUOTES = str.maketrans({"“": '"', "”": '"', "‘": "'", "’": "'"})
_TRAILING_WS_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_TRAILING_COMMA_RE = re.compile(r",(?:\s*,)*(\s*)\)")
_REPEATED_SEMICOLON_RE = re.compile(r";(?:[ \t]*;)+")
_STATEMENT_START_RE = re.compile(r"(?:CREATE|ALTER)\b", re.IGNORECASE)


def normalize_line_endings(sql: str) -> str:
    return sql.replace("\r\n", "\n").replace("\r", "\n")


def replace_smart_quotes(sql: str) -> str:
    """Replace typographic quotes (pasted from documents) with ASCII ones."""
    return sql.translate(_SMART_QUOTES)


def strip_trailing_whitespace(sql: str) -> str:
    return _TRAILING_WS_RE.sub("", sql)


def terminate_statements(sql: str) -> str:
    """Insert missing ``;`` terminators.

    A line whose first code token is ``CREATE`` or ``ALTER`` starts a new
    statement, so the last code character before it must be a ``;``.  The
    final statement of the text is terminated as well.
    """
    code = scan(sql).code
    inserts: list[int] = []
    prev_last: int | None = None
    offset = 0
    for line in sql.split("\n"):
        end = offset + len(line)
        positions = [k for k in range(offset, end) if code[k] and not sql[k].isspace()]
        if positions:
            if prev_last is not None and sql[prev_last] != ";" and _STATEMENT_START_RE.match(sql, positions[0]):
                inserts.append(prev_last + 1)
            prev_last = positions[-1]
        offset = end + 1
    if prev_last is not None and sql[prev_last] != ";":
        inserts.append(prev_last + 1)
    for pos in reversed(inserts):
        sql = f"{sql[:pos]};{sql[pos:]}"
    return sql


def balance_parentheses(sql: str) -> str:
    """Close parentheses left open at the end of a statement.

    Surplus closing parentheses are not touched; they are reported by
    :func:`sync_engine.repair.validation.validate_sql_syntax`.
    """
    code = scan(sql).code
    inserts: list[tuple[int, str]] = []
    for start, end in statement_spans(sql, code):
        depth = 0
        last = start
        for k in range(start, end):
            if not code[k]:
                continue
            if sql[k] == "(":
                depth += 1
            elif sql[k] == ")" and depth > 0:
                depth -= 1
            if not sql[k].isspace():
                last = k
        if depth > 0:
            inserts.append((last + 1, ")" * depth))
    for pos, text in reversed(inserts):
        sql = f"{sql[:pos]}{text}{sql[pos:]}"
    return sql


def remove_trailing_commas(sql: str) -> str:
    """Drop commas directly before a closing parenthesis: ``(a, b,)``, ``(a, ,)``."""
    code = scan(sql).code

    def _replace(match: re.Match[str]) -> str:
        if code[match.start()] and code[match.end() - 1]:
            return f"{match.group(1)})"
        return match.group(0)

    return _TRAILING_COMMA_RE.sub(_replace, sql)


def collapse_semicolons(sql: str) -> str:
    code = scan(sql).code

    def _replace(match: re.Match[str]) -> str:
        return ";" if code[match.start()] and code[match.end() - 1] else match.group(0)

    return _REPEATED_SEMICOLON_RE.sub(_replace, sql)


FIX_RULES: tuple[Callable[[str], str], ...] = (
    normalize_line_endings,
    replace_smart_quotes,
    strip_trailing_whitespace,
    terminate_statements,
    balance_parentheses,
    remove_trailing_commas,
    collapse_semicolons,
)


def fix_common_sql_issues(sql: str) -> str:
    """Apply every rule of :data:`FIX_RULES` in order."""
    for rule in FIX_RULES:
        fixed = rule(sql)
        if fixed != sql:
            logger.debug("Repair rule %s changed the SQL", rule.__name__)
        sql = fixed
    return sql


# ---------------------------------------------------------------------------
# Pass 3: duplicate foreign-key statements
# ---------------------------------------------------------------------------

_ALTER_TABLE_LINE_RE = re.compile(r"^\s*ALTER\s+TABLE\b", re.IGNORECASE)
_ADD_CONSTRAINT_RE = re.compile(r"\bADD\s+CONSTRAINT\b", re.IGNORECASE)
_NEW_STATEMENT_LINE_RE = re.compile(r"^\s*(?:ALTER|CREATE)\b", re.IGNORECASE)


def _statement_end(lines: list[str], start: int) -> int:
    """Index of the last line of the statement beginning at *start*."""
    j = start
    while not split_line_comment(lines[j])[0].rstrip().endswith(";"):
        nxt = j + 1
        if nxt >= len(lines):
            break
        following = lines[nxt].strip()
        if not following or following.startswith("--") or _NEW_STATEMENT_LINE_RE.match(lines[nxt]):
            break
        j = nxt
    return j


def remove_duplicate_fk_statements(sql: str) -> str:
    """De-duplicate ``ALTER TABLE ... ADD CONSTRAINT`` statements.

    Only text inside a foreign-key section is touched.  A section starts at
    a line comment containing ``Foreign Key Constraints`` and ends at the
    next line comment.  Statements are compared by their exact trimmed text
    (not just the constraint name, since two statements may share a name
    but differ in body); the first occurrence wins.
    """
    lines = sql.split("\n")
    out: list[str] = []
    seen: set[str] = set()
    in_section = False
    i = 0
    while i < len(lines):
        line = lines[i]
        stripped = line.strip()
        if stripped.startswith("--"):
            in_section = FK_SECTION_MARKER.casefold() in stripped.casefold()
            out.append(line)
            i += 1
            continue
        if not in_section or not _ALTER_TABLE_LINE_RE.match(line):
            out.append(line)
            i += 1
            continue
        end = _statement_end(lines, i)
        block = lines[i : end + 1]
        key = "\n".join(part.strip() for part in block)
        i = end + 1
        if _ADD_CONSTRAINT_RE.search(key):
            if key in seen:
                logger.info("Removed duplicate foreign key statement: %s", key)
                continue
            seen.add(key)
        out.extend(block)
    return "\n".join(out)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@profile_operation("ddl.repair")
def repair(raw_sql: str) -> str:
    """Run the three repair passes over manually edited DDL."""
    sql = quote_multiword_identifiers(raw_sql)
    sql = fix_common_sql_issues(sql)
    return remove_duplicate_fk_statements(sql)
