"""Parse DDL text into a :class:`SchemaGraph`.

Parsing is a pure function from text to either a complete graph or a
:class:`SqlParseError`; nothing is committed anywhere on failure.  It runs
in two phases:

1. **Collect** -- every statement is read into pending records (tables with
   raw column types, enum types, indexes, foreign keys).  Only
   schema-defining statements are recognised:

   * ``CREATE TYPE name AS ENUM (...)``
   * ``CREATE TABLE [IF NOT EXISTS] name (...)``
   * ``CREATE [UNIQUE] INDEX [name] ON table (...)``
   * ``ALTER TABLE name ADD [CONSTRAINT name] FOREIGN KEY | PRIMARY KEY | UNIQUE ...``

   Anything else (views, functions, DML, ``DROP``) is skipped.

2. **Resolve** -- column types are mapped to logical types (enum names
   resolve once every ``CREATE TYPE`` has been seen), and index and
   foreign-key references are matched to tables and columns.  Bare names
   match case-insensitively, quoted names match exactly.

Ids are freshly generated for every entity.  Matching them against a
previous graph is the reconciler's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sync_engine.dialects.type_map import logical_type
from sync_engine.errors import SqlParseError, UnsupportedTypeError
from sync_engine.generator.identifiers import constraint_name as default_constraint_name
from sync_engine.models.schema_graph import (
    Column,
    ColumnType,
    ConstraintTag,
    EnumType,
    ForeignKeyEdge,
    ReferentialAction,
    SchemaGraph,
    Table,
)
from sync_engine.parser.tokens import Tok, TokKind, split_statements, tokenize
from sync_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pending records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ident:
    """An identifier with its quoting stripped."""

    name: str
    quoted: bool = False

    def matches(self, candidate: str) -> bool:
        if self.quoted:
            return candidate == self.name
        return candidate.casefold() == self.name.casefold()


@dataclass
class _PendingColumn:
    ident: Ident
    type_name: str
    type_quoted: bool
    line: int
    tags: list[ConstraintTag] = field(default_factory=list)


@dataclass
class _PendingTable:
    ident: Ident
    line: int
    columns: list[_PendingColumn] = field(default_factory=list)

    def find_column(self, ident: Ident) -> _PendingColumn | None:
        for column in self.columns:
            if column.ident.name == ident.name:
                return column
        for column in self.columns:
            if ident.matches(column.ident.name):
                return column
        return None


@dataclass
class _PendingForeignKey:
    source_table: Ident
    source_column: Ident
    target_table: Ident
    target_column: Ident | None
    name: str | None
    line: int
    on_delete: ReferentialAction | None = None
    on_update: ReferentialAction | None = None


@dataclass
class _PendingTag:
    """A tag applied from outside the table body (index, ALTER TABLE ADD)."""

    table: Ident
    columns: list[Ident]
    tag: ConstraintTag
    line: int


# ---------------------------------------------------------------------------
# Token cursor
# ---------------------------------------------------------------------------

_ACTIONS: dict[tuple[str, ...], ReferentialAction] = {
    ("CASCADE",): ReferentialAction.CASCADE,
    ("RESTRICT",): ReferentialAction.RESTRICT,
    ("SET", "NULL"): ReferentialAction.SET_NULL,
    ("SET", "DEFAULT"): ReferentialAction.SET_DEFAULT,
    ("NO", "ACTION"): ReferentialAction.NO_ACTION,
}

# Multi-word type names, keyed by their first word.
_COMPOUND_TYPES: dict[str, tuple[tuple[str, ...], ...]] = {
    "CHARACTER": (("VARYING",),),
    "CHAR": (("VARYING",),),
    "DOUBLE": (("PRECISION",),),
    "TIMESTAMP": (("WITH", "TIME", "ZONE"), ("WITHOUT", "TIME", "ZONE")),
    "TIME": (("WITH", "TIME", "ZONE"), ("WITHOUT", "TIME", "ZONE")),
}

# Column options that are accepted and ignored, with the number of tokens
# that follow them.
_IGNORED_COLUMN_OPTIONS: dict[str, int] = {
    "NULL": 0,
    "AUTO_INCREMENT": 0,
    "AUTOINCREMENT": 0,
    "UNSIGNED": 0,
    "SIGNED": 0,
    "ZEROFILL": 0,
    "COLLATE": 1,
    "COMMENT": 1,
}


_TAG_ORDER = {tag: index for index, tag in enumerate(ConstraintTag)}


def _is_type_name(word: str) -> bool:
    try:
        logical_type(word)
    except UnsupportedTypeError:
        return False
    return True


class _Cursor:
    def __init__(self, tokens: list[Tok], sql: str) -> None:
        self.tokens = tokens
        self.sql = sql
        self.pos = 0

    # -- inspection -----------------------------------------------------------

    def peek(self, offset: int = 0) -> Tok | None:
        index = self.pos + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def at_word(self, *words: str, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.is_word(*words)

    def at_kind(self, kind: TokKind, offset: int = 0) -> bool:
        tok = self.peek(offset)
        return tok is not None and tok.kind is kind

    def at_sequence(self, *words: str) -> bool:
        return all(self.at_word(word, offset=i) for i, word in enumerate(words))

    # -- consumption ----------------------------------------------------------

    def error(self, reason: str, tok: Tok | None = None) -> SqlParseError:
        anchor = tok or self.peek() or (self.tokens[-1] if self.tokens else None)
        excerpt = None
        if self.tokens:
            excerpt = " ".join(self.sql[self.tokens[0].start : self.tokens[-1].end + 1].split())
        return SqlParseError(reason, line=anchor.line if anchor else None, statement=excerpt)

    def advance(self) -> Tok:
        tok = self.peek()
        if tok is None:
            raise self.error("Unexpected end of statement")
        self.pos += 1
        return tok

    def accept_word(self, *words: str) -> bool:
        if self.at_word(*words):
            self.pos += 1
            return True
        return False

    def accept_sequence(self, *words: str) -> bool:
        if self.at_sequence(*words):
            self.pos += len(words)
            return True
        return False

    def expect_word(self, *words: str) -> Tok:
        tok = self.peek()
        if tok is None or not tok.is_word(*words):
            found = "end of statement" if tok is None else f"'{tok.text}'"
            raise self.error(f"Expected {' or '.join(words)} but found {found}", tok)
        self.pos += 1
        return tok

    def expect_kind(self, kind: TokKind) -> Tok:
        tok = self.peek()
        if tok is None or tok.kind is not kind:
            found = "end of statement" if tok is None else f"'{tok.text}'"
            raise self.error(f"Expected '{kind.value}' but found {found}", tok)
        self.pos += 1
        return tok

    def identifier(self) -> Ident:
        """Read a possibly schema-qualified identifier; keep the last part."""
        ident = self._single_identifier()
        while self.at_kind(TokKind.DOT):
            self.pos += 1
            ident = self._single_identifier()
        return ident

    def _single_identifier(self) -> Ident:
        tok = self.peek()
        if tok is None or tok.kind not in (TokKind.WORD, TokKind.QUOTED):
            found = "end of statement" if tok is None else f"'{tok.text}'"
            raise self.error(f"Expected an identifier but found {found}", tok)
        self.pos += 1
        return Ident(tok.text, quoted=tok.kind is TokKind.QUOTED)

    def identifier_list(self) -> list[Ident]:
        """Read ``(a, b DESC, ...)``; expressions are skipped."""
        self.expect_kind(TokKind.LPAREN)
        idents: list[Ident] = []
        while True:
            if self.at_kind(TokKind.WORD) and self.at_kind(TokKind.LPAREN, offset=1):
                self.skip_element()
            else:
                idents.append(self.identifier())
                # Sort order, length prefixes, operator classes...
                self.skip_element()
            if self.at_kind(TokKind.COMMA):
                self.pos += 1
                continue
            self.expect_kind(TokKind.RPAREN)
            return idents

    def skip_balanced(self) -> None:
        """Skip a parenthesised group starting at the current ``(``."""
        self.expect_kind(TokKind.LPAREN)
        depth = 1
        while depth:
            tok = self.advance()
            if tok.kind is TokKind.LPAREN:
                depth += 1
            elif tok.kind is TokKind.RPAREN:
                depth -= 1

    def skip_element(self) -> None:
        """Skip to the next top-level ``,`` or ``)`` (not consumed)."""
        while not self.at_end() and not self.at_kind(TokKind.COMMA) and not self.at_kind(TokKind.RPAREN):
            if self.at_kind(TokKind.LPAREN):
                self.skip_balanced()
            else:
                self.pos += 1

    def skip_expression(self) -> None:
        """Skip a DEFAULT expression: a term followed by calls or operators."""
        if self.at_kind(TokKind.LPAREN):
            self.skip_balanced()
        else:
            self.advance()
        while True:
            if self.at_kind(TokKind.LPAREN):
                self.skip_balanced()
            elif self.at_kind(TokKind.OTHER) or self.at_kind(TokKind.DOT):
                self.pos += 1
                if not self.at_end() and not self.at_kind(TokKind.COMMA) and not self.at_kind(TokKind.RPAREN):
                    if self.at_kind(TokKind.LPAREN):
                        self.skip_balanced()
                    else:
                        self.pos += 1
            else:
                return

    def referential_action(self) -> ReferentialAction:
        for words, action in _ACTIONS.items():
            if self.accept_sequence(*words):
                return action
        tok = self.peek()
        raise self.error(f"Unknown referential action '{tok.text if tok else ''}'", tok)


# ---------------------------------------------------------------------------
# Statement parser
# ---------------------------------------------------------------------------


class _DdlParser:
    def __init__(self, sql: str) -> None:
        self.sql = sql
        self.tables: list[_PendingTable] = []
        self.enums: list[EnumType] = []
        self.foreign_keys: list[_PendingForeignKey] = []
        self.tags: list[_PendingTag] = []

    # -- collection phase -----------------------------------------------------

    def collect(self) -> None:
        for statement in split_statements(tokenize(self.sql)):
            cur = _Cursor(statement, self.sql)
            if cur.accept_word("CREATE"):
                self._create(cur)
            elif cur.accept_word("ALTER") and cur.accept_word("TABLE"):
                self._alter_table(cur)
            else:
                logger.debug("Skipping non-schema statement on line %d", statement[0].line)

    def _create(self, cur: _Cursor) -> None:
        cur.accept_sequence("OR", "REPLACE")
        if cur.accept_word("TYPE"):
            self._create_type(cur)
            return
        cur.accept_word("TEMP", "TEMPORARY", "UNLOGGED")
        if cur.accept_word("TABLE"):
            self._create_table(cur)
            return
        unique = cur.accept_word("UNIQUE")
        if cur.accept_word("INDEX"):
            self._create_index(cur, unique)
            return
        logger.debug("Skipping CREATE statement that defines no table, type or index")

    def _create_type(self, cur: _Cursor) -> None:
        name = cur.identifier()
        if not cur.accept_sequence("AS", "ENUM"):
            logger.debug("Skipping non-enum type '%s'", name.name)
            return
        cur.expect_kind(TokKind.LPAREN)
        values: list[str] = []
        while not cur.at_kind(TokKind.RPAREN):
            tok = cur.advance()
            if tok.kind not in (TokKind.STRING, TokKind.QUOTED):
                raise cur.error(f"Enum values must be quoted literals, found '{tok.text}'", tok)
            values.append(tok.text)
            if not cur.at_kind(TokKind.RPAREN):
                cur.expect_kind(TokKind.COMMA)
        cur.expect_kind(TokKind.RPAREN)
        if any(existing.name == name.name for existing in self.enums):
            raise cur.error(f"Enum type '{name.name}' is defined more than once")
        self.enums.append(EnumType(name=name.name, values=values))

    def _create_table(self, cur: _Cursor) -> None:
        cur.accept_sequence("IF", "NOT", "EXISTS")
        start = cur.peek()
        ident = cur.identifier()
        if cur.at_word("AS", "LIKE"):
            logger.debug("Skipping derived table '%s'", ident.name)
            return
        if not cur.at_kind(TokKind.LPAREN):
            raise cur.error(f"Expected column list after CREATE TABLE {ident.name}")
        if any(ident.matches(t.ident.name) or t.ident.matches(ident.name) for t in self.tables):
            raise cur.error(f"Table '{ident.name}' is defined more than once", start)
        table = _PendingTable(ident=ident, line=start.line if start else 0)
        self.tables.append(table)

        cur.expect_kind(TokKind.LPAREN)
        while not cur.at_kind(TokKind.RPAREN):
            if self._is_table_constraint(cur):
                self._table_constraint(cur, table)
            else:
                self._column_definition(cur, table)
            if not cur.at_kind(TokKind.RPAREN):
                cur.expect_kind(TokKind.COMMA)
        cur.expect_kind(TokKind.RPAREN)
        # Trailing table options (ENGINE=..., WITHOUT ROWID) are ignored.

    @staticmethod
    def _is_table_constraint(cur: _Cursor) -> bool:
        if cur.at_word("CONSTRAINT"):
            return True
        if cur.at_sequence("PRIMARY", "KEY") or cur.at_sequence("FOREIGN", "KEY"):
            return True
        if cur.at_word("CHECK") and cur.at_kind(TokKind.LPAREN, offset=1):
            return True
        if cur.at_word("FULLTEXT", "SPATIAL") and (
            cur.at_word("KEY", "INDEX", offset=1) or cur.at_kind(TokKind.LPAREN, offset=1)
        ):
            return True
        if cur.at_word("UNIQUE", "KEY", "INDEX"):
            offset = 2 if cur.at_word("KEY", "INDEX", offset=1) else 1
            if cur.at_kind(TokKind.LPAREN, offset=offset):
                return True
            # `KEY idx_name (col)` versus a column named "key": `key VARCHAR(255)`.
            nxt = cur.peek(offset)
            if nxt is None or not cur.at_kind(TokKind.LPAREN, offset=offset + 1):
                return False
            if nxt.kind is TokKind.QUOTED:
                return True
            return nxt.kind is TokKind.WORD and not _is_type_name(nxt.text)
        return False

    def _table_constraint(self, cur: _Cursor, table: _PendingTable) -> None:
        name = cur.identifier().name if cur.accept_word("CONSTRAINT") else None
        if cur.accept_sequence("PRIMARY", "KEY"):
            self._tag_columns(cur, table, cur.identifier_list(), ConstraintTag.PRIMARY)
        elif cur.accept_sequence("FOREIGN", "KEY"):
            self._foreign_key_clause(cur, table.ident, name)
        elif cur.accept_word("UNIQUE"):
            cur.accept_word("KEY", "INDEX")
            if not cur.at_kind(TokKind.LPAREN):
                cur.identifier()
            columns = cur.identifier_list()
            if len(columns) == 1:
                self._tag_columns(cur, table, columns, ConstraintTag.UNIQUE)
            else:
                logger.info("Multi-column UNIQUE on '%s' cannot be represented; ignored", table.ident.name)
        elif cur.accept_word("KEY", "INDEX"):
            if not cur.at_kind(TokKind.LPAREN):
                cur.identifier()
            self._tag_columns(cur, table, cur.identifier_list(), ConstraintTag.INDEX)
        else:
            # CHECK (...), FULLTEXT / SPATIAL indexes.
            cur.skip_element()

    def _tag_columns(self, cur: _Cursor, table: _PendingTable, idents: list[Ident], tag: ConstraintTag) -> None:
        for ident in idents:
            column = table.find_column(ident)
            if column is None:
                raise cur.error(f"Constraint on '{table.ident.name}' references unknown column '{ident.name}'")
            column.tags.append(tag)

    def _column_type(self, cur: _Cursor) -> tuple[str, bool]:
        tok = cur.peek()
        if tok is None or tok.kind not in (TokKind.WORD, TokKind.QUOTED):
            found = "end of statement" if tok is None else f"'{tok.text}'"
            raise cur.error(f"Expected a column type but found {found}", tok)
        if tok.kind is TokKind.QUOTED:
            ident = cur.identifier()
            return ident.name, True
        ident = cur.identifier()
        words = [ident.name]
        for continuation in _COMPOUND_TYPES.get(ident.name.upper(), ()):
            if cur.accept_sequence(*continuation):
                words.extend(continuation)
                break
        if cur.at_kind(TokKind.LPAREN):
            cur.skip_balanced()
        # Array suffixes and trailing modifiers are not part of the vocabulary.
        return " ".join(words), False

    def _column_definition(self, cur: _Cursor, table: _PendingTable) -> None:
        start = cur.peek()
        ident = cur.identifier()
        type_name, type_quoted = self._column_type(cur)
        column = _PendingColumn(ident=ident, type_name=type_name, type_quoted=type_quoted, line=start.line if start else 0)
        table.columns.append(column)

        pending_name: str | None = None
        while not cur.at_end() and not cur.at_kind(TokKind.COMMA) and not cur.at_kind(TokKind.RPAREN):
            if cur.accept_sequence("NOT", "NULL"):
                column.tags.append(ConstraintTag.NOT_NULL)
            elif cur.accept_sequence("PRIMARY", "KEY"):
                column.tags.append(ConstraintTag.PRIMARY)
                cur.accept_word("ASC", "DESC")
            elif cur.accept_word("UNIQUE"):
                cur.accept_word("KEY")
                column.tags.append(ConstraintTag.UNIQUE)
            elif cur.accept_word("CONSTRAINT"):
                pending_name = cur.identifier().name
            elif cur.at_word("REFERENCES"):
                self._references(cur, table.ident, ident, pending_name)
                pending_name = None
            elif cur.accept_word("DEFAULT"):
                cur.skip_expression()
            elif cur.accept_word("CHECK"):
                cur.skip_balanced()
            elif cur.at_sequence("ON", "UPDATE"):
                # MySQL ``ON UPDATE CURRENT_TIMESTAMP``.
                cur.pos += 2
                cur.skip_expression()
            elif cur.at_word(*_IGNORED_COLUMN_OPTIONS):
                skip = _IGNORED_COLUMN_OPTIONS[cur.advance().upper]
                for _ in range(skip):
                    cur.advance()
            elif cur.at_kind(TokKind.LPAREN):
                cur.skip_balanced()
            else:
                tok = cur.advance()
                logger.debug("Ignoring column option '%s' on line %d", tok.text, tok.line)

    def _foreign_key_clause(self, cur: _Cursor, table: Ident, name: str | None) -> None:
        sources = cur.identifier_list()
        if len(sources) != 1:
            raise cur.error("Only single-column foreign keys are supported")
        self._references(cur, table, sources[0], name)

    def _references(self, cur: _Cursor, table: Ident, column: Ident, name: str | None) -> None:
        ref_tok = cur.expect_word("REFERENCES")
        target = cur.identifier()
        target_column: Ident | None = None
        if cur.at_kind(TokKind.LPAREN):
            targets = cur.identifier_list()
            if len(targets) != 1:
                raise cur.error("Only single-column foreign keys are supported", ref_tok)
            target_column = targets[0]
        fk = _PendingForeignKey(
            source_table=table,
            source_column=column,
            target_table=target,
            target_column=target_column,
            name=name,
            line=ref_tok.line,
        )
        while cur.at_word("ON", "MATCH", "DEFERRABLE", "NOT", "INITIALLY"):
            if cur.accept_sequence("ON", "DELETE"):
                fk.on_delete = cur.referential_action()
            elif cur.accept_sequence("ON", "UPDATE"):
                fk.on_update = cur.referential_action()
            elif cur.accept_word("MATCH"):
                cur.advance()
            elif cur.accept_word("INITIALLY"):
                cur.advance()
            elif cur.accept_word("DEFERRABLE") or cur.accept_sequence("NOT", "DEFERRABLE"):
                continue
            else:
                break
        self.foreign_keys.append(fk)

    def _create_index(self, cur: _Cursor, unique: bool) -> None:
        start = cur.peek()
        cur.accept_word("CONCURRENTLY")
        cur.accept_sequence("IF", "NOT", "EXISTS")
        if not cur.at_word("ON"):
            cur.identifier()
        cur.expect_word("ON")
        cur.accept_word("ONLY")
        table = cur.identifier()
        if cur.accept_word("USING"):
            cur.advance()
        columns = cur.identifier_list()
        line = start.line if start else 0
        if unique and len(columns) == 1:
            self.tags.append(_PendingTag(table, columns, ConstraintTag.UNIQUE, line))
        else:
            self.tags.append(_PendingTag(table, columns, ConstraintTag.INDEX, line))

    def _alter_table(self, cur: _Cursor) -> None:
        cur.accept_sequence("IF", "EXISTS")
        cur.accept_word("ONLY")
        table = cur.identifier()
        while not cur.at_end():
            action = cur.peek()
            if not cur.accept_word("ADD"):
                logger.debug("Skipping unsupported ALTER TABLE action on '%s'", table.name)
                return
            name = cur.identifier().name if cur.accept_word("CONSTRAINT") else None
            if cur.accept_sequence("FOREIGN", "KEY"):
                self._foreign_key_clause(cur, table, name)
            elif cur.accept_sequence("PRIMARY", "KEY"):
                self.tags.append(_PendingTag(table, cur.identifier_list(), ConstraintTag.PRIMARY, action.line))
            elif cur.accept_word("UNIQUE"):
                columns = cur.identifier_list()
                if len(columns) == 1:
                    self.tags.append(_PendingTag(table, columns, ConstraintTag.UNIQUE, action.line))
            else:
                logger.debug("Skipping unsupported ALTER TABLE ADD on '%s'", table.name)
                return
            if not cur.at_kind(TokKind.COMMA):
                break
            cur.pos += 1
        if not cur.at_end():
            raise cur.error("Unexpected tokens after ALTER TABLE action")

    # -- resolution phase -----------------------------------------------------

    def _find_table(self, ident: Ident) -> _PendingTable | None:
        for table in self.tables:
            if table.ident.name == ident.name:
                return table
        for table in self.tables:
            if ident.matches(table.ident.name):
                return table
        return None

    def _resolve_type(self, column: _PendingColumn) -> tuple[ColumnType, str | None]:
        exact = next((e for e in self.enums if e.name == column.type_name), None)
        if exact is not None:
            return ColumnType.ENUM, exact.name
        if not column.type_quoted:
            try:
                return logical_type(column.type_name), None
            except UnsupportedTypeError:
                folded = next((e for e in self.enums if e.name.casefold() == column.type_name.casefold()), None)
                if folded is not None:
                    return ColumnType.ENUM, folded.name
        raise SqlParseError(
            f"Unsupported column type '{column.type_name}' for column '{column.ident.name}'",
            line=column.line,
        )

    def _apply_tags(self) -> None:
        for pending in self.tags:
            table = self._find_table(pending.table)
            if table is None:
                raise SqlParseError(f"Constraint references unknown table '{pending.table.name}'", line=pending.line)
            for ident in pending.columns:
                column = table.find_column(ident)
                if column is None:
                    raise SqlParseError(
                        f"Constraint on '{table.ident.name}' references unknown column '{ident.name}'",
                        line=pending.line,
                    )
                column.tags.append(pending.tag)

    def _target_column(self, fk: _PendingForeignKey, target: _PendingTable | None) -> str:
        if fk.target_column is not None:
            if target is None:
                return fk.target_column.name
            column = target.find_column(fk.target_column)
            return column.ident.name if column is not None else fk.target_column.name
        if target is not None:
            primary = [c for c in target.columns if ConstraintTag.PRIMARY in c.tags]
            if len(primary) == 1:
                return primary[0].ident.name
        raise SqlParseError(
            f"REFERENCES {fk.target_table.name} needs an explicit column: the target has no single primary key",
            line=fk.line,
        )

    def _resolve_edges(self) -> list[ForeignKeyEdge]:
        edges: list[ForeignKeyEdge] = []
        used_names: set[str] = set()
        for fk in self.foreign_keys:
            source = self._find_table(fk.source_table)
            if source is None:
                raise SqlParseError(f"Foreign key on unknown table '{fk.source_table.name}'", line=fk.line)
            source_column = source.find_column(fk.source_column)
            if source_column is None:
                raise SqlParseError(
                    f"Foreign key on '{source.ident.name}' references unknown column '{fk.source_column.name}'",
                    line=fk.line,
                )
            target = self._find_table(fk.target_table)
            target_table = target.ident.name if target is not None else fk.target_table.name
            if target is None:
                logger.info("Foreign key from '%s' references missing table '%s'", source.ident.name, target_table)

            edge = ForeignKeyEdge(
                constraint_name=fk.name
                or default_constraint_name(source.ident.name, source_column.ident.name, target_table),
                source_table=source.ident.name,
                source_column=source_column.ident.name,
                target_table=target_table,
                target_column=self._target_column(fk, target),
                on_delete=fk.on_delete,
                on_update=fk.on_update,
            )
            if any(edge.same_relation(existing) for existing in edges):
                logger.info("Dropped repeated foreign key '%s'", edge.constraint_name)
                continue
            if edge.constraint_name in used_names:
                if fk.name is not None:
                    logger.warning(
                        "Constraint name '%s' is used by two different foreign keys; keeping the first", fk.name
                    )
                    continue
                suffix = 2
                while f"{edge.constraint_name}_{suffix}" in used_names:
                    suffix += 1
                edge = edge.model_copy(update={"constraint_name": f"{edge.constraint_name}_{suffix}"})
            used_names.add(edge.constraint_name)
            edges.append(edge)
        return edges

    def build(self) -> SchemaGraph:
        self._apply_tags()
        edges = self._resolve_edges()
        tables: list[Table] = []
        for pending in self.tables:
            columns: list[Column] = []
            for column in pending.columns:
                column_type, enum_name = self._resolve_type(column)
                tags = sorted(set(column.tags), key=_TAG_ORDER.__getitem__)
                columns.append(Column(title=column.ident.name, type=column_type, enum_name=enum_name, constraints=tags))
            tables.append(Table(label=pending.ident.name, columns=columns))
        return SchemaGraph(tables=tables, edges=edges, enum_types=self.enums)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


@profile_operation("ddl.parse")
def parse(sql: str) -> SchemaGraph:
    """Parse DDL text into a new :class:`SchemaGraph`.

    Parameters
    ----------
    sql:
        DDL text, normally already passed through
        :func:`sync_engine.repair.repair`.

    Returns
    -------
    SchemaGraph
        A graph with fresh ids.  Foreign keys whose target table is not
        defined in *sql* are kept; the generator reports them later.

    Raises
    ------
    SqlParseError
        On any structural problem, unsupported type or unresolvable
        reference.  Nothing is returned in that case.
    """
    parser = _DdlParser(sql)
    parser.collect()
    graph = parser.build()
    logger.debug(
        "Parsed %d tables, %d foreign keys, %d enum types",
        len(graph.tables),
        len(graph.edges),
        len(graph.enum_types),
    )
    return graph


parse_sql_to_schema = parse
