"""Two-way synchronisation between a schema graph and its DDL text.

:class:`SyncController` is the single owner of the committed
:class:`SchemaGraph`, the DDL generated from it, and the user's edit
buffer.  Regeneration happens only on explicit transitions:

* ``edit`` (CLEAN -> EDITING) snapshots the committed graph.
* ``toggle_live`` switches between EDITING and LIVE_EDITING.
* ``update_text`` replaces the buffer; in LIVE_EDITING it also commits.
* ``apply`` repairs, parses, reconciles and commits the buffer, then
  regenerates and returns to CLEAN.
* ``cancel`` restores the snapshot and returns to CLEAN.
* ``set_dialect`` and ``update_settings`` regenerate at once when CLEAN
  and are deferred to the next successful ``apply`` otherwise.

A failed apply (or live update) never touches the committed graph, the
generated DDL, or the buffer; it only sets :attr:`SyncController.error`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from enum import Enum
from typing import Any

from sync_engine.config import Settings
from sync_engine.dialects.type_map import Dialect
from sync_engine.errors import InvalidTransitionError, SqlParseError
from sync_engine.generator.ddl_generator import DDL_MIME_TYPE, download_filename, generate_for_graph
from sync_engine.models.diagnostics import ApplyError, DdlDownload, GenerationWarning, SqlValidationWarning
from sync_engine.models.schema_graph import SchemaGraph, SchemaSettings
from sync_engine.parser.ddl_parser import parse
from sync_engine.reconcile.reconciler import reconcile
from sync_engine.repair.rules import repair
from sync_engine.repair.validation import validate_sql_syntax

logger = logging.getLogger(__name__)

EMPTY_SQL_MESSAGE = "SQL cannot be empty"
DEFERRED_SETTINGS_NOTICE = "Apply your changes to see updates with new settings"


class SyncState(str, Enum):
    CLEAN = "clean"
    EDITING = "editing"
    LIVE_EDITING = "live_editing"


class SyncController:
    """State machine keeping a :class:`SchemaGraph` and its DDL in sync.

    Parameters
    ----------
    graph:
        Initial graph; an empty graph when omitted.
    dialect:
        Target dialect for generated DDL.
    settings:
        Rendering settings.  When given they replace ``graph.settings``.
    on_notice:
        Called with a human-readable message whenever the user should be
        told something that is not an error (e.g. deferred settings).
    """

    def __init__(
        self,
        graph: SchemaGraph | None = None,
        dialect: Dialect | str = Dialect.POSTGRESQL,
        settings: SchemaSettings | None = None,
        on_notice: Callable[[str], None] | None = None,
    ) -> None:
        graph = graph or SchemaGraph()
        if settings is not None:
            graph = graph.model_copy(update={"settings": settings})
        self._graph = graph
        self._dialect = Dialect(dialect)
        self._on_notice = on_notice
        self._state = SyncState.CLEAN
        self._buffer: str | None = None
        self._snapshot: SchemaGraph | None = None
        self._error: ApplyError | None = None
        self._notices: list[str] = []
        self._validation: list[SqlValidationWarning] = []
        self._pending_dialect: Dialect | None = None
        self._pending_settings: dict[str, Any] = {}
        self._ddl = ""
        self._generation_warnings: list[GenerationWarning] = []
        self._regenerate()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        graph: SchemaGraph | None = None,
        on_notice: Callable[[str], None] | None = None,
    ) -> SyncController:
        """Build a controller using the configured dialect and defaults."""
        return cls(
            graph=graph,
            dialect=settings.default_dialect,
            settings=settings.schema_settings() if graph is None else None,
            on_notice=on_notice,
        )

    # -- read-only state --------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def graph(self) -> SchemaGraph:
        return self._graph

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def settings(self) -> SchemaSettings:
        return self._graph.settings

    @property
    def ddl(self) -> str:
        """DDL generated from the committed graph."""
        return self._ddl

    @property
    def buffer(self) -> str | None:
        """The unapplied edit text, or ``None`` when clean."""
        return self._buffer

    @property
    def text(self) -> str:
        """What the editor displays: the buffer while editing, else the DDL."""
        return self._buffer if self._buffer is not None else self._ddl

    @property
    def error(self) -> ApplyError | None:
        return self._error

    @property
    def notices(self) -> list[str]:
        return list(self._notices)

    @property
    def validation_warnings(self) -> list[SqlValidationWarning]:
        return list(self._validation)

    @property
    def generation_warnings(self) -> list[GenerationWarning]:
        return list(self._generation_warnings)

    @property
    def has_pending_settings(self) -> bool:
        return self._pending_dialect is not None or bool(self._pending_settings)

    # -- transitions --------------------------------------------------------------

    def edit(self) -> None:
        """Start editing: snapshot the committed graph."""
        self._require(SyncState.CLEAN, operation="edit")
        self._snapshot = self._graph
        self._buffer = self._ddl
        self._state = SyncState.EDITING
        logger.info("Sync state: clean -> editing")

    def cancel(self) -> None:
        """Discard the edit and restore the snapshot taken by :meth:`edit`.

        Graph changes committed in live mode are rolled back as well.
        Settings changed during the edit are applied afterwards.
        """
        self._require(SyncState.EDITING, SyncState.LIVE_EDITING, operation="cancel")
        previous = self._state
        if self._snapshot is not None:
            self._graph = self._snapshot
        self._leave_editing()
        self._apply_pending()
        self._regenerate()
        logger.info("Sync state: %s -> clean (cancelled)", previous.value)

    def toggle_live(self) -> None:
        self._require(SyncState.EDITING, SyncState.LIVE_EDITING, operation="toggle live editing")
        previous = self._state
        self._state = SyncState.LIVE_EDITING if previous is SyncState.EDITING else SyncState.EDITING
        logger.info("Sync state: %s -> %s", previous.value, self._state.value)

    def update_text(self, text: str) -> bool:
        """Replace the edit buffer.

        In live mode the text is also run through the pipeline and, on
        success, committed without leaving live mode.  Returns ``False``
        only when a live commit failed.
        """
        self._require(SyncState.EDITING, SyncState.LIVE_EDITING, operation="update text")
        self._buffer = text
        if self._state is not SyncState.LIVE_EDITING:
            return True
        merged = self._run_pipeline(text)
        if merged is None:
            return False
        self._commit(merged)
        return True

    def apply(self) -> bool:
        """Repair, parse and reconcile the buffer, then commit it.

        On success the deferred settings are applied, the DDL is
        regenerated and the controller returns to CLEAN.  On failure the
        state, graph, DDL and buffer are unchanged and :attr:`error` is set.
        """
        self._require(SyncState.EDITING, SyncState.LIVE_EDITING, operation="apply")
        merged = self._run_pipeline(self._buffer or "")
        if merged is None:
            return False
        previous = self._state
        self._graph = merged
        self._leave_editing()
        self._apply_pending()
        self._regenerate()
        logger.info("Sync state: %s -> clean (applied %d tables)", previous.value, len(self._graph.tables))
        return True

    # -- settings -----------------------------------------------------------------

    def set_dialect(self, dialect: Dialect | str) -> None:
        target = Dialect(dialect)
        if self._state is SyncState.CLEAN:
            self._dialect = target
            self._regenerate()
            return
        self._pending_dialect = target
        self._notify(DEFERRED_SETTINGS_NOTICE)

    def update_settings(self, **changes: Any) -> None:
        """Change rendering settings (``case_sensitive_identifiers``, ...).

        Raises
        ------
        ValueError
            If a key is not a :class:`SchemaSettings` field.
        """
        unknown = set(changes) - set(SchemaSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown schema settings: {', '.join(sorted(unknown))}")
        if self._state is SyncState.CLEAN:
            self._graph = self._graph.model_copy(update={"settings": self._merged_settings(changes)})
            self._regenerate()
            return
        self._pending_settings.update(changes)
        self._notify(DEFERRED_SETTINGS_NOTICE)

    def load_graph(self, graph: SchemaGraph) -> None:
        """Accept a graph from the visual editor as the new committed graph."""
        self._graph = graph
        if self._state is SyncState.CLEAN:
            self._regenerate()
        else:
            # Cancelling the edit falls back to this graph, not the older one.
            self._snapshot = graph
            logger.debug("Graph replaced while editing; DDL will follow on the next apply")

    def download(self, on: date | None = None) -> DdlDownload:
        """Offer the displayed DDL as ``schema_<dialect>_<date>.sql``."""
        return DdlDownload(
            filename=download_filename(self._dialect, on),
            mime_type=DDL_MIME_TYPE,
            content=self.text,
        )

    # -- internals ----------------------------------------------------------------

    def _require(self, *states: SyncState, operation: str) -> None:
        if self._state not in states:
            raise InvalidTransitionError(operation, self._state.value)

    def _notify(self, message: str) -> None:
        self._notices.append(message)
        logger.info(message)
        if self._on_notice is not None:
            self._on_notice(message)

    def _merged_settings(self, changes: dict[str, Any]) -> SchemaSettings:
        return SchemaSettings.model_validate({**self._graph.settings.model_dump(), **changes})

    def _apply_pending(self) -> bool:
        if not self.has_pending_settings:
            return False
        if self._pending_dialect is not None:
            self._dialect = self._pending_dialect
        if self._pending_settings:
            self._graph = self._graph.model_copy(update={"settings": self._merged_settings(self._pending_settings)})
        self._pending_dialect = None
        self._pending_settings = {}
        return True

    def _leave_editing(self) -> None:
        self._state = SyncState.CLEAN
        self._buffer = None
        self._snapshot = None
        self._error = None

    def _regenerate(self) -> None:
        result = generate_for_graph(self._dialect, self._graph)
        self._ddl = result.sql
        self._generation_warnings = result.warnings

    def _run_pipeline(self, text: str) -> SchemaGraph | None:
        self._validation = validate_sql_syntax(text)
        if not text.strip():
            self._error = ApplyError(message=EMPTY_SQL_MESSAGE)
            return None
        try:
            parsed = parse(repair(text))
        except SqlParseError as exc:
            logger.info("Apply failed: %s", exc)
            self._error = ApplyError(message=f"Failed to parse SQL: {exc}")
            return None
        self._error = None
        return reconcile(self._graph, parsed)

    def _commit(self, graph: SchemaGraph) -> None:
        self._graph = graph
        self._regenerate()
        logger.debug("Live edit committed %d tables", len(graph.tables))
