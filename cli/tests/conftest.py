"""Shared fixtures for CLI tests.

Every command runs ``configure_logging``, which replaces the root logger's
handlers with one bound to the CliRunner's (short-lived) stderr.  The
autouse fixture below puts the original handlers back after each test.
"""

from __future__ import annotations

import logging

import pytest

from sync_engine.models.schema_graph import Column, ColumnType, ConstraintTag, SchemaGraph, Table
from sync_engine.telemetry.profiling import set_profiling_enabled


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    set_profiling_enabled(True)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch):
    for name in ("SCHEMASYNC_DEFAULT_DIALECT", "SCHEMASYNC_LOG_LEVEL", "SCHEMASYNC_STRUCTURED_LOGGING"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def users_graph() -> SchemaGraph:
    return SchemaGraph(
        tables=[
            Table(
                label="users",
                columns=[
                    Column(title="id", type=ColumnType.UUID, constraints=[ConstraintTag.PRIMARY]),
                    Column(title="email", type=ColumnType.VARCHAR, constraints=[ConstraintTag.UNIQUE]),
                    Column(title="created_at", type=ColumnType.TIMESTAMP, constraints=[ConstraintTag.NOT_NULL]),
                ],
            )
        ]
    )
