"""Graph and DDL synchronisation state machine."""

from sync_engine.sync.controller import (
    DEFERRED_SETTINGS_NOTICE,
    EMPTY_SQL_MESSAGE,
    SyncController,
    SyncState,
)

__all__ = [
    "DEFERRED_SETTINGS_NOTICE",
    "EMPTY_SQL_MESSAGE",
    "SyncController",
    "SyncState",
]
