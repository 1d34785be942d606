"""Pipeline profiling."""

from sync_engine.telemetry.profiling import (
    ProfileCollector,
    ProfileResult,
    profile_operation,
    set_profiling_enabled,
)

__all__ = [
    "ProfileCollector",
    "ProfileResult",
    "profile_operation",
    "set_profiling_enabled",
]
