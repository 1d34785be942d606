"""Timing of the synchronisation pipeline stages.

``@profile_operation(name)`` wraps a function with a ``perf_counter_ns``
timer.  Every call is recorded in the :class:`ProfileCollector` singleton and
logged at DEBUG level, which makes it easy to see how long repair, parse,
reconcile and generate take for a given document in live-edit mode.

Usage::

    from sync_engine.telemetry.profiling import profile_operation

    @profile_operation("ddl.parse")
    def parse(sql):
        ...
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_enabled = True


def set_profiling_enabled(enabled: bool) -> None:
    """Turn recording on or off process-wide.  Wrapped functions still run."""
    global _enabled  # noqa: PLW0603
    _enabled = enabled


@dataclass(frozen=True)
class ProfileResult:
    """Immutable record of a single profiled call."""

    operation: str
    duration_ms: float
    failed: bool = False


class ProfileCollector:
    """Thread-safe store of the most recent results per operation."""

    _instance: ProfileCollector | None = None
    _lock_cls = threading.Lock()

    def __init__(self, max_results: int = 100) -> None:
        self._max_results = max_results
        self._data: dict[str, deque[ProfileResult]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        """Return the module-level singleton, creating it if needed."""
        if cls._instance is None:
            with cls._lock_cls:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        with cls._lock_cls:
            cls._instance = None

    def record(self, result: ProfileResult) -> None:
        with self._lock:
            if result.operation not in self._data:
                self._data[result.operation] = deque(maxlen=self._max_results)
            self._data[result.operation].append(result)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Aggregate the stored results for *operation*.

        Returns ``None`` if nothing was recorded, otherwise
        ``{"operation", "count", "failures", "mean_ms", "min_ms", "max_ms"}``.
        """
        with self._lock:
            results = list(self._data.get(operation, ()))
        if not results:
            return None
        durations = [r.duration_ms for r in results]
        return {
            "operation": operation,
            "count": len(results),
            "failures": sum(1 for r in results if r.failed),
            "mean_ms": round(sum(durations) / len(durations), 3),
            "min_ms": round(min(durations), 3),
            "max_ms": round(max(durations), 3),
        }

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator that times a synchronous function under *name*."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            failed = True
            try:
                result = func(*args, **kwargs)
                failed = False
                return result
            finally:
                if _enabled:
                    duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                    ProfileCollector.get_instance().record(
                        ProfileResult(operation=name, duration_ms=round(duration_ms, 3), failed=failed)
                    )
                    logger.debug("PROFILE %s: %.3f ms%s", name, duration_ms, " (failed)" if failed else "")

        return wrapper  # type: ignore[return-value]

    return decorator
