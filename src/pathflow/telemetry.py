"""Telemetry context and reporter interfaces.

Operations time each call (``operation``) and each directive
(``operation.<directive>``; nested bodies sit below their block directive)
through a ``TelemetryContext``. When telemetry is disabled the context is a
shared, stateless no-op.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
import logging
import time
from types import TracebackType
from typing import TYPE_CHECKING, Any, Final, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from pathflow.config import Config

log = logging.getLogger(__name__)

_scope_stack_var: ContextVar[tuple[str, ...]] = ContextVar(
    "pathflow_scope_stack", default=()
)

DEPTH: Final[str] = "depth"
PARENT_SCOPE: Final[str] = "parent_scope"
METRIC_TYPE: Final[str] = "metric_type"


@runtime_checkable
class TelemetryReporter(Protocol):
    """Duck-typed protocol for telemetry reporters."""

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None: ...
    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None: ...


@dataclass(frozen=True, slots=True)
class _NoOpTelemetryContext:
    """Immutable, stateless no-op context."""

    def __call__(self, name: str, **metadata: Any) -> Self:  # noqa: ARG002
        return self

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        _: type[BaseException] | None,
        __: BaseException | None,
        ___: TracebackType | None,
    ) -> bool | None:
        return None

    @property
    def is_enabled(self) -> bool:
        return False

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        pass

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        pass


class _EnabledTelemetryContext:
    """Telemetry context that forwards timings and metrics to reporters."""

    __slots__ = ("reporters",)

    def __init__(self, *reporters: TelemetryReporter):
        self.reporters = reporters

    def __call__(
        self, name: str, **metadata: Any
    ) -> AbstractContextManager[_EnabledTelemetryContext]:
        return self._create_scope(name, **metadata)

    @contextmanager
    def _create_scope(
        self, name: str, **metadata: Any
    ) -> Iterator[_EnabledTelemetryContext]:
        if not name or not isinstance(name, str):
            raise ValueError("Scope name must be a non-empty string")

        scope_stack = _scope_stack_var.get()
        scope_path = ".".join((*scope_stack, name))
        token = _scope_stack_var.set((*scope_stack, name))
        start = time.perf_counter()
        try:
            yield self
        finally:
            duration = time.perf_counter() - start
            _scope_stack_var.reset(token)
            built = {
                DEPTH: len(scope_stack),
                PARENT_SCOPE: ".".join(scope_stack) if scope_stack else None,
            }
            self._emit("record_timing", scope_path, duration, {**built, **metadata})

    def metric(self, name: str, value: Any, **metadata: Any) -> None:
        scope_stack = _scope_stack_var.get()
        scope_path = ".".join((*scope_stack, name))
        built = {
            DEPTH: len(scope_stack),
            PARENT_SCOPE: ".".join(scope_stack) if scope_stack else None,
        }
        self._emit("record_metric", scope_path, value, {**built, **metadata})

    def count(self, name: str, increment: int = 1, **metadata: Any) -> None:
        self.metric(name, increment, **{METRIC_TYPE: "counter"}, **metadata)

    def _emit(self, method: str, scope: str, value: Any, metadata: dict[str, Any]) -> None:
        for reporter in self.reporters:
            try:
                getattr(reporter, method)(scope, value, **metadata)
            except Exception as e:
                log.error(
                    "Telemetry reporter '%s' failed: %s",
                    type(reporter).__name__,
                    e,
                    exc_info=True,
                )

    @property
    def is_enabled(self) -> bool:
        return True


_NO_OP_SINGLETON = _NoOpTelemetryContext()

type TelemetryContextProtocol = _EnabledTelemetryContext | _NoOpTelemetryContext


def TelemetryContext(  # noqa: N802
    *reporters: TelemetryReporter, enabled: bool = False
) -> TelemetryContextProtocol:
    """Return a telemetry context.

    Disabled contexts are the shared no-op singleton. Enabled contexts without
    reporters get an in-memory ``MemoryReporter``.
    """
    if not enabled:
        return _NO_OP_SINGLETON
    return _EnabledTelemetryContext(*(reporters or (MemoryReporter(),)))


def telemetry_for(config: Config) -> TelemetryContextProtocol:
    """Build the telemetry context described by a resolved ``Config``."""
    return TelemetryContext(
        *config.telemetry_reporters, enabled=config.telemetry_enabled
    )


class MemoryReporter:
    """Reporter keeping bounded per-scope histories in memory."""

    def __init__(self, max_entries_per_scope: int = 1000):
        self.max_entries = max_entries_per_scope
        self.timings: dict[str, deque[tuple[float, dict[str, Any]]]] = {}
        self.metrics: dict[str, deque[tuple[Any, dict[str, Any]]]] = {}

    def record_timing(self, scope: str, duration: float, **metadata: Any) -> None:
        self.timings.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (duration, metadata)
        )

    def record_metric(self, scope: str, value: Any, **metadata: Any) -> None:
        self.metrics.setdefault(scope, deque(maxlen=self.max_entries)).append(
            (value, metadata)
        )

    def reset(self) -> None:
        self.timings.clear()
        self.metrics.clear()

    def as_dict(self) -> dict[str, Any]:
        """Return a snapshot of collected data."""
        return {
            "timings": {key: list(values) for key, values in self.timings.items()},
            "metrics": {key: list(values) for key, values in self.metrics.items()},
        }

    def get_report(self) -> str:
        lines = ["=== Telemetry Report ==="]
        for scope, values in sorted(self.timings.items()):
            durations = [v[0] for v in values]
            lines.append(
                f"{scope:<40} | Calls: {len(durations):<4} | "
                f"Avg: {sum(durations) / len(durations):.6f}s"
            )
        for scope, values in sorted(self.metrics.items()):
            total = sum(v[0] for v in values if isinstance(v[0], int | float))
            lines.append(f"{scope:<40} | Count: {len(values):<4} | Total: {total:,.0f}")
        return "\n".join(lines)


__all__ = [
    "MemoryReporter",
    "TelemetryContext",
    "TelemetryContextProtocol",
    "TelemetryReporter",
    "telemetry_for",
]
