"""Step engine: runs a compiled process against one operation call.

A ``DSL`` instance wraps exactly one ``Result[State]`` and advances it with
each directive. Once the chain holds a Failure, every later directive is a
no-op because all primitives go through ``then``/``tee``.

Each Operation subclass owns a subclass of ``DSL``; plugins add directives
to that subclass only. Exceptions raised by step callables are not caught:
expected business failures are Failure values, anything raised is a defect.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import logging
from typing import TYPE_CHECKING, Any

from pathflow.config import Config, current_config
from pathflow.core.result import Failure, Result, Success
from pathflow.core.result import result as wrap
from pathflow.core.state import State
from pathflow.telemetry import TelemetryContextProtocol, telemetry_for

from .callables import Invocable, resolve
from .process import Directive, directive, directive_spec

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from pathflow.operation import Operation

log = logging.getLogger(__name__)


class DSL:
    """Run state of one operation call plus the directive primitives."""

    def __init__(
        self, operation: Operation, input: Any, *, config: Config | None = None
    ) -> None:
        self._operation = operation
        self._config = config if config is not None else current_config()
        self._telemetry = telemetry_for(self._config)
        state = State.build(
            operation.context, input, result_key=operation.result_key
        )
        self._result: Result[Any, Any] = Success(state)

    @classmethod
    def directives(cls) -> tuple[str, ...]:
        """Names of the directives available on this DSL type."""
        return tuple(
            sorted(
                name
                for name in dir(cls)
                if not name.startswith("_")
                and directive_spec(getattr(cls, name, None)) is not None
            )
        )

    @property
    def operation(self) -> Operation:
        return self._operation

    @property
    def telemetry(self) -> TelemetryContextProtocol:
        return self._telemetry

    @property
    def result(self) -> Result[Any, Any]:
        """The chain's current ``Result[State]``."""
        return self._result

    def run(self, process: Iterable[Directive]) -> Result[Any, Any]:
        for item in process:
            self._execute(item)
        return self._result

    def _execute(self, item: Directive) -> None:
        kwargs = dict(item.kwargs)
        if item.body is not None:
            kwargs["body"] = item.body
        trace = self._config.trace and isinstance(self._result, Success)
        if trace:
            log.debug("%s: running %r", type(self._operation).__name__, item)
        with self._telemetry(item.name):
            getattr(self, item.name)(*item.args, **kwargs)
        if trace and isinstance(self._result, Failure):
            log.debug(
                "%s: chain failed at %r with %r",
                type(self._operation).__name__,
                item,
                self._result.error,
            )

    def _callable(self, target: Any) -> Callable[..., Any]:
        return resolve(target, self._operation)

    def _nested(self, state: State) -> DSL:
        """Copy of this run starting from a copy of ``state``."""
        twin = copy.copy(self)
        twin._result = Success(state.copy())
        return twin

    def _as_state(self, value: Any) -> Any:
        if isinstance(value, Mapping) and not isinstance(value, State):
            return State(value, result_key=self._operation.result_key)
        return value

    # --- Directives ---

    @directive(callables=("target",))
    def step(self, target: Any, *args: Any, **kwargs: Any) -> None:
        """Run ``target(state, *args, **kwargs)`` for its effect; keep the state."""
        fn = self._callable(target)
        self._result = self._result.tee(lambda state: fn(state, *args, **kwargs))

    @directive(callables=("target",))
    def set(
        self, target: Any, *args: Any, to: str | None = None, **kwargs: Any
    ) -> None:
        """Store ``target(state, *args, **kwargs)`` under ``to`` (default: result key)."""
        fn = self._callable(target)
        key = to if to is not None else self._operation.result_key

        def assign(state: State) -> Result[Any, Any]:
            return wrap(fn(state, *args, **kwargs)).then(
                lambda value: state.update({key: value})
            )

        self._result = self._result.then(assign)

    @directive(callables=("target",))
    def map(self, target: Any) -> None:
        """Replace the whole state with what ``target(state)`` returns."""
        fn = self._callable(target)
        self._result = self._result.then(fn).then(self._as_state)

    @directive(callables=("continuation",), body=True)
    def sequence(self, continuation: Any, *, body: tuple[Directive, ...] = ()) -> None:
        """Hand ``continuation`` a function that runs ``body`` as a nested chain.

        ``continuation(run_body, state)`` decides whether to call ``run_body()``.
        When it does, the nested chain starts from a copy of the current state
        and its final Result replaces the outer one. The continuation's own
        return value is ignored; without ``run_body()`` the state is unchanged.
        """
        fn = self._callable(continuation)

        def with_body(state: State) -> None:
            def run_body() -> Result[Any, Any]:
                self._result = self._nested(state).run(body)
                return self._result

            fn(run_body, state)

        self._result.then(with_body)

    @directive(callables=("condition",), body=True)
    def guard(self, condition: Any, *, body: tuple[Directive, ...] = ()) -> None:
        """Run ``body`` as a nested chain only when ``condition(state)`` holds."""
        cond = self._callable(condition)
        self.sequence(
            Invocable(lambda run_body, state: run_body() if cond(state) else None),
            body=body,
        )


__all__ = ["DSL"]
