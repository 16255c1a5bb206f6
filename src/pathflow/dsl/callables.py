"""Resolution of directive targets into plain callables.

A directive target is one of three variants, checked in order:

- ``Closure``: a function marked with :func:`bind`; it receives the owning
  operation explicitly as its first argument.
- ``NamedMethod``: a string naming a method on the operation.
- ``Invocable``: any other callable, used as-is.

Targets are classified once when a process is compiled and bound to an
operation instance on every run.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import functools
from typing import Any

from pathflow.errors import DefinitionError

type Target = NamedMethod | Closure | Invocable


@dataclass(frozen=True, slots=True)
class Closure:
    fn: Callable[..., Any]

    def bind(self, operation: Any) -> Callable[..., Any]:
        return functools.partial(self.fn, operation)

    def __call__(self, operation: Any, *args: Any, **kwargs: Any) -> Any:
        return self.fn(operation, *args, **kwargs)


@dataclass(frozen=True, slots=True)
class NamedMethod:
    name: str

    def bind(self, operation: Any) -> Callable[..., Any]:
        method = getattr(operation, self.name, None)
        if not callable(method):
            raise DefinitionError(
                f"{type(operation).__name__} has no method named '{self.name}'",
                hint="Named directive targets must be methods of the operation.",
            )
        return method


@dataclass(frozen=True, slots=True)
class Invocable:
    fn: Callable[..., Any]

    def bind(self, operation: Any) -> Callable[..., Any]:
        del operation
        return self.fn


def bind(fn: Callable[..., Any]) -> Closure:
    """Mark ``fn`` to be called with the operation as its first argument.

    Example:
        p.set(bind(lambda op, state: op.repository.fetch(state["input"])))
    """
    if not callable(fn):
        raise DefinitionError(f"bind() expects a callable, got {fn!r}")
    return Closure(fn)


def classify(target: Any) -> Target:
    """Return the tagged variant for a raw directive target."""
    if isinstance(target, Closure | NamedMethod | Invocable):
        return target
    if isinstance(target, str):
        if not target.isidentifier():
            raise DefinitionError(f"Invalid method name for directive target: {target!r}")
        return NamedMethod(target)
    if callable(target):
        return Invocable(target)
    raise DefinitionError(
        f"Directive target must be a method name or a callable, got {target!r}",
        hint="Pass 'method_name', a function, or bind(fn).",
    )


def resolve(target: Any, operation: Any) -> Callable[..., Any]:
    """Classify ``target`` and bind it to ``operation``."""
    return classify(target).bind(operation)


__all__ = [
    "Closure",
    "Invocable",
    "NamedMethod",
    "Target",
    "bind",
    "classify",
    "resolve",
]
