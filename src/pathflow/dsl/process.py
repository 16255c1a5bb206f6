"""Compilation of process descriptions into immutable directive tuples.

A process description is a function that receives a recorder and calls
directives on it::

    @process
    def steps(p):
        p.step("authorize")
        p.set("fetch_profile", to="profile")
        with p.guard(lambda state: state["profile"] is None):
            p.set("build_profile", to="profile")

Every call records one :class:`Directive`. Using a recorded directive as a
context manager collects the nested calls as its body. Names are checked
against the DSL type of the operation class being compiled, so a typo or a
primitive from an unregistered plugin fails at class definition time.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
import inspect
from types import MappingProxyType, TracebackType
from typing import Any, Literal

from pathflow.errors import DefinitionError

from .callables import classify

DIRECTIVE_ATTR = "__pathflow_directive__"


@dataclass(frozen=True, slots=True)
class DirectiveSpec:
    """How the recorder treats a DSL method's arguments."""

    callables: tuple[str, ...] = ()
    takes_body: bool = False


def directive[F: Callable[..., Any]](
    fn: F | None = None,
    *,
    callables: tuple[str, ...] = (),
    body: bool = False,
) -> Any:
    """Mark a DSL method as a directive usable inside process descriptions.

    Args:
        callables: Parameter names holding directive targets; they are
            classified when the process is compiled.
        body: Whether the directive accepts a nested body (``with`` block),
            delivered to the method as the ``body`` keyword.
    """

    def decorate(method: F) -> F:
        setattr(method, DIRECTIVE_ATTR, DirectiveSpec(tuple(callables), body))
        return method

    return decorate(fn) if fn is not None else decorate


def directive_spec(obj: Any) -> DirectiveSpec | None:
    return getattr(obj, DIRECTIVE_ATTR, None)


@dataclass(frozen=True, slots=True)
class Directive:
    """One compiled step of a process."""

    name: str
    args: tuple[Any, ...] = ()
    kwargs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    body: tuple[Directive, ...] | None = None

    def __repr__(self) -> str:
        parts = [repr(a) for a in self.args]
        parts += [f"{k}={v!r}" for k, v in self.kwargs.items()]
        suffix = f" [{len(self.body)} nested]" if self.body is not None else ""
        return f"<{self.name}({', '.join(parts)}){suffix}>"


type Process = tuple[Directive, ...]


class _PendingDirective:
    """A directive being recorded; becomes a context manager for its body."""

    def __init__(
        self,
        recorder: ProcessRecorder,
        name: str,
        spec: DirectiveSpec,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        self._recorder = recorder
        self._spec = spec
        self.name = name
        self.args = args
        self.kwargs = kwargs
        self.body: list[_PendingDirective] | None = None

    def __enter__(self) -> ProcessRecorder:
        if not self._spec.takes_body:
            raise DefinitionError(
                f"Directive '{self.name}' does not take a nested body",
                hint="Only block directives such as sequence and guard open a with block.",
            )
        if self.body is not None:
            raise DefinitionError(f"Directive '{self.name}' already has a body")
        self.body = []
        self._recorder._stack.append(self.body)
        return self._recorder

    def __exit__(
        self,
        _: type[BaseException] | None,
        __: BaseException | None,
        ___: TracebackType | None,
    ) -> Literal[False]:
        self._recorder._stack.pop()
        return False

    def freeze(self) -> Directive:
        body = None
        if self.body is not None:
            body = tuple(d.freeze() for d in self.body)
        elif self._spec.takes_body:
            body = ()
        return Directive(self.name, self.args, MappingProxyType(self.kwargs), body)


class ProcessRecorder:
    """Records directive calls against the directives a DSL type offers."""

    def __init__(self, dsl_cls: type) -> None:
        self._dsl_cls = dsl_cls
        self._root: list[_PendingDirective] = []
        self._stack: list[list[_PendingDirective]] = [self._root]

    def __getattr__(self, name: str) -> Callable[..., _PendingDirective]:
        if name.startswith("_"):
            raise AttributeError(name)
        method = getattr(self._dsl_cls, name, None)
        spec = directive_spec(method)
        if spec is None:
            available = ", ".join(sorted(self._dsl_cls.directives()))
            raise DefinitionError(
                f"Unknown directive '{name}'",
                hint=f"Available directives: {available}. Register the plugin "
                "providing it before the process is compiled.",
            )

        def record(*args: Any, **kwargs: Any) -> _PendingDirective:
            args, kwargs = _prepare_arguments(name, method, spec, args, kwargs)
            pending = _PendingDirective(self, name, spec, args, kwargs)
            self._stack[-1].append(pending)
            return pending

        return record

    def compile(self) -> Process:
        if len(self._stack) != 1:
            raise DefinitionError("Process description left a nested block open")
        return tuple(d.freeze() for d in self._root)


def _prepare_arguments(
    name: str,
    method: Callable[..., Any],
    spec: DirectiveSpec,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> tuple[tuple[Any, ...], dict[str, Any]]:
    """Check arity and classify target arguments of one directive call."""
    if "body" in kwargs and spec.takes_body:
        raise DefinitionError(
            f"Pass the body of '{name}' as a with block, not as a keyword"
        )
    try:
        bound = inspect.signature(method).bind(None, *args, **kwargs)
    except TypeError as e:
        raise DefinitionError(f"Invalid arguments for directive '{name}': {e}") from e
    for param in spec.callables:
        if param in bound.arguments:
            bound.arguments[param] = classify(bound.arguments[param])
    return tuple(bound.args[1:]), dict(bound.kwargs)


@dataclass(frozen=True, slots=True)
class ProcessDescription:
    """Marker produced by :func:`process`; compiled by the owning operation."""

    fn: Callable[[ProcessRecorder], Any]

    def compile(self, dsl_cls: type) -> Process:
        recorder = ProcessRecorder(dsl_cls)
        self.fn(recorder)
        return recorder.compile()


def process(fn: Callable[[ProcessRecorder], Any]) -> ProcessDescription:
    """Declare the directive sequence of an operation class."""
    if isinstance(fn, ProcessDescription):
        return fn
    if not callable(fn):
        raise DefinitionError(f"process() expects a function, got {fn!r}")
    return ProcessDescription(fn)


__all__ = [
    "Directive",
    "DirectiveSpec",
    "Process",
    "ProcessDescription",
    "ProcessRecorder",
    "directive",
    "directive_spec",
    "process",
]
