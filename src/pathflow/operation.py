"""Operation: a unit of business logic built from directives.

Example:
    class CreateUser(Operation, plugins=("validation",)):
        scope = ("repository", "mailer")
        result_key = "user"

        @process
        def steps(p):
            p.set("validate", to="params")
            p.set("build_user")
            p.step("send_welcome")

        def build_user(self, state):
            return self.repository.create(**state["params"])

        def send_welcome(self, state):
            self.mailer.deliver(state["user"])

    result = CreateUser(repository=repo, mailer=mailer).call(params)
    # or, at class level: CreateUser.call({"repository": repo, ...}, params)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
import functools
import logging
from types import FunctionType, MappingProxyType, MethodType
from typing import Any, ClassVar, Final

from pathflow.config import current_config
from pathflow.core.result import Result
from pathflow.dsl.engine import DSL as BaseDSL
from pathflow.dsl.process import Process, ProcessDescription, process
from pathflow.errors import DefinitionError, ScopeError
from pathflow.extensions import base
from pathflow.registry import register_plugin, registered_plugins
from pathflow.responder import Responder

log = logging.getLogger(__name__)


class _Required:
    def __repr__(self) -> str:
        return "<required>"


REQUIRED: Final = _Required()


class _CallDescriptor:
    """``call`` bound per access: class-level runner or instance method.

    ``Op.call(context, input, block=None)`` builds an instance and runs it;
    ``op.call(input)`` runs the instance's own ``call`` implementation.
    """

    def __init__(self, fn: Callable[..., Result[Any, Any]]) -> None:
        self.fn = fn
        functools.update_wrapper(self, fn)

    def __get__(self, obj: Any, owner: type[Operation]) -> Callable[..., Any]:
        if obj is None:
            return functools.partial(_call_class, owner)
        return MethodType(self.fn, obj)


def _call_class(
    operation_cls: type[Operation],
    context: Mapping[str, Any] | None,
    input: Any,
    block: Callable[[Responder], Any] | None = None,
) -> Any:
    outcome = operation_cls(context or {}).call(input)
    if block is None:
        return outcome
    return Responder.respond(outcome, block)


def _normalize_scope(declared: Any, owner: str) -> dict[str, Any]:
    if isinstance(declared, str):
        declared = (declared,)
    if isinstance(declared, Mapping):
        fields = dict(declared)
    elif isinstance(declared, Iterable):
        fields = dict.fromkeys(declared, REQUIRED)
    else:
        raise DefinitionError(
            f"{owner}.scope must be a sequence of names or a mapping of defaults",
            hint="Use scope = ('user', 'repository') or scope = {'mailer': None}.",
        )
    for name in fields:
        if not isinstance(name, str) or not name.isidentifier():
            raise DefinitionError(f"Invalid scope name {name!r} on {owner}")
    return fields


class Operation:
    """Base class for operations.

    Subclasses declare:

    - ``scope``: names of the dependencies an instance needs, as a tuple
      (required) or a mapping of name to default (optional); merged with the
      parent's scope;
    - ``result_key``: state key read as the operation's answer;
    - a ``@process`` description, or their own ``call(self, input)``.

    ``plugins=`` in the class statement registers plugins before the process
    is compiled; entries are a plugin reference or a ``(ref, *args)`` tuple.
    """

    DSL: ClassVar[type[BaseDSL]] = type(
        "OperationDSL", (BaseDSL,), {"__module__": __name__}
    )
    result_key: ClassVar[str]
    scope: ClassVar[Iterable[str] | Mapping[str, Any]] = ()
    scope_fields: ClassVar[Mapping[str, Any]] = MappingProxyType({})
    process_directives: ClassVar[Process | None] = None
    _plugin_names: ClassVar[tuple[str, ...]] = ()

    def __init_subclass__(cls, *, plugins: Iterable[Any] = (), **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.DSL = type(
            f"{cls.__name__}DSL",
            (cls.DSL,),
            {"__module__": cls.__module__, "__qualname__": f"{cls.__qualname__}.DSL"},
        )
        if "scope" in cls.__dict__:
            cls.declare_scope(cls.__dict__["scope"])

        own_call = cls.__dict__.get("call")
        if isinstance(own_call, FunctionType):
            cls.call = _CallDescriptor(own_call)  # type: ignore[method-assign]

        descriptions = [
            (name, value)
            for name, value in cls.__dict__.items()
            if isinstance(value, ProcessDescription)
        ]
        for name, _ in descriptions:
            delattr(cls, name)
        if len(descriptions) > 1:
            names = ", ".join(name for name, _ in descriptions)
            raise DefinitionError(f"{cls.__name__} declares several processes: {names}")

        for entry in plugins:
            ref, *args = entry if isinstance(entry, tuple) else (entry,)
            cls.plugin(ref, *args)

        if descriptions:
            cls.define_process(descriptions[0][1])

    # --- Class-level declarations ---

    @classmethod
    def plugin(cls, ref: Any, *args: Any, **kwargs: Any) -> bool:
        """Register a plugin (short name, dotted path, module or object)."""
        return register_plugin(cls, ref, *args, **kwargs)

    @classmethod
    def plugins(cls) -> tuple[str, ...]:
        return registered_plugins(cls)

    @classmethod
    def declare_scope(cls, *names: Any, **defaults: Any) -> None:
        """Add scope dependencies: positional names are required.

        A single mapping or sequence positional argument is accepted as well,
        matching the ``scope`` class attribute forms.
        """
        own: dict[str, Any] = {}
        for declared in names:
            own.update(_normalize_scope(declared, cls.__name__))
        own.update(_normalize_scope(defaults, cls.__name__))
        for name in own:
            if name not in cls.scope_fields and hasattr(cls, name):
                raise DefinitionError(
                    f"Scope name '{name}' on {cls.__name__} collides with an existing attribute",
                    hint="Rename the dependency.",
                )
        cls.scope_fields = MappingProxyType({**cls.scope_fields, **own})

    @classmethod
    def define_process(cls, description: Callable[..., Any] | ProcessDescription) -> Process:
        """Compile a process description into this class's ``call``."""
        cls.process_directives = process(description).compile(cls.DSL)
        log.debug(
            "Compiled process for %s: %d directives",
            cls.__name__,
            len(cls.process_directives),
        )
        return cls.process_directives

    # --- Instances ---

    def __init__(self, context: Mapping[str, Any] | None = None, /, **values: Any) -> None:
        supplied = {**(context or {}), **values}
        fields = type(self).scope_fields
        missing = tuple(n for n, d in fields.items() if d is REQUIRED and n not in supplied)
        unknown = tuple(k for k in supplied if k not in fields)
        if missing:
            raise ScopeError(
                f"{type(self).__name__} is missing scope values: {', '.join(missing)}",
                hint=f"Declared scope: {', '.join(fields) or '<empty>'}.",
                missing=missing,
                unknown=unknown,
            )
        if unknown:
            if current_config().strict_scope:
                raise ScopeError(
                    f"{type(self).__name__} got undeclared scope values: {', '.join(unknown)}",
                    hint="Declare them in scope or disable strict_scope.",
                    unknown=unknown,
                )
            log.debug("%s ignoring undeclared scope values: %s", type(self).__name__, unknown)

        bound = {name: supplied.get(name, default) for name, default in fields.items()}
        self._context = MappingProxyType(bound)
        for name, value in bound.items():
            setattr(self, name, value)

    @property
    def context(self) -> Mapping[str, Any]:
        """Read-only view of the bound scope values."""
        return self._context

    def _call(self, input: Any) -> Result[Any, Any]:
        directives = type(self).process_directives
        if directives is None:
            raise NotImplementedError(
                f"{type(self).__name__} must declare a process or implement call()"
            )
        dsl = type(self).DSL(self, input, config=current_config())
        with dsl.telemetry("operation", operation=type(self).__qualname__):
            outcome = dsl.run(directives)
        return outcome.then(lambda state: state.result())

    call = _CallDescriptor(_call)

    def __call__(self, input: Any) -> Result[Any, Any]:
        return self.call(input)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({', '.join(self._context)})"


Operation.plugin(base)

__all__ = ["REQUIRED", "Operation"]
