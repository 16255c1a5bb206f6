"""Plugin loading and registration onto operation classes.

A plugin is any module or object exposing a subset of:

- ``ClassMethods``: namespace whose members become class-level attributes
  (plain functions are turned into classmethods);
- ``InstanceMethods``: namespace whose members become operation methods;
- ``DSLMethods``: namespace whose members become members of the operation
  class's own DSL type (mark directives with ``@directive``);
- ``apply(operation_cls, *args, **kwargs)``: setup hook run once after mixing.

Registration rules:

- members defined directly by the operation class win over plugin members;
  among plugins, the later registration wins;
- registering a plugin already present on the class (directly or through a
  parent) is a no-op, the setup hook included;
- everything is attached to the class it is registered on, so parents and
  sibling classes never see it and subclasses created later inherit it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
import importlib
import logging
import types
from typing import Any

from pathflow.errors import PluginError

log = logging.getLogger(__name__)

EXTENSIONS_PACKAGE = "pathflow.extensions"

_CAPABILITY_SETS = ("ClassMethods", "InstanceMethods", "DSLMethods")


@dataclass(frozen=True, slots=True)
class Plugin:
    """Normalized view of a plugin's capability sets."""

    name: str
    class_methods: type | None = None
    instance_methods: type | None = None
    dsl_methods: type | None = None
    setup: Callable[..., Any] | None = None

    @classmethod
    def from_object(cls, obj: Any) -> Plugin:
        name = getattr(obj, "__name__", None) or type(obj).__name__
        if isinstance(obj, type):
            name = f"{obj.__module__}.{obj.__qualname__}"
        setup = getattr(obj, "apply", None)
        plugin = cls(
            name=name,
            class_methods=getattr(obj, "ClassMethods", None),
            instance_methods=getattr(obj, "InstanceMethods", None),
            dsl_methods=getattr(obj, "DSLMethods", None),
            setup=setup if callable(setup) else None,
        )
        if not plugin.has_contributions:
            raise PluginError(
                f"Plugin {name!r} contributes nothing",
                hint=f"Define any of {', '.join(_CAPABILITY_SETS)} or an apply() hook.",
            )
        return plugin

    @property
    def has_contributions(self) -> bool:
        return any(
            (self.class_methods, self.instance_methods, self.dsl_methods, self.setup)
        )


def load_plugin(ref: str | Plugin | Any) -> Plugin:
    """Locate a plugin by short name, dotted module path, module or object.

    Short names resolve inside ``pathflow.extensions``: ``"simple_auth"``
    loads ``pathflow.extensions.simple_auth``.
    """
    if isinstance(ref, Plugin):
        return ref
    if isinstance(ref, str):
        module_name = ref if "." in ref else f"{EXTENSIONS_PACKAGE}.{ref}"
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name != module_name:
                raise
            raise PluginError(
                f"Plugin {ref!r} not found",
                hint=f"Expected an importable module named {module_name!r}.",
            ) from e
        return Plugin.from_object(module)
    if isinstance(ref, types.ModuleType | type) or hasattr(ref, "__dict__"):
        return Plugin.from_object(ref)
    raise PluginError(f"Cannot load a plugin from {ref!r}")


def registered_plugins(operation_cls: type) -> tuple[str, ...]:
    """Names of plugins registered on ``operation_cls`` or its parents.

    Parents come first. Each class records only its own registrations, so a
    plugin registered on a parent later is still seen by its subclasses.
    """
    names: dict[str, None] = {}
    for klass in reversed(operation_cls.__mro__):
        names.update(dict.fromkeys(klass.__dict__.get("_plugin_names", ())))
    return tuple(names)


def register_plugin(
    operation_cls: type, ref: str | Plugin | Any, *args: Any, **kwargs: Any
) -> bool:
    """Register a plugin on ``operation_cls``.

    Returns:
        True when the plugin was applied, False when it was already present.
    """
    plugin = load_plugin(ref)
    if plugin.name in registered_plugins(operation_cls):
        log.debug(
            "Plugin %s already registered on %s; skipping",
            plugin.name,
            operation_cls.__name__,
        )
        return False

    _mix(operation_cls, plugin.class_methods, plugin.name, as_classmethods=True)
    _mix(operation_cls, plugin.instance_methods, plugin.name)
    _mix(operation_cls.DSL, plugin.dsl_methods, plugin.name)

    own = operation_cls.__dict__.get("_plugin_names", ())
    operation_cls._plugin_names = (*own, plugin.name)
    if plugin.setup is not None:
        plugin.setup(operation_cls, *args, **kwargs)
    log.debug("Registered plugin %s on %s", plugin.name, operation_cls.__name__)
    return True


def _mix(
    target: type,
    namespace: type | None,
    plugin_name: str,
    *,
    as_classmethods: bool = False,
) -> None:
    if namespace is None:
        return
    owners: dict[str, str] = dict(target.__dict__.get("_plugin_members", {}))
    for name, member in vars(namespace).items():
        if name.startswith("__") and name.endswith("__"):
            continue
        if name in target.__dict__ and name not in owners:
            continue
        if as_classmethods and isinstance(member, types.FunctionType):
            member = classmethod(member)
        setattr(target, name, member)
        owners[name] = plugin_name
    target._plugin_members = owners  # type: ignore[attr-defined]


__all__ = [
    "EXTENSIONS_PACKAGE",
    "Plugin",
    "load_plugin",
    "register_plugin",
    "registered_plugins",
]
