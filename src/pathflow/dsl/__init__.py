"""Directive composition: target resolution, process compilation, step engine."""

from .callables import Closure, Invocable, NamedMethod, bind, classify, resolve
from .engine import DSL
from .process import (
    Directive,
    DirectiveSpec,
    Process,
    ProcessDescription,
    ProcessRecorder,
    directive,
    process,
)

__all__ = [
    "DSL",
    "Closure",
    "Directive",
    "DirectiveSpec",
    "Invocable",
    "NamedMethod",
    "Process",
    "ProcessDescription",
    "ProcessRecorder",
    "bind",
    "classify",
    "directive",
    "process",
    "resolve",
]
