"""Pathflow: railway-style business operations.

Public API:
    - Operation: base class; declare ``scope`` and a ``@process``
    - process, bind, directive: process descriptions and custom directives
    - Success, Failure, Error, State: values flowing through a call
    - Responder: branch on a result in the class-level ``call`` form
    - Config, config_scope, resolve_config: configuration
"""

from __future__ import annotations

import logging

from pathflow.config import Config, config_scope, current_config, resolve_config
from pathflow.core import (
    Error,
    Failure,
    Result,
    State,
    Success,
    failure,
    result,
    success,
)
from pathflow.dsl import DSL, bind, directive, process
from pathflow.errors import (
    ConfigurationError,
    DefinitionError,
    PathflowError,
    PluginError,
    ResponderError,
    ResultAccessError,
    ScopeError,
)
from pathflow.operation import Operation
from pathflow.responder import Responder

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("pathflow")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("pathflow").addHandler(logging.NullHandler())

__all__ = [
    "DSL",
    "Config",
    "ConfigurationError",
    "DefinitionError",
    "Error",
    "Failure",
    "Operation",
    "PathflowError",
    "PluginError",
    "Responder",
    "ResponderError",
    "Result",
    "ResultAccessError",
    "ScopeError",
    "State",
    "Success",
    "bind",
    "config_scope",
    "current_config",
    "directive",
    "failure",
    "process",
    "resolve_config",
    "result",
    "success",
]
