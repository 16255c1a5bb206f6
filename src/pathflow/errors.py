"""Exception hierarchy for pathflow.

These exceptions signal programming errors: bad declarations, missing
dependencies, misuse of a Result. Expected business failures never raise;
they travel as ``Failure(Error(...))`` values through the operation chain.
"""

from __future__ import annotations


class PathflowError(Exception):
    """Base exception for all pathflow errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint

    def __str__(self) -> str:
        msg = super().__str__()
        return f"{msg}. {self.hint}" if self.hint else msg


class ConfigurationError(PathflowError):
    """Configuration validation or resolution failed."""


class DefinitionError(PathflowError):
    """An operation, process description or callable was declared incorrectly."""


class ScopeError(PathflowError):
    """Scope dependencies supplied to an operation do not match its declaration."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        missing: tuple[str, ...] = (),
        unknown: tuple[str, ...] = (),
    ) -> None:
        super().__init__(message, hint=hint)
        self.missing = missing
        self.unknown = unknown


class PluginError(PathflowError):
    """A plugin could not be located or does not follow the plugin contract."""


class ResultAccessError(PathflowError):
    """``value`` or ``error`` was read on the wrong Result variant."""


class ResponderError(PathflowError):
    """No responder branch matched the operation result."""


__all__ = [
    "ConfigurationError",
    "DefinitionError",
    "PathflowError",
    "PluginError",
    "ResponderError",
    "ResultAccessError",
    "ScopeError",
]
