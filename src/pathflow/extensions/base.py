"""Base plugin registered on every operation.

Contributes the Result helpers operations use inside their methods and the
``result_at`` class macro. The directive primitives themselves live on
``pathflow.dsl.DSL``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pathflow.core.error import Error
from pathflow.core.result import Failure, Result, Success
from pathflow.core.result import result as wrap_result

DEFAULT_RESULT_KEY = "value"


class ClassMethods:
    def result_at(cls, key: str) -> None:
        """Read the operation's answer from ``key`` instead of ``"value"``."""
        cls.result_key = key


class InstanceMethods:
    def success(self, value: Any) -> Success[Any]:
        return Success(value)

    def failure(self, error: Any) -> Failure[Any]:
        return Failure(error)

    def result(self, obj: Any) -> Result[Any, Any]:
        return wrap_result(obj)

    wrap = result

    def error(
        self,
        kind: str,
        message: str | None = None,
        details: Mapping[str, Sequence[str]] | None = None,
    ) -> Failure[Error]:
        """Build a Failure carrying an ``Error`` of ``kind``."""
        return Failure(Error(kind, message=message, details=details or {}))

    def wrap_if_present(
        self,
        value: Any,
        kind: str = "not_found",
        message: str | None = None,
        details: Mapping[str, Sequence[str]] | None = None,
    ) -> Result[Any, Error]:
        """Success(value), or a ``not_found`` Failure when ``value`` is None."""
        if value is None:
            return self.error(kind, message=message, details=details)
        return Success(value)


def apply(operation_cls: type) -> None:
    operation_cls.result_key = DEFAULT_RESULT_KEY
