"""Result monad for operation chains.

Every step of an operation transforms a ``Result``. Two laws carry all the
guarantees the engine makes:

- left zero: ``failure(e).then(f)`` and ``failure(e).tee(f)`` return the
  original failure and never call ``f``;
- tee preserves value: ``success(v).tee(f)`` calls ``f(v)`` once and returns
  ``success(v)`` for any non-Failure answer, a Success included.

The one exception to the second law: when ``f`` returns a Failure, ``tee``
returns that Failure instead of ``success(v)``. This is how a ``step`` that
reports a business failure stops the chain.
"""

from __future__ import annotations

from collections.abc import Callable
import dataclasses
import typing

from pathflow.errors import ResultAccessError

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure")


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful outcome carrying a value."""

    value: TSuccess

    @property
    def error(self) -> typing.NoReturn:
        raise ResultAccessError(
            "Cannot read 'error' from a Success",
            hint="Branch on is_failure before reading the error.",
        )

    @property
    def is_success(self) -> bool:
        return True

    @property
    def is_failure(self) -> bool:
        return False

    def then(self, fn: Callable[[TSuccess], typing.Any]) -> Result[typing.Any, typing.Any]:
        """Apply ``fn`` to the value, flattening a returned Result."""
        return result(fn(self.value))

    def tee(self, fn: Callable[[TSuccess], typing.Any]) -> Result[typing.Any, typing.Any]:
        """Run ``fn`` for its effect and keep this Success.

        A Failure returned by ``fn`` is propagated instead.
        """
        follow = self.then(fn)
        return follow if isinstance(follow, Failure) else self

    def value_or(self, default: typing.Any) -> TSuccess:
        del default
        return self.value


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed outcome carrying an error (normally an ``Error``)."""

    error: TFailure

    @property
    def value(self) -> typing.NoReturn:
        raise ResultAccessError(
            f"Cannot read 'value' from a Failure ({self.error!r})",
            hint="Branch on is_success before reading the value.",
        )

    @property
    def is_success(self) -> bool:
        return False

    @property
    def is_failure(self) -> bool:
        return True

    def then(self, fn: Callable[[typing.Any], typing.Any]) -> Failure[TFailure]:
        del fn
        return self

    def tee(self, fn: Callable[[typing.Any], typing.Any]) -> Failure[TFailure]:
        del fn
        return self

    def value_or(self, default: typing.Any) -> typing.Any:
        return default


Result = Success[TSuccess] | Failure[TFailure]


def success[T](value: T) -> Success[T]:
    return Success(value)


def failure[E](error: E) -> Failure[E]:
    return Failure(error)


def is_result(obj: object) -> typing.TypeGuard[Result[typing.Any, typing.Any]]:
    return isinstance(obj, Success | Failure)


def result(obj: typing.Any) -> Result[typing.Any, typing.Any]:
    """Wrap ``obj`` as a Success unless it already is a Result."""
    if isinstance(obj, Success | Failure):
        return obj
    return Success(obj)


__all__ = [
    "Failure",
    "Result",
    "Success",
    "failure",
    "is_result",
    "result",
    "success",
]
