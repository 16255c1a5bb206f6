"""Responder: pick the branch matching an operation result.

Used by the class-level ``Operation.call(context, input, block)`` form. The
block receives a responder and registers branches on it::

    def respond(on):
        on.success(lambda user: render(user))
        on.failure("not_found", lambda error: render_404())
        on.failure(lambda error: render_errors(error.details))

    CreateUser.call(ctx, params, respond)

Kind-specific failure branches win over the generic one. Exactly one branch
runs and its return value is returned.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any

from pathflow.core.result import Failure, Result
from pathflow.errors import ResponderError

log = logging.getLogger(__name__)

type Branch = Callable[[Any], Any]


class Responder:
    def __init__(self, result: Result[Any, Any]) -> None:
        self._result = result
        self._on_success: Branch | None = None
        self._on_failure: Branch | None = None
        self._on_kind: dict[str, Branch] = {}

    @classmethod
    def respond(
        cls, result: Result[Any, Any], block: Callable[[Responder], Any]
    ) -> Any:
        responder = cls(result)
        block(responder)
        return responder.dispatch()

    def success(self, fn: Branch | None = None) -> Any:
        """Register the success branch; usable as a decorator."""
        if fn is None:
            return self.success
        self._on_success = fn
        return fn

    def failure(self, kind: str | Branch | None = None, fn: Branch | None = None) -> Any:
        """Register a failure branch, optionally for one error kind.

        ``failure(fn)``, ``failure("kind", fn)`` and the decorator forms
        ``@on.failure`` / ``@on.failure("kind")`` are all accepted.
        """
        if callable(kind) and fn is None:
            self._on_failure = kind
            return kind
        if fn is None:
            return lambda branch: self.failure(kind, branch)
        if kind is None:
            self._on_failure = fn
        else:
            self._on_kind[str(kind)] = fn
        return fn

    def dispatch(self) -> Any:
        if isinstance(self._result, Failure):
            error = self._result.error
            kind = getattr(error, "kind", None)
            branch = self._on_kind.get(kind) if kind is not None else None
            if branch is None:
                branch = self._on_failure
            if branch is None:
                raise ResponderError(
                    f"No failure branch for {error!r}",
                    hint="Register on.failure(fn) or on.failure(kind, fn).",
                )
            log.debug("Responding to failure of kind %r", kind)
            return branch(error)

        if self._on_success is None:
            raise ResponderError(
                "No success branch registered",
                hint="Register on.success(fn).",
            )
        return self._on_success(self._result.value)


__all__ = ["Responder"]
