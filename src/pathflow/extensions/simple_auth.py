"""Authorization plugin.

Declare the rule with ``authorization`` after the class statement, or define
``authorized(self, *objs)`` directly on the operation::

    class DeletePost(Operation, plugins=("simple_auth",)):
        scope = ("user",)

        @process
        def steps(p):
            p.set("find_post", to="post")
            p.step("authorize", "post")
            p.set("delete_post")

    DeletePost.authorization(lambda op, post: post.author_id == op.user.id)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathflow.core.result import Result
    from pathflow.core.state import State


class ClassMethods:
    def authorization(cls, rule: Callable[..., Any]) -> None:
        """Install ``rule(operation, *objs) -> bool`` as ``authorized``."""

        def authorized(self: Any, *objs: Any) -> bool:
            return bool(rule(self, *objs))

        cls.authorized = authorized


class InstanceMethods:
    def authorized(self, *objs: Any) -> bool:
        return True

    def authorize_with(self, *objs: Any) -> Result[Any, Any]:
        """Success carrying ``objs`` (unpacked when single), else ``forbidden``."""
        subject = objs[0] if len(objs) == 1 else objs
        if self.authorized(*objs):
            return self.success(subject)
        return self.error("forbidden")

    def authorize(
        self, state: State, using: str | Sequence[str] | None = None
    ) -> Result[Any, Any]:
        """Authorize against the state entries named by ``using``."""
        if using is None:
            objs: tuple[Any, ...] = ()
        elif isinstance(using, str):
            objs = (state.get(using),)
        else:
            objs = tuple(state.get(key) for key in using)
        return self.authorize_with(*objs).then(lambda _: state)
