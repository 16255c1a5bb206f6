"""Structured business error carried by ``Failure``."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import dataclasses
from typing import Any, ClassVar


def humanize(kind: str) -> str:
    """Turn an error kind into a readable sentence fragment.

    ``"not_found"`` becomes ``"Not found"``.
    """
    text = kind.replace("_", " ").strip()
    if text.endswith(" id"):
        text = text[: -len(" id")]
    return text[:1].upper() + text[1:]


@dataclasses.dataclass(frozen=True)
class Error:
    """A failure description: what kind, a message, and per-field details.

    ``kind`` is the dispatch key for presentation code downstream. When no
    ``message`` is given, the class-level ``default_messages`` mapping is
    consulted before falling back to a humanized kind.
    """

    default_messages: ClassVar[dict[str, str]] = {}

    kind: str
    message: str | None = None
    details: Mapping[str, Sequence[str]] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", str(self.kind))
        if self.message is None:
            object.__setattr__(self, "message", self._default_message())
        object.__setattr__(
            self,
            "details",
            {
                str(field): [msgs] if isinstance(msgs, str) else list(msgs)
                for field, msgs in (self.details or {}).items()
            },
        )

    def _default_message(self) -> str:
        return type(self).default_messages.get(self.kind) or humanize(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """External representation consumed by responders and presenters."""
        return {
            "kind": self.kind,
            "message": self.message,
            "details": {field: list(msgs) for field, msgs in self.details.items()},
        }

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


__all__ = ["Error", "humanize"]
