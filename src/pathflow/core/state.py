"""Per-call context threaded through an operation's directives."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any


class State(MutableMapping[str, Any]):
    """Mutable mapping of context entries plus the key holding the answer.

    A State is built once per call from the operation's bound scope values and
    the raw input (stored under ``"input"``). Steps merge into it in place;
    merges are key-wise unions, so keys a step does not mention survive.
    """

    __slots__ = ("_entries", "_result_key")

    def __init__(
        self,
        entries: Mapping[str, Any] | None = None,
        *,
        result_key: str = "value",
    ) -> None:
        self._entries: dict[str, Any] = dict(entries or {})
        self._result_key = result_key

    @classmethod
    def build(
        cls, context: Mapping[str, Any], input: Any, *, result_key: str
    ) -> State:
        """Merge bound context with the call input."""
        return cls({**context, "input": input}, result_key=result_key)

    @property
    def result_key(self) -> str:
        return self._result_key

    # --- Mapping protocol ---

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def __delitem__(self, key: str) -> None:
        del self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    # --- State operations ---

    def set(self, key: str, value: Any) -> State:
        self._entries[key] = value
        return self

    def update(self, partial: Mapping[str, Any] = (), /, **kwargs: Any) -> State:  # type: ignore[override]
        """Merge ``partial`` (then ``kwargs``) into the state; later keys win."""
        self._entries.update(partial, **kwargs)
        return self

    def result(self) -> Any:
        """Return the entry stored under the result key, or None."""
        return self._entries.get(self._result_key)

    def as_dict(self) -> dict[str, Any]:
        """Return a snapshot copy of the entries."""
        return dict(self._entries)

    def copy(self) -> State:
        """Return a shallow copy sharing values but not the entry table."""
        return type(self)(self._entries, result_key=self._result_key)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, State):
            return (
                self._entries == other._entries
                and self._result_key == other._result_key
            )
        if isinstance(other, Mapping):
            return self._entries == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"State({self._entries!r}, result_key={self._result_key!r})"


__all__ = ["State"]
