from __future__ import annotations

from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from pathflow.core.state import State

pytestmark = pytest.mark.unit

keys = st.text(alphabet="abcdef", min_size=1, max_size=3)
entries = st.dictionaries(keys, st.integers(), max_size=5)


def test_build_merges_context_with_input() -> None:
    state = State.build({"user": "ada"}, {"id": 1}, result_key="post")

    assert state == {"user": "ada", "input": {"id": 1}}
    assert state.result_key == "post"


def test_result_reads_the_result_key_or_none() -> None:
    state = State({"value": 4})

    assert state.result() == 4
    assert State({}, result_key="user").result() is None


def test_set_and_update_mutate_in_place_and_chain() -> None:
    state = State({"a": 1})

    assert state.set("b", 2) is state
    assert state.update({"c": 3}, d=4) is state
    assert state.as_dict() == {"a": 1, "b": 2, "c": 3, "d": 4}


def test_copy_does_not_share_the_entry_table() -> None:
    state = State({"a": 1}, result_key="a")
    twin = state.copy()

    twin["b"] = 2

    assert "b" not in state
    assert twin.result_key == "a"


def test_state_is_a_mutable_mapping() -> None:
    state = State({"a": 1, "b": 2})

    del state["a"]

    assert list(state) == ["b"]
    assert len(state) == 1
    assert state.get("missing") is None
    assert "b" in state


def test_equality_considers_result_key_between_states() -> None:
    assert State({"a": 1}) == State({"a": 1})
    assert State({"a": 1}, result_key="x") != State({"a": 1}, result_key="y")


@given(base=entries, partial=entries)
@settings(max_examples=30, deadline=None, derandomize=True)
def test_update_is_a_keywise_union(base: dict[str, Any], partial: dict[str, Any]) -> None:
    """Property: unmentioned keys survive; mentioned keys take the new value."""
    state = State(base).update(partial)

    assert set(state) == set(base) | set(partial)
    for key, value in state.items():
        assert value == (partial[key] if key in partial else base[key])
