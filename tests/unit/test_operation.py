"""Operation boundary: scope binding, call forms and process declaration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
import pytest

from pathflow import (
    DefinitionError,
    Error,
    Failure,
    Operation,
    ScopeError,
    Success,
    config_scope,
    process,
)
from pathflow.errors import PathflowError

pytestmark = pytest.mark.unit


class Greet(Operation):
    scope = ("greeter",)
    result_key = "greeting"

    @process
    def steps(p):
        p.set("build", to="greeting")

    def build(self, state):
        return f"{self.greeter} {state['input']}"


class LoudGreet(Greet):
    scope = {"suffix": "!"}

    @process
    def steps(p):
        p.set("build", to="greeting")
        p.set("shout", to="greeting")

    def shout(self, state):
        return state["greeting"].upper() + self.suffix


# =============================================================================
# Scope
# =============================================================================


class TestScope:
    def test_required_values_are_bound_as_attributes(self) -> None:
        op = Greet(greeter="hi")

        assert op.greeter == "hi"
        assert dict(op.context) == {"greeter": "hi"}

    def test_mapping_and_keyword_values_merge(self) -> None:
        op = LoudGreet({"greeter": "hi"}, suffix="?")

        assert op.context == {"greeter": "hi", "suffix": "?"}

    def test_missing_required_values_raise(self) -> None:
        with pytest.raises(ScopeError) as exc:
            Greet()

        assert exc.value.missing == ("greeter",)
        assert exc.value.hint is not None

    def test_subclass_scope_extends_parent_with_defaults(self) -> None:
        assert LoudGreet.scope_fields["suffix"] == "!"
        assert "greeter" in LoudGreet.scope_fields
        assert LoudGreet(greeter="hi").suffix == "!"
        assert "suffix" not in Greet.scope_fields

    def test_unknown_values_are_ignored_by_default(self) -> None:
        op = Greet(greeter="hi", stray=1)

        assert "stray" not in op.context
        assert not hasattr(op, "stray")

    def test_unknown_values_raise_under_strict_scope(self) -> None:
        with config_scope(strict_scope=True), pytest.raises(ScopeError) as exc:
            Greet(greeter="hi", stray=1)

        assert exc.value.unknown == ("stray",)

    def test_context_is_read_only(self) -> None:
        op = Greet(greeter="hi")
        with pytest.raises(TypeError):
            op.context["greeter"] = "bye"  # type: ignore[index]

    def test_scope_name_colliding_with_a_method_is_rejected(self) -> None:
        with pytest.raises(DefinitionError, match="collides"):

            class Broken(Operation):
                scope = ("call",)

    def test_declare_scope_after_definition(self) -> None:
        class Late(Operation):
            pass

        Late.declare_scope("store", limit=10)

        assert Late(store="s").limit == 10
        with pytest.raises(ScopeError):
            Late()

    def test_invalid_scope_declaration(self) -> None:
        with pytest.raises(DefinitionError):

            class Broken(Operation):
                scope = 42  # type: ignore[assignment]


# =============================================================================
# Calling
# =============================================================================


class TestCall:
    def test_instance_call_returns_the_result_key_entry(self) -> None:
        assert Greet(greeter="hi").call("ada") == Success("hi ada")
        assert LoudGreet(greeter="hi").call("ada") == Success("HI ADA!")

    def test_instances_are_callable(self) -> None:
        assert Greet(greeter="hi")("ada") == Success("hi ada")

    def test_class_call_builds_from_a_context_mapping(self) -> None:
        assert Greet.call({"greeter": "yo"}, "bob") == Success("yo bob")

    def test_class_call_with_block_dispatches_to_a_branch(self) -> None:
        def respond(on):
            on.success(lambda greeting: f"200 {greeting}")
            on.failure(lambda error: "500")

        assert Greet.call({"greeter": "yo"}, "bob", respond) == "200 yo bob"

    def test_class_call_missing_scope_raises(self) -> None:
        with pytest.raises(ScopeError):
            Greet.call({}, "bob")

    def test_own_call_replaces_the_process(self) -> None:
        class Double(Operation):
            def call(self, input):
                return self.success(input * 2)

        assert Double().call(2) == Success(4)
        assert Double.call({}, 3) == Success(6)

    def test_missing_process_raises_not_implemented(self) -> None:
        class Empty(Operation):
            pass

        with pytest.raises(NotImplementedError):
            Empty().call(None)

    def test_several_processes_are_rejected(self) -> None:
        with pytest.raises(DefinitionError, match="several processes"):

            class Twice(Operation):
                @process
                def first(p):
                    p.step("x")

                @process
                def second(p):
                    p.step("y")

    def test_define_process_after_definition(self) -> None:
        class Late(Operation):
            def answer(self, state):
                return 42

        Late.define_process(lambda p: p.set("answer"))

        assert Late().call(None) == Success(42)

    def test_result_at_changes_the_answer_key(self) -> None:
        class Pick(Operation):
            @process
            def steps(p):
                p.set(lambda state: 1, to="one")
                p.set(lambda state: 2, to="two")

        Pick.result_at("two")

        assert Pick().call(None) == Success(2)

    def test_default_result_key_is_value(self) -> None:
        class Plain(Operation):
            pass

        assert Plain.result_key == "value"

    def test_repr_lists_scope_names(self) -> None:
        assert repr(LoudGreet(greeter="hi")) == "LoudGreet(greeter, suffix)"

    def test_unknown_named_method_surfaces_at_call(self) -> None:
        class Typo(Operation):
            @process
            def steps(p):
                p.set("nope")

        with pytest.raises(PathflowError, match="no method named 'nope'"):
            Typo().call(None)


# =============================================================================
# End-to-end with validation
# =============================================================================


class ProfileForm(BaseModel):
    name: str


class CreateProfile(Operation, plugins=("validation",)):
    scope = ("repository", "notifier")
    result_key = "profile"

    @process
    def steps(p):
        p.set("validate", to="params")
        p.set("build_profile", to="profile")
        p.step("notify")

    def build_profile(self, state):
        return self.repository.build(state["params"])

    def notify(self, state):
        self.notifier.deliver(state.as_dict())


CreateProfile.form(ProfileForm)


def test_invalid_input_fails_with_details_and_skips_side_effects(
    repository: Any, mailer: Any
) -> None:
    outcome = CreateProfile(repository=repository, notifier=mailer).call({})

    assert outcome == Failure(
        Error("validation", details={"name": ["is missing"]})
    )
    assert repository.built == []
    assert mailer.sent == []


def test_valid_input_runs_every_step(repository: Any, mailer: Any) -> None:
    outcome = CreateProfile(repository=repository, notifier=mailer).call(
        {"name": "Ada", "extra": "ignored"}
    )

    assert outcome == Success({"id": 1, "name": "Ada"})
    (delivered,) = mailer.sent
    assert delivered["input"] == {"name": "Ada", "extra": "ignored"}
    assert delivered["params"] == {"name": "Ada"}
    assert delivered["profile"] == {"id": 1, "name": "Ada"}
    assert delivered["repository"] is repository
