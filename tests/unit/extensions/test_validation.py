from __future__ import annotations

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator
import pytest

from pathflow import DefinitionError, Operation, Success
from pathflow.extensions.validation import error_details

pytestmark = pytest.mark.unit


class Address(BaseModel):
    city: str


class SignUpForm(BaseModel):
    name: str
    age: int = Field(ge=18)
    address: Address | None = None


class SignUp(Operation, plugins=("validation",)):
    pass


SignUp.form(SignUpForm)


def test_valid_params_become_a_plain_dict() -> None:
    outcome = SignUp().validate_with({"name": "Ada", "age": "36"})

    assert outcome == Success({"name": "Ada", "age": 36, "address": None})


def test_missing_fields_are_reported_per_field() -> None:
    outcome = SignUp().validate_with({})

    assert outcome.error.kind == "validation"
    assert outcome.error.details == {"name": ["is missing"], "age": ["is missing"]}


def test_nested_fields_use_dotted_paths() -> None:
    outcome = SignUp().validate_with({"name": "Ada", "age": 20, "address": {}})

    assert outcome.error.details == {"address.city": ["is missing"]}


def test_constraint_messages_come_from_pydantic() -> None:
    outcome = SignUp().validate_with({"name": "Ada", "age": 3})

    (message,) = outcome.error.details["age"]
    assert "18" in message


def test_non_mapping_input_is_a_base_error() -> None:
    outcome = SignUp().validate_with("not a mapping")

    assert list(outcome.error.details) == ["base"]


def test_validate_reads_the_call_input() -> None:
    assert SignUp().validate({"input": {"name": "Ada", "age": 18}}).is_success


class CodeForm(BaseModel):
    code: str

    @field_validator("code")
    @classmethod
    def matches_expected(cls, value: str, info: ValidationInfo) -> str:
        if value != info.context["expected"]:
            raise ValueError("does not match")
        return value


class CheckCode(Operation, plugins=("validation",)):
    scope = ("expected",)


CheckCode.form(CodeForm)


def test_scope_values_reach_form_validators_as_context() -> None:
    op = CheckCode(expected="XXX")

    assert op.validate_with({"code": "XXX"}) == Success({"code": "XXX"})
    (message,) = op.validate_with({"code": "YYY"}).error.details["code"]
    assert "does not match" in message


def test_explicit_context_replaces_scope_values() -> None:
    op = CheckCode(expected="XXX")

    assert op.validate_with({"code": "YYY"}, context={"expected": "YYY"}).is_success


def test_missing_form_is_a_definition_error() -> None:
    class NoForm(Operation, plugins=("validation",)):
        pass

    with pytest.raises(DefinitionError, match="has no form"):
        NoForm().validate_with({})


def test_form_requires_a_model_class() -> None:
    with pytest.raises(DefinitionError):
        SignUp.form(dict)  # type: ignore[arg-type]


def test_error_details_groups_messages() -> None:
    with pytest.raises(ValidationError) as exc:
        SignUpForm.model_validate({"age": "x"})

    assert error_details(exc.value) == {
        "name": ["is missing"],
        "age": ["must be an integer"],
    }
