"""Input validation plugin backed by Pydantic models.

Validation errors become ``Failure(Error(kind="validation"))`` whose details
map each field path to its messages::

    class SignUpForm(BaseModel):
        name: str
        email: str | None = None

    class SignUp(Operation, plugins=("validation",)):
        @process
        def steps(p):
            p.set("validate", to="params")
            p.set("create_user")

    SignUp.form(SignUpForm)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from pathflow.errors import DefinitionError

if TYPE_CHECKING:
    from pathflow.core.result import Result
    from pathflow.core.state import State

#: Messages replacing Pydantic's wording for a few error types.
MESSAGES: dict[str, str] = {
    "missing": "is missing",
    "string_type": "must be a string",
    "int_type": "must be an integer",
    "int_parsing": "must be an integer",
}

BASE_FIELD = "base"


def error_details(exc: ValidationError) -> dict[str, list[str]]:
    """Group a Pydantic ``ValidationError`` by dotted field path."""
    details: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or BASE_FIELD
        message = MESSAGES.get(err.get("type", ""), err.get("msg", "is invalid"))
        details.setdefault(field, []).append(message)
    return details


class ClassMethods:
    def form(cls, model: type[BaseModel]) -> None:
        """Validate input with ``model``."""
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise DefinitionError(
                f"form() expects a Pydantic model class, got {model!r}",
                hint="Subclass pydantic.BaseModel and pass the class.",
            )
        cls.form_class = model


class InstanceMethods:
    form_class: type[BaseModel] | None = None

    def validate_with(
        self, params: Any, context: Mapping[str, Any] | None = None
    ) -> Result[Any, Any]:
        """Success with the validated fields as a dict, else a validation error.

        ``context`` reaches the form's validators as ``info.context`` and
        defaults to the operation's bound scope values.
        """
        form = self.form_class
        if form is None:
            raise DefinitionError(
                f"{type(self).__name__} has no form",
                hint="Call form(Model) on the operation class.",
            )
        if isinstance(params, BaseModel):
            params = params.model_dump()
        try:
            validated = form.model_validate(
                dict(params) if isinstance(params, Mapping) else params,
                context=dict(self.context if context is None else context),
            )
        except ValidationError as e:
            return self.error("validation", details=error_details(e))
        return self.success(validated.model_dump())

    def validate(self, state: State) -> Result[Any, Any]:
        """Validate the call input; pair with ``set("validate", to="params")``."""
        return self.validate_with(state.get("input"))
