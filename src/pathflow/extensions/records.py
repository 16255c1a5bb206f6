"""Record-fetching plugin.

Loads a record through a repository and stores it under the operation's
result key. The repository is either an object or the name of a scope
dependency resolved per instance::

    class ShowUser(Operation, plugins=("records",)):
        scope = ("users",)

        @process
        def steps(p):
            p.map("fetch_model")

    ShowUser.model("users", name="user", search_by="id")

A repository only needs ``fetch(key) -> record | None``, looking records up
by the declared search field. ``fetch_by(column, value)`` is required only
for lookups by another column, and ``build(params)`` only by
``build_model_with``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from pathflow.core.error import humanize
from pathflow.errors import DefinitionError

if TYPE_CHECKING:
    from pathflow.core.result import Result
    from pathflow.core.state import State


@runtime_checkable
class Repository(Protocol):
    def fetch(self, key: Any) -> Any | None: ...


class ClassMethods:
    def model(
        cls,
        repository: Repository | str,
        *,
        name: str,
        search_by: str = "id",
        set_result_key: bool = True,
    ) -> None:
        """Declare the record this operation works on."""
        if not isinstance(repository, str) and not isinstance(repository, Repository):
            raise DefinitionError(
                f"{repository!r} does not implement fetch(key)",
                hint="Pass a repository object or the name of a scope dependency.",
            )
        cls.model_repository = repository
        cls.model_name = name
        cls.search_field = search_by
        if set_result_key:
            cls.result_key = name


class InstanceMethods:
    model_repository: Repository | str | None = None
    model_name: str | None = None
    search_field: str = "id"

    def _repository(self, override: Repository | str | None = None) -> Any:
        repository = override if override is not None else self.model_repository
        if isinstance(repository, str):
            repository = self.context.get(repository)
        if repository is None:
            raise DefinitionError(
                f"{type(self).__name__} has no repository",
                hint="Call model(repository, name=...) on the operation class.",
            )
        return repository

    def find_model_with(
        self,
        key: Any,
        repository: Repository | str | None = None,
        column: str | None = None,
    ) -> Any:
        """Look ``key`` up by the search field, or by ``column`` when given."""
        repo = self._repository(repository)
        if column is None or column == self.search_field:
            return repo.fetch(key)
        fetch_by = getattr(repo, "fetch_by", None)
        if fetch_by is None:
            raise DefinitionError(
                f"{repo!r} cannot look records up by {column!r}",
                hint="Implement fetch_by(column, value) on the repository.",
            )
        return fetch_by(column, key)

    def build_model_with(self, params: Mapping[str, Any]) -> Any:
        return self._repository().build(params)

    def fetch_model(
        self,
        state: State,
        from_: Repository | str | None = None,
        key: str | None = None,
        column: str | None = None,
        overwrite: bool = False,
    ) -> Result[Any, Any]:
        """Fetch the record named by the input's search field into the state.

        ``column`` looks the record up by another column for this call only;
        ``key`` names the input entry holding the value and defaults to the
        column searched. A record already in the state is kept unless
        ``overwrite`` is set.
        """
        name = self.model_name or self.result_key
        if not overwrite and state.get(name) is not None:
            return self.success(state)

        params = state.get("input")
        field = key or column or self.search_field
        lookup = params.get(field) if isinstance(params, Mapping) else None
        record = None if lookup is None else self.find_model_with(lookup, from_, column)
        return self.wrap_if_present(
            record, message=f"{humanize(name)} not found"
        ).then(lambda found: state.update({name: found}))
