"""Plugins shipped with pathflow.

Register them by short name on an operation class::

    class UpdateProfile(Operation, plugins=("simple_auth", "validation")):
        ...

    # or after definition
    UpdateProfile.plugin("records")

Available plugins:
- base: Result helpers and ``result_at``; registered on every operation.
- simple_auth: ``authorization`` rule, ``authorize`` step, ``forbidden`` errors.
- validation: Pydantic-backed input validation producing ``validation`` errors.
- records: fetch records through a repository, ``not_found`` on absence.

Plugin modules are imported on registration only; this package does not
import them eagerly.
"""
