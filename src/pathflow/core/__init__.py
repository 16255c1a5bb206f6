"""Core value types: Result, Error and State.

These modules have no knowledge of operations or plugins and perform no I/O.
"""

from .error import Error, humanize
from .result import Failure, Result, Success, failure, is_result, result, success
from .state import State

__all__ = [
    "Error",
    "Failure",
    "Result",
    "State",
    "Success",
    "failure",
    "humanize",
    "is_result",
    "result",
    "success",
]
