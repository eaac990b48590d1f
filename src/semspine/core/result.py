"""
Result envelope for consistent success/failure handling.

``Ok[T]`` / ``Err[T]`` make per-item success or failure explicit, which is what
partial compilation needs: every matching mapping rule yields its own result
and the caller decides what to do with a mix of plans and errors. The same
envelope carries per-plan execution outcomes, per-source discovery and drift
describes.

Manifesto:
    - **Explicit over implicit:** no hidden exceptions that callers might miss
    - **Batch-friendly:** collect results from many rules, split them at the
      end with ``partition_results()``

Examples:
    >>> from semspine.core.result import Ok, Err, partition_results
    >>> results = [Ok(1), Err(ValueError("bad")), Ok(2)]
    >>> values, errors = partition_results(results)
    >>> values
    [1, 2]
    >>> match results[1]:
    ...     case Err(error):
    ...         print(error)
    bad

Tags:
    result-pattern, error-handling, functional, semspine
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from semspine.core.errors import SemspineError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Failed result containing an exception."""

    error: Exception

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.error, SemspineError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[T]


def partition_results(
    results: list[Result[T]],
) -> tuple[list[T], list[Exception]]:
    """
    Partition results into successes and failures.

    Always returns both lists, letting the caller decide how to handle
    partial success.
    """
    values = []
    errors = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Err(error):
                errors.append(error)
    return values, errors


__all__ = [
    "Ok",
    "Err",
    "Result",
    "partition_results",
]
