"""Result type for expected business failures.

Factories and mutators on the aggregates return ``Result`` instead of
raising.  A failed result carries a human-readable reason; a successful
one carries the produced value (or ``None`` for plain mutations).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from .errors import ResultError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either success-with-value or failure-with-reason."""

    ok: bool
    value: T | None = None
    error: str = ""

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> Result[Any]:
        if not error:
            raise ValueError("A failed Result needs a reason")
        return cls(ok=False, error=error)

    @property
    def is_success(self) -> bool:
        return self.ok

    @property
    def is_failure(self) -> bool:
        return not self.ok

    def unwrap(self) -> T:
        """Return the value, or raise ``ResultError`` on failure."""
        if not self.ok:
            raise ResultError(f"Unwrapped a failed result: {self.error}")
        return self.value  # type: ignore[return-value]

    def map(self, fn: Callable[[T], U]) -> Result[U]:
        """Apply *fn* to a successful value; pass failures through."""
        if not self.ok:
            return Result.failure(self.error)
        return Result.success(fn(self.value))  # type: ignore[arg-type]

    def __bool__(self) -> bool:
        return self.ok


def first_failure(*results: Result[Any]) -> Result[Any] | None:
    """Return the first failed result, or ``None`` if all succeeded."""
    for result in results:
        if not result.ok:
            return result
    return None
