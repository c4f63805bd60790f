from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a fallible store operation.

    Exactly one of ``value`` / ``error`` is meaningful; check ``ok`` before
    reading ``value``.
    """
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Result":
        return cls(error=error)

    def fold(self, on_ok: Callable[[T], R], on_error: Callable[[Exception], R]) -> R:
        if self.ok:
            return on_ok(self.value)
        return on_error(self.error)

    def value_or(self, default: T) -> T:
        return self.value if self.ok else default
