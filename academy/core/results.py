"""Explicit success/failure values returned by write operations."""

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from academy.core.exceptions import ServiceError
from academy.core.validation import Errors

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ServiceError] = None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ServiceError) -> "Result[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def __bool__(self) -> bool:
        return self.ok

    @property
    def kind(self) -> Optional[str]:
        return self.error.kind if self.error is not None else None

    @property
    def messages(self) -> List[str]:
        return self.error.messages if self.error is not None else []

    @property
    def errors(self) -> Errors:
        """Field-scoped errors of a failed write; empty for successes and lookups."""
        return getattr(self.error, "errors", None) or Errors()

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
