"""Typed results for operations that must not raise.

Learn: the session resolver and the data gateway sit on async boundaries
that touch the backend. Instead of letting a rejected call escape as an
exception, they return a Result carrying either a value or an error the
caller can show to the user.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Result(Generic[T, E]):
    value: Optional[T] = None
    error: Optional[E] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: E) -> "Result[T, E]":
        return cls(error=error)
