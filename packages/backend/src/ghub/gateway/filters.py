"""Query predicates and the data-service protocol.

Learn: The gateway never builds SQL. It composes small predicate objects
(Eq, In, Or, And) into one Query and hands it to a DataService. The
visibility rule "public OR mine" is a single Or predicate, evaluated in a
single query, so identity cannot change between two halves of a read.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

# Single-row fetch matched zero (or several) rows. Same code PostgREST uses.
NOT_FOUND_CODE = "PGRST116"


@dataclass(frozen=True)
class Eq:
    column: str
    value: Any


@dataclass(frozen=True)
class In:
    column: str
    values: tuple


@dataclass(frozen=True)
class Or:
    predicates: tuple


@dataclass(frozen=True)
class And:
    predicates: tuple


Predicate = Union[Eq, In, Or, And]


def all_of(*predicates: Optional[Predicate]) -> Optional[Predicate]:
    """AND together the non-empty predicates."""
    parts = tuple(p for p in predicates if p is not None)
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return And(parts)


def matches(predicate: Optional[Predicate], row: dict) -> bool:
    """Evaluate a predicate against a plain row dict."""
    if predicate is None:
        return True
    if isinstance(predicate, Eq):
        return row.get(predicate.column) == predicate.value
    if isinstance(predicate, In):
        return row.get(predicate.column) in predicate.values
    if isinstance(predicate, Or):
        return any(matches(p, row) for p in predicate.predicates)
    if isinstance(predicate, And):
        return all(matches(p, row) for p in predicate.predicates)
    raise TypeError(f"Unsupported predicate: {predicate!r}")


@dataclass(frozen=True)
class Order:
    column: str
    descending: bool = True


@dataclass(frozen=True)
class Query:
    table: str
    where: Optional[Predicate] = None
    order: tuple = field(default_factory=tuple)
    limit: Optional[int] = None


class DataServiceError(Exception):
    """Raised by a DataService. `code` follows Postgres/PostgREST codes."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class DataService(Protocol):
    async def select(self, query: Query) -> list[dict]: ...

    async def select_single(self, query: Query) -> dict: ...

    async def insert(self, table: str, values: dict) -> dict: ...

    async def update(self, table: str, values: dict, where: Predicate) -> list[dict]: ...

    async def delete(self, table: str, where: Predicate) -> int: ...
