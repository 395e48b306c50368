"""Row query description for the Backend Service row CRUD contract.

A RowQuery is a plain, transport-free description of one select / insert /
update / upsert / delete against a named table. Services build it with the
fluent methods and hand it to IRowStore.execute(); the REST adapter turns it
into an HTTP request, the in-memory store used in tests evaluates it directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Operation(str, Enum):
    SELECT = "select"
    INSERT = "insert"
    UPSERT = "upsert"
    UPDATE = "update"
    DELETE = "delete"


class Cardinality(str, Enum):
    """How many rows the caller expects back.

    SINGLE fails with the not-found code on zero rows; MAYBE_SINGLE returns None.
    """

    MANY = "many"
    SINGLE = "single"
    MAYBE_SINGLE = "maybe_single"


_FILTER_OPS = frozenset({"eq", "neq", "in"})


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in _FILTER_OPS:
            raise ValueError(f"Unsupported filter op: {self.op!r}")

    def matches(self, row: dict[str, Any]) -> bool:
        """Evaluate against a row (string comparison, like ids on the wire)."""
        current = row.get(self.column)
        if self.op == "in":
            return str(current) in {str(v) for v in self.value}
        equal = str(current) == str(self.value)
        return equal if self.op == "eq" else not equal


@dataclass
class RowQuery:
    """Fluent query builder; each method returns self."""

    table: str
    operation: Operation = Operation.SELECT
    columns: str = "*"
    filters: list[Filter] = field(default_factory=list)
    order_by: str | None = None
    descending: bool = False
    row_limit: int | None = None
    cardinality: Cardinality = Cardinality.MANY
    with_count: bool = False
    payload: dict[str, Any] | None = None
    on_conflict: str | None = None

    @classmethod
    def on(cls, table: str) -> RowQuery:
        return cls(table=table)

    def select(self, columns: str = "*", *, count: bool = False) -> RowQuery:
        self.operation = Operation.SELECT
        self.columns = columns
        self.with_count = count
        return self

    def insert(self, row: dict[str, Any]) -> RowQuery:
        self.operation = Operation.INSERT
        self.payload = dict(row)
        return self

    def upsert(self, row: dict[str, Any], on_conflict: str) -> RowQuery:
        self.operation = Operation.UPSERT
        self.payload = dict(row)
        self.on_conflict = on_conflict
        return self

    def update(self, values: dict[str, Any]) -> RowQuery:
        self.operation = Operation.UPDATE
        self.payload = dict(values)
        return self

    def delete(self) -> RowQuery:
        self.operation = Operation.DELETE
        return self

    def eq(self, column: str, value: Any) -> RowQuery:
        self.filters.append(Filter(column, "eq", value))
        return self

    def neq(self, column: str, value: Any) -> RowQuery:
        self.filters.append(Filter(column, "neq", value))
        return self

    def in_(self, column: str, values: list[Any] | tuple[Any, ...] | set[Any]) -> RowQuery:
        self.filters.append(Filter(column, "in", tuple(values)))
        return self

    def order(self, column: str, *, desc: bool = False) -> RowQuery:
        self.order_by = column
        self.descending = desc
        return self

    def limit(self, n: int) -> RowQuery:
        self.row_limit = n
        return self

    def single(self) -> RowQuery:
        self.cardinality = Cardinality.SINGLE
        return self

    def maybe_single(self) -> RowQuery:
        self.cardinality = Cardinality.MAYBE_SINGLE
        return self

    def matches(self, row: dict[str, Any]) -> bool:
        return all(f.matches(row) for f in self.filters)
