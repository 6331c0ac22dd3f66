"""Abstract structured-store client consumed by the remediation core.

Any backend that can run filtered selects, inserts, filtered updates and
deletes, and counts can host the judicial dataset.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict

Row = dict[str, Any]


class StoreError(Exception):
    """Raised by a store when a read or mutation fails."""


class RecordNotFoundError(StoreError):
    """Raised by ``select_one`` when no row matches."""


class FilterOp(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    IN = "in"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


class Filter(BaseModel):
    model_config = ConfigDict(frozen=True)

    column: str
    op: FilterOp
    value: Any = None

    @classmethod
    def eq(cls, column: str, value: Any) -> "Filter":
        return cls(column=column, op=FilterOp.EQ, value=value)

    @classmethod
    def neq(cls, column: str, value: Any) -> "Filter":
        return cls(column=column, op=FilterOp.NEQ, value=value)

    @classmethod
    def lt(cls, column: str, value: Any) -> "Filter":
        return cls(column=column, op=FilterOp.LT, value=value)

    @classmethod
    def gte(cls, column: str, value: Any) -> "Filter":
        return cls(column=column, op=FilterOp.GTE, value=value)

    @classmethod
    def in_(cls, column: str, values: Iterable[Any]) -> "Filter":
        return cls(column=column, op=FilterOp.IN, value=list(values))

    @classmethod
    def is_null(cls, column: str) -> "Filter":
        return cls(column=column, op=FilterOp.IS_NULL)

    @classmethod
    def not_null(cls, column: str) -> "Filter":
        return cls(column=column, op=FilterOp.NOT_NULL)

    def matches(self, row: Row) -> bool:
        """Evaluate this filter against an in-memory row."""
        current = row.get(self.column)
        match self.op:
            case FilterOp.IS_NULL:
                return current is None
            case FilterOp.NOT_NULL:
                return current is not None
            case FilterOp.EQ:
                return current == self.value
            case FilterOp.NEQ:
                return current is not None and current != self.value
            case FilterOp.IN:
                return current in self.value
        # Range comparisons never match NULL, as in SQL.
        if current is None:
            return False
        match self.op:
            case FilterOp.LT:
                return current < self.value
            case FilterOp.LTE:
                return current <= self.value
            case FilterOp.GT:
                return current > self.value
            case FilterOp.GTE:
                return current >= self.value
        raise StoreError(f"Unsupported filter operator: {self.op}")


@runtime_checkable
class DataStore(Protocol):
    """Minimal query/mutation surface required by planner, engine and snapshots."""

    def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]: ...

    def select_one(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
    ) -> Row: ...

    def insert(self, table: str, row: Row) -> Row: ...

    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> int: ...

    def delete(self, table: str, filters: Sequence[Filter]) -> int: ...

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int: ...


# Table names shared by every backend.
JUDGES = "judges"
COURTS = "courts"
CASES = "cases"
ASSIGNMENTS = "judge_court_assignments"
SYNC_QUEUE = "sync_queue"
