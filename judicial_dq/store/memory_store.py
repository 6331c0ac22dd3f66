"""In-memory store — lock-guarded tables of dict rows."""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Iterable, Sequence

from judicial_dq.logger import get_logger
from judicial_dq.store.base import Filter, RecordNotFoundError, Row, StoreError

logger = get_logger(__name__)


class InMemoryStore:
    """DataStore implementation holding every table in process memory.

    Safe for the concurrent read-only queries the snapshot generator issues.
    """

    def __init__(self, tables: dict[str, Iterable[Row]] | None = None) -> None:
        self._lock = threading.RLock()
        self._tables: dict[str, list[Row]] = {}
        for name, rows in (tables or {}).items():
            for row in rows:
                self.insert(name, row)

    # ── Reads ────────────────────────────────────────────────────

    def select(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        with self._lock:
            rows = [r for r in self._tables.get(table, []) if _matches(r, filters)]
            rows = copy.deepcopy(rows)

        if order_by:
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        if columns:
            rows = [{c: r.get(c) for c in columns} for r in rows]
        return rows

    def select_one(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
    ) -> Row:
        rows = self.select(table, columns=columns, filters=filters, limit=2)
        if not rows:
            raise RecordNotFoundError(f"No row in {table} matching {_describe(filters)}")
        if len(rows) > 1:
            raise StoreError(f"Multiple rows in {table} matching {_describe(filters)}")
        return rows[0]

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        with self._lock:
            return sum(1 for r in self._tables.get(table, []) if _matches(r, filters))

    # ── Mutations ────────────────────────────────────────────────

    def insert(self, table: str, row: Row) -> Row:
        stored = copy.deepcopy(dict(row))
        stored.setdefault("id", uuid.uuid4().hex)
        with self._lock:
            rows = self._tables.setdefault(table, [])
            if any(r.get("id") == stored["id"] for r in rows):
                raise StoreError(f"Duplicate id {stored['id']!r} in {table}")
            rows.append(stored)
        return copy.deepcopy(stored)

    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> int:
        if not filters:
            raise StoreError("Refusing to update without a filter")
        updated = 0
        with self._lock:
            for row in self._tables.get(table, []):
                if _matches(row, filters):
                    row.update(copy.deepcopy(values))
                    updated += 1
        logger.debug("Rows updated", table=table, count=updated)
        return updated

    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        if not filters:
            raise StoreError("Refusing to delete without a filter")
        with self._lock:
            rows = self._tables.get(table, [])
            kept = [r for r in rows if not _matches(r, filters)]
            deleted = len(rows) - len(kept)
            self._tables[table] = kept
        logger.debug("Rows deleted", table=table, count=deleted)
        return deleted

    # ── Helpers ──────────────────────────────────────────────────

    def table(self, name: str) -> list[Row]:
        """Return a copy of every row in ``name``."""
        with self._lock:
            return copy.deepcopy(self._tables.get(name, []))

    def get(self, table: str, record_id: str) -> Row | None:
        rows = self.select(table, filters=[Filter.eq("id", record_id)])
        return rows[0] if rows else None


def _matches(row: Row, filters: Sequence[Filter]) -> bool:
    return all(f.matches(row) for f in filters)


def _describe(filters: Sequence[Filter]) -> str:
    return ", ".join(f"{f.column} {f.op.value} {f.value!r}" for f in filters) or "<all>"
