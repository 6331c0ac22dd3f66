"""SQLite-backed judicial records store."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Sequence

from judicial_dq.logger import get_logger
from judicial_dq.store.base import (
    Filter,
    FilterOp,
    RecordNotFoundError,
    Row,
    StoreError,
)

logger = get_logger(__name__)

_CREATE_TABLES = """\
CREATE TABLE IF NOT EXISTS judges (
    id               TEXT PRIMARY KEY,
    name             TEXT,
    jurisdiction     TEXT,
    total_cases      INTEGER DEFAULT 0,
    courtlistener_id TEXT
);

CREATE TABLE IF NOT EXISTS courts (
    id               TEXT PRIMARY KEY,
    name             TEXT,
    jurisdiction     TEXT,
    court_type       TEXT,
    courtlistener_id TEXT
);

CREATE TABLE IF NOT EXISTS cases (
    id             TEXT PRIMARY KEY,
    case_name      TEXT,
    judge_id       TEXT,
    outcome        TEXT,
    status         TEXT,
    decision_date  TEXT
);

CREATE TABLE IF NOT EXISTS judge_court_assignments (
    id               TEXT PRIMARY KEY,
    judge_id         TEXT,
    court_id         TEXT,
    assignment_type  TEXT,
    start_date       TEXT,
    end_date         TEXT
);

CREATE TABLE IF NOT EXISTS sync_queue (
    id           TEXT PRIMARY KEY,
    entity_type  TEXT,
    entity_id    TEXT,
    operation    TEXT,
    priority     INTEGER,
    status       TEXT,
    payload      TEXT
);

CREATE INDEX IF NOT EXISTS idx_cases_judge ON cases(judge_id);
CREATE INDEX IF NOT EXISTS idx_assign_judge ON judge_court_assignments(judge_id);
CREATE INDEX IF NOT EXISTS idx_assign_court ON judge_court_assignments(court_id);
"""

_SQL_OPS = {
    FilterOp.EQ: "=",
    FilterOp.NEQ: "!=",
    FilterOp.LT: "<",
    FilterOp.LTE: "<=",
    FilterOp.GT: ">",
    FilterOp.GTE: ">=",
}


class SQLiteStore:
    """DataStore implementation over a single SQLite file.

    A fresh connection is opened per call so concurrent snapshot queries
    running on worker threads never share a connection.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._columns: dict[str, set[str]] = {}
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self._db_path) as conn:
            conn.executescript(_CREATE_TABLES)
            tables = [r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
            for table in tables:
                info = conn.execute(f"PRAGMA table_info({table})").fetchall()
                self._columns[table] = {col[1] for col in info}
        logger.debug("Store DB initialised", path=self._db_path)

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
        self._check_table(table)
        cols = ", ".join(self._checked(table, columns)) if columns else "*"
        where, params = self._where(table, filters)
        sql = f"SELECT {cols} FROM {table}{where}"
        if order_by:
            self._checked(table, [order_by])
            # NULLs last regardless of direction, matching the in-memory store.
            sql += f" ORDER BY {order_by} IS NULL, {order_by} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))
        rows = self._fetch(sql, params)
        return [self._decode(table, r) for r in rows]

    def select_one(
        self,
        table: str,
        columns: Sequence[str] | None = None,
        filters: Sequence[Filter] = (),
    ) -> Row:
        rows = self.select(table, columns=columns, filters=filters, limit=2)
        if not rows:
            raise RecordNotFoundError(f"No row in {table} matching filters")
        if len(rows) > 1:
            raise StoreError(f"Multiple rows in {table} matching filters")
        return rows[0]

    def count(self, table: str, filters: Sequence[Filter] = ()) -> int:
        self._check_table(table)
        where, params = self._where(table, filters)
        rows = self._fetch(f"SELECT COUNT(*) AS n FROM {table}{where}", params)
        return int(rows[0]["n"])

    # ── Mutations ────────────────────────────────────────────────

    def insert(self, table: str, row: Row) -> Row:
        self._check_table(table)
        values = dict(row)
        values.setdefault("id", uuid.uuid4().hex)
        cols = self._checked(table, list(values))
        placeholders = ", ".join("?" for _ in cols)
        params = [self._encode(values[c]) for c in cols]
        self._execute(f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({placeholders})", params)
        return values

    def update(self, table: str, values: Row, filters: Sequence[Filter]) -> int:
        self._check_table(table)
        if not filters:
            raise StoreError("Refusing to update without a filter")
        cols = self._checked(table, list(values))
        assignments = ", ".join(f"{c} = ?" for c in cols)
        where, where_params = self._where(table, filters)
        params = [self._encode(values[c]) for c in cols] + where_params
        return self._execute(f"UPDATE {table} SET {assignments}{where}", params)

    def delete(self, table: str, filters: Sequence[Filter]) -> int:
        self._check_table(table)
        if not filters:
            raise StoreError("Refusing to delete without a filter")
        where, params = self._where(table, filters)
        return self._execute(f"DELETE FROM {table}{where}", params)

    # ── SQL helpers ──────────────────────────────────────────────

    def _where(self, table: str, filters: Sequence[Filter]) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        for f in filters:
            self._checked(table, [f.column])
            if f.op == FilterOp.IS_NULL:
                clauses.append(f"{f.column} IS NULL")
            elif f.op == FilterOp.NOT_NULL:
                clauses.append(f"{f.column} IS NOT NULL")
            elif f.op == FilterOp.IN:
                if not f.value:
                    clauses.append("0")
                    continue
                clauses.append(f"{f.column} IN ({', '.join('?' for _ in f.value)})")
                params.extend(f.value)
            else:
                clauses.append(f"{f.column} {_SQL_OPS[f.op]} ?")
                params.append(f.value)
        if not clauses:
            return "", params
        return " WHERE " + " AND ".join(clauses), params

    def _fetch(self, sql: str, params: Sequence[Any]) -> list[sqlite3.Row]:
        try:
            with sqlite3.connect(self._db_path) as conn:
                conn.row_factory = sqlite3.Row
                return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def _execute(self, sql: str, params: Sequence[Any]) -> int:
        try:
            with sqlite3.connect(self._db_path) as conn:
                cursor = conn.execute(sql, params)
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def _check_table(self, table: str) -> None:
        if table not in self._columns:
            raise StoreError(f"Unknown table: {table}")

    def _checked(self, table: str, columns: Sequence[str]) -> list[str]:
        unknown = [c for c in columns if c not in self._columns[table]]
        if unknown:
            raise StoreError(f"Unknown column(s) on {table}: {', '.join(unknown)}")
        return list(columns)

    @staticmethod
    def _encode(value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    @staticmethod
    def _decode(table: str, row: sqlite3.Row) -> Row:
        data = dict(row)
        if table == "sync_queue" and isinstance(data.get("payload"), str):
            data["payload"] = json.loads(data["payload"])
        return data
