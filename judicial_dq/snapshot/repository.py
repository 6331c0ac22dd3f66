"""Append-only SQLite storage for data snapshots."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from judicial_dq.logger import get_logger
from judicial_dq.models.snapshot import DataSnapshot
from judicial_dq.store.base import StoreError

logger = get_logger(__name__)

_CREATE_TABLE = """\
CREATE TABLE IF NOT EXISTS data_snapshots (
    snapshot_id    TEXT PRIMARY KEY,
    timestamp      TEXT NOT NULL,
    health_score   INTEGER NOT NULL,
    snapshot_data  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_snapshots_ts ON data_snapshots(timestamp);
"""


class SnapshotRepository:
    """Snapshots are written once and never updated."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self._db_path) as conn:
            conn.executescript(_CREATE_TABLE)
        logger.debug("Snapshot DB initialised", path=self._db_path)

    def save(self, snapshot: DataSnapshot) -> None:
        try:
            with sqlite3.connect(self._db_path) as conn:
                conn.execute(
                    "INSERT INTO data_snapshots (snapshot_id, timestamp, health_score, snapshot_data)"
                    " VALUES (?, ?, ?, ?)",
                    (
                        snapshot.snapshot_id,
                        snapshot.timestamp,
                        snapshot.health_score,
                        snapshot.model_dump_json(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            logger.error("Snapshot already exists", snapshot_id=snapshot.snapshot_id)
            raise StoreError(f"Snapshot {snapshot.snapshot_id} already exists") from exc
        except sqlite3.Error as exc:
            logger.error("Failed to save snapshot", snapshot_id=snapshot.snapshot_id, error=str(exc))
            raise StoreError(str(exc)) from exc
        logger.info("Snapshot saved", snapshot_id=snapshot.snapshot_id)

    def get(self, snapshot_id: str) -> DataSnapshot | None:
        with sqlite3.connect(self._db_path) as conn:
            row = conn.execute(
                "SELECT snapshot_data FROM data_snapshots WHERE snapshot_id = ?", (snapshot_id,)
            ).fetchone()
        return DataSnapshot.model_validate_json(row[0]) if row else None

    def query_recent(self, limit: int = 20) -> list[DataSnapshot]:
        with sqlite3.connect(self._db_path) as conn:
            rows = conn.execute(
                "SELECT snapshot_data FROM data_snapshots ORDER BY timestamp DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [DataSnapshot.model_validate_json(r[0]) for r in rows]
