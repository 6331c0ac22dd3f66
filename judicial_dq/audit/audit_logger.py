"""Audit logging — SQLite-backed trail of every executed remediation."""

from __future__ import annotations

import json
import sqlite3
import uuid
from pathlib import Path
from typing import Any

from judicial_dq.logger import get_logger
from judicial_dq.models.remediation import RemediationSummary, RollbackInfo, utc_now_iso

logger = get_logger(__name__)

_CREATE_TABLE = """\
CREATE TABLE IF NOT EXISTS remediation_log (
    log_id           TEXT PRIMARY KEY,
    run_id           TEXT NOT NULL,
    issue_id         TEXT NOT NULL,
    success          INTEGER NOT NULL,
    action_taken     TEXT NOT NULL,
    records_affected INTEGER,
    changes_json     TEXT,
    error            TEXT,
    rollback_json    TEXT,
    dry_run          INTEGER NOT NULL,
    user_id          TEXT,
    timestamp        TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_remediation_run ON remediation_log(run_id);
CREATE INDEX IF NOT EXISTS idx_remediation_ts  ON remediation_log(timestamp);
"""


def _decode(row: sqlite3.Row) -> dict[str, Any]:
    record = dict(row)
    record["success"] = bool(record["success"])
    record["dry_run"] = bool(record["dry_run"])
    record["changes"] = json.loads(record.pop("changes_json") or "{}")
    rollback = record.pop("rollback_json")
    record["rollback_info"] = json.loads(rollback) if rollback else None
    return record


class RemediationAuditLogger:
    """SQLite-based audit logger for remediation runs."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self._db_path) as conn:
            conn.executescript(_CREATE_TABLE)
        logger.debug("Audit DB initialised", path=self._db_path)

    def log_summary(
        self,
        summary: RemediationSummary,
        run_id: str,
        dry_run: bool,
        user: str = "system",
    ) -> int:
        """Write one audit row per result. Returns the number of rows written."""
        timestamp = utc_now_iso()
        rows = [
            (
                uuid.uuid4().hex,
                run_id,
                r.issue_id,
                int(r.success),
                r.action_taken,
                r.records_affected,
                json.dumps(r.changes_made, default=str),
                r.error,
                r.rollback_info.model_dump_json() if r.rollback_info else None,
                int(dry_run),
                user,
                timestamp,
            )
            for r in summary.results
        ]

        with sqlite3.connect(self._db_path) as conn:
            conn.executemany(
                """
                INSERT INTO remediation_log (
                    log_id, run_id, issue_id, success, action_taken,
                    records_affected, changes_json, error, rollback_json,
                    dry_run, user_id, timestamp
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.info("Remediation audit saved", run_id=run_id, records=len(rows), dry_run=dry_run)
        return len(rows)

    def query_by_run(self, run_id: str) -> list[dict[str, Any]]:
        with sqlite3.connect(self._db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT * FROM remediation_log WHERE run_id = ? ORDER BY rowid", (run_id,)
            ).fetchall()
        return [_decode(r) for r in rows]

    def query_recent(self, limit: int = 20) -> list[dict[str, Any]]:
        """Retrieve the most recent audit records."""
        with sqlite3.connect(self._db_path) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute(
                "SELECT * FROM remediation_log ORDER BY timestamp DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_decode(r) for r in rows]

    def rollback_candidates(self, run_id: str) -> list[RollbackInfo]:
        """Rollback records of a run's successful, non-dry-run mutations, newest first."""
        with sqlite3.connect(self._db_path) as conn:
            rows = conn.execute(
                """
                SELECT rollback_json FROM remediation_log
                WHERE run_id = ? AND success = 1 AND dry_run = 0 AND rollback_json IS NOT NULL
                ORDER BY rowid DESC
                """,
                (run_id,),
            ).fetchall()
        return [RollbackInfo.model_validate_json(r[0]) for r in rows]
