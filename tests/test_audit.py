"""Tests for the remediation audit logger (SQLite-backed)."""

from __future__ import annotations

import pytest

from judicial_dq.audit.audit_logger import RemediationAuditLogger
from judicial_dq.models.remediation import RemediationResult, RemediationSummary, RollbackInfo


@pytest.fixture
def audit_logger(tmp_path) -> RemediationAuditLogger:
    db_path = tmp_path / "audit" / "test_audit.db"
    return RemediationAuditLogger(db_path)


@pytest.fixture
def sample_summary() -> RemediationSummary:
    results = [
        RemediationResult(
            issue_id="judge-1",
            success=True,
            action_taken="recalculate_case_count",
            records_affected=1,
            changes_made={"total_cases": 42},
            rollback_info=RollbackInfo(
                table="judges", record_id="judge-1", original_values={"total_cases": 40}
            ),
        ),
        RemediationResult(
            issue_id="case-9",
            success=False,
            action_taken="nullify_judge_reference",
            error="Record case-9 not found in cases",
        ),
        RemediationResult(
            issue_id="judge-2",
            success=True,
            action_taken="standardize_name",
            records_affected=1,
            changes_made={"name": "Jane Doe"},
            rollback_info=RollbackInfo(
                table="judges", record_id="judge-2", original_values={"name": "HON. JANE DOE"}
            ),
        ),
    ]
    return RemediationSummary(
        total_issues=3, attempted=3, successful=2, failed=1, results=results
    )


class TestRemediationAuditLogger:
    def test_init_creates_db(self, tmp_path):
        db_path = tmp_path / "new_dir" / "audit.db"
        RemediationAuditLogger(db_path)
        assert db_path.exists()

    def test_log_summary_writes_one_row_per_result(self, audit_logger, sample_summary):
        written = audit_logger.log_summary(sample_summary, "run-1", dry_run=False, user="alice")
        assert written == 3
        records = audit_logger.query_by_run("run-1")
        assert [r["issue_id"] for r in records] == ["judge-1", "case-9", "judge-2"]

    def test_record_fields_decoded(self, audit_logger, sample_summary):
        audit_logger.log_summary(sample_summary, "run-1", dry_run=False, user="alice")
        first, failed, _ = audit_logger.query_by_run("run-1")

        assert first["success"] is True
        assert first["dry_run"] is False
        assert first["user_id"] == "alice"
        assert first["changes"] == {"total_cases": 42}
        assert first["rollback_info"]["original_values"] == {"total_cases": 40}

        assert failed["success"] is False
        assert failed["error"] == "Record case-9 not found in cases"
        assert failed["rollback_info"] is None

    def test_query_by_run_isolates_runs(self, audit_logger, sample_summary):
        audit_logger.log_summary(sample_summary, "run-1", dry_run=False)
        audit_logger.log_summary(sample_summary, "run-2", dry_run=True)
        assert len(audit_logger.query_by_run("run-2")) == 3
        assert audit_logger.query_by_run("run-unknown") == []

    def test_query_recent(self, audit_logger, sample_summary):
        audit_logger.log_summary(sample_summary, "run-1", dry_run=False)
        audit_logger.log_summary(sample_summary, "run-2", dry_run=False)
        records = audit_logger.query_recent(limit=4)
        assert len(records) == 4
        assert records[0]["run_id"] == "run-2"

    def test_rollback_candidates(self, audit_logger, sample_summary):
        audit_logger.log_summary(sample_summary, "run-1", dry_run=False)
        candidates = audit_logger.rollback_candidates("run-1")
        # Newest mutation first; the failed result carries nothing to undo.
        assert [c.record_id for c in candidates] == ["judge-2", "judge-1"]
        assert isinstance(candidates[0], RollbackInfo)

    def test_dry_runs_have_no_rollback_candidates(self, audit_logger, sample_summary):
        audit_logger.log_summary(sample_summary, "run-dry", dry_run=True)
        assert audit_logger.rollback_candidates("run-dry") == []

    def test_empty_summary(self, audit_logger):
        assert audit_logger.log_summary(RemediationSummary(), "run-empty", dry_run=True) == 0
        assert audit_logger.query_by_run("run-empty") == []
