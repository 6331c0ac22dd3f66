"""Tests for Pydantic data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from judicial_dq.models.issue import Severity, ValidationIssue, ValidationReport
from judicial_dq.models.remediation import (
    ActionType,
    ImpactAnalysis,
    RemediationAction,
    RemediationPlan,
    RiskLevel,
    RollbackInfo,
)
from judicial_dq.models.snapshot import DataSnapshot, SnapshotDelta


class TestValidationIssue:
    def test_wire_names(self):
        issue = ValidationIssue.model_validate(
            {
                "type": "orphaned_record",
                "severity": "critical",
                "entity": "case",
                "entityId": "case-1",
                "message": "dangling judge",
                "suggestedAction": "Detach",
                "autoFixable": True,
            }
        )
        assert issue.entity_id == "case-1"
        assert issue.auto_fixable is True
        assert issue.suggested_action == "Detach"
        assert issue.metadata == {}

    def test_snake_case_names(self):
        issue = ValidationIssue(
            type="stale_data", severity=Severity.LOW, entity="judge", entity_id="j-1"
        )
        assert issue.auto_fixable is False

    def test_invalid_severity(self):
        with pytest.raises(ValidationError):
            ValidationIssue(type="stale_data", severity="urgent", entity="judge", entity_id="j")

    def test_frozen(self, stale_issue):
        with pytest.raises(ValidationError):
            stale_issue.entity_id = "other"

    def test_metadata_accessors(self, overlap_issue, case_count_issue, stale_issue, name_issue):
        assert overlap_issue.overlap_ids == ("assign-a", "assign-b")
        assert overlap_issue.later_assignment_start == "2021-06-01"
        assert case_count_issue.actual_case_count == 42
        assert case_count_issue.is_case_count_mismatch()
        assert stale_issue.external_id == "cl-1001"
        assert name_issue.current_name == "HON. JANE DOE"
        assert len(name_issue.name_flags) == 2

    def test_missing_metadata(self, make_issue):
        issue = make_issue("data_integrity", "judge", "j-1")
        assert issue.assignment_ids is None
        assert issue.overlap_ids is None
        assert issue.actual_case_count is None
        assert issue.external_id is None
        assert issue.impacted_records == []


class TestValidationReport:
    def test_from_issues_counts(self, orphaned_case_issue, case_count_issue, name_issue):
        report = ValidationReport.from_issues(
            [orphaned_case_issue, case_count_issue, name_issue], validation_id="v-1"
        )
        assert report.total_issues == 3
        assert report.critical_issues == 1
        assert report.high_priority_issues == 0
        assert report.medium_priority_issues == 1
        assert report.low_priority_issues == 1


class TestRemediationModels:
    def _action(self, action_id: str, confidence: int = 90) -> RemediationAction:
        return RemediationAction(
            action_id=action_id,
            issue_type="orphaned_record",
            severity=Severity.HIGH,
            entity="case",
            entity_id="case-1",
            action_type=ActionType.NULLIFY,
            target_table="cases",
            target_record_id="case-1",
            confidence_score=confidence,
            risk_level=RiskLevel.LOW,
            impact_analysis=ImpactAnalysis(),
        )

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            self._action("a", confidence=101)
        with pytest.raises(ValidationError):
            self._action("a", confidence=-1)

    def test_plan_helpers(self):
        plan = RemediationPlan(
            plan_id="REM-1",
            actions=[self._action("a"), self._action("b")],
            execution_order=["b", "a"],
        )
        assert plan.action("a").action_id == "a"
        assert plan.action("zzz") is None
        assert [a.action_id for a in plan.ordered_actions()] == ["b", "a"]

    def test_rollback_record_ids(self):
        single = RollbackInfo(table="judges", record_id="j-1", original_values={})
        multi = RollbackInfo(table="judges", record_id="a,b,c", original_values={})
        assert single.record_ids == ["j-1"]
        assert multi.record_ids == ["a", "b", "c"]
        assert single.timestamp


class TestSnapshotModels:
    def test_health_score_bounds(self):
        with pytest.raises(ValidationError):
            DataSnapshot(snapshot_id="s", timestamp="t", health_score=101)

    def test_snapshot_frozen(self):
        snapshot = DataSnapshot(snapshot_id="s", timestamp="t")
        with pytest.raises(ValidationError):
            snapshot.health_score = 50

    def test_delta_improved(self):
        assert SnapshotDelta(before_id="a", after_id="b", health_score_delta=3).improved
        assert not SnapshotDelta(before_id="a", after_id="b", health_score_delta=0).improved
