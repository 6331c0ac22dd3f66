"""Auto-remediation engine — applies fixes for auto-fixable issues.

Issues are processed one at a time so two issues touching the same judge,
court or case never race. A failure on one issue is recorded on its own
result and never stops the batch.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Sequence

from judicial_dq.logger import get_logger
from judicial_dq.models.issue import ValidationIssue
from judicial_dq.models.remediation import (
    RemediationResult,
    RemediationSummary,
    RollbackInfo,
)
from judicial_dq.remediation.classifier import IssueCategory, classify
from judicial_dq.remediation.normalizers import standardize_name
from judicial_dq.store.base import (
    ASSIGNMENTS,
    CASES,
    JUDGES,
    SYNC_QUEUE,
    DataStore,
    Filter,
    RecordNotFoundError,
    StoreError,
)

logger = get_logger(__name__)

DRY_RUN_PREFIX = "dry_run:"
PRIMARY = "primary"
VISITING = "visiting"
DEFAULT_RESYNC_PRIORITY = 7


class AutoRemediationEngine:
    """Applies automated fixes to data-quality issues against a DataStore.

    With ``dry_run=True`` handlers may read the store to compute the exact
    change set, but never insert, update or delete.
    """

    def __init__(
        self,
        store: DataStore,
        dry_run: bool = False,
        resync_priority: int = DEFAULT_RESYNC_PRIORITY,
    ) -> None:
        self._store = store
        self.dry_run = dry_run
        self._resync_priority = resync_priority
        self._results: list[RemediationResult] = []
        self._handlers: dict[IssueCategory, Callable[[ValidationIssue], RemediationResult]] = {
            IssueCategory.ORPHANED_CASE: self._fix_orphaned_case,
            IssueCategory.ORPHANED_ASSIGNMENT: self._fix_orphaned_assignment,
            IssueCategory.MULTIPLE_PRIMARY_COURTS: self._fix_multiple_primary_courts,
            IssueCategory.TEMPORAL_OVERLAP: self._fix_temporal_overlap,
            IssueCategory.CASE_COUNT_MISMATCH: self._recalculate_case_count,
            IssueCategory.NAME_STANDARDIZATION: self._standardize_name,
            IssueCategory.OUTCOME_MAPPING: self._map_outcome,
            IssueCategory.STALE_DATA: self._queue_resync,
        }

    # ── Batch execution ──────────────────────────────────────────

    def execute_remediation(self, issues: Sequence[ValidationIssue]) -> RemediationSummary:
        """Remediate every auto-fixable issue; the rest are counted as skipped."""
        start = time.monotonic()
        self._results = []

        logger.info("Starting auto-remediation", total_issues=len(issues), dry_run=self.dry_run)

        fixable = [i for i in issues if i.auto_fixable]
        logger.info("Auto-fixable issues found", count=len(fixable))

        for issue in fixable:
            try:
                result = self.remediate_issue(issue)
            except Exception as exc:
                logger.error(
                    "Remediation failed for issue",
                    entity_id=issue.entity_id,
                    issue_type=issue.type,
                    error=str(exc),
                )
                result = RemediationResult(
                    issue_id=issue.entity_id,
                    success=False,
                    action_taken="error",
                    error=str(exc),
                )
            self._results.append(result)

        successful = sum(1 for r in self._results if r.success)
        summary = RemediationSummary(
            total_issues=len(issues),
            attempted=len(fixable),
            successful=successful,
            failed=len(self._results) - successful,
            skipped=len(issues) - len(fixable),
            duration_ms=int((time.monotonic() - start) * 1000),
            results=list(self._results),
        )

        logger.info(
            "Auto-remediation completed",
            attempted=summary.attempted,
            successful=summary.successful,
            failed=summary.failed,
            skipped=summary.skipped,
            duration_ms=summary.duration_ms,
        )
        return summary

    def remediate_issue(self, issue: ValidationIssue) -> RemediationResult:
        logger.debug("Remediating issue", entity_id=issue.entity_id, issue_type=issue.type)
        category = classify(issue)
        handler = self._handlers.get(category)
        if handler is None:
            return self._unsupported(issue, category)
        return handler(issue)

    # ── Handlers ─────────────────────────────────────────────────

    def _fix_orphaned_case(self, issue: ValidationIssue) -> RemediationResult:
        changes = {"judge_id": None}
        return self._apply_update(
            issue,
            label="nullify_judge_reference",
            table=CASES,
            record_id=issue.entity_id,
            values=changes,
            changes_made=changes,
        )

    def _fix_orphaned_assignment(self, issue: ValidationIssue) -> RemediationResult:
        label = "delete_orphaned_assignment"
        changes = {"deleted": True}
        if self.dry_run:
            return self._dry_run_result(issue, label, 1, changes)

        try:
            deleted = self._store.delete(ASSIGNMENTS, [Filter.eq("id", issue.entity_id)])
        except StoreError as exc:
            return self._store_failure(issue, label, exc)
        if deleted == 0:
            return self._missing_record(issue, label, ASSIGNMENTS, issue.entity_id)

        # Hard deletes carry no rollback info.
        return RemediationResult(
            issue_id=issue.entity_id,
            success=True,
            action_taken=label,
            records_affected=deleted,
            changes_made=changes,
        )

    def _fix_multiple_primary_courts(self, issue: ValidationIssue) -> RemediationResult:
        label = "convert_older_to_visiting"
        # Only primaries are demoted, so every demoted row shares one original marker.
        assignments = self._store.select(
            ASSIGNMENTS,
            filters=[
                Filter.in_("id", issue.assignment_ids or []),
                Filter.eq("assignment_type", PRIMARY),
            ],
            order_by="start_date",
            descending=True,
        )
        if not assignments:
            return RemediationResult(
                issue_id=issue.entity_id,
                success=False,
                action_taken="no_assignments_found",
                error="Could not find assignments to fix",
            )

        most_recent, *older = assignments
        if not older:
            return RemediationResult(
                issue_id=issue.entity_id,
                success=True,
                action_taken="no_action_needed",
            )

        older_ids = [a["id"] for a in older]
        changes = {
            "assignment_type": VISITING,
            "kept_primary": most_recent["id"],
            "converted_to_visiting": older_ids,
        }
        if self.dry_run:
            return self._dry_run_result(issue, label, len(older_ids), changes)

        rollback = RollbackInfo(
            table=ASSIGNMENTS,
            record_id=",".join(older_ids),
            original_values={"assignment_type": PRIMARY},
        )
        try:
            updated = self._store.update(
                ASSIGNMENTS, {"assignment_type": VISITING}, [Filter.in_("id", older_ids)]
            )
        except StoreError as exc:
            return self._store_failure(issue, label, exc)

        return RemediationResult(
            issue_id=issue.entity_id,
            success=True,
            action_taken=label,
            records_affected=updated,
            changes_made=changes,
            rollback_info=rollback,
        )

    def _fix_temporal_overlap(self, issue: ValidationIssue) -> RemediationResult:
        earlier_id, _later_id = issue.overlap_ids
        new_end = issue.later_assignment_start
        return self._apply_update(
            issue,
            label="set_end_date_to_eliminate_overlap",
            table=ASSIGNMENTS,
            record_id=earlier_id,
            values={"end_date": new_end},
            changes_made={"assignment_id": earlier_id, "end_date": new_end},
        )

    def _recalculate_case_count(self, issue: ValidationIssue) -> RemediationResult:
        live_count = self._store.count(CASES, [Filter.eq("judge_id", issue.entity_id)])
        changes = {"total_cases": live_count}
        return self._apply_update(
            issue,
            label="recalculate_case_count",
            table=JUDGES,
            record_id=issue.entity_id,
            values=changes,
            changes_made=changes,
        )

    def _standardize_name(self, issue: ValidationIssue) -> RemediationResult:
        changes = {"name": standardize_name(issue.current_name or "", issue.name_flags)}
        return self._apply_update(
            issue,
            label="standardize_name",
            table=JUDGES,
            record_id=issue.entity_id,
            values=changes,
            changes_made=changes,
        )

    def _map_outcome(self, issue: ValidationIssue) -> RemediationResult:
        changes = {"outcome": issue.suggested_mapping}
        return self._apply_update(
            issue,
            label="map_outcome_to_taxonomy",
            table=CASES,
            record_id=issue.entity_id,
            values=changes,
            changes_made=changes,
        )

    def _queue_resync(self, issue: ValidationIssue) -> RemediationResult:
        label = "queue_for_resync"
        external_id = issue.external_id
        if not external_id:
            return RemediationResult(
                issue_id=issue.entity_id,
                success=False,
                action_taken="missing_courtlistener_id",
                error="No courtlistener_id available for resync",
            )

        changes = {"sync_queued": True, "entity_id": external_id}
        if self.dry_run:
            return self._dry_run_result(issue, label, 1, changes)

        try:
            self._store.insert(
                SYNC_QUEUE,
                {
                    "entity_type": issue.entity,
                    "entity_id": external_id,
                    "operation": "update",
                    "priority": self._resync_priority,
                    "status": "pending",
                    "payload": {"reason": "stale_data_auto_remediation"},
                },
            )
        except StoreError as exc:
            return self._store_failure(issue, label, exc)

        # Queueing is additive; nothing to roll back.
        return RemediationResult(
            issue_id=issue.entity_id,
            success=True,
            action_taken=label,
            records_affected=1,
            changes_made=changes,
        )

    # ── Rollback ─────────────────────────────────────────────────

    def rollback(self, info: RollbackInfo) -> bool:
        """Write ``original_values`` back onto the recorded row(s). Never raises."""
        logger.info("Rolling back remediation", table=info.table, record_id=info.record_id)
        try:
            updated = self._store.update(
                info.table, dict(info.original_values), [Filter.in_("id", info.record_ids)]
            )
        except Exception as exc:
            logger.error(
                "Rollback failed", table=info.table, record_id=info.record_id, error=str(exc)
            )
            return False

        if updated == 0:
            logger.error("Rollback matched no rows", table=info.table, record_id=info.record_id)
            return False

        logger.info("Rollback successful", table=info.table, record_id=info.record_id)
        return True

    def rollback_results(self, results: Sequence[RemediationResult]) -> dict[str, bool]:
        """Undo a batch, most recent mutation first. Keyed by issue id."""
        outcome: dict[str, bool] = {}
        for result in reversed(results):
            if result.success and result.rollback_info is not None:
                outcome[result.issue_id] = self.rollback(result.rollback_info)
        return outcome

    @property
    def results(self) -> list[RemediationResult]:
        return list(self._results)

    # ── Helpers ──────────────────────────────────────────────────

    def _apply_update(
        self,
        issue: ValidationIssue,
        label: str,
        table: str,
        record_id: str,
        values: dict[str, Any],
        changes_made: dict[str, Any],
    ) -> RemediationResult:
        """Read-before-write single-record update with rollback capture."""
        if self.dry_run:
            return self._dry_run_result(issue, label, 1, changes_made)

        try:
            original = self._store.select_one(
                table, columns=list(values), filters=[Filter.eq("id", record_id)]
            )
        except RecordNotFoundError:
            return self._missing_record(issue, label, table, record_id)
        except StoreError as exc:
            return self._store_failure(issue, label, exc)

        rollback = RollbackInfo(
            table=table,
            record_id=record_id,
            original_values={k: original.get(k) for k in values},
        )
        try:
            updated = self._store.update(table, values, [Filter.eq("id", record_id)])
        except StoreError as exc:
            return self._store_failure(issue, label, exc)

        return RemediationResult(
            issue_id=issue.entity_id,
            success=True,
            action_taken=label,
            records_affected=updated,
            changes_made=changes_made,
            rollback_info=rollback,
        )

    @staticmethod
    def _dry_run_result(
        issue: ValidationIssue, label: str, records: int, changes: dict[str, Any]
    ) -> RemediationResult:
        return RemediationResult(
            issue_id=issue.entity_id,
            success=True,
            action_taken=f"{DRY_RUN_PREFIX}{label}",
            records_affected=records,
            changes_made=changes,
        )

    @staticmethod
    def _store_failure(issue: ValidationIssue, label: str, exc: Exception) -> RemediationResult:
        logger.error("Store call failed", entity_id=issue.entity_id, action=label, error=str(exc))
        return RemediationResult(
            issue_id=issue.entity_id,
            success=False,
            action_taken=label,
            error=str(exc),
        )

    @staticmethod
    def _missing_record(
        issue: ValidationIssue, label: str, table: str, record_id: str
    ) -> RemediationResult:
        return RemediationResult(
            issue_id=issue.entity_id,
            success=False,
            action_taken=label,
            error=f"Record {record_id} not found in {table}",
        )

    @staticmethod
    def _unsupported(issue: ValidationIssue, category: IssueCategory) -> RemediationResult:
        match category:
            case IssueCategory.ORPHANED_UNSUPPORTED_ENTITY:
                label, error = (
                    "unsupported_entity",
                    f"Cannot fix orphaned record for entity: {issue.entity}",
                )
            case IssueCategory.UNKNOWN_RELATIONSHIP:
                label, error = "unknown_relationship_issue", "Could not determine relationship issue type"
            case IssueCategory.UNKNOWN_INTEGRITY:
                label, error = "unknown_integrity_issue", "Could not determine integrity issue type"
            case _:
                label, error = "unsupported", f"No remediation handler for issue type: {issue.type}"
        return RemediationResult(
            issue_id=issue.entity_id,
            success=False,
            action_taken=label,
            error=error,
        )
