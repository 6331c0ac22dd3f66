"""Remediation planner — turns validation issues into a scored, ordered plan.

Pure computation: no store access, no clock except for the plan id and
creation timestamp.
"""

from __future__ import annotations

import time
from typing import Iterator, Sequence

from judicial_dq.logger import get_logger
from judicial_dq.models.issue import SEVERITY_RANK, ValidationIssue, ValidationReport
from judicial_dq.models.remediation import (
    RISK_RANK,
    ActionType,
    DataLossRisk,
    ImpactAnalysis,
    PlanSummary,
    RemediationAction,
    RemediationPlan,
    Reversibility,
    RiskAssessment,
    RiskLevel,
)
from judicial_dq.remediation.classifier import IssueCategory, classify
from judicial_dq.remediation.normalizers import standardize_name
from judicial_dq.reporting.text_reporter import render_plan
from judicial_dq.store.base import ASSIGNMENTS, CASES, JUDGES, SYNC_QUEUE

logger = get_logger(__name__)

# Confidence below this is always high risk.
MIN_SAFE_CONFIDENCE = 70
# More affected records than this raises risk to medium.
MULTI_RECORD_THRESHOLD = 5
# Overall plan risk thresholds.
MAX_HIGH_RISK_ACTIONS = 5
MAX_IRREVERSIBLE_ACTIONS = 3

BASE_DURATION_MS: dict[ActionType, int] = {
    ActionType.UPDATE: 50,
    ActionType.DELETE: 30,
    ActionType.CREATE: 60,
    ActionType.NULLIFY: 40,
    ActionType.RECALCULATE: 100,
    ActionType.QUEUE_SYNC: 20,
}

_ANALYTICS = "May affect analytics calculations"
_SEARCH = "May affect search results"
_CASE_DISTRIBUTION = "May affect case distribution"
_COURT_STATS = "May affect court statistics"

DOWNSTREAM_EFFECTS: dict[tuple[str, ActionType], tuple[str, ...]] = {
    (JUDGES, ActionType.UPDATE): (_ANALYTICS, _SEARCH),
    (JUDGES, ActionType.RECALCULATE): (_ANALYTICS, _SEARCH),
    (CASES, ActionType.NULLIFY): ("Case will become orphaned", "May need reassignment later"),
    (CASES, ActionType.UPDATE): (_ANALYTICS,),
    (ASSIGNMENTS, ActionType.UPDATE): (_CASE_DISTRIBUTION, _COURT_STATS),
    (ASSIGNMENTS, ActionType.DELETE): (_CASE_DISTRIBUTION, _COURT_STATS),
}


# ── Scoring rules ────────────────────────────────────────────────────────────


def reversibility_for(action_type: ActionType) -> Reversibility:
    if action_type == ActionType.DELETE:
        return Reversibility.IRREVERSIBLE
    if action_type == ActionType.RECALCULATE:
        return Reversibility.PARTIALLY_REVERSIBLE
    return Reversibility.FULLY_REVERSIBLE


def data_loss_risk_for(action_type: ActionType) -> DataLossRisk:
    if action_type == ActionType.DELETE:
        return DataLossRisk.HIGH
    if action_type == ActionType.NULLIFY:
        return DataLossRisk.LOW
    return DataLossRisk.NONE


def determine_risk_level(
    confidence: int, action_type: ActionType, impact: ImpactAnalysis
) -> RiskLevel:
    """Risk matrix: confidence × reversibility × data loss × blast radius."""
    if confidence < MIN_SAFE_CONFIDENCE:
        return RiskLevel.HIGH
    if (
        impact.reversibility == Reversibility.IRREVERSIBLE
        or impact.data_loss_risk == DataLossRisk.HIGH
        or action_type == ActionType.DELETE
    ):
        return RiskLevel.HIGH
    if impact.reversibility == Reversibility.PARTIALLY_REVERSIBLE:
        return RiskLevel.MEDIUM
    if impact.records_affected > MULTI_RECORD_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def estimate_duration_ms(action_type: ActionType, impact: ImpactAnalysis) -> int:
    return BASE_DURATION_MS.get(action_type, 50) * max(1, impact.records_affected)


class RemediationPlanner:
    """Generates prioritised remediation plans from validation issues."""

    def generate_plan(
        self, issues: Sequence[ValidationIssue] | ValidationReport
    ) -> RemediationPlan:
        report = (
            issues
            if isinstance(issues, ValidationReport)
            else ValidationReport.from_issues(list(issues))
        )
        plan_id = f"REM-{int(time.time() * 1000)}"

        logger.info("Generating remediation plan", plan_id=plan_id, total_issues=report.total_issues)

        actions = self.create_actions(report.issues)
        execution_order = self.determine_execution_order(actions)
        risk_assessment = self.assess_risks(actions)

        plan = RemediationPlan(
            plan_id=plan_id,
            summary=self._create_summary(report, actions),
            actions=actions,
            execution_order=execution_order,
            estimated_duration_ms=sum(a.estimated_duration_ms for a in actions),
            risk_assessment=risk_assessment,
        )

        logger.info(
            "Remediation plan generated",
            plan_id=plan_id,
            total_actions=len(actions),
            estimated_duration_ms=plan.estimated_duration_ms,
            overall_risk=risk_assessment.overall_risk.value,
        )
        return plan

    # ── Actions ──────────────────────────────────────────────────

    def create_actions(self, issues: Sequence[ValidationIssue]) -> list[RemediationAction]:
        return [action for _issue, action in self.planned_pairs(issues)]

    def planned_pairs(
        self, issues: Sequence[ValidationIssue]
    ) -> Iterator[tuple[ValidationIssue, RemediationAction]]:
        """Yield each plannable issue with its action, ids numbered as in a plan."""
        seen: dict[str, int] = {}
        for issue in issues:
            action = self.create_action(issue)
            if action is None:
                continue
            # Several issues of one type on one record still need distinct ids.
            occurrence = seen.get(action.action_id, 0) + 1
            seen[action.action_id] = occurrence
            if occurrence > 1:
                action = action.model_copy(update={"action_id": f"{action.action_id}-{occurrence}"})
            yield issue, action

    def select_issues(
        self, issues: Sequence[ValidationIssue], action_ids: Sequence[str]
    ) -> list[ValidationIssue]:
        """Return the issues whose planned action id is one of ``action_ids``."""
        wanted = set(action_ids)
        return [issue for issue, action in self.planned_pairs(issues) if action.action_id in wanted]

    def create_action(self, issue: ValidationIssue) -> RemediationAction | None:
        """Build the action for one issue, or None when it cannot be remediated."""
        directive = self._directive(issue)
        if directive is None:
            logger.debug(
                "Issue excluded from plan",
                entity_id=issue.entity_id,
                issue_type=issue.type,
                category=classify(issue).value,
            )
            return None

        action_type, target_table, target_record_id, changes, confidence = directive
        impact = self._analyze_impact(issue, action_type, target_table)

        return RemediationAction(
            action_id=f"ACT-{issue.entity_id}-{issue.type}",
            issue_type=issue.type,
            severity=issue.severity,
            entity=issue.entity,
            entity_id=issue.entity_id,
            description=issue.message,
            action_type=action_type,
            target_table=target_table,
            target_record_id=target_record_id,
            changes=changes,
            confidence_score=confidence,
            risk_level=determine_risk_level(confidence, action_type, impact),
            impact_analysis=impact,
            requires_manual_review=not issue.auto_fixable,
            estimated_duration_ms=estimate_duration_ms(action_type, impact),
            dependencies=self._find_dependencies(issue),
            rollback_supported=action_type != ActionType.DELETE,
        )

    def _directive(
        self, issue: ValidationIssue
    ) -> tuple[ActionType, str, str, dict, int] | None:
        category = classify(issue)
        match category:
            case IssueCategory.ORPHANED_CASE:
                return ActionType.NULLIFY, CASES, issue.entity_id, {"judge_id": None}, 95
            case IssueCategory.ORPHANED_ASSIGNMENT:
                return ActionType.DELETE, ASSIGNMENTS, issue.entity_id, {"deleted": True}, 90
            case IssueCategory.MULTIPLE_PRIMARY_COURTS:
                changes = {"assignment_type": "visiting"}
                return ActionType.UPDATE, ASSIGNMENTS, issue.entity_id, changes, 90
            case IssueCategory.TEMPORAL_OVERLAP:
                earlier_id, _ = issue.overlap_ids
                changes = {"end_date": issue.later_assignment_start}
                return ActionType.UPDATE, ASSIGNMENTS, earlier_id, changes, 85
            case IssueCategory.CASE_COUNT_MISMATCH:
                live = issue.actual_case_count
                changes = {"total_cases": live if live is not None else "recalculated"}
                return ActionType.RECALCULATE, JUDGES, issue.entity_id, changes, 98
            case IssueCategory.NAME_STANDARDIZATION:
                cleaned = standardize_name(issue.current_name, issue.name_flags)
                return ActionType.UPDATE, JUDGES, issue.entity_id, {"name": cleaned}, 75
            case IssueCategory.OUTCOME_MAPPING:
                changes = {"outcome": issue.suggested_mapping}
                return ActionType.UPDATE, CASES, issue.entity_id, changes, 80
            case IssueCategory.STALE_DATA:
                if not issue.external_id:
                    return None
                changes = {"queued": True, "entity_id": issue.external_id}
                return ActionType.QUEUE_SYNC, SYNC_QUEUE, issue.entity_id, changes, 100
            case _:
                return None

    def _analyze_impact(
        self, issue: ValidationIssue, action_type: ActionType, target_table: str
    ) -> ImpactAnalysis:
        return ImpactAnalysis(
            records_affected=len(issue.impacted_records) or 1,
            tables_affected=[target_table],
            downstream_effects=list(DOWNSTREAM_EFFECTS.get((target_table, action_type), ())),
            reversibility=reversibility_for(action_type),
            data_loss_risk=data_loss_risk_for(action_type),
        )

    def _find_dependencies(self, issue: ValidationIssue) -> list[str]:
        # No cross-action ordering constraints exist in the current issue
        # taxonomy; the field is kept for strict scheduling.
        return []

    # ── Ordering & aggregation ───────────────────────────────────

    @staticmethod
    def determine_execution_order(actions: Sequence[RemediationAction]) -> list[str]:
        """Severity, then confidence (desc), then risk, then dependency count.

        ``sorted`` is stable, so ties keep input order.
        """
        ordered = sorted(
            actions,
            key=lambda a: (
                SEVERITY_RANK[a.severity],
                -a.confidence_score,
                RISK_RANK[a.risk_level],
                len(a.dependencies),
            ),
        )
        return [a.action_id for a in ordered]

    @staticmethod
    def assess_risks(actions: Sequence[RemediationAction]) -> RiskAssessment:
        high_risk = sum(1 for a in actions if a.risk_level == RiskLevel.HIGH)
        irreversible = sum(
            1 for a in actions if a.impact_analysis.reversibility == Reversibility.IRREVERSIBLE
        )
        data_loss = any(a.impact_analysis.data_loss_risk == DataLossRisk.HIGH for a in actions)

        if high_risk > MAX_HIGH_RISK_ACTIONS or irreversible > MAX_IRREVERSIBLE_ACTIONS:
            overall = RiskLevel.HIGH
        elif high_risk > 0 or irreversible > 0:
            overall = RiskLevel.MEDIUM
        else:
            overall = RiskLevel.LOW

        warnings: list[str] = []
        if high_risk:
            warnings.append(f"{high_risk} high-risk action{'s' if high_risk > 1 else ''} identified")
        if irreversible:
            warnings.append(
                f"{irreversible} irreversible action{'s' if irreversible > 1 else ''} (deletions)"
            )
        if data_loss:
            warnings.append("Some actions have potential for data loss")

        backup = overall == RiskLevel.HIGH or irreversible > 0 or data_loss
        if backup:
            warnings.append("Database backup strongly recommended before execution")

        return RiskAssessment(
            overall_risk=overall,
            high_risk_actions=high_risk,
            irreversible_actions=irreversible,
            data_loss_potential=data_loss,
            recommended_backup=backup,
            warnings=warnings,
        )

    @staticmethod
    def _create_summary(
        report: ValidationReport, actions: Sequence[RemediationAction]
    ) -> PlanSummary:
        return PlanSummary(
            total_issues=report.total_issues,
            critical=report.critical_issues,
            high=report.high_priority_issues,
            medium=report.medium_priority_issues,
            low=report.low_priority_issues,
            auto_fixable=sum(1 for a in actions if not a.requires_manual_review),
            requires_review=sum(1 for a in actions if a.requires_manual_review),
            estimated_records_affected=sum(a.impact_analysis.records_affected for a in actions),
        )

    # ── Rendering ────────────────────────────────────────────────

    def generate_text_report(self, plan: RemediationPlan) -> str:
        return render_plan(plan)
