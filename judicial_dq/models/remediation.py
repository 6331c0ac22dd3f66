"""Pydantic models for remediation plans and execution results."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from judicial_dq.models.issue import Severity


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ActionType(str, Enum):
    UPDATE = "update"
    DELETE = "delete"
    CREATE = "create"
    NULLIFY = "nullify"
    RECALCULATE = "recalculate"
    QUEUE_SYNC = "queue_sync"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


RISK_RANK: dict[RiskLevel, int] = {RiskLevel.LOW: 1, RiskLevel.MEDIUM: 2, RiskLevel.HIGH: 3}


class Reversibility(str, Enum):
    FULLY_REVERSIBLE = "fully_reversible"
    PARTIALLY_REVERSIBLE = "partially_reversible"
    IRREVERSIBLE = "irreversible"


class DataLossRisk(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ── Plan ────────────────────────────────────────────────────────────────────


class ImpactAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    records_affected: int = 1
    tables_affected: list[str] = Field(default_factory=list)
    downstream_effects: list[str] = Field(default_factory=list)
    reversibility: Reversibility = Reversibility.FULLY_REVERSIBLE
    data_loss_risk: DataLossRisk = DataLossRisk.NONE


class RemediationAction(BaseModel):
    """A scored, executable directive derived from exactly one issue."""

    model_config = ConfigDict(frozen=True)

    action_id: str
    issue_type: str
    severity: Severity
    entity: str
    entity_id: str
    description: str = ""
    action_type: ActionType
    target_table: str
    target_record_id: str
    changes: dict[str, Any] = Field(default_factory=dict)
    confidence_score: int = Field(ge=0, le=100)
    risk_level: RiskLevel
    impact_analysis: ImpactAnalysis
    requires_manual_review: bool = False
    estimated_duration_ms: int = 0
    dependencies: list[str] = Field(default_factory=list)
    rollback_supported: bool = True


class PlanSummary(BaseModel):
    total_issues: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    auto_fixable: int = 0
    requires_review: int = 0
    estimated_records_affected: int = 0


class RiskAssessment(BaseModel):
    overall_risk: RiskLevel = RiskLevel.LOW
    high_risk_actions: int = 0
    irreversible_actions: int = 0
    data_loss_potential: bool = False
    recommended_backup: bool = False
    warnings: list[str] = Field(default_factory=list)


class RemediationPlan(BaseModel):
    """Ordered, risk-assessed set of actions built from one issue batch."""

    model_config = ConfigDict(frozen=True)

    plan_id: str
    created_at: str = Field(default_factory=utc_now_iso)
    summary: PlanSummary = Field(default_factory=PlanSummary)
    actions: list[RemediationAction] = Field(default_factory=list)
    execution_order: list[str] = Field(default_factory=list)
    estimated_duration_ms: int = 0
    risk_assessment: RiskAssessment = Field(default_factory=RiskAssessment)

    def action(self, action_id: str) -> RemediationAction | None:
        for a in self.actions:
            if a.action_id == action_id:
                return a
        return None

    def ordered_actions(self) -> list[RemediationAction]:
        by_id = {a.action_id: a for a in self.actions}
        return [by_id[i] for i in self.execution_order if i in by_id]


# ── Execution ───────────────────────────────────────────────────────────────


class RollbackInfo(BaseModel):
    """Pre-mutation field values; the only durable record enabling undo.

    ``record_id`` is a comma-joined id list when one mutation touched
    several rows with the same original values.
    """

    table: str
    record_id: str
    original_values: dict[str, Any]
    timestamp: str = Field(default_factory=utc_now_iso)

    @property
    def record_ids(self) -> list[str]:
        return [r for r in self.record_id.split(",") if r]


class RemediationResult(BaseModel):
    issue_id: str
    success: bool
    action_taken: str
    records_affected: int = 0
    changes_made: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    rollback_info: RollbackInfo | None = None


class RemediationSummary(BaseModel):
    total_issues: int = 0
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: int = 0
    results: list[RemediationResult] = Field(default_factory=list)
