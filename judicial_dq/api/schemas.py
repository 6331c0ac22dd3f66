"""Pydantic response/request models for the API — provides typed contracts + OpenAPI docs."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from judicial_dq.models.issue import ValidationIssue
from judicial_dq.models.remediation import RemediationSummary, RollbackInfo
from judicial_dq.models.snapshot import DataSnapshot


# ── Health ───────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str
    environment: str


# ── Errors ───────────────────────────────────────────────────────────────────


class ErrorResponse(BaseModel):
    error: str
    message: str


# ── Planning / remediation ───────────────────────────────────────────────────


class IssuesRequest(BaseModel):
    issues: list[ValidationIssue]


class RemediateRequest(BaseModel):
    issues: list[ValidationIssue]
    plan_id: str | None = None
    action_ids: list[str] | None = None
    dry_run: bool = True
    user: str = "api_user"


class RemediateResponse(BaseModel):
    success: bool
    run_id: str
    plan_id: str | None = None
    dry_run: bool
    summary: RemediationSummary
    message: str


class RollbackRequest(BaseModel):
    rollback_info: RollbackInfo | None = None


class RollbackResponse(BaseModel):
    success: bool
    message: str


# ── Snapshots ────────────────────────────────────────────────────────────────


class SnapshotListEntry(BaseModel):
    snapshot_id: str
    timestamp: str
    health_score: int


class SnapshotListResponse(BaseModel):
    snapshots: list[SnapshotListEntry]

    @classmethod
    def from_snapshots(cls, snapshots: list[DataSnapshot]) -> SnapshotListResponse:
        return cls(
            snapshots=[
                SnapshotListEntry(
                    snapshot_id=s.snapshot_id, timestamp=s.timestamp, health_score=s.health_score
                )
                for s in snapshots
            ]
        )


# ── Audit ────────────────────────────────────────────────────────────────────


class AuditRecord(BaseModel):
    log_id: str
    run_id: str
    issue_id: str
    success: bool
    action_taken: str
    records_affected: int | None = None
    changes: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    rollback_info: dict[str, Any] | None = None
    dry_run: bool
    user_id: str | None = None
    timestamp: str


class AuditListResponse(BaseModel):
    records: list[AuditRecord]
