"""API v1 router — planning, remediation, rollback, snapshot and audit endpoints."""

from __future__ import annotations

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from judicial_dq.api.schemas import (
    AuditListResponse,
    AuditRecord,
    IssuesRequest,
    RemediateRequest,
    RemediateResponse,
    RollbackRequest,
    RollbackResponse,
    SnapshotListResponse,
)
from judicial_dq.audit.audit_logger import RemediationAuditLogger
from judicial_dq.config import Settings, get_settings
from judicial_dq.logger import get_logger
from judicial_dq.models.remediation import RemediationPlan
from judicial_dq.models.snapshot import DataSnapshot
from judicial_dq.remediation.engine import AutoRemediationEngine
from judicial_dq.remediation.planner import RemediationPlanner
from judicial_dq.reporting.text_reporter import render_plan, render_snapshot
from judicial_dq.snapshot.generator import SnapshotGenerator
from judicial_dq.snapshot.repository import SnapshotRepository
from judicial_dq.store.base import DataStore
from judicial_dq.store.sqlite_store import SQLiteStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["v1"])


# ── Dependencies ─────────────────────────────────────────────────────────────


def api_settings() -> Settings:
    return get_settings()


def get_store(settings: Settings = Depends(api_settings)) -> DataStore:
    return SQLiteStore(settings.store_db_path)


def get_snapshot_repository(settings: Settings = Depends(api_settings)) -> SnapshotRepository:
    return SnapshotRepository(settings.snapshot_db_path)


def get_audit_logger(settings: Settings = Depends(api_settings)) -> RemediationAuditLogger:
    return RemediationAuditLogger(settings.audit_db_path)


# ── Planning ─────────────────────────────────────────────────────────────────


@router.post("/plan", response_model=RemediationPlan)
def create_plan(body: IssuesRequest, format: Literal["json", "text"] = "json"):
    """Build a remediation plan; ``format=text`` returns the plain-text report."""
    plan = RemediationPlanner().generate_plan(body.issues)
    if format == "text":
        return PlainTextResponse(render_plan(plan))
    return plan


# ── Remediation ──────────────────────────────────────────────────────────────


@router.post("/remediate", response_model=RemediateResponse)
def remediate(
    body: RemediateRequest,
    store: DataStore = Depends(get_store),
    audit: RemediationAuditLogger = Depends(get_audit_logger),
    settings: Settings = Depends(api_settings),
):
    """Execute remediation. Defaults to a dry run."""
    issues = body.issues
    if body.action_ids is not None:
        issues = RemediationPlanner().select_issues(issues, body.action_ids)

    logger.info(
        "Remediation requested",
        plan_id=body.plan_id,
        action_count=len(body.action_ids or []),
        issue_count=len(issues),
        dry_run=body.dry_run,
    )

    engine = AutoRemediationEngine(
        store, dry_run=body.dry_run, resync_priority=settings.resync_priority
    )
    summary = engine.execute_remediation(issues)

    run_id = f"run-{uuid.uuid4().hex[:12]}"
    audit.log_summary(summary, run_id, body.dry_run, body.user)

    if body.dry_run:
        message = "Dry run completed. No changes were made."
    else:
        message = (
            f"Remediation completed: {summary.successful} successful, {summary.failed} failed"
        )

    return RemediateResponse(
        success=True,
        run_id=run_id,
        plan_id=body.plan_id,
        dry_run=body.dry_run,
        summary=summary,
        message=message,
    )


@router.put("/rollback", response_model=RollbackResponse)
def rollback(
    body: RollbackRequest,
    store: DataStore = Depends(get_store),
):
    """Restore the original values recorded by a remediation."""
    if body.rollback_info is None:
        raise HTTPException(400, "Missing rollback_info in request body")

    ok = AutoRemediationEngine(store).rollback(body.rollback_info)
    return RollbackResponse(
        success=ok,
        message="Rollback completed successfully" if ok else "Rollback failed",
    )


# ── Snapshots ────────────────────────────────────────────────────────────────


@router.post("/snapshot", response_model=DataSnapshot)
async def create_snapshot(
    save: bool = False,
    format: Literal["json", "text"] = "json",
    store: DataStore = Depends(get_store),
    repository: SnapshotRepository = Depends(get_snapshot_repository),
    settings: Settings = Depends(api_settings),
):
    """Generate a snapshot of the current dataset, optionally persisting it."""
    generator = SnapshotGenerator(
        store, case_threshold=settings.case_volume_threshold, repository=repository
    )
    snapshot = await generator.generate_snapshot()
    if save:
        generator.save_snapshot(snapshot)
    if format == "text":
        return PlainTextResponse(render_snapshot(snapshot))
    return snapshot


@router.get("/snapshots", response_model=SnapshotListResponse)
def list_snapshots(
    limit: int = 20,
    repository: SnapshotRepository = Depends(get_snapshot_repository),
):
    return SnapshotListResponse.from_snapshots(repository.query_recent(limit))


@router.get("/snapshots/{snapshot_id}", response_model=DataSnapshot)
def get_snapshot(
    snapshot_id: str,
    repository: SnapshotRepository = Depends(get_snapshot_repository),
):
    snapshot = repository.get(snapshot_id)
    if snapshot is None:
        raise HTTPException(404, "Snapshot not found")
    return snapshot


# ── Audit ────────────────────────────────────────────────────────────────────


@router.get("/audit/recent", response_model=AuditListResponse)
def audit_recent(
    limit: int = 20,
    audit: RemediationAuditLogger = Depends(get_audit_logger),
):
    """Get recent audit records."""
    return AuditListResponse(records=[AuditRecord(**r) for r in audit.query_recent(limit)])


@router.get("/audit/run/{run_id}", response_model=AuditListResponse)
def audit_by_run(
    run_id: str,
    audit: RemediationAuditLogger = Depends(get_audit_logger),
):
    """Get audit records for a specific remediation run."""
    return AuditListResponse(records=[AuditRecord(**r) for r in audit.query_by_run(run_id)])
