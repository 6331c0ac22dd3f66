"""End-to-end audit pipeline: Snapshot → Plan → Remediate → Snapshot → Report."""

from __future__ import annotations

import asyncio
import time
import uuid
from enum import Enum
from typing import Callable, Sequence

from pydantic import BaseModel, Field

from judicial_dq.audit.audit_logger import RemediationAuditLogger
from judicial_dq.config import Settings, get_settings
from judicial_dq.logger import bound_context, get_logger
from judicial_dq.models.issue import ValidationIssue
from judicial_dq.models.remediation import RemediationPlan, RemediationSummary
from judicial_dq.models.snapshot import DataSnapshot, SnapshotDelta
from judicial_dq.remediation.engine import AutoRemediationEngine
from judicial_dq.remediation.planner import RemediationPlanner
from judicial_dq.reporting.json_reporter import save_json_report
from judicial_dq.snapshot.generator import SnapshotGenerator, compare_snapshots
from judicial_dq.snapshot.repository import SnapshotRepository
from judicial_dq.store.base import DataStore

logger = get_logger(__name__)


class PipelineStage(str, Enum):
    PENDING = "pending"
    SNAPSHOT_BEFORE = "snapshot_before"
    PLANNING = "planning"
    REMEDIATION = "remediation"
    SNAPSHOT_AFTER = "snapshot_after"
    COMPLETED = "completed"
    FAILED = "failed"


class PipelineState(BaseModel):
    """Tracks pipeline execution state."""

    run_id: str = ""
    stage: PipelineStage = PipelineStage.PENDING
    progress: float = 0.0  # 0–100
    errors: list[str] = Field(default_factory=list)
    stage_times: dict[str, float] = Field(default_factory=dict)


class AuditRunResult(BaseModel):
    run_id: str
    dry_run: bool
    plan: RemediationPlan
    summary: RemediationSummary
    snapshot_before: DataSnapshot
    snapshot_after: DataSnapshot
    delta: SnapshotDelta


class DataAuditPipeline:
    """Wires the planner, engine, snapshot generator and audit trail together.

    The plan is advisory: the engine processes issues in their given order
    whatever the plan's execution order says.
    """

    def __init__(
        self,
        store: DataStore,
        settings: Settings | None = None,
        dry_run: bool | None = None,
        on_progress: Callable[[PipelineState], None] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._settings.ensure_dirs()
        self.dry_run = self._settings.dry_run_default if dry_run is None else dry_run

        self._on_progress = on_progress
        self.state = PipelineState()

        self._planner = RemediationPlanner()
        self._engine = AutoRemediationEngine(
            store, dry_run=self.dry_run, resync_priority=self._settings.resync_priority
        )
        self._snapshots = SnapshotRepository(self._settings.snapshot_db_path)
        self._generator = SnapshotGenerator(
            store,
            case_threshold=self._settings.case_volume_threshold,
            repository=self._snapshots,
        )
        self._audit = RemediationAuditLogger(self._settings.audit_db_path)

    @property
    def engine(self) -> AutoRemediationEngine:
        return self._engine

    def _emit(self, stage: PipelineStage, progress: float) -> None:
        self.state.stage = stage
        self.state.progress = progress
        if self._on_progress:
            self._on_progress(self.state)

    def run(self, issues: Sequence[ValidationIssue], user: str = "system") -> AuditRunResult:
        """Synchronous entry point; must not be called from a running event loop."""
        return asyncio.run(self.run_async(issues, user))

    async def run_async(
        self, issues: Sequence[ValidationIssue], user: str = "system"
    ) -> AuditRunResult:
        run_id = f"run-{uuid.uuid4().hex[:12]}"
        self.state = PipelineState(run_id=run_id)
        pipeline_start = time.time()

        with bound_context(run_id=run_id, dry_run=self.dry_run):
            try:
                # ── Stage 1: Baseline snapshot ───────────────────
                self._emit(PipelineStage.SNAPSHOT_BEFORE, 5)
                t0 = time.time()
                before = await self._generator.generate_snapshot()
                self._generator.save_snapshot(before)
                self.state.stage_times["snapshot_before"] = time.time() - t0

                # ── Stage 2: Planning ────────────────────────────
                self._emit(PipelineStage.PLANNING, 25)
                t0 = time.time()
                plan = self._planner.generate_plan(issues)
                self.state.stage_times["planning"] = time.time() - t0

                # ── Stage 3: Remediation ─────────────────────────
                self._emit(PipelineStage.REMEDIATION, 45)
                t0 = time.time()
                summary = await asyncio.to_thread(self._engine.execute_remediation, issues)
                self._audit.log_summary(summary, run_id, self.dry_run, user)
                self.state.stage_times["remediation"] = time.time() - t0

                # ── Stage 4: Post-remediation snapshot ───────────
                self._emit(PipelineStage.SNAPSHOT_AFTER, 75)
                t0 = time.time()
                after = await self._generator.generate_snapshot()
                if after.snapshot_id == before.snapshot_id:
                    after = after.model_copy(update={"snapshot_id": f"{after.snapshot_id}-after"})
                self._generator.save_snapshot(after)
                self.state.stage_times["snapshot_after"] = time.time() - t0

                result = AuditRunResult(
                    run_id=run_id,
                    dry_run=self.dry_run,
                    plan=plan,
                    summary=summary,
                    snapshot_before=before,
                    snapshot_after=after,
                    delta=compare_snapshots(before, after),
                )
                save_json_report(plan, self._settings.report_dir, "plan", plan.plan_id)
                save_json_report(result, self._settings.report_dir, "run", run_id)

                self._emit(PipelineStage.COMPLETED, 100)
                logger.info(
                    "Pipeline complete",
                    plan_id=plan.plan_id,
                    successful=summary.successful,
                    failed=summary.failed,
                    health_before=before.health_score,
                    health_after=after.health_score,
                    total_time=round(time.time() - pipeline_start, 2),
                )
                return result

            except Exception as exc:
                self.state.errors.append(str(exc))
                self._emit(PipelineStage.FAILED, self.state.progress)
                logger.error("Pipeline failed", error=str(exc), stage=self.state.stage.value)
                raise

    def rollback_run(self, run_id: str) -> dict[str, bool]:
        """Undo every recorded mutation of ``run_id``, most recent first."""
        outcome: dict[str, bool] = {}
        for info in self._audit.rollback_candidates(run_id):
            outcome[f"{info.table}:{info.record_id}"] = self._engine.rollback(info)
        logger.info(
            "Run rolled back",
            run_id=run_id,
            attempted=len(outcome),
            succeeded=sum(outcome.values()),
        )
        return outcome
