"""Pydantic models for point-in-time data snapshots."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class JudgeSnapshot(BaseModel):
    total: int = 0
    with_primary_court: int = 0
    without_primary_court: int = 0
    below_threshold: int = 0
    above_threshold: int = 0
    by_jurisdiction: dict[str, int] = Field(default_factory=dict)
    active: int = 0
    retired: int = 0
    avg_cases_per_judge: int = 0


class CourtSnapshot(BaseModel):
    total: int = 0
    with_judges: int = 0
    without_judges: int = 0
    by_jurisdiction: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    avg_judges_per_court: int = 0


class CaseSnapshot(BaseModel):
    total: int = 0
    linked_to_judge: int = 0
    orphaned: int = 0
    with_valid_outcome: int = 0
    with_invalid_outcome: int = 0
    avg_cases_per_judge: int = 0
    by_outcome: dict[str, int] = Field(default_factory=dict)
    recent_cases: int = 0
    stale_cases: int = 0


class AssignmentSnapshot(BaseModel):
    total: int = 0
    active: int = 0
    ended: int = 0
    primary: int = 0
    visiting: int = 0
    temporary: int = 0
    retired: int = 0
    overlapping: int = 0
    jurisdiction_mismatches: int = 0


class QualityMetrics(BaseModel):
    orphaned_records: int = 0
    duplicate_identifiers: int = 0
    missing_required_fields: int = 0
    standardization_issues: int = 0
    relationship_inconsistencies: int = 0
    temporal_overlaps: int = 0
    jurisdiction_mismatches: int = 0


class DataSnapshot(BaseModel):
    """Immutable, timestamped aggregate view of the judicial dataset."""

    model_config = ConfigDict(frozen=True)

    snapshot_id: str
    timestamp: str
    duration_ms: int = 0
    judges: JudgeSnapshot = Field(default_factory=JudgeSnapshot)
    courts: CourtSnapshot = Field(default_factory=CourtSnapshot)
    cases: CaseSnapshot = Field(default_factory=CaseSnapshot)
    assignments: AssignmentSnapshot = Field(default_factory=AssignmentSnapshot)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    health_score: int = Field(default=100, ge=0, le=100)


class SnapshotDelta(BaseModel):
    """Change between two snapshots; negative metric deltas are improvements."""

    before_id: str
    after_id: str
    health_score_delta: int = 0
    metric_deltas: dict[str, int] = Field(default_factory=dict)

    @property
    def improved(self) -> bool:
        return self.health_score_delta > 0
