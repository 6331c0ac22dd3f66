"""Data snapshot generator — point-in-time statistics and a health score.

Every aggregate query is read-only and independent of the others, so they
run concurrently on worker threads via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import time
from collections import Counter, defaultdict
from datetime import date, datetime, timezone
from typing import Any, Callable

from judicial_dq.logger import get_logger
from judicial_dq.models.snapshot import (
    AssignmentSnapshot,
    CaseSnapshot,
    CourtSnapshot,
    DataSnapshot,
    JudgeSnapshot,
    QualityMetrics,
    SnapshotDelta,
)
from judicial_dq.remediation.normalizers import has_standardization_issue, is_valid_outcome
from judicial_dq.snapshot.repository import SnapshotRepository
from judicial_dq.store.base import ASSIGNMENTS, CASES, COURTS, JUDGES, DataStore, Filter

logger = get_logger(__name__)

DEFAULT_CASE_THRESHOLD = 500
ASSIGNMENT_SAMPLE_LIMIT = 1000

# Health-score deductions per unit of each quality metric.
METRIC_WEIGHTS: dict[str, float] = {
    "orphaned_records": 0.5,
    "duplicate_identifiers": 2.0,
    "missing_required_fields": 1.0,
    "standardization_issues": 0.2,
    "relationship_inconsistencies": 3.0,
    "temporal_overlaps": 2.0,
    "jurisdiction_mismatches": 1.0,
}
NO_PRIMARY_COURT_WEIGHT = 10.0
ORPHANED_CASE_WEIGHT = 10.0
BELOW_THRESHOLD_WEIGHT = 5.0


def calculate_health_score(
    quality: QualityMetrics,
    judges: JudgeSnapshot,
    cases: CaseSnapshot,
) -> int:
    """0-100, higher is better. Non-increasing in every quality counter."""
    score = 100.0
    for field, weight in METRIC_WEIGHTS.items():
        score -= getattr(quality, field) * weight

    judge_total = max(judges.total, 1)
    score -= (judges.without_primary_court / judge_total) * NO_PRIMARY_COURT_WEIGHT
    score -= (cases.orphaned / max(cases.total, 1)) * ORPHANED_CASE_WEIGHT
    score -= (judges.below_threshold / judge_total) * BELOW_THRESHOLD_WEIGHT

    return max(0, min(100, round(score)))


def compare_snapshots(before: DataSnapshot, after: DataSnapshot) -> SnapshotDelta:
    """Per-metric change from ``before`` to ``after``."""
    b = before.quality_metrics.model_dump()
    a = after.quality_metrics.model_dump()
    return SnapshotDelta(
        before_id=before.snapshot_id,
        after_id=after.snapshot_id,
        health_score_delta=after.health_score - before.health_score,
        metric_deltas={k: a[k] - b[k] for k in b},
    )


def _years_ago(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February in a non-leap target year.
        return today.replace(year=today.year - years, day=28)


def _overlaps(a: dict[str, Any], b: dict[str, Any]) -> bool:
    # Open-ended assignments run to the present; ISO dates compare as strings.
    a_end = a.get("end_date") or "9999-12-31"
    b_end = b.get("end_date") or "9999-12-31"
    return a["start_date"] < b_end and b["start_date"] < a_end


class SnapshotGenerator:
    """Creates comprehensive snapshots of the judicial dataset."""

    def __init__(
        self,
        store: DataStore,
        case_threshold: int = DEFAULT_CASE_THRESHOLD,
        repository: SnapshotRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._case_threshold = case_threshold
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def generate_snapshot(self) -> DataSnapshot:
        start = time.monotonic()
        now = self._clock()
        snapshot_id = f"snapshot-{int(now.timestamp() * 1000)}"

        logger.info("Generating data snapshot", snapshot_id=snapshot_id)

        try:
            judges, courts, cases, assignments, quality = await asyncio.gather(
                self._judge_snapshot(),
                self._court_snapshot(),
                self._case_snapshot(now.date()),
                self._assignment_snapshot(),
                self._quality_metrics(),
            )
        except Exception as exc:
            logger.error("Snapshot generation failed", snapshot_id=snapshot_id, error=str(exc))
            raise

        snapshot = DataSnapshot(
            snapshot_id=snapshot_id,
            timestamp=now.isoformat(),
            duration_ms=int((time.monotonic() - start) * 1000),
            judges=judges,
            courts=courts,
            cases=cases,
            assignments=assignments,
            quality_metrics=quality,
            health_score=calculate_health_score(quality, judges, cases),
        )

        logger.info(
            "Snapshot generated successfully",
            snapshot_id=snapshot_id,
            duration_ms=snapshot.duration_ms,
            health_score=snapshot.health_score,
        )
        return snapshot

    def save_snapshot(self, snapshot: DataSnapshot) -> None:
        if self._repository is None:
            raise RuntimeError("SnapshotGenerator has no repository configured")
        self._repository.save(snapshot)

    # ── Sections ─────────────────────────────────────────────────

    @staticmethod
    async def _run(*queries: Callable[[], Any]) -> list[Any]:
        return list(await asyncio.gather(*(asyncio.to_thread(q) for q in queries)))

    async def _judge_snapshot(self) -> JudgeSnapshot:
        total, retired, with_primary, below, by_jurisdiction, avg_cases = await self._run(
            lambda: self._store.count(JUDGES),
            self._count_retired_judges,
            self._count_judges_with_primary_court,
            lambda: self._store.count(JUDGES, [Filter.lt("total_cases", self._case_threshold)]),
            lambda: self._distribution(JUDGES, "jurisdiction"),
            self._avg_cases_per_judge,
        )
        return JudgeSnapshot(
            total=total,
            with_primary_court=with_primary,
            without_primary_court=max(total - with_primary, 0),
            below_threshold=below,
            above_threshold=total - below,
            by_jurisdiction=by_jurisdiction,
            active=total - retired,
            retired=retired,
            avg_cases_per_judge=avg_cases,
        )

    async def _court_snapshot(self) -> CourtSnapshot:
        total, active_assignments, by_jurisdiction, by_type = await self._run(
            lambda: self._store.count(COURTS),
            self._active_assignments,
            lambda: self._distribution(COURTS, "jurisdiction"),
            lambda: self._distribution(COURTS, "court_type", missing="unknown"),
        )
        court_ids = {a["court_id"] for a in active_assignments if a.get("court_id")}
        return CourtSnapshot(
            total=total,
            with_judges=len(court_ids),
            without_judges=max(total - len(court_ids), 0),
            by_jurisdiction=by_jurisdiction,
            by_type=by_type,
            avg_judges_per_court=round(len(active_assignments) / len(court_ids)) if court_ids else 0,
        )

    async def _case_snapshot(self, today: date) -> CaseSnapshot:
        recent_cutoff = _years_ago(today, 1).isoformat()
        stale_cutoff = _years_ago(today, 3).isoformat()
        total, linked, avg_cases, outcomes, recent, stale = await self._run(
            lambda: self._store.count(CASES),
            lambda: self._store.count(CASES, [Filter.not_null("judge_id")]),
            self._avg_cases_per_judge,
            self._outcome_breakdown,
            lambda: self._store.count(CASES, [Filter.gte("decision_date", recent_cutoff)]),
            lambda: self._store.count(CASES, [Filter.lt("decision_date", stale_cutoff)]),
        )
        valid, invalid, distribution = outcomes
        return CaseSnapshot(
            total=total,
            linked_to_judge=linked,
            orphaned=total - linked,
            with_valid_outcome=valid,
            with_invalid_outcome=invalid,
            avg_cases_per_judge=avg_cases,
            by_outcome=distribution,
            recent_cases=recent,
            stale_cases=stale,
        )

    async def _assignment_snapshot(self) -> AssignmentSnapshot:
        total, active, overlapping, mismatches = await self._run(
            lambda: self._store.count(ASSIGNMENTS),
            self._active_assignments,
            self._count_temporal_overlaps,
            self._count_jurisdiction_mismatches,
        )
        by_type = Counter(a.get("assignment_type") for a in active)
        return AssignmentSnapshot(
            total=total,
            active=len(active),
            ended=total - len(active),
            primary=by_type.get("primary", 0),
            visiting=by_type.get("visiting", 0),
            temporary=by_type.get("temporary", 0),
            retired=by_type.get("retired", 0),
            overlapping=overlapping,
            jurisdiction_mismatches=mismatches,
        )

    async def _quality_metrics(self) -> QualityMetrics:
        (
            orphaned,
            duplicates,
            missing,
            standardization,
            relationships,
            overlaps,
            mismatches,
        ) = await self._run(
            lambda: self._store.count(CASES, [Filter.is_null("judge_id")]),
            self._count_duplicate_identifiers,
            self._count_missing_required_fields,
            self._count_standardization_issues,
            self._count_relationship_inconsistencies,
            self._count_temporal_overlaps,
            self._count_jurisdiction_mismatches,
        )
        return QualityMetrics(
            orphaned_records=orphaned,
            duplicate_identifiers=duplicates,
            missing_required_fields=missing,
            standardization_issues=standardization,
            relationship_inconsistencies=relationships,
            temporal_overlaps=overlaps,
            jurisdiction_mismatches=mismatches,
        )

    # ── Queries (run on worker threads) ──────────────────────────

    def _active_assignments(self) -> list[dict[str, Any]]:
        return self._store.select(
            ASSIGNMENTS,
            columns=["id", "judge_id", "court_id", "assignment_type"],
            filters=[Filter.is_null("end_date")],
        )

    def _active_primary_judges(self) -> list[str]:
        rows = self._store.select(
            ASSIGNMENTS,
            columns=["judge_id"],
            filters=[Filter.eq("assignment_type", "primary"), Filter.is_null("end_date")],
        )
        return [r["judge_id"] for r in rows]

    def _count_retired_judges(self) -> int:
        rows = self._store.select(
            ASSIGNMENTS,
            columns=["judge_id"],
            filters=[Filter.eq("assignment_type", "retired"), Filter.is_null("end_date")],
        )
        return len({r["judge_id"] for r in rows})

    def _count_judges_with_primary_court(self) -> int:
        return len(set(self._active_primary_judges()))

    def _count_relationship_inconsistencies(self) -> int:
        counts = Counter(self._active_primary_judges())
        return sum(1 for n in counts.values() if n > 1)

    def _avg_cases_per_judge(self) -> int:
        rows = self._store.select(JUDGES, columns=["total_cases"])
        if not rows:
            return 0
        return round(sum(r.get("total_cases") or 0 for r in rows) / len(rows))

    def _distribution(self, table: str, column: str, missing: str | None = None) -> dict[str, int]:
        if missing is None:
            rows = self._store.select(table, columns=[column], filters=[Filter.not_null(column)])
        else:
            rows = self._store.select(table, columns=[column])
        counts: Counter[str] = Counter(r.get(column) or missing for r in rows)
        return dict(counts)

    def _outcome_breakdown(self) -> tuple[int, int, dict[str, int]]:
        rows = self._store.select(CASES, columns=["outcome"])
        valid = invalid = 0
        distribution: Counter[str] = Counter()
        for row in rows:
            outcome = (row.get("outcome") or "").lower().strip()
            if not outcome:
                continue
            if is_valid_outcome(outcome):
                valid += 1
            else:
                invalid += 1
            distribution[outcome] += 1
        return valid, invalid, dict(distribution)

    def _count_duplicate_identifiers(self) -> int:
        duplicates = 0
        for table in (JUDGES, COURTS):
            rows = self._store.select(
                table, columns=["courtlistener_id"], filters=[Filter.not_null("courtlistener_id")]
            )
            counts = Counter(r["courtlistener_id"] for r in rows)
            duplicates += sum(1 for n in counts.values() if n > 1)
        return duplicates

    def _count_missing_required_fields(self) -> int:
        missing = 0
        for table, column in ((JUDGES, "name"), (CASES, "case_name"), (COURTS, "name")):
            missing += self._store.count(table, [Filter.is_null(column)])
            missing += self._store.count(table, [Filter.eq(column, "")])
        return missing

    def _count_standardization_issues(self) -> int:
        rows = self._store.select(JUDGES, columns=["name"], filters=[Filter.not_null("name")])
        return sum(1 for r in rows if r["name"] and has_standardization_issue(r["name"]))

    def _count_temporal_overlaps(self) -> int:
        rows = self._store.select(
            ASSIGNMENTS,
            columns=["id", "judge_id", "start_date", "end_date"],
            filters=[Filter.not_null("start_date")],
            order_by="start_date",
        )
        by_judge: dict[str, list[dict[str, Any]]] = defaultdict(list)
        for row in rows:
            by_judge[row["judge_id"]].append(row)

        overlaps = 0
        for assignments in by_judge.values():
            for i, first in enumerate(assignments):
                for second in assignments[i + 1 :]:
                    if _overlaps(first, second):
                        overlaps += 1
        return overlaps

    def _count_jurisdiction_mismatches(self) -> int:
        assignments = self._store.select(
            ASSIGNMENTS, columns=["judge_id", "court_id"], limit=ASSIGNMENT_SAMPLE_LIMIT
        )
        judge_jur = {
            r["id"]: r["jurisdiction"]
            for r in self._store.select(JUDGES, columns=["id", "jurisdiction"])
        }
        court_jur = {
            r["id"]: r["jurisdiction"]
            for r in self._store.select(COURTS, columns=["id", "jurisdiction"])
        }

        mismatches = 0
        for a in assignments:
            judge = (judge_jur.get(a["judge_id"]) or "").lower().strip()
            court = (court_jur.get(a["court_id"]) or "").lower().strip()
            if judge and court and judge != court:
                mismatches += 1
        return mismatches
