"""Plain-text renderings of plans, snapshots and remediation summaries."""

from __future__ import annotations

from judicial_dq.models.remediation import RemediationPlan, RemediationSummary
from judicial_dq.models.snapshot import DataSnapshot, SnapshotDelta

HEAVY_RULE = "═" * 63
LIGHT_RULE = "─" * 63
TOP_ACTIONS = 10


def _section(lines: list[str], title: str) -> None:
    lines.append(LIGHT_RULE)
    lines.append(title)
    lines.append(LIGHT_RULE)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'s' if n != 1 else ''}"


def render_plan(plan: RemediationPlan) -> str:
    """Counts, risk summary and the top prioritised actions."""
    lines: list[str] = [
        HEAVY_RULE,
        "              REMEDIATION PLAN",
        HEAVY_RULE,
        "",
        f"Plan ID: {plan.plan_id}",
        f"Created: {plan.created_at}",
        f"Estimated Duration: {plan.estimated_duration_ms / 1000:.2f}s",
        "",
    ]

    s = plan.summary
    _section(lines, "SUMMARY")
    lines += [
        f"Total Issues: {s.total_issues}",
        f"  Critical:   {s.critical}",
        f"  High:       {s.high}",
        f"  Medium:     {s.medium}",
        f"  Low:        {s.low}",
        "",
        f"Auto-fixable:      {s.auto_fixable}",
        f"Requires Review:   {s.requires_review}",
        f"Records Affected:  {s.estimated_records_affected}",
        "",
    ]

    r = plan.risk_assessment
    _section(lines, "RISK ASSESSMENT")
    lines += [
        f"Overall Risk: {r.overall_risk.value.upper()}",
        f"High-risk Actions: {r.high_risk_actions}",
        f"Irreversible Actions: {r.irreversible_actions}",
        f"Backup Recommended: {'YES' if r.recommended_backup else 'No'}",
        "",
    ]
    if r.warnings:
        lines.append("Warnings:")
        lines += [f"  • {w}" for w in r.warnings]
        lines.append("")

    ordered = plan.ordered_actions()[:TOP_ACTIONS]
    if ordered:
        _section(lines, f"TOP {TOP_ACTIONS} PRIORITY ACTIONS")
        for i, action in enumerate(ordered, start=1):
            impact = action.impact_analysis
            lines.append(f"{i}. [{action.severity.value.upper()}] {action.description}")
            lines.append(f"   Action: {action.action_type.value} on {action.target_table}")
            lines.append(
                f"   Confidence: {action.confidence_score}% | Risk: {action.risk_level.value}"
            )
            lines.append(
                f"   Affects: {_plural(impact.records_affected, 'record')}"
                f" | Rollback: {'Yes' if action.rollback_supported else 'No'}"
            )
            if action.requires_manual_review:
                lines.append("   Requires manual review before execution")
            lines.append("")

    lines.append(HEAVY_RULE)
    return "\n".join(lines)


def render_snapshot(snapshot: DataSnapshot) -> str:
    j, c, k, a, q = (
        snapshot.judges,
        snapshot.courts,
        snapshot.cases,
        snapshot.assignments,
        snapshot.quality_metrics,
    )
    lines = [
        HEAVY_RULE,
        "DATA SNAPSHOT SUMMARY",
        HEAVY_RULE,
        f"Snapshot ID: {snapshot.snapshot_id}",
        f"Timestamp:   {snapshot.timestamp}",
        f"Duration:    {snapshot.duration_ms / 1000:.2f}s",
        f"Health Score: {snapshot.health_score}/100",
        "",
        "Judges:",
        f"  Total:              {j.total}",
        f"  With Primary Court: {j.with_primary_court}",
        f"  Below Threshold:    {j.below_threshold}",
        f"  Active:             {j.active}",
        f"  Retired:            {j.retired}",
        "",
        "Courts:",
        f"  Total:          {c.total}",
        f"  With Judges:    {c.with_judges}",
        f"  Without Judges: {c.without_judges}",
        "",
        "Cases:",
        f"  Total:           {k.total}",
        f"  Linked to Judge: {k.linked_to_judge}",
        f"  Orphaned:        {k.orphaned}",
        f"  Valid Outcome:   {k.with_valid_outcome}",
        f"  Invalid Outcome: {k.with_invalid_outcome}",
        "",
        "Assignments:",
        f"  Total:       {a.total}",
        f"  Active:      {a.active}",
        f"  Primary:     {a.primary}",
        f"  Visiting:    {a.visiting}",
        f"  Overlapping: {a.overlapping}",
        "",
        "Quality Metrics:",
        f"  Orphaned Records:             {q.orphaned_records}",
        f"  Duplicate Identifiers:        {q.duplicate_identifiers}",
        f"  Missing Required Fields:      {q.missing_required_fields}",
        f"  Standardization Issues:       {q.standardization_issues}",
        f"  Relationship Inconsistencies: {q.relationship_inconsistencies}",
        f"  Temporal Overlaps:            {q.temporal_overlaps}",
        f"  Jurisdiction Mismatches:      {q.jurisdiction_mismatches}",
        HEAVY_RULE,
    ]
    return "\n".join(lines)


def render_remediation_summary(summary: RemediationSummary, dry_run: bool = False) -> str:
    lines: list[str] = []
    _section(lines, "REMEDIATION SUMMARY")
    lines += [
        f"Total Issues:    {summary.total_issues}",
        f"Attempted:       {summary.attempted}",
        f"Successful:      {summary.successful}",
        f"Failed:          {summary.failed}",
        f"Skipped:         {summary.skipped}",
        f"Duration:        {summary.duration_ms / 1000:.2f}s",
        "",
    ]
    failures = [r for r in summary.results if not r.success]
    if failures:
        lines.append("Some remediation actions failed:")
        lines += [f"  • {r.action_taken}: {r.error}" for r in failures]
        lines.append("")
    if dry_run:
        lines.append("This was a dry run. No changes were made.")
    return "\n".join(lines)


def render_delta(delta: SnapshotDelta) -> str:
    sign = "+" if delta.health_score_delta >= 0 else ""
    lines = [f"Health score change: {sign}{delta.health_score_delta}"]
    for name, change in sorted(delta.metric_deltas.items()):
        if change:
            lines.append(f"  {name}: {'+' if change > 0 else ''}{change}")
    return "\n".join(lines)
