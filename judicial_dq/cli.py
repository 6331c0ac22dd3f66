"""Command line interface for planning, remediation, snapshots and rollback."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from judicial_dq.config import Settings, get_settings
from judicial_dq.logger import get_logger, setup_logging
from judicial_dq.models.issue import ValidationIssue
from judicial_dq.models.remediation import RollbackInfo
from judicial_dq.orchestration.orchestrator import DataAuditPipeline
from judicial_dq.remediation.engine import AutoRemediationEngine
from judicial_dq.remediation.planner import RemediationPlanner
from judicial_dq.reporting.json_reporter import save_json_report
from judicial_dq.reporting.text_reporter import (
    render_delta,
    render_plan,
    render_remediation_summary,
    render_snapshot,
)
from judicial_dq.snapshot.generator import SnapshotGenerator
from judicial_dq.snapshot.repository import SnapshotRepository
from judicial_dq.store.sqlite_store import SQLiteStore

logger = get_logger(__name__)

_ISSUES = TypeAdapter(list[ValidationIssue])
_ROLLBACKS = TypeAdapter(list[RollbackInfo])


def setup_argparse() -> argparse.ArgumentParser:
    """Setup command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="judicial-dq",
        description="Judicial data quality remediation",
    )
    parser.add_argument("--db", type=str, default=None, help="Path to the judicial SQLite database")
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    plan_parser = subparsers.add_parser("plan", help="Generate a remediation plan")
    plan_parser.add_argument("issues", type=str, help="JSON file of validation issues")
    plan_parser.add_argument("--format", choices=["json", "text"], default="text")
    plan_parser.add_argument("--output", type=str, default=None, help="Write the plan to a file")

    remediate_parser = subparsers.add_parser("remediate", help="Execute auto-remediation")
    remediate_parser.add_argument("issues", type=str, help="JSON file of validation issues")
    mode = remediate_parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Report changes without applying them")
    mode.add_argument("--confirm", action="store_true", help="Apply changes to the database")
    remediate_parser.add_argument("--user", type=str, default="cli", help="User recorded in the audit log")

    snapshot_parser = subparsers.add_parser("snapshot", help="Generate a data snapshot")
    snapshot_parser.add_argument("--save", action="store_true", help="Persist the snapshot")
    snapshot_parser.add_argument("--format", choices=["json", "text"], default="text")

    rollback_parser = subparsers.add_parser("rollback", help="Undo recorded remediations")
    target = rollback_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("rollback_file", nargs="?", help="JSON file with rollback info")
    target.add_argument("--run", type=str, help="Roll back every mutation of a remediation run")

    return parser


def load_issues(path: str | Path) -> list[ValidationIssue]:
    """Accepts a bare issue list or an object with an ``issues`` key."""
    data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("issues", [])
    return _ISSUES.validate_python(data)


def load_rollbacks(path: str | Path) -> list[RollbackInfo]:
    data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = [data.get("rollback_info", data)]
    return _ROLLBACKS.validate_python(data)


# ── Commands ─────────────────────────────────────────────────────────────────


def cmd_plan(args: argparse.Namespace, settings: Settings) -> int:
    plan = RemediationPlanner().generate_plan(load_issues(args.issues))
    output = plan.model_dump_json(indent=2) if args.format == "json" else render_plan(plan)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Plan written to {args.output}")
    else:
        print(output)
    save_json_report(plan, settings.report_dir, "plan", plan.plan_id)
    return 0


def cmd_remediate(args: argparse.Namespace, settings: Settings) -> int:
    if not args.dry_run and not args.confirm:
        print("Refusing to modify data without --confirm (or use --dry-run to preview).")
        return 2

    issues = load_issues(args.issues)
    pipeline = DataAuditPipeline(SQLiteStore(settings.store_db_path), settings, dry_run=args.dry_run)
    result = pipeline.run(issues, user=args.user)

    print(render_plan(result.plan))
    print(render_remediation_summary(result.summary, dry_run=result.dry_run))
    print(render_delta(result.delta))
    print(f"Run ID: {result.run_id}")
    return 0 if result.summary.failed == 0 else 1


def cmd_snapshot(args: argparse.Namespace, settings: Settings) -> int:
    generator = SnapshotGenerator(
        SQLiteStore(settings.store_db_path),
        case_threshold=settings.case_volume_threshold,
        repository=SnapshotRepository(settings.snapshot_db_path),
    )
    snapshot = asyncio.run(generator.generate_snapshot())
    if args.save:
        generator.save_snapshot(snapshot)

    if args.format == "json":
        print(snapshot.model_dump_json(indent=2))
    else:
        print(render_snapshot(snapshot))
        if args.save:
            print(f"Snapshot saved: {snapshot.snapshot_id}")
    return 0


def cmd_rollback(args: argparse.Namespace, settings: Settings) -> int:
    store = SQLiteStore(settings.store_db_path)
    if args.run:
        outcome = DataAuditPipeline(store, settings, dry_run=False).rollback_run(args.run)
    else:
        engine = AutoRemediationEngine(store)
        outcome = {
            f"{info.table}:{info.record_id}": engine.rollback(info)
            for info in load_rollbacks(args.rollback_file)
        }

    for key, ok in outcome.items():
        print(f"  {'OK  ' if ok else 'FAIL'} {key}")
    failed = sum(1 for ok in outcome.values() if not ok)
    print(f"Rolled back {len(outcome) - failed}/{len(outcome)}")
    return 0 if failed == 0 else 1


_COMMANDS = {
    "plan": cmd_plan,
    "remediate": cmd_remediate,
    "snapshot": cmd_snapshot,
    "rollback": cmd_rollback,
}


def main(argv: list[str] | None = None) -> int:
    parser = setup_argparse()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    overrides: dict[str, Any] = {}
    if args.db:
        overrides["store_db_path"] = args.db
    if args.log_level:
        overrides["log_level"] = args.log_level
    settings = Settings(**overrides) if overrides else get_settings()
    setup_logging(settings)
    settings.ensure_dirs()

    try:
        return _COMMANDS[args.command](args, settings)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        logger.error("Invalid input", command=args.command, error=str(exc))
        print(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
