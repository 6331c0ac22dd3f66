"""Test configuration and shared fixtures."""

import os
import sys
from pathlib import Path

import pytest

# Ensure the project root is on PYTHONPATH
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

# Set test environment variables before anything else imports config
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from judicial_dq.config import Settings  # noqa: E402
from judicial_dq.models.issue import ValidationIssue  # noqa: E402
from judicial_dq.store.memory_store import InMemoryStore  # noqa: E402


def seed_tables() -> dict[str, list[dict]]:
    """A small dataset with one instance of each problem the engine fixes.

    - judge-1 caches 40 cases but has 42 linked cases
    - judge-1 holds two open primary assignments that overlap
    - judge-2's name needs cleanup
    - case-orphan points at a judge that does not exist
    - assign-orphan points at a court that does not exist
    """
    cases = [
        {
            "id": f"case-{i}",
            "case_name": f"State v. Doe {i}",
            "judge_id": "judge-1",
            "outcome": "settled",
            "status": "closed",
            "decision_date": "2024-03-01",
        }
        for i in range(42)
    ]
    cases += [
        {
            "id": "case-orphan",
            "case_name": "People v. Roe",
            "judge_id": "judge-ghost",
            "outcome": "Plaintiff Won",
            "status": "closed",
            "decision_date": "2019-05-10",
        },
        {
            "id": "case-j2",
            "case_name": "Acme v. Widgets",
            "judge_id": "judge-2",
            "outcome": "pending review",
            "status": "open",
            "decision_date": None,
        },
    ]
    return {
        "judges": [
            {
                "id": "judge-1",
                "name": "John Smith",
                "jurisdiction": "CA",
                "total_cases": 40,
                "courtlistener_id": "cl-1001",
            },
            {
                "id": "judge-2",
                "name": "HON. JANE DOE",
                "jurisdiction": "NY",
                "total_cases": 1,
                "courtlistener_id": "cl-1002",
            },
            {
                "id": "judge-3",
                "name": "Maria Lopez",
                "jurisdiction": "CA",
                "total_cases": 0,
                "courtlistener_id": None,
            },
        ],
        "courts": [
            {
                "id": "court-1",
                "name": "Superior Court of Los Angeles",
                "jurisdiction": "CA",
                "court_type": "trial",
                "courtlistener_id": "ca-sup-la",
            },
            {
                "id": "court-2",
                "name": "New York Supreme Court",
                "jurisdiction": "NY",
                "court_type": "trial",
                "courtlistener_id": "ny-sup",
            },
        ],
        "cases": cases,
        "judge_court_assignments": [
            {
                "id": "assign-a",
                "judge_id": "judge-1",
                "court_id": "court-1",
                "assignment_type": "primary",
                "start_date": "2020-01-01",
                "end_date": None,
            },
            {
                "id": "assign-b",
                "judge_id": "judge-1",
                "court_id": "court-1",
                "assignment_type": "primary",
                "start_date": "2021-06-01",
                "end_date": None,
            },
            {
                "id": "assign-c",
                "judge_id": "judge-2",
                "court_id": "court-2",
                "assignment_type": "primary",
                "start_date": "2015-01-01",
                "end_date": None,
            },
            {
                "id": "assign-orphan",
                "judge_id": "judge-3",
                "court_id": "court-ghost",
                "assignment_type": "visiting",
                "start_date": "2018-01-01",
                "end_date": "2018-12-31",
            },
        ],
        "sync_queue": [],
    }


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore(seed_tables())


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        environment="development",
        log_level="WARNING",
        store_db_path=str(tmp_path / "data" / "judicial.db"),
        snapshot_db_path=str(tmp_path / "data" / "snapshots.db"),
        audit_db_path=str(tmp_path / "data" / "audit.db"),
        report_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def make_issue():
    """Factory for validator-shaped issues using the wire (camelCase) names."""

    def _make(
        type: str,
        entity: str,
        entity_id: str,
        severity: str = "high",
        message: str = "",
        auto_fixable: bool = True,
        **metadata,
    ) -> ValidationIssue:
        return ValidationIssue.model_validate(
            {
                "type": type,
                "severity": severity,
                "entity": entity,
                "entityId": entity_id,
                "message": message or f"{type} on {entity} {entity_id}",
                "suggestedAction": "",
                "autoFixable": auto_fixable,
                "metadata": metadata,
            }
        )

    return _make


@pytest.fixture
def orphaned_case_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "orphaned_record",
        "case",
        "case-orphan",
        severity="critical",
        message="Case references non-existent judge",
    )


@pytest.fixture
def case_count_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "data_integrity",
        "judge",
        "judge-1",
        severity="medium",
        message="Judge case count mismatch: stored=40, actual=42",
        actualCount=42,
        storedCount=40,
    )


@pytest.fixture
def overlap_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "inconsistent_relationship",
        "judge",
        "judge-1",
        message="Judge has overlapping assignments",
        assignment1_id="assign-a",
        assignment2_id="assign-b",
        assignment2_dates={"start": "2021-06-01", "end": None},
    )


@pytest.fixture
def multiple_primary_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "inconsistent_relationship",
        "judge",
        "judge-1",
        message="Judge has multiple primary court assignments",
        assignment_ids=["assign-a", "assign-b"],
    )


@pytest.fixture
def name_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "data_integrity",
        "judge",
        "judge-2",
        severity="low",
        message="Judge name needs standardization",
        current_name="HON. JANE DOE",
        issues=["Contains title prefix (Hon., Judge, Justice)", "Name is all uppercase"],
    )


@pytest.fixture
def outcome_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "data_integrity",
        "case",
        "case-orphan",
        severity="low",
        message="Case outcome not in taxonomy",
        suggested_mapping="judgment",
    )


@pytest.fixture
def stale_issue(make_issue) -> ValidationIssue:
    return make_issue(
        "stale_data",
        "judge",
        "judge-1",
        severity="low",
        message="Judge data not synced in 90 days",
        courtlistenerId="cl-1001",
    )
