"""Tests for the command line interface."""

from __future__ import annotations

import json
import re

import pytest

from judicial_dq.cli import load_issues, load_rollbacks, main
from judicial_dq.snapshot.repository import SnapshotRepository
from judicial_dq.store.base import Filter
from judicial_dq.store.sqlite_store import SQLiteStore

from conftest import seed_tables


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    monkeypatch.setenv("SNAPSHOT_DB_PATH", str(tmp_path / "snapshots.db"))
    monkeypatch.setenv("AUDIT_DB_PATH", str(tmp_path / "audit.db"))
    monkeypatch.setenv("REPORT_DIR", str(tmp_path / "reports"))

    path = tmp_path / "judicial.db"
    store = SQLiteStore(path)
    for table, rows in seed_tables().items():
        for row in rows:
            store.insert(table, row)
    return path


@pytest.fixture
def issues_file(tmp_path, case_count_issue, name_issue):
    path = tmp_path / "issues.json"
    payload = [i.model_dump(mode="json", by_alias=True) for i in (case_count_issue, name_issue)]
    path.write_text(json.dumps(payload))
    return path


def _judge(db_path, judge_id: str) -> dict:
    return SQLiteStore(db_path).select_one("judges", filters=[Filter.eq("id", judge_id)])


class TestLoaders:
    def test_load_issues_list_or_object(self, tmp_path, issues_file):
        assert len(load_issues(issues_file)) == 2
        wrapped = tmp_path / "wrapped.json"
        wrapped.write_text(json.dumps({"issues": json.loads(issues_file.read_text())}))
        assert len(load_issues(wrapped)) == 2

    def test_load_rollbacks_single_object(self, tmp_path):
        path = tmp_path / "rb.json"
        path.write_text(
            json.dumps(
                {"rollback_info": {"table": "judges", "record_id": "j", "original_values": {}}}
            )
        )
        (info,) = load_rollbacks(path)
        assert info.record_id == "j"


class TestCommands:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_plan_text(self, db_path, issues_file, capsys):
        assert main(["--db", str(db_path), "plan", str(issues_file)]) == 0
        assert "REMEDIATION PLAN" in capsys.readouterr().out

    def test_plan_json_to_file(self, db_path, issues_file, tmp_path):
        output = tmp_path / "plan.json"
        code = main(
            ["--db", str(db_path), "plan", str(issues_file), "--format", "json", "--output", str(output)]
        )
        assert code == 0
        plan = json.loads(output.read_text())
        assert len(plan["actions"]) == 2

    def test_remediate_requires_confirm(self, db_path, issues_file, capsys):
        assert main(["--db", str(db_path), "remediate", str(issues_file)]) == 2
        assert "--confirm" in capsys.readouterr().out
        assert _judge(db_path, "judge-1")["total_cases"] == 40

    def test_remediate_dry_run(self, db_path, issues_file, capsys):
        assert main(["--db", str(db_path), "remediate", str(issues_file), "--dry-run"]) == 0
        assert "This was a dry run" in capsys.readouterr().out
        assert _judge(db_path, "judge-1")["total_cases"] == 40

    def test_dry_run_and_confirm_are_exclusive(self, db_path, issues_file):
        with pytest.raises(SystemExit):
            main(["--db", str(db_path), "remediate", str(issues_file), "--dry-run", "--confirm"])

    def test_remediate_confirm_then_rollback_run(self, db_path, issues_file, capsys):
        assert main(["--db", str(db_path), "remediate", str(issues_file), "--confirm"]) == 0
        out = capsys.readouterr().out
        assert _judge(db_path, "judge-1")["total_cases"] == 42
        assert _judge(db_path, "judge-2")["name"] == "Jane Doe"

        run_id = re.search(r"Run ID: (run-\w+)", out).group(1)
        assert main(["--db", str(db_path), "rollback", "--run", run_id]) == 0
        assert "Rolled back 2/2" in capsys.readouterr().out
        assert _judge(db_path, "judge-1")["total_cases"] == 40
        assert _judge(db_path, "judge-2")["name"] == "HON. JANE DOE"

    def test_rollback_from_file(self, db_path, tmp_path):
        SQLiteStore(db_path).update("judges", {"name": "Changed"}, [Filter.eq("id", "judge-3")])
        path = tmp_path / "rb.json"
        path.write_text(
            json.dumps(
                [{"table": "judges", "record_id": "judge-3", "original_values": {"name": "Maria Lopez"}}]
            )
        )
        assert main(["--db", str(db_path), "rollback", str(path)]) == 0
        assert _judge(db_path, "judge-3")["name"] == "Maria Lopez"

    def test_failed_rollback_exit_code(self, db_path, tmp_path):
        path = tmp_path / "rb.json"
        path.write_text(
            json.dumps([{"table": "judges", "record_id": "ghost", "original_values": {"name": "X"}}])
        )
        assert main(["--db", str(db_path), "rollback", str(path)]) == 1

    def test_snapshot_save(self, db_path, tmp_path, capsys):
        assert main(["--db", str(db_path), "snapshot", "--save"]) == 0
        out = capsys.readouterr().out
        assert "DATA SNAPSHOT SUMMARY" in out
        snapshot_id = re.search(r"Snapshot saved: (\S+)", out).group(1)
        assert SnapshotRepository(tmp_path / "snapshots.db").get(snapshot_id) is not None

    def test_missing_issues_file(self, db_path, tmp_path):
        assert main(["--db", str(db_path), "plan", str(tmp_path / "absent.json")]) == 1
