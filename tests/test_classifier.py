"""Tests for issue classification and name/outcome normalisation."""

from __future__ import annotations

import pytest

from judicial_dq.models.issue import NameIssue
from judicial_dq.remediation.classifier import UNRESOLVABLE, IssueCategory, classify
from judicial_dq.remediation.normalizers import (
    has_standardization_issue,
    is_valid_outcome,
    standardize_name,
)


class TestClassify:
    def test_fixture_issues(
        self,
        orphaned_case_issue,
        case_count_issue,
        overlap_issue,
        multiple_primary_issue,
        name_issue,
        outcome_issue,
        stale_issue,
    ):
        assert classify(orphaned_case_issue) == IssueCategory.ORPHANED_CASE
        assert classify(case_count_issue) == IssueCategory.CASE_COUNT_MISMATCH
        assert classify(overlap_issue) == IssueCategory.TEMPORAL_OVERLAP
        assert classify(multiple_primary_issue) == IssueCategory.MULTIPLE_PRIMARY_COURTS
        assert classify(name_issue) == IssueCategory.NAME_STANDARDIZATION
        assert classify(outcome_issue) == IssueCategory.OUTCOME_MAPPING
        assert classify(stale_issue) == IssueCategory.STALE_DATA

    def test_orphaned_assignment(self, make_issue):
        issue = make_issue("orphaned_record", "assignment", "a-1")
        assert classify(issue) == IssueCategory.ORPHANED_ASSIGNMENT

    @pytest.mark.parametrize(
        "kwargs, expected",
        [
            (
                {"type": "orphaned_record", "entity": "opinion"},
                IssueCategory.ORPHANED_UNSUPPORTED_ENTITY,
            ),
            ({"type": "inconsistent_relationship", "entity": "judge"}, IssueCategory.UNKNOWN_RELATIONSHIP),
            ({"type": "data_integrity", "entity": "judge"}, IssueCategory.UNKNOWN_INTEGRITY),
            ({"type": "missing_field", "entity": "judge"}, IssueCategory.UNCLASSIFIED),
            ({"type": "something_new", "entity": "judge"}, IssueCategory.UNCLASSIFIED),
        ],
    )
    def test_unresolvable(self, make_issue, kwargs, expected):
        issue = make_issue(entity_id="x-1", message="Unrecognised problem", **kwargs)
        category = classify(issue)
        assert category == expected
        assert category in UNRESOLVABLE

    def test_overlap_requires_later_start(self, make_issue):
        issue = make_issue(
            "inconsistent_relationship",
            "judge",
            "judge-1",
            assignment1_id="a",
            assignment2_id="b",
        )
        assert classify(issue) == IssueCategory.UNKNOWN_RELATIONSHIP

    def test_case_count_wins_over_other_hints(self, make_issue):
        issue = make_issue(
            "data_integrity",
            "judge",
            "judge-1",
            message="Judge case count mismatch: stored=1, actual=2",
            suggested_mapping="settled",
        )
        assert classify(issue) == IssueCategory.CASE_COUNT_MISMATCH

    def test_name_without_flags_is_not_name_fix(self, make_issue):
        issue = make_issue(
            "data_integrity", "judge", "judge-1", message="Bad name", current_name="john"
        )
        assert classify(issue) == IssueCategory.UNKNOWN_INTEGRITY


class TestStandardizeName:
    def test_prefix_and_uppercase(self):
        flags = [NameIssue.TITLE_PREFIX.value, NameIssue.ALL_UPPERCASE.value]
        assert standardize_name("HON. JOHN SMITH", flags) == "John Smith"

    def test_accepts_enum_members(self):
        flags = [NameIssue.TITLE_PREFIX, NameIssue.ALL_UPPERCASE]
        assert standardize_name("HON. JOHN SMITH", flags) == "John Smith"

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Judge Mary Major", "Mary Major"),
            ("Justice Ruth Ginsburg", "Ruth Ginsburg"),
            ("Honorable Sam Lee", "Sam Lee"),
            ("Hon Kim Park", "Kim Park"),
        ],
    )
    def test_prefixes(self, name, expected):
        assert standardize_name(name, [NameIssue.TITLE_PREFIX.value]) == expected

    def test_lowercase(self):
        assert standardize_name("jane doe", [NameIssue.ALL_LOWERCASE.value]) == "Jane Doe"

    def test_whitespace(self):
        flags = [NameIssue.EXCESSIVE_WHITESPACE.value]
        assert standardize_name("  Jane    Doe ", flags) == "Jane Doe"

    def test_only_flagged_rules_apply(self):
        assert standardize_name("JUDGE DREDD", []) == "JUDGE DREDD"
        assert standardize_name("JUDGE DREDD", [NameIssue.ALL_UPPERCASE.value]) == "Judge Dredd"

    def test_unknown_flags_ignored(self):
        assert standardize_name("HON. X", ["Name is purple"]) == "HON. X"


class TestNameAndOutcomeChecks:
    @pytest.mark.parametrize(
        "name, flagged",
        [
            ("Hon. Jane Doe", True),
            ("JANE DOE", True),
            ("jane doe", True),
            ("Jane Doe", False),
            ("LEE", False),
        ],
    )
    def test_has_standardization_issue(self, name, flagged):
        assert has_standardization_issue(name) is flagged

    @pytest.mark.parametrize(
        "outcome, valid",
        [
            ("Settled", True),
            ("motion granted in part", True),
            ("Plaintiff Won", False),
            ("", False),
            (None, False),
        ],
    )
    def test_is_valid_outcome(self, outcome, valid):
        assert is_valid_outcome(outcome) is valid
