"""Issue classification — maps an issue onto the remediation shape it needs.

Planner and engine both dispatch on the category returned here, so an issue
that the planner drops is exactly one the engine reports as unsupported.
"""

from __future__ import annotations

from enum import Enum

from judicial_dq.models.issue import Entity, IssueType, ValidationIssue


class IssueCategory(str, Enum):
    ORPHANED_CASE = "orphaned_case"
    ORPHANED_ASSIGNMENT = "orphaned_assignment"
    ORPHANED_UNSUPPORTED_ENTITY = "orphaned_unsupported_entity"
    MULTIPLE_PRIMARY_COURTS = "multiple_primary_courts"
    TEMPORAL_OVERLAP = "temporal_overlap"
    UNKNOWN_RELATIONSHIP = "unknown_relationship"
    CASE_COUNT_MISMATCH = "case_count_mismatch"
    NAME_STANDARDIZATION = "name_standardization"
    OUTCOME_MAPPING = "outcome_mapping"
    UNKNOWN_INTEGRITY = "unknown_integrity"
    STALE_DATA = "stale_data"
    UNCLASSIFIED = "unclassified"


UNRESOLVABLE: frozenset[IssueCategory] = frozenset(
    {
        IssueCategory.ORPHANED_UNSUPPORTED_ENTITY,
        IssueCategory.UNKNOWN_RELATIONSHIP,
        IssueCategory.UNKNOWN_INTEGRITY,
        IssueCategory.UNCLASSIFIED,
    }
)


def classify(issue: ValidationIssue) -> IssueCategory:
    """Return the remediation category for ``issue``."""
    match issue.type:
        case IssueType.ORPHANED_RECORD.value:
            if issue.entity == Entity.CASE.value:
                return IssueCategory.ORPHANED_CASE
            if issue.entity == Entity.ASSIGNMENT.value:
                return IssueCategory.ORPHANED_ASSIGNMENT
            return IssueCategory.ORPHANED_UNSUPPORTED_ENTITY

        case IssueType.INCONSISTENT_RELATIONSHIP.value:
            if issue.assignment_ids is not None:
                return IssueCategory.MULTIPLE_PRIMARY_COURTS
            if issue.overlap_ids and issue.later_assignment_start:
                return IssueCategory.TEMPORAL_OVERLAP
            return IssueCategory.UNKNOWN_RELATIONSHIP

        case IssueType.DATA_INTEGRITY.value:
            if issue.is_case_count_mismatch():
                return IssueCategory.CASE_COUNT_MISMATCH
            if issue.current_name and issue.name_flags:
                return IssueCategory.NAME_STANDARDIZATION
            if issue.suggested_mapping:
                return IssueCategory.OUTCOME_MAPPING
            return IssueCategory.UNKNOWN_INTEGRITY

        case IssueType.STALE_DATA.value:
            return IssueCategory.STALE_DATA

        case _:
            return IssueCategory.UNCLASSIFIED
