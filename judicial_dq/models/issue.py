"""Pydantic models for detected data-quality issues (produced by the validator)."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class IssueType(str, Enum):
    ORPHANED_RECORD = "orphaned_record"
    INCONSISTENT_RELATIONSHIP = "inconsistent_relationship"
    DATA_INTEGRITY = "data_integrity"
    STALE_DATA = "stale_data"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    MISSING_FIELD = "missing_field"


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Lower rank sorts first.
SEVERITY_RANK: dict[Severity, int] = {
    Severity.CRITICAL: 1,
    Severity.HIGH: 2,
    Severity.MEDIUM: 3,
    Severity.LOW: 4,
}


class Entity(str, Enum):
    JUDGE = "judge"
    COURT = "court"
    CASE = "case"
    ASSIGNMENT = "assignment"
    OPINION = "opinion"
    DOCKET = "docket"


class NameIssue(str, Enum):
    """Name-cleanup flags as emitted by the validator in ``metadata.issues``."""

    TITLE_PREFIX = "Contains title prefix (Hon., Judge, Justice)"
    ALL_UPPERCASE = "Name is all uppercase"
    ALL_LOWERCASE = "Name is all lowercase"
    EXCESSIVE_WHITESPACE = "Contains excessive whitespace"


class ValidationIssue(BaseModel):
    """A single detected data-quality problem.

    Accepts the validator's camelCase wire names (``entityId``,
    ``autoFixable``, ``suggestedAction``) as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str
    severity: Severity
    entity: str
    entity_id: str = Field(alias="entityId")
    message: str = ""
    suggested_action: str = Field(default="", alias="suggestedAction")
    auto_fixable: bool = Field(default=False, alias="autoFixable")
    metadata: dict[str, Any] = Field(default_factory=dict)

    # ── Typed metadata accessors ─────────────────────────────────

    @property
    def assignment_ids(self) -> list[str] | None:
        value = self.metadata.get("assignment_ids")
        if isinstance(value, list):
            return [str(v) for v in value]
        return None

    @property
    def overlap_ids(self) -> tuple[str, str] | None:
        first = self.metadata.get("assignment1_id")
        second = self.metadata.get("assignment2_id")
        if first and second:
            return str(first), str(second)
        return None

    @property
    def later_assignment_start(self) -> str | None:
        dates = self.metadata.get("assignment2_dates") or {}
        return dates.get("start") if isinstance(dates, dict) else None

    @property
    def actual_case_count(self) -> int | None:
        value = self.metadata.get("actualCount")
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @property
    def current_name(self) -> str | None:
        return self.metadata.get("current_name")

    @property
    def name_flags(self) -> list[str]:
        return list(self.metadata.get("issues") or [])

    @property
    def suggested_mapping(self) -> str | None:
        return self.metadata.get("suggested_mapping")

    @property
    def external_id(self) -> str | None:
        value = self.metadata.get("courtlistenerId")
        return str(value) if value else None

    @property
    def impacted_records(self) -> list[str]:
        return list(self.metadata.get("impacted_records") or [])

    def is_case_count_mismatch(self) -> bool:
        return "case count" in self.message.lower()


class ValidationReport(BaseModel):
    """A batch of issues as handed over by the validator."""

    validation_id: str = ""
    total_issues: int = 0
    critical_issues: int = 0
    high_priority_issues: int = 0
    medium_priority_issues: int = 0
    low_priority_issues: int = 0
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_issues(
        cls, issues: list[ValidationIssue], validation_id: str = ""
    ) -> "ValidationReport":
        def _count(severity: Severity) -> int:
            return sum(1 for i in issues if i.severity == severity)

        return cls(
            validation_id=validation_id,
            total_issues=len(issues),
            critical_issues=_count(Severity.CRITICAL),
            high_priority_issues=_count(Severity.HIGH),
            medium_priority_issues=_count(Severity.MEDIUM),
            low_priority_issues=_count(Severity.LOW),
            issues=list(issues),
        )
