"""Name and outcome normalisation rules shared by planner, engine and snapshots."""

from __future__ import annotations

import re
from typing import Iterable

from judicial_dq.models.issue import NameIssue

TITLE_PREFIX_RE = re.compile(r"^(Hon\.|Hon |Honorable |Judge |Justice )", re.IGNORECASE)
_WHITESPACE_RUN_RE = re.compile(r"\s{2,}")
_KNOWN_FLAGS = {flag.value for flag in NameIssue}

VALID_OUTCOMES: tuple[str, ...] = (
    "settled",
    "dismissed",
    "judgment",
    "granted",
    "denied",
    "withdrawn",
    "remanded",
    "affirmed",
    "reversed",
    "vacated",
    "other",
)


def _title_case(name: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in name.split(" "))


def standardize_name(name: str, flags: Iterable[str]) -> str:
    """Apply only the cleanup rules named in ``flags``, in a fixed order.

    >>> standardize_name("HON. JOHN SMITH", [NameIssue.TITLE_PREFIX, NameIssue.ALL_UPPERCASE])
    'John Smith'
    """
    values = {getattr(f, "value", f) for f in flags}
    flagged = {NameIssue(v) for v in values if v in _KNOWN_FLAGS}

    if NameIssue.TITLE_PREFIX in flagged:
        name = TITLE_PREFIX_RE.sub("", name, count=1).strip()
    if NameIssue.ALL_UPPERCASE in flagged:
        name = _title_case(name.lower())
    if NameIssue.ALL_LOWERCASE in flagged:
        name = _title_case(name)
    if NameIssue.EXCESSIVE_WHITESPACE in flagged:
        name = _WHITESPACE_RUN_RE.sub(" ", name).strip()
    return name


def has_standardization_issue(name: str) -> bool:
    """True when a judge name would be flagged for cleanup."""
    if TITLE_PREFIX_RE.match(name):
        return True
    if name == name.upper() and len(name) > 3:
        return True
    return name == name.lower()


def is_valid_outcome(outcome: str | None) -> bool:
    normalized = (outcome or "").lower().strip()
    return any(v in normalized for v in VALID_OUTCOMES)
