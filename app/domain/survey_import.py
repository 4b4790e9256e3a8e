"""
app/domain/survey_import.py

Domain models for the survey import pipeline:
decode -> parse -> match -> preview -> commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any


class MatchType:
    """How a row's outcome identifier was resolved against the catalog."""

    EXACT_IDENTIFIER = "exact-identifier"
    EXACT_NAME = "exact-name"
    FUZZY = "fuzzy"
    MANUAL_OVERRIDE = "manual-override"
    NONE = "none"


class RowStatus:
    """Display tier for one preview row."""

    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class OutcomeCatalogEntry:
    """
    One active outcome an import row can resolve to.
    """

    id: str
    slug: str
    name: str


@dataclass(frozen=True)
class DecodedFile:
    """
    Spreadsheet contents after decoding: header list plus row field maps.
    """

    headers: tuple[str, ...]
    rows: list[dict[str, Any]]


@dataclass(frozen=True)
class ParsedRow:
    """
    One non-empty input row with its four canonical fields coerced.

    Numeric fields hold ``float("nan")`` when the source value was unparsable.
    """

    row_index: int
    raw_outcome: str
    importance: float
    satisfaction: float
    opportunity_score: float
    original_row: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MatchedRow:
    """
    A parsed row annotated with its catalog resolution and issues.
    """

    row_index: int
    raw_outcome: str
    importance: float
    satisfaction: float
    opportunity_score: float
    original_row: dict[str, Any]
    outcome_id: str | None
    match_type: str
    issues: tuple[str, ...] = ()
    outcome_name: str | None = None
    outcome_slug: str | None = None
    match_score: float | None = None

    @property
    def is_matched(self) -> bool:
        return self.outcome_id is not None


@dataclass(frozen=True)
class PreviewSummary:
    """
    Validity buckets over a matched row set.

    ``warning_row_count`` and ``error_row_count`` are independent tallies:
    a matched row with a range violation counts in both.
    """

    total_rows: int
    valid_row_count: int
    warning_row_count: int
    error_row_count: int
    rows: list[MatchedRow]
    row_statuses: list[str] = field(default_factory=list)

    @property
    def can_commit(self) -> bool:
        return self.error_row_count == 0 and self.valid_row_count > 0


@dataclass(frozen=True)
class SurveyMetadata:
    """
    Operator-supplied descriptor for one import batch.
    """

    code: str
    name: str
    date: date
    description: str | None = None


@dataclass(frozen=True)
class ImportResult:
    """
    Terminal outcome of a commit attempt.
    """

    success: bool
    inserted_count: int
    updated_count: int
    error_count: int
    message: str
    survey_id: str | None = None
    error_details: list[dict[str, Any]] | None = None
