"""
app/mappers/outcome_matcher.py

Resolves free-text outcome identifiers from survey rows against the active
outcome catalog of an organization.

Tiers, first hit wins:
    1. exact slug (case-sensitive)
    2. exact name (case-sensitive)
    3. fuzzy: 1 - levenshtein / longest length, case-insensitive, over both
       name and slug of every entry; accepted at or above the threshold.

Numeric range checks run independently of matching; both kinds of issue can
land on the same row.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

from rapidfuzz.distance import Levenshtein

from app.domain.survey_import import MatchedRow, MatchType, OutcomeCatalogEntry, ParsedRow
from app.validators.survey_row_parser import (
    IMPORTANCE_RANGE,
    OPPORTUNITY_SCORE_RANGE,
    SATISFACTION_RANGE,
    in_range,
)

DEFAULT_FUZZY_THRESHOLD = 0.85

OUTCOME_NOT_FOUND = "Outcome not found"
IMPORTANCE_OUT_OF_RANGE = "Importance must be between 0 and 10"
SATISFACTION_OUT_OF_RANGE = "Satisfaction must be between 0 and 10"
OPPORTUNITY_SCORE_OUT_OF_RANGE = "Opportunity score must be between 0 and 99.9"

SimilarityFn = Callable[[str, str], float]


def similarity(left: str, right: str) -> float:
    """
    Normalized edit-distance similarity in [0, 1], case-insensitive.

    Two empty strings are identical (1.0).
    """

    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    distance = Levenshtein.distance(left.lower(), right.lower())
    return max(0.0, (longest - distance) / longest)


def format_percentage(score: float) -> int:
    """Round half up, so 0.875 reads as 88%."""
    return int(math.floor(score * 100 + 0.5))


class OutcomeMatcher:
    """
    Tiered matcher over a pre-fetched outcome catalog.
    """

    def __init__(
        self,
        *,
        fuzzy_threshold: float = DEFAULT_FUZZY_THRESHOLD,
        similarity_fn: SimilarityFn | None = None,
    ) -> None:
        self._fuzzy_threshold = max(0.0, min(1.0, fuzzy_threshold))
        self._similarity = similarity_fn or similarity

    @property
    def fuzzy_threshold(self) -> float:
        return self._fuzzy_threshold

    def match_rows(
        self,
        rows: Sequence[ParsedRow],
        catalog: Sequence[OutcomeCatalogEntry],
    ) -> list[MatchedRow]:
        """
        Match every row; output preserves input order and count.
        """

        by_slug: dict[str, OutcomeCatalogEntry] = {}
        by_name: dict[str, OutcomeCatalogEntry] = {}
        for entry in catalog:
            by_slug.setdefault(entry.slug, entry)
            by_name.setdefault(entry.name, entry)

        return [self._match_row(row, catalog, by_slug, by_name) for row in rows]

    def _match_row(
        self,
        row: ParsedRow,
        catalog: Sequence[OutcomeCatalogEntry],
        by_slug: dict[str, OutcomeCatalogEntry],
        by_name: dict[str, OutcomeCatalogEntry],
    ) -> MatchedRow:
        issues = self.range_issues(row)

        entry = by_slug.get(row.raw_outcome)
        match_type = MatchType.EXACT_IDENTIFIER
        score: float | None = None

        if entry is None:
            entry = by_name.get(row.raw_outcome)
            match_type = MatchType.EXACT_NAME

        if entry is None:
            best_entry, best_score = self._best_fuzzy(row.raw_outcome, catalog)
            if best_entry is not None and best_score >= self._fuzzy_threshold:
                entry = best_entry
                match_type = MatchType.FUZZY
                score = best_score
                issues.append(f"Approximate match ({format_percentage(best_score)}%)")
            else:
                match_type = MatchType.NONE
                issues.append(OUTCOME_NOT_FOUND)

        return MatchedRow(
            row_index=row.row_index,
            raw_outcome=row.raw_outcome,
            importance=row.importance,
            satisfaction=row.satisfaction,
            opportunity_score=row.opportunity_score,
            original_row=row.original_row,
            outcome_id=entry.id if entry is not None else None,
            outcome_name=entry.name if entry is not None else None,
            outcome_slug=entry.slug if entry is not None else None,
            match_type=match_type,
            match_score=score,
            issues=tuple(issues),
        )

    def _best_fuzzy(
        self,
        raw_outcome: str,
        catalog: Sequence[OutcomeCatalogEntry],
    ) -> tuple[OutcomeCatalogEntry | None, float]:
        best_entry: OutcomeCatalogEntry | None = None
        best_score = 0.0
        for entry in catalog:
            score = max(
                self._similarity(raw_outcome, entry.name),
                self._similarity(raw_outcome, entry.slug),
            )
            # strict comparison keeps the first entry on ties
            if score > best_score:
                best_score = score
                best_entry = entry
        return best_entry, best_score

    @staticmethod
    def range_issues(row: ParsedRow) -> list[str]:
        issues: list[str] = []
        if not in_range(row.importance, IMPORTANCE_RANGE):
            issues.append(IMPORTANCE_OUT_OF_RANGE)
        if not in_range(row.satisfaction, SATISFACTION_RANGE):
            issues.append(SATISFACTION_OUT_OF_RANGE)
        if not in_range(row.opportunity_score, OPPORTUNITY_SCORE_RANGE):
            issues.append(OPPORTUNITY_SCORE_OUT_OF_RANGE)
        return issues
