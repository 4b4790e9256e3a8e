"""
tests/test_outcome_matcher.py

Pytest unit tests for the tiered outcome matcher. Pure Python, no store.
"""

from __future__ import annotations

import math

import pytest

from app.domain.survey_import import MatchType, OutcomeCatalogEntry, ParsedRow
from app.mappers.outcome_matcher import (
    IMPORTANCE_OUT_OF_RANGE,
    OPPORTUNITY_SCORE_OUT_OF_RANGE,
    OUTCOME_NOT_FOUND,
    SATISFACTION_OUT_OF_RANGE,
    OutcomeMatcher,
    format_percentage,
    similarity,
)

CATALOG = [
    OutcomeCatalogEntry(id="o-1", slug="reduce-checkout-time", name="Reduce the time it takes to check out"),
    OutcomeCatalogEntry(id="o-2", slug="find-matching-products", name="Find products that match my needs"),
]


def _row(raw_outcome: str, importance: float = 8.0, satisfaction: float = 4.0, score: float = 12.0) -> ParsedRow:
    return ParsedRow(
        row_index=1,
        raw_outcome=raw_outcome,
        importance=importance,
        satisfaction=satisfaction,
        opportunity_score=score,
    )


@pytest.fixture()
def matcher() -> OutcomeMatcher:
    return OutcomeMatcher()


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


def test_similarity_is_case_insensitive() -> None:
    assert similarity("Checkout", "checkout") == 1.0


def test_similarity_of_two_empty_strings_is_one() -> None:
    assert similarity("", "") == 1.0


def test_percentage_rounds_half_up() -> None:
    assert format_percentage(0.875) == 88
    assert format_percentage(0.874) == 87
    assert format_percentage(0.85) == 85


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------


def test_exact_slug_wins(matcher: OutcomeMatcher) -> None:
    [row] = matcher.match_rows([_row("reduce-checkout-time")], CATALOG)

    assert row.match_type == MatchType.EXACT_IDENTIFIER
    assert row.outcome_id == "o-1"
    assert row.outcome_slug == "reduce-checkout-time"
    assert row.match_score is None
    assert row.issues == ()


def test_slug_tier_runs_before_name_tier(matcher: OutcomeMatcher) -> None:
    catalog = [
        OutcomeCatalogEntry(id="by-name", slug="other", name="shared-label"),
        OutcomeCatalogEntry(id="by-slug", slug="shared-label", name="Something else"),
    ]

    [row] = matcher.match_rows([_row("shared-label")], catalog)

    assert row.outcome_id == "by-slug"
    assert row.match_type == MatchType.EXACT_IDENTIFIER


def test_exact_name_match(matcher: OutcomeMatcher) -> None:
    [row] = matcher.match_rows([_row("Find products that match my needs")], CATALOG)

    assert row.match_type == MatchType.EXACT_NAME
    assert row.outcome_id == "o-2"
    assert row.issues == ()


def test_exact_tiers_are_case_sensitive(matcher: OutcomeMatcher) -> None:
    [row] = matcher.match_rows([_row("REDUCE-CHECKOUT-TIME")], CATALOG)

    assert row.match_type == MatchType.FUZZY
    assert row.match_score == 1.0
    assert row.issues == ("Approximate match (100%)",)


def test_fuzzy_match_accepted_exactly_at_threshold(matcher: OutcomeMatcher) -> None:
    # 20 characters, 3 substitutions: similarity 17 / 20
    [row] = matcher.match_rows([_row("xeduce-checkout-tixx")], CATALOG)

    assert row.match_type == MatchType.FUZZY
    assert row.outcome_id == "o-1"
    assert row.match_score == pytest.approx(0.85)
    assert row.issues == ("Approximate match (85%)",)


def test_fuzzy_below_threshold_is_not_found(matcher: OutcomeMatcher) -> None:
    # 4 substitutions: similarity 0.80
    [row] = matcher.match_rows([_row("xeduce-checkout-xixx")], CATALOG)

    assert row.match_type == MatchType.NONE
    assert row.outcome_id is None
    assert row.issues == (OUTCOME_NOT_FOUND,)


def test_threshold_boundary_with_stubbed_similarity() -> None:
    below = OutcomeMatcher(similarity_fn=lambda left, right: 0.849999)
    at = OutcomeMatcher(similarity_fn=lambda left, right: 0.85)

    [rejected] = below.match_rows([_row("anything")], CATALOG)
    [accepted] = at.match_rows([_row("anything")], CATALOG)

    assert rejected.match_type == MatchType.NONE
    assert accepted.match_type == MatchType.FUZZY
    # equal scores keep the first catalog entry
    assert accepted.outcome_id == "o-1"


def test_empty_catalog_marks_every_row_not_found(matcher: OutcomeMatcher) -> None:
    rows = matcher.match_rows([_row("reduce-checkout-time"), _row("anything")], [])

    assert [row.match_type for row in rows] == [MatchType.NONE, MatchType.NONE]
    assert all(OUTCOME_NOT_FOUND in row.issues for row in rows)


# ---------------------------------------------------------------------------
# Range checks and shape
# ---------------------------------------------------------------------------


def test_range_issues_are_independent_of_matching(matcher: OutcomeMatcher) -> None:
    [row] = matcher.match_rows(
        [_row("reduce-checkout-time", importance=15.0, satisfaction=math.nan, score=120.0)],
        CATALOG,
    )

    assert row.is_matched
    assert row.issues == (
        IMPORTANCE_OUT_OF_RANGE,
        SATISFACTION_OUT_OF_RANGE,
        OPPORTUNITY_SCORE_OUT_OF_RANGE,
    )


def test_unmatched_row_carries_range_and_not_found_issues(matcher: OutcomeMatcher) -> None:
    [row] = matcher.match_rows([_row("zzz", importance=-1.0)], CATALOG)

    assert row.issues == (IMPORTANCE_OUT_OF_RANGE, OUTCOME_NOT_FOUND)


def test_output_preserves_order_and_count(matcher: OutcomeMatcher) -> None:
    inputs = [_row("find-matching-products"), _row("nope"), _row("reduce-checkout-time")]

    rows = matcher.match_rows(inputs, CATALOG)

    assert [row.raw_outcome for row in rows] == [row.raw_outcome for row in inputs]
