"""
tests/test_survey_import_service.py

Pytest unit tests for preview classification, manual override, commit and
the CSV template. The store is the in-memory substitute from tests/support.py.
"""

from __future__ import annotations

import math
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.survey_import import MatchedRow, MatchType, RowStatus, SurveyMetadata
from app.errors import MissingColumnError, SurveyImportPersistenceError
from app.services.survey_import_service import (
    NO_VALID_ROWS_MESSAGE,
    SurveyImportService,
    apply_manual_override,
    generate_template,
    summarize_preview,
)
from tests.support import InMemorySurveyImportStore

SURVEY = SurveyMetadata(code="R1-2025", name="Round 1", date=date(2025, 3, 1))


def _matched(
    outcome_id: str | None = "o-1",
    *,
    importance: float = 8.0,
    satisfaction: float = 4.0,
    score: float = 12.0,
    issues: tuple[str, ...] = (),
    slug: str | None = "reduce-checkout-time",
    name: str | None = "Reduce the time it takes to check out",
    raw_outcome: str = "reduce-checkout-time",
) -> MatchedRow:
    return MatchedRow(
        row_index=1,
        raw_outcome=raw_outcome,
        importance=importance,
        satisfaction=satisfaction,
        opportunity_score=score,
        original_row={},
        outcome_id=outcome_id,
        outcome_name=name if outcome_id else None,
        outcome_slug=slug if outcome_id else None,
        match_type=MatchType.EXACT_IDENTIFIER if outcome_id else MatchType.NONE,
        issues=issues,
    )


@pytest.fixture()
def service() -> SurveyImportService:
    return SurveyImportService(log_row_issues=True, max_logged_issues=5)


# ---------------------------------------------------------------------------
# Preview classification
# ---------------------------------------------------------------------------


def test_matched_row_with_range_issue_counts_as_warning_and_error() -> None:
    row = _matched(importance=15.0, issues=("Importance must be between 0 and 10",))

    summary = summarize_preview([row])

    assert summary.total_rows == 1
    assert summary.valid_row_count == 0
    assert summary.warning_row_count == 1
    assert summary.error_row_count == 1
    assert summary.row_statuses == [RowStatus.ERROR]
    assert summary.can_commit is False


def test_fuzzy_row_is_warning_only() -> None:
    row = _matched(issues=("Approximate match (90%)",))

    summary = summarize_preview([row, _matched()])

    assert (summary.valid_row_count, summary.warning_row_count, summary.error_row_count) == (1, 1, 0)
    assert summary.row_statuses == [RowStatus.WARNING, RowStatus.OK]
    assert summary.can_commit is True


def test_unmatched_row_is_error_only() -> None:
    row = _matched(outcome_id=None, issues=("Outcome not found",))

    summary = summarize_preview([row])

    assert (summary.valid_row_count, summary.warning_row_count, summary.error_row_count) == (0, 0, 1)


def test_summary_does_not_mutate_rows() -> None:
    rows = [_matched(), _matched(outcome_id=None, issues=("Outcome not found",))]
    snapshot = list(rows)

    summarize_preview(rows)

    assert rows == snapshot


def test_preview_upload_reads_catalog_once(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore()
    content = (
        "outcome,importance,satisfaction,opportunity_score\n"
        "reduce-checkout-time,9.3,4.6,14\n"
        "Find products that match my needs,7,6,8\n"
        "xeduce-checkout-tixx,5,5,5\n"
        "unknown outcome,5,5,5\n"
        ",1,1,1\n"
    ).encode("utf-8")

    summary = service.preview_upload(
        content=content,
        filename="round.csv",
        store=store,
        organization="acme",
    )

    assert store.catalog_reads == ["acme"]
    assert summary.total_rows == 4
    assert [row.match_type for row in summary.rows] == [
        MatchType.EXACT_IDENTIFIER,
        MatchType.EXACT_NAME,
        MatchType.FUZZY,
        MatchType.NONE,
    ]
    assert (summary.valid_row_count, summary.warning_row_count, summary.error_row_count) == (2, 1, 1)


def test_preview_upload_propagates_missing_column(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore()

    with pytest.raises(MissingColumnError):
        service.preview_upload(
            content=b"outcome,importance\nx,1\n",
            filename="round.csv",
            store=store,
            organization="acme",
        )

    assert store.catalog_reads == []


# ---------------------------------------------------------------------------
# Manual override
# ---------------------------------------------------------------------------


def test_manual_override_clears_not_found_and_keeps_range_issues() -> None:
    rows = [
        _matched(),
        _matched(
            outcome_id=None,
            raw_outcome="checkout speed",
            importance=12.0,
            issues=("Importance must be between 0 and 10", "Outcome not found"),
        ),
    ]

    updated = apply_manual_override(rows, 1, outcome_id="o-3", outcome_name="Compare delivery options")

    target = updated[1]
    assert target.outcome_id == "o-3"
    assert target.outcome_name == "Compare delivery options"
    assert target.outcome_slug is None
    assert target.match_type == MatchType.MANUAL_OVERRIDE
    assert target.match_score is None
    assert target.issues == ("Importance must be between 0 and 10",)
    assert updated[0] is rows[0]
    assert rows[1].outcome_id is None


def test_reapplying_override_replaces_previous_choice() -> None:
    rows = [_matched(outcome_id=None, issues=("Outcome not found",))]

    first = apply_manual_override(rows, 0, outcome_id="a", outcome_name="A", outcome_slug="a-slug")
    second = apply_manual_override(first, 0, outcome_id="b", outcome_name="B")

    assert second[0].outcome_id == "b"
    assert second[0].outcome_slug is None
    assert second[0].issues == ()


def test_override_out_of_range_raises_index_error() -> None:
    with pytest.raises(IndexError):
        apply_manual_override([_matched()], 3, outcome_id="x", outcome_name="X")


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------


def test_commit_without_valid_rows_never_touches_store(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore()
    rows = [
        _matched(outcome_id=None, issues=("Outcome not found",)),
        _matched(importance=math.nan),
        _matched(score=100.0),
    ]

    result = service.commit(rows, survey=SURVEY, store=store, organization="acme")

    assert result.success is False
    assert result.message == NO_VALID_ROWS_MESSAGE
    assert result.error_count == 3
    assert (result.inserted_count, result.updated_count) == (0, 0)
    assert store.payloads == []


def test_commit_filters_rows_and_reports_counts(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore(
        response={"survey_id": "s-1", "inserted": 1, "updated": 1, "errors": 0},
    )
    rows = [
        _matched(),
        _matched(outcome_id="o-2", slug=None, name="Find products that match my needs"),
        _matched(outcome_id=None, issues=("Outcome not found",)),
        _matched(satisfaction=11.0),
    ]

    result = service.commit(rows, survey=SURVEY, store=store, organization="acme")

    assert result.success is True
    assert result.survey_id == "s-1"
    assert result.message == "Import completed: 1 inserted, 1 updated"
    [payload] = store.payloads
    assert payload.organization == "acme"
    assert payload.survey == SURVEY
    assert [row.outcome for row in payload.rows] == [
        "reduce-checkout-time",
        "Find products that match my needs",
    ]


def test_store_failure_becomes_failed_result(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore(error=SurveyImportPersistenceError("connection reset"))

    result = service.commit([_matched(), _matched()], survey=SURVEY, store=store, organization="acme")

    assert result.success is False
    assert result.message == "Import failed: connection reset"
    assert result.error_count == 2
    assert (result.inserted_count, result.updated_count) == (0, 0)
    assert len(store.payloads) == 1


def test_driver_error_is_not_reraised(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore(error=OperationalError("INSERT", {}, Exception("down")))

    result = service.commit([_matched()], survey=SURVEY, store=store, organization="acme")

    assert result.success is False
    assert result.message.startswith("Import failed: ")


def test_malformed_store_response_is_a_failure(service: SurveyImportService) -> None:
    store = InMemorySurveyImportStore(response={"survey_id": "s-1", "inserted": -1})

    result = service.commit([_matched()], survey=SURVEY, store=store, organization="acme")

    assert result.success is False
    assert result.message.startswith("Import failed: invalid store response")
    assert result.error_count == 1


def test_store_error_details_are_passed_through(service: SurveyImportService) -> None:
    details = [{"outcome": "gone", "error": "Outcome not found"}]
    store = InMemorySurveyImportStore(
        response={"survey_id": "s-1", "inserted": 1, "updated": 0, "errors": 1, "error_details": details},
    )

    result = service.commit([_matched()], survey=SURVEY, store=store, organization="acme")

    assert result.success is True
    assert result.error_count == 1
    assert result.error_details == details


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------


def test_template_has_canonical_header_and_two_examples() -> None:
    lines = generate_template().strip().split("\n")

    assert lines[0] == "outcome,importance,satisfaction,opportunity_score"
    assert len(lines) == 3
