"""
app/services/survey_import_service.py

Service layer for the survey import pipeline.

Stages run strictly forward:

    1. SurveyFileReader.read()       - bytes -> headers + row maps
    2. SurveyRowParser.parse()       - canonical fields, numeric coercion
    3. OutcomeMatcher.match_rows()   - one catalog read, tiered matching
    4. summarize_preview()           - validity buckets, no side effects
    5. commit()                      - one atomic store write

The store is passed in per call; the service itself holds no request state.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import replace
from functools import lru_cache
from typing import Sequence

from pydantic import ValidationError

from app.config import get_survey_import_settings
from app.domain.survey_import import (
    DecodedFile,
    ImportResult,
    MatchedRow,
    MatchType,
    ParsedRow,
    PreviewSummary,
    RowStatus,
    SurveyMetadata,
)
from app.logging_utils import log_event
from app.mappers.outcome_matcher import OutcomeMatcher
from app.readers.survey_file_reader import SurveyFileReader
from app.schemas.survey_import import SurveyImportStoreResponse
from app.storage.base import SurveyImportPayload, SurveyImportPayloadRow, SurveyImportStore
from app.validators.survey_row_parser import (
    IMPORTANCE_RANGE,
    OPPORTUNITY_SCORE_RANGE,
    SATISFACTION_RANGE,
    SurveyRowParser,
    in_range,
)

logger = logging.getLogger(__name__)

NO_VALID_ROWS_MESSAGE = "No valid rows to import"
TEMPLATE_HEADER = ("outcome", "importance", "satisfaction", "opportunity_score")
TEMPLATE_EXAMPLE_ROWS = (
    ("minimize-time-to-find-product", "8.5", "4.2", "12.8"),
    ("increase-confidence-in-purchase", "9.1", "5.6", "12.6"),
)

_ERROR_MARKERS = ("must be between", "not found")


def is_error_issue(issue: str) -> bool:
    return any(marker in issue for marker in _ERROR_MARKERS)


def row_status(row: MatchedRow) -> str:
    """
    Display tier for one row; error wins over warning.
    """

    if not row.is_matched or any(is_error_issue(issue) for issue in row.issues):
        return RowStatus.ERROR
    if row.issues:
        return RowStatus.WARNING
    return RowStatus.OK


def summarize_preview(rows: Sequence[MatchedRow]) -> PreviewSummary:
    """
    Classify matched rows into valid / warning / error tallies.

    A matched row whose only issues are range violations counts as both a
    warning and an error; the two tallies are independent.
    """

    valid = warning = error = 0
    for row in rows:
        if row.is_matched and not row.issues:
            valid += 1
        if row.is_matched and row.issues:
            warning += 1
        if not row.is_matched or any(is_error_issue(issue) for issue in row.issues):
            error += 1

    return PreviewSummary(
        total_rows=len(rows),
        valid_row_count=valid,
        warning_row_count=warning,
        error_row_count=error,
        rows=list(rows),
        row_statuses=[row_status(row) for row in rows],
    )


def apply_manual_override(
    rows: Sequence[MatchedRow],
    position: int,
    *,
    outcome_id: str,
    outcome_name: str,
    outcome_slug: str | None = None,
) -> list[MatchedRow]:
    """
    Return a copy of ``rows`` with the row at ``position`` pinned to the
    chosen outcome.

    "not found" issues are dropped, range issues are kept. Raises
    ``IndexError`` when ``position`` is outside ``rows``.
    """

    if position < 0 or position >= len(rows):
        raise IndexError(f"Row position {position} out of range (0..{len(rows) - 1})")

    updated = list(rows)
    target = updated[position]
    updated[position] = replace(
        target,
        outcome_id=outcome_id,
        outcome_name=outcome_name,
        outcome_slug=outcome_slug,
        match_type=MatchType.MANUAL_OVERRIDE,
        match_score=None,
        issues=tuple(issue for issue in target.issues if "not found" not in issue),
    )
    return updated


def is_committable(row: MatchedRow) -> bool:
    return (
        row.is_matched
        and in_range(row.importance, IMPORTANCE_RANGE)
        and in_range(row.satisfaction, SATISFACTION_RANGE)
        and in_range(row.opportunity_score, OPPORTUNITY_SCORE_RANGE)
    )


def generate_template() -> str:
    """
    CSV template with the canonical header and two example rows.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(TEMPLATE_HEADER)
    writer.writerows(TEMPLATE_EXAMPLE_ROWS)
    return buffer.getvalue()


class SurveyImportService:
    """
    Coordinates decoding, parsing, matching, preview and commit.
    """

    def __init__(
        self,
        *,
        log_row_issues: bool,
        max_logged_issues: int,
        reader: SurveyFileReader | None = None,
        parser: SurveyRowParser | None = None,
        matcher: OutcomeMatcher | None = None,
    ) -> None:
        self._log_row_issues = log_row_issues
        self._max_logged_issues = max(0, max_logged_issues)
        self._reader = reader or SurveyFileReader()
        self._parser = parser or SurveyRowParser()
        self._matcher = matcher or OutcomeMatcher()

    def decode(self, *, content: bytes, filename: str) -> DecodedFile:
        return self._reader.read(content=content, filename=filename)

    def parse(self, decoded: DecodedFile) -> list[ParsedRow]:
        return self._parser.parse(decoded)

    def match(
        self,
        rows: Sequence[ParsedRow],
        *,
        store: SurveyImportStore,
        organization: str,
    ) -> list[MatchedRow]:
        """
        Resolve every row against one catalog read; an empty ``rows`` skips
        the read.
        """

        if not rows:
            return []
        catalog = store.fetch_active_outcomes(organization)
        matched = self._matcher.match_rows(rows, catalog)
        self._log_issues(matched, organization=organization)
        return matched

    def preview_upload(
        self,
        *,
        content: bytes,
        filename: str,
        store: SurveyImportStore,
        organization: str,
    ) -> PreviewSummary:
        """
        Run decode -> parse -> match and classify the result.

        File-level problems raise ``SurveyFileError`` subclasses; row-level
        problems are carried as issues on each row.
        """

        decoded = self.decode(content=content, filename=filename)
        parsed = self.parse(decoded)
        matched = self.match(parsed, store=store, organization=organization)
        summary = summarize_preview(matched)
        log_event(
            logger,
            logging.INFO,
            "survey_import_preview",
            organization=organization,
            filename=filename,
            total_rows=summary.total_rows,
            valid_rows=summary.valid_row_count,
            warning_rows=summary.warning_row_count,
            error_rows=summary.error_row_count,
        )
        return summary

    def commit(
        self,
        rows: Sequence[MatchedRow],
        *,
        survey: SurveyMetadata,
        store: SurveyImportStore,
        organization: str,
    ) -> ImportResult:
        """
        Persist every committable row in one store call.

        Never raises: store failures come back as an unsuccessful
        ``ImportResult``.
        """

        accepted = [row for row in rows if is_committable(row)]
        if not accepted:
            log_event(
                logger,
                logging.WARNING,
                "survey_import_commit_skipped",
                organization=organization,
                survey_code=survey.code,
                submitted_rows=len(rows),
            )
            return ImportResult(
                success=False,
                inserted_count=0,
                updated_count=0,
                error_count=len(rows),
                message=NO_VALID_ROWS_MESSAGE,
            )

        payload = SurveyImportPayload(
            organization=organization,
            survey=survey,
            rows=[
                SurveyImportPayloadRow(
                    outcome=row.outcome_slug or row.outcome_name or row.raw_outcome,
                    importance=row.importance,
                    satisfaction=row.satisfaction,
                    opportunity_score=row.opportunity_score,
                )
                for row in accepted
            ],
        )

        try:
            response = SurveyImportStoreResponse.model_validate(dict(store.import_survey(payload)))
        except ValidationError as exc:
            return self._failure(
                f"invalid store response ({exc.error_count()} errors)",
                submitted=len(accepted),
                organization=organization,
                survey=survey,
            )
        except Exception as exc:  # noqa: BLE001
            return self._failure(
                str(exc) or exc.__class__.__name__,
                submitted=len(accepted),
                organization=organization,
                survey=survey,
            )

        log_event(
            logger,
            logging.INFO,
            "survey_import_committed",
            organization=organization,
            survey_code=survey.code,
            survey_id=response.survey_id,
            inserted=response.inserted,
            updated=response.updated,
            errors=response.errors,
        )
        return ImportResult(
            success=True,
            survey_id=response.survey_id,
            inserted_count=response.inserted,
            updated_count=response.updated,
            error_count=response.errors,
            error_details=response.error_details,
            message=f"Import completed: {response.inserted} inserted, {response.updated} updated",
        )

    def _failure(
        self,
        reason: str,
        *,
        submitted: int,
        organization: str,
        survey: SurveyMetadata,
    ) -> ImportResult:
        log_event(
            logger,
            logging.ERROR,
            "survey_import_commit_failed",
            organization=organization,
            survey_code=survey.code,
            submitted_rows=submitted,
            error=reason,
        )
        return ImportResult(
            success=False,
            inserted_count=0,
            updated_count=0,
            error_count=submitted,
            message=f"Import failed: {reason}",
        )

    def _log_issues(self, rows: Sequence[MatchedRow], *, organization: str) -> None:
        if not self._log_row_issues:
            return
        logged = 0
        for row in rows:
            for issue in row.issues:
                if logged >= self._max_logged_issues:
                    return
                logger.warning(
                    "Survey import issue org=%s row=%s outcome=%r issue=%s",
                    organization,
                    row.row_index,
                    row.raw_outcome,
                    issue,
                )
                logged += 1


@lru_cache(maxsize=1)
def get_survey_import_service() -> SurveyImportService:
    """
    Build and cache the import service with env-driven settings.
    """

    settings = get_survey_import_settings()
    return SurveyImportService(
        log_row_issues=settings.log_row_issues,
        max_logged_issues=settings.max_logged_issues,
        matcher=OutcomeMatcher(fuzzy_threshold=settings.fuzzy_match_threshold),
    )
