"""
app/schemas/survey_import.py

Request/response schemas for survey import endpoints, plus the strict schema
the store's commit response is validated against.
"""

from __future__ import annotations

import math
import uuid
from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.survey_import import (
    ImportResult,
    MatchedRow,
    MatchType,
    PreviewSummary,
    SurveyMetadata,
)

MatchTypeLiteral = Literal[
    "exact-identifier",
    "exact-name",
    "fuzzy",
    "manual-override",
    "none",
]
RowStatusLiteral = Literal["ok", "warning", "error"]


def _nan_to_none(value: float) -> float | None:
    return None if math.isnan(value) else value


def _none_to_nan(value: float | None) -> float:
    return math.nan if value is None else value


class SurveyImportStoreResponse(BaseModel):
    """
    Shape every store commit response must satisfy.
    """

    model_config = ConfigDict(extra="ignore")

    survey_id: str = Field(..., min_length=1)
    inserted: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    errors: int = Field(default=0, ge=0)
    error_details: list[dict[str, Any]] | None = None

    @field_validator("survey_id", mode="before")
    @classmethod
    def _stringify_uuid(cls, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        return value


class SurveyMetadataModel(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    date: date
    description: str | None = None

    @field_validator("code", "name")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    def to_domain(self) -> SurveyMetadata:
        return SurveyMetadata(
            code=self.code,
            name=self.name,
            date=self.date,
            description=self.description,
        )


class MatchedRowModel(BaseModel):
    """
    One preview row. Unparsable numbers travel as ``null``.
    """

    row_index: int = Field(..., ge=1)
    raw_outcome: str = Field(..., min_length=1)
    importance: float | None = None
    satisfaction: float | None = None
    opportunity_score: float | None = None
    original_row: dict[str, Any] = Field(default_factory=dict)
    outcome_id: str | None = None
    outcome_name: str | None = None
    outcome_slug: str | None = None
    match_type: MatchTypeLiteral = MatchType.NONE
    match_score: float | None = Field(default=None, ge=0.0, le=1.0)
    issues: list[str] = Field(default_factory=list)
    status: RowStatusLiteral | None = None

    @classmethod
    def from_domain(cls, row: MatchedRow, *, status: str | None = None) -> "MatchedRowModel":
        return cls(
            row_index=row.row_index,
            raw_outcome=row.raw_outcome,
            importance=_nan_to_none(row.importance),
            satisfaction=_nan_to_none(row.satisfaction),
            opportunity_score=_nan_to_none(row.opportunity_score),
            original_row=row.original_row,
            outcome_id=row.outcome_id,
            outcome_name=row.outcome_name,
            outcome_slug=row.outcome_slug,
            match_type=row.match_type,
            match_score=row.match_score,
            issues=list(row.issues),
            status=status,
        )

    def to_domain(self) -> MatchedRow:
        return MatchedRow(
            row_index=self.row_index,
            raw_outcome=self.raw_outcome,
            importance=_none_to_nan(self.importance),
            satisfaction=_none_to_nan(self.satisfaction),
            opportunity_score=_none_to_nan(self.opportunity_score),
            original_row=dict(self.original_row),
            outcome_id=self.outcome_id,
            outcome_name=self.outcome_name,
            outcome_slug=self.outcome_slug,
            match_type=self.match_type,
            match_score=self.match_score,
            issues=tuple(self.issues),
        )


class PreviewResponse(BaseModel):
    total_rows: int = Field(..., ge=0)
    valid_row_count: int = Field(..., ge=0)
    warning_row_count: int = Field(..., ge=0)
    error_row_count: int = Field(..., ge=0)
    can_commit: bool
    rows: list[MatchedRowModel] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, summary: PreviewSummary) -> "PreviewResponse":
        return cls(
            total_rows=summary.total_rows,
            valid_row_count=summary.valid_row_count,
            warning_row_count=summary.warning_row_count,
            error_row_count=summary.error_row_count,
            can_commit=summary.can_commit,
            rows=[
                MatchedRowModel.from_domain(row, status=status)
                for row, status in zip(summary.rows, summary.row_statuses)
            ],
        )


class ManualOverrideRequest(BaseModel):
    rows: list[MatchedRowModel]
    position: int = Field(..., ge=0, description="Zero-based position in ``rows``")
    outcome_id: str = Field(..., min_length=1)
    outcome_name: str = Field(..., min_length=1)
    outcome_slug: str | None = None


class CommitRequest(BaseModel):
    survey: SurveyMetadataModel
    rows: list[MatchedRowModel]


class ImportResultResponse(BaseModel):
    success: bool
    survey_id: str | None = None
    inserted_count: int = Field(..., ge=0)
    updated_count: int = Field(..., ge=0)
    error_count: int = Field(..., ge=0)
    error_details: list[dict[str, Any]] | None = None
    message: str

    @classmethod
    def from_domain(cls, result: ImportResult) -> "ImportResultResponse":
        return cls(
            success=result.success,
            survey_id=result.survey_id,
            inserted_count=result.inserted_count,
            updated_count=result.updated_count,
            error_count=result.error_count,
            error_details=result.error_details,
            message=result.message,
        )
