"""
app/schemas/surveys.py

Schemas for survey rounds, single result upserts and the flattened result view.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from app.domain.hierarchy import OutcomeResultView, SurveyRecord


class SurveyResponse(BaseModel):
    code: str
    name: str
    date: date
    description: str | None = None

    @classmethod
    def from_domain(cls, record: SurveyRecord) -> "SurveyResponse":
        return cls(
            code=record.code,
            name=record.name,
            date=record.date,
            description=record.description,
        )


class SurveyUpsertRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    date: date
    description: str | None = None


class OutcomeResultUpsertRequest(BaseModel):
    importance: float = Field(..., ge=0.0, le=10.0)
    satisfaction: float = Field(..., ge=0.0, le=10.0)
    opportunity_score: float | None = Field(default=None, ge=0.0, le=99.9)


class OutcomeResultUpsertResponse(BaseModel):
    survey_code: str
    outcome_slug: str
    importance: float
    satisfaction: float
    opportunity_score: float


class OutcomeResultResponse(BaseModel):
    survey_code: str
    survey_name: str
    survey_date: date
    big_job_slug: str
    big_job_name: str
    little_job_slug: str
    little_job_name: str
    outcome_slug: str
    outcome_name: str
    importance: float
    satisfaction: float
    opportunity_score: float

    @classmethod
    def from_domain(cls, view: OutcomeResultView) -> "OutcomeResultResponse":
        return cls(
            survey_code=view.survey_code,
            survey_name=view.survey_name,
            survey_date=view.survey_date,
            big_job_slug=view.big_job_slug,
            big_job_name=view.big_job_name,
            little_job_slug=view.little_job_slug,
            little_job_name=view.little_job_name,
            outcome_slug=view.outcome_slug,
            outcome_name=view.outcome_name,
            importance=view.importance,
            satisfaction=view.satisfaction,
            opportunity_score=view.opportunity_score,
        )


class RatingPair(BaseModel):
    importance: float = Field(..., ge=0.0, le=10.0)
    satisfaction: float = Field(..., ge=0.0, le=10.0)


class RoundDeriveRequest(BaseModel):
    """
    Build a survey from a baseline survey's results. ``overrides`` keyed by
    outcome slug replaces the baseline entirely when present.
    """

    baseline_code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    date: date
    description: str | None = None
    importance_delta: float = Field(default=0.0, ge=-10.0, le=10.0)
    satisfaction_delta: float = Field(default=0.0, ge=-10.0, le=10.0)
    overrides: dict[str, RatingPair] | None = None

    def override_table(self) -> dict[str, tuple[float, float]] | None:
        if self.overrides is None:
            return None
        return {slug: (pair.importance, pair.satisfaction) for slug, pair in self.overrides.items()}
