"""
app/api/routers/surveys.py

Survey round endpoints: list / upsert surveys, derive a survey from a baseline
round, upsert one outcome result and query the flattened result view.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_hierarchy_service
from app.domain.hierarchy import OutcomeResultFilters
from app.errors import HierarchyConflictError, HierarchyNotFoundError
from app.schemas.surveys import (
    OutcomeResultResponse,
    OutcomeResultUpsertRequest,
    OutcomeResultUpsertResponse,
    RoundDeriveRequest,
    SurveyResponse,
    SurveyUpsertRequest,
)
from app.services.hierarchy_service import HierarchyService
from app.services.opportunity_service import RoundVariation

router = APIRouter(prefix="/organizations/{org_slug}", tags=["surveys"])


@router.get("/surveys", response_model=list[SurveyResponse])
def list_surveys(service: HierarchyService = Depends(get_hierarchy_service)) -> list[SurveyResponse]:
    """
    Surveys ordered by date.
    """

    return [SurveyResponse.from_domain(record) for record in service.list_surveys()]


@router.put("/surveys/{code}", response_model=SurveyResponse)
def upsert_survey(
    code: str,
    body: SurveyUpsertRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> SurveyResponse:
    record = service.upsert_survey(
        code=code,
        name=body.name,
        survey_date=body.date,
        description=body.description,
    )
    return SurveyResponse.from_domain(record)


@router.put(
    "/surveys/{code}/results/{outcome_slug}",
    response_model=OutcomeResultUpsertResponse,
)
def upsert_outcome_result(
    code: str,
    outcome_slug: str,
    body: OutcomeResultUpsertRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> OutcomeResultUpsertResponse:
    """
    Upsert one result; ``opportunity_score`` is computed when omitted.
    """

    try:
        scores = service.upsert_outcome_result(
            survey_code=code,
            outcome_slug=outcome_slug,
            importance=body.importance,
            satisfaction=body.satisfaction,
            opportunity_score_value=body.opportunity_score,
        )
    except HierarchyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    return OutcomeResultUpsertResponse(
        survey_code=code,
        outcome_slug=outcome_slug,
        importance=scores.importance,
        satisfaction=scores.satisfaction,
        opportunity_score=scores.opportunity_score,
    )


@router.post(
    "/surveys/{code}/derive",
    response_model=list[OutcomeResultUpsertResponse],
)
def derive_round(
    code: str,
    body: RoundDeriveRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[OutcomeResultUpsertResponse]:
    """
    Write survey ``code`` from a baseline survey shifted by the given deltas.
    """

    try:
        scores = service.derive_round(
            code=code,
            name=body.name,
            survey_date=body.date,
            description=body.description,
            baseline_code=body.baseline_code,
            variation=RoundVariation(
                importance_delta=body.importance_delta,
                satisfaction_delta=body.satisfaction_delta,
            ),
            overrides=body.override_table(),
        )
    except HierarchyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except HierarchyConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    return [
        OutcomeResultUpsertResponse(
            survey_code=code,
            outcome_slug=outcome_slug,
            importance=outcome_scores.importance,
            satisfaction=outcome_scores.satisfaction,
            opportunity_score=outcome_scores.opportunity_score,
        )
        for outcome_slug, outcome_scores in scores.items()
    ]


@router.get("/outcome-results", response_model=list[OutcomeResultResponse])
def list_outcome_results(
    survey_code: list[str] | None = Query(default=None),
    big_job_slug: list[str] | None = Query(default=None),
    little_job_slug: list[str] | None = Query(default=None),
    outcome_slug: list[str] | None = Query(default=None),
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[OutcomeResultResponse]:
    """
    Flattened results; each filter is repeatable and empty filters match all.
    """

    filters = OutcomeResultFilters(
        survey_codes=tuple(survey_code or ()),
        big_job_slugs=tuple(big_job_slug or ()),
        little_job_slugs=tuple(little_job_slug or ()),
        outcome_slugs=tuple(outcome_slug or ()),
    )
    return [OutcomeResultResponse.from_domain(view) for view in service.list_outcome_results(filters)]
