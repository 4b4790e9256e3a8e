"""
app/api/routers/survey_import.py

Survey import HTTP endpoints: template download, preview, manual override
and commit.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.dependencies import SurveyUpload, get_survey_import_store, get_survey_upload
from app.errors import OrganizationNotFoundError, OutcomeCatalogError, SurveyFileError
from app.schemas.survey_import import (
    CommitRequest,
    ImportResultResponse,
    ManualOverrideRequest,
    PreviewResponse,
)
from app.services.survey_import_service import (
    SurveyImportService,
    apply_manual_override,
    generate_template,
    get_survey_import_service,
    summarize_preview,
)
from app.storage.base import SurveyImportStore

router = APIRouter(tags=["survey-import"])

TEMPLATE_FILENAME = "survey-import-template.csv"


@router.get("/survey-imports/template")
def download_template() -> Response:
    """
    Download the CSV import template.
    """

    return Response(
        content=generate_template(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post("/organizations/{org_slug}/survey-imports/preview", response_model=PreviewResponse)
def preview_survey_import(
    org_slug: str,
    upload: SurveyUpload = Depends(get_survey_upload),
    store: SurveyImportStore = Depends(get_survey_import_store),
    import_service: SurveyImportService = Depends(get_survey_import_service),
) -> PreviewResponse:
    """
    Decode, parse and match one survey file without writing anything.
    """

    try:
        summary = import_service.preview_upload(
            content=upload.content,
            filename=upload.filename,
            store=store,
            organization=org_slug,
        )
    except SurveyFileError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except OrganizationNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except OutcomeCatalogError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Outcome catalog is unavailable.",
        ) from exc

    return PreviewResponse.from_domain(summary)


@router.post("/survey-imports/preview/override", response_model=PreviewResponse)
def override_preview_row(body: ManualOverrideRequest) -> PreviewResponse:
    """
    Pin one preview row to an operator-chosen outcome and re-classify.
    """

    rows = [row.to_domain() for row in body.rows]
    try:
        updated = apply_manual_override(
            rows,
            body.position,
            outcome_id=body.outcome_id,
            outcome_name=body.outcome_name,
            outcome_slug=body.outcome_slug,
        )
    except IndexError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return PreviewResponse.from_domain(summarize_preview(updated))


@router.post("/organizations/{org_slug}/survey-imports/commit", response_model=ImportResultResponse)
def commit_survey_import(
    org_slug: str,
    body: CommitRequest,
    store: SurveyImportStore = Depends(get_survey_import_store),
    import_service: SurveyImportService = Depends(get_survey_import_service),
) -> ImportResultResponse:
    """
    Persist the accepted preview rows under one survey.

    Batches the preview would not allow (any error row, or no valid row) are
    rejected with 422 before the store is touched. Store failures are
    reported in the body (``success: false``), not as HTTP errors.
    """

    rows = [row.to_domain() for row in body.rows]
    summary = summarize_preview(rows)
    if not summary.can_commit:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Resolve every error row before committing.",
                "valid_row_count": summary.valid_row_count,
                "warning_row_count": summary.warning_row_count,
                "error_row_count": summary.error_row_count,
            },
        )

    result = import_service.commit(
        rows,
        survey=body.survey.to_domain(),
        store=store,
        organization=org_slug,
    )
    return ImportResultResponse.from_domain(result)
