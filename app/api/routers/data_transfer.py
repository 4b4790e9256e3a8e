"""
app/api/routers/data_transfer.py

Organization snapshot export and import endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import get_data_transfer_service
from app.errors import HierarchyConflictError, HierarchyNotFoundError
from app.schemas.data_transfer import DataImportResponse, MergeBehaviorLiteral, TransferDocumentModel
from app.services.data_transfer_service import DataTransferService

router = APIRouter(prefix="/organizations/{org_slug}", tags=["data-transfer"])


@router.get("/export", response_model=TransferDocumentModel)
def export_data(service: DataTransferService = Depends(get_data_transfer_service)) -> TransferDocumentModel:
    return TransferDocumentModel.from_domain(service.export_data())


@router.post("/import", response_model=DataImportResponse)
def import_data(
    body: TransferDocumentModel,
    merge_behavior: MergeBehaviorLiteral = Query(default="skip"),
    dry_run: bool = Query(default=False),
    service: DataTransferService = Depends(get_data_transfer_service),
) -> DataImportResponse:
    """
    Apply an export document. ``dry_run`` reports the counts without
    keeping any write.
    """

    try:
        report = service.import_data(
            body.to_domain(service.org_slug),
            merge_behavior=merge_behavior,
            dry_run=dry_run,
        )
    except HierarchyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except HierarchyConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return DataImportResponse.from_domain(report)
