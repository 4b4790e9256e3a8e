"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation and per-request
collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, File, HTTPException, Path, UploadFile, status
from sqlalchemy.orm import Session

from app.config import get_survey_import_settings
from app.errors import OrganizationNotFoundError
from app.readers.survey_file_reader import SUPPORTED_EXTENSIONS, file_extension
from app.services.data_transfer_service import DataTransferService
from app.services.hierarchy_service import HierarchyService
from app.services.member_service import MemberService
from app.storage.base import SurveyImportStore
from app.storage.sqlalchemy_store import SQLAlchemySurveyImportStore
from db.session import get_db


@dataclass(frozen=True)
class SurveyUpload:
    filename: str
    content: bytes


def get_survey_upload(file: UploadFile = File(...)) -> SurveyUpload:
    """
    Validate the uploaded survey file by extension and size, then read it.
    """

    filename = (file.filename or "").strip()
    if file_extension(filename) not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported file format. Use CSV or XLSX.",
        )

    max_bytes = get_survey_import_settings().max_upload_bytes
    try:
        content = file.file.read(max_bytes + 1)
    finally:
        file.file.close()

    if len(content) > max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {max_bytes} byte upload limit.",
        )
    return SurveyUpload(filename=filename, content=content)


def get_survey_import_store(db: Session = Depends(get_db)) -> SurveyImportStore:
    """
    Request-scoped store bound to the request's session.
    """

    return SQLAlchemySurveyImportStore(session=db)


def get_hierarchy_service(
    org_slug: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> HierarchyService:
    try:
        return HierarchyService(session=db, org_slug=org_slug)
    except OrganizationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def get_member_service(
    org_slug: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> MemberService:
    try:
        return MemberService(session=db, org_slug=org_slug)
    except OrganizationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def get_data_transfer_service(
    org_slug: str = Path(..., min_length=1),
    db: Session = Depends(get_db),
) -> DataTransferService:
    try:
        return DataTransferService(session=db, org_slug=org_slug)
    except OrganizationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
