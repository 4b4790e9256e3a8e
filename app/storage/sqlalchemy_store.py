"""
SQLAlchemy-backed survey import store.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.survey_import import OutcomeCatalogEntry
from app.errors import OutcomeCatalogError, SurveyImportPersistenceError
from app.logging_utils import log_event
from app.repositories.change_log_repository import ChangeLogRepository
from app.repositories.organization_repository import OrganizationRepository
from app.repositories.survey_import_repository import SurveyImportRepository
from app.storage.base import SurveyImportPayload, SurveyImportStore
from db.models.change_log import ChangeAction

logger = logging.getLogger(__name__)


class SQLAlchemySurveyImportStore(SurveyImportStore):
    """
    Reads the catalog and writes imports through one request-scoped session.
    """

    def __init__(self, *, session: Session, actor: str | None = None) -> None:
        self._session = session
        self._actor = actor

    def fetch_active_outcomes(self, organization: str) -> Sequence[OutcomeCatalogEntry]:
        try:
            org = OrganizationRepository(self._session).get_by_slug(organization)
            return SurveyImportRepository(self._session).fetch_active_outcomes(org.id)
        except SQLAlchemyError as exc:
            raise OutcomeCatalogError(f"Failed to load outcomes: {exc}") from exc

    def import_survey(self, payload: SurveyImportPayload) -> Mapping[str, Any]:
        try:
            org = OrganizationRepository(self._session).get_by_slug(payload.organization)
            response = SurveyImportRepository(self._session).import_survey(
                org_id=org.id,
                payload=payload,
            )
            ChangeLogRepository(self._session).record(
                org_id=org.id,
                entity="survey",
                entity_id=response["survey_id"],
                action=ChangeAction.IMPORT,
                after={
                    "code": payload.survey.code,
                    "inserted": response["inserted"],
                    "updated": response["updated"],
                    "errors": response["errors"],
                },
                actor=self._actor,
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            log_event(
                logger,
                logging.ERROR,
                "survey_import_persistence_failed",
                organization=payload.organization,
                survey_code=payload.survey.code,
                error=str(exc),
            )
            raise SurveyImportPersistenceError(str(exc)) from exc
        return response
