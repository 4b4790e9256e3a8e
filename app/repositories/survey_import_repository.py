"""
app/repositories/survey_import_repository.py

Persistence for survey imports: the active outcome catalog read and the
survey + results upsert. Nothing here commits; the caller owns the transaction.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.survey_import import OutcomeCatalogEntry
from app.storage.base import SurveyImportPayload
from db.models.hierarchy import EntityStatus, Outcome
from db.models.survey import OutcomeResult, Survey

_SURVEY_CODE_CONSTRAINT = "uq_surveys_org_code"
_RESULT_CONSTRAINT = "uq_outcome_results_survey_outcome"


class SurveyImportRepository:
    """
    Repository for the two store operations of the import pipeline.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def fetch_active_outcomes(self, org_id: uuid.UUID) -> list[OutcomeCatalogEntry]:
        stmt = (
            select(Outcome.id, Outcome.slug, Outcome.name)
            .where(Outcome.org_id == org_id, Outcome.status == EntityStatus.ACTIVE)
            .order_by(Outcome.order_index, Outcome.name)
        )
        return [
            OutcomeCatalogEntry(id=str(outcome_id), slug=slug, name=name)
            for outcome_id, slug, name in self._session.execute(stmt).all()
        ]

    def import_survey(self, *, org_id: uuid.UUID, payload: SurveyImportPayload) -> dict[str, Any]:
        """
        Insert the survey when its code is new, then upsert one result per
        resolved outcome.

        Row outcomes resolve by slug first, then by name, among active
        outcomes. Unresolved rows are reported in ``error_details``; when an
        outcome appears more than once the last row wins.
        """

        survey_id = self._ensure_survey(org_id=org_id, payload=payload)

        by_slug: dict[str, uuid.UUID] = {}
        by_name: dict[str, uuid.UUID] = {}
        active = self._session.execute(
            select(Outcome.id, Outcome.slug, Outcome.name).where(
                Outcome.org_id == org_id,
                Outcome.status == EntityStatus.ACTIVE,
            )
        ).all()
        for outcome_id, slug, name in active:
            by_slug.setdefault(slug, outcome_id)
            by_name.setdefault(name, outcome_id)

        values_by_outcome: dict[uuid.UUID, dict[str, Any]] = {}
        error_details: list[dict[str, Any]] = []
        for row in payload.rows:
            outcome_id = by_slug.get(row.outcome) or by_name.get(row.outcome)
            if outcome_id is None:
                error_details.append({"outcome": row.outcome, "error": "Outcome not found"})
                continue
            values_by_outcome[outcome_id] = {
                "id": uuid.uuid4(),
                "org_id": org_id,
                "survey_id": survey_id,
                "outcome_id": outcome_id,
                "importance": row.importance,
                "satisfaction": row.satisfaction,
                "opportunity_score": row.opportunity_score,
            }

        inserted = updated = 0
        if values_by_outcome:
            existing = set(
                self._session.scalars(
                    select(OutcomeResult.outcome_id).where(
                        OutcomeResult.survey_id == survey_id,
                        OutcomeResult.outcome_id.in_(list(values_by_outcome)),
                    )
                ).all()
            )
            updated = len(existing)
            inserted = len(values_by_outcome) - updated

            stmt = insert(OutcomeResult).values(list(values_by_outcome.values()))
            stmt = stmt.on_conflict_do_update(
                constraint=_RESULT_CONSTRAINT,
                set_={
                    "importance": stmt.excluded.importance,
                    "satisfaction": stmt.excluded.satisfaction,
                    "opportunity_score": stmt.excluded.opportunity_score,
                    "updated_at": func.now(),
                },
            )
            self._session.execute(stmt)

        return {
            "survey_id": str(survey_id),
            "inserted": inserted,
            "updated": updated,
            "errors": len(error_details),
            "error_details": error_details or None,
        }

    def _ensure_survey(self, *, org_id: uuid.UUID, payload: SurveyImportPayload) -> uuid.UUID:
        survey = payload.survey
        self._session.execute(
            insert(Survey)
            .values(
                id=uuid.uuid4(),
                org_id=org_id,
                code=survey.code,
                name=survey.name,
                date=survey.date,
                description=survey.description,
            )
            .on_conflict_do_nothing(constraint=_SURVEY_CODE_CONSTRAINT)
        )
        return self._session.scalar(
            select(Survey.id).where(Survey.org_id == org_id, Survey.code == survey.code)
        )
