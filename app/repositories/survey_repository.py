"""
app/repositories/survey_repository.py

Survey rounds and single-result writes outside the bulk import path, plus
the flattened result view used by filters and research rounds.
"""

from __future__ import annotations

import uuid
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from app.domain.hierarchy import OutcomeResultFilters, OutcomeResultView, SurveyRecord
from app.errors import HierarchyNotFoundError
from app.repositories.change_log_repository import ChangeLogRepository
from db.models.change_log import ChangeAction
from db.models.hierarchy import BigJob, LittleJob, Outcome
from db.models.survey import OutcomeResult, Survey

_SURVEY_CODE_CONSTRAINT = "uq_surveys_org_code"
_RESULT_CONSTRAINT = "uq_outcome_results_survey_outcome"


class SurveyRepository:
    def __init__(self, session: Session, *, org_id: uuid.UUID, actor: str | None = None) -> None:
        self._session = session
        self._org_id = org_id
        self._actor = actor
        self._change_log = ChangeLogRepository(session)

    def list_surveys(self) -> list[SurveyRecord]:
        stmt = (
            select(Survey)
            .where(Survey.org_id == self._org_id)
            .order_by(Survey.date, Survey.code)
        )
        return [
            SurveyRecord(
                code=survey.code,
                name=survey.name,
                date=survey.date,
                description=survey.description,
            )
            for survey in self._session.scalars(stmt).all()
        ]

    def upsert_survey(
        self,
        *,
        code: str,
        name: str,
        survey_date: date,
        description: str | None = None,
    ) -> SurveyRecord:
        stmt = insert(Survey).values(
            id=uuid.uuid4(),
            org_id=self._org_id,
            code=code,
            name=name,
            date=survey_date,
            description=description,
        )
        stmt = stmt.on_conflict_do_update(
            constraint=_SURVEY_CODE_CONSTRAINT,
            set_={
                "name": stmt.excluded.name,
                "date": stmt.excluded.date,
                "description": stmt.excluded.description,
                "updated_at": func.now(),
            },
        )
        self._session.execute(stmt)
        record = SurveyRecord(code=code, name=name, date=survey_date, description=description)
        self._change_log.record(
            org_id=self._org_id,
            entity="survey",
            entity_id=code,
            action=ChangeAction.UPSERT,
            after={
                "code": code,
                "name": name,
                "date": survey_date.isoformat(),
                "description": description,
            },
            actor=self._actor,
        )
        return record

    def upsert_outcome_result(
        self,
        *,
        survey_code: str,
        outcome_slug: str,
        importance: float,
        satisfaction: float,
        opportunity_score: float,
    ) -> None:
        survey_id = self._session.scalar(
            select(Survey.id).where(Survey.org_id == self._org_id, Survey.code == survey_code)
        )
        if survey_id is None:
            raise HierarchyNotFoundError("survey", survey_code)
        outcome_id = self._session.scalar(
            select(Outcome.id).where(Outcome.org_id == self._org_id, Outcome.slug == outcome_slug)
        )
        if outcome_id is None:
            raise HierarchyNotFoundError("outcome", outcome_slug)

        values = {
            "importance": importance,
            "satisfaction": satisfaction,
            "opportunity_score": opportunity_score,
        }
        stmt = insert(OutcomeResult).values(
            id=uuid.uuid4(),
            org_id=self._org_id,
            survey_id=survey_id,
            outcome_id=outcome_id,
            **values,
        )
        stmt = stmt.on_conflict_do_update(
            constraint=_RESULT_CONSTRAINT,
            set_={**values, "updated_at": func.now()},
        )
        self._session.execute(stmt)
        self._change_log.record(
            org_id=self._org_id,
            entity="outcome_result",
            entity_id=f"{survey_code}:{outcome_slug}",
            action=ChangeAction.UPSERT,
            after={"survey_code": survey_code, "outcome_slug": outcome_slug, **values},
            actor=self._actor,
        )

    def list_outcome_results(
        self,
        filters: OutcomeResultFilters | None = None,
    ) -> list[OutcomeResultView]:
        """
        Results joined with survey and hierarchy path, ordered by survey code
        then opportunity score descending. Empty filter lists do not filter.
        """

        filters = filters or OutcomeResultFilters()
        stmt = (
            select(
                Survey.code,
                Survey.name,
                Survey.date,
                BigJob.slug,
                BigJob.name,
                LittleJob.slug,
                LittleJob.name,
                Outcome.slug,
                Outcome.name,
                OutcomeResult.importance,
                OutcomeResult.satisfaction,
                OutcomeResult.opportunity_score,
            )
            .select_from(OutcomeResult)
            .join(Survey, OutcomeResult.survey_id == Survey.id)
            .join(Outcome, OutcomeResult.outcome_id == Outcome.id)
            .join(LittleJob, Outcome.little_job_id == LittleJob.id)
            .join(BigJob, LittleJob.big_job_id == BigJob.id)
            .where(OutcomeResult.org_id == self._org_id)
        )
        if filters.survey_codes:
            stmt = stmt.where(Survey.code.in_(filters.survey_codes))
        if filters.big_job_slugs:
            stmt = stmt.where(BigJob.slug.in_(filters.big_job_slugs))
        if filters.little_job_slugs:
            stmt = stmt.where(LittleJob.slug.in_(filters.little_job_slugs))
        if filters.outcome_slugs:
            stmt = stmt.where(Outcome.slug.in_(filters.outcome_slugs))
        stmt = stmt.order_by(Survey.code, OutcomeResult.opportunity_score.desc())

        return [OutcomeResultView(*row) for row in self._session.execute(stmt).all()]
