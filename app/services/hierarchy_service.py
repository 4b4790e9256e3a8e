"""
app/services/hierarchy_service.py

Hierarchy administration, survey rounds and result views for one
organization.

Pure helpers (``build_tree``, ``attach_scores``, ``build_research_rounds``)
assemble read models; ``HierarchyService`` wraps the repositories and owns
commit / rollback for every write.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from datetime import date
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from app.domain.hierarchy import (
    BigJobNode,
    LittleJobNode,
    OutcomeNode,
    OutcomeResultFilters,
    OutcomeResultView,
    ResearchRound,
    SurveyRecord,
)
from app.errors import HierarchyConflictError, HierarchyNotFoundError
from app.logging_utils import log_event
from app.repositories.hierarchy_repository import HierarchyRepository
from app.repositories.organization_repository import OrganizationRepository
from app.repositories.survey_repository import SurveyRepository
from app.services.opportunity_service import OutcomeScores, RoundVariation, build_round_scores
from app.services.transaction import write_transaction
from db.models.hierarchy import BigJob, LittleJob, Outcome

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_tree(
    big_jobs: Sequence[BigJob],
    little_jobs: Sequence[LittleJob],
    outcomes: Sequence[Outcome],
) -> list[BigJobNode]:
    """
    Nest flat node lists into Big Job -> Little Job -> Outcome.

    Input order is kept at every level; children whose parent is absent
    from the input are dropped.
    """

    outcomes_by_parent: dict[Any, list[OutcomeNode]] = defaultdict(list)
    for outcome in outcomes:
        outcomes_by_parent[outcome.little_job_id].append(
            OutcomeNode(
                slug=outcome.slug,
                name=outcome.name,
                description=outcome.description,
                tags=tuple(outcome.tags or ()),
                status=outcome.status,
                order_index=outcome.order_index,
            )
        )

    little_by_parent: dict[Any, list[LittleJobNode]] = defaultdict(list)
    for little_job in little_jobs:
        little_by_parent[little_job.big_job_id].append(
            LittleJobNode(
                slug=little_job.slug,
                name=little_job.name,
                description=little_job.description,
                status=little_job.status,
                order_index=little_job.order_index,
                outcomes=tuple(outcomes_by_parent.get(little_job.id, ())),
            )
        )

    return [
        BigJobNode(
            slug=big_job.slug,
            name=big_job.name,
            description=big_job.description,
            tags=tuple(big_job.tags or ()),
            status=big_job.status,
            order_index=big_job.order_index,
            little_jobs=tuple(little_by_parent.get(big_job.id, ())),
        )
        for big_job in big_jobs
    ]


def attach_scores(
    tree: Sequence[BigJobNode],
    scores: Mapping[str, OutcomeScores],
) -> list[BigJobNode]:
    """
    Copy ``tree`` with per-outcome scores keyed by outcome slug.

    Outcomes without a score keep ``None`` ratings.
    """

    def with_scores(outcome: OutcomeNode) -> OutcomeNode:
        found = scores.get(outcome.slug)
        if found is None:
            return replace(outcome, importance=None, satisfaction=None, opportunity_score=None)
        return replace(
            outcome,
            importance=found.importance,
            satisfaction=found.satisfaction,
            opportunity_score=found.opportunity_score,
        )

    return [
        replace(
            big_job,
            little_jobs=tuple(
                replace(little_job, outcomes=tuple(with_scores(o) for o in little_job.outcomes))
                for little_job in big_job.little_jobs
            ),
        )
        for big_job in tree
    ]


def build_research_rounds(
    surveys: Sequence[SurveyRecord],
    tree: Sequence[BigJobNode],
    results: Sequence[OutcomeResultView],
) -> list[ResearchRound]:
    """
    One round per survey, in survey order, each carrying the full tree with
    that survey's scores attached.
    """

    by_survey: dict[str, dict[str, OutcomeScores]] = defaultdict(dict)
    for result in results:
        by_survey[result.survey_code][result.outcome_slug] = OutcomeScores(
            importance=result.importance,
            satisfaction=result.satisfaction,
            opportunity_score=result.opportunity_score,
        )

    return [
        ResearchRound(
            code=survey.code,
            name=survey.name,
            date=survey.date,
            description=survey.description or "",
            big_jobs=tuple(attach_scores(tree, by_survey.get(survey.code, {}))),
        )
        for survey in surveys
    ]


class HierarchyService:
    """
    Organization-scoped facade over hierarchy and survey repositories.

    Every hierarchy operation refreshes the slug lookups first, so ids
    resolve against the state at the start of the request.
    """

    def __init__(self, *, session: Session, org_slug: str, actor: str | None = None) -> None:
        self._session = session
        organization = OrganizationRepository(session).get_by_slug(org_slug)
        self.org_slug = org_slug
        self._hierarchy = HierarchyRepository(session, org_id=organization.id, actor=actor)
        self._surveys = SurveyRepository(session, org_id=organization.id, actor=actor)

    def get_hierarchy(self) -> list[BigJobNode]:
        self._hierarchy.refresh_lookups()
        return build_tree(*self._hierarchy.list_nodes())

    def create_node(
        self,
        kind: str,
        *,
        values: Mapping[str, Any],
        parent_slug: str | None = None,
    ) -> None:
        self._write_hierarchy(
            "create_node",
            lambda: self._hierarchy.create_node(kind, values=values, parent_slug=parent_slug),
        )

    def update_node(
        self,
        kind: str,
        slug: str,
        *,
        changes: Mapping[str, Any],
        parent_slug: str | None = None,
    ) -> None:
        self._write_hierarchy(
            "update_node",
            lambda: self._hierarchy.update_node(kind, slug, changes=changes, parent_slug=parent_slug),
        )

    def archive_node(self, kind: str, slug: str) -> None:
        self._write_hierarchy("archive_node", lambda: self._hierarchy.archive_node(kind, slug))

    def delete_node(self, kind: str, slug: str) -> None:
        self._write_hierarchy("delete_node", lambda: self._hierarchy.delete_node(kind, slug))

    def list_surveys(self) -> list[SurveyRecord]:
        return self._surveys.list_surveys()

    def upsert_survey(
        self,
        *,
        code: str,
        name: str,
        survey_date: date,
        description: str | None = None,
    ) -> SurveyRecord:
        return self._write(
            "upsert_survey",
            lambda: self._surveys.upsert_survey(
                code=code,
                name=name,
                survey_date=survey_date,
                description=description,
            ),
        )

    def upsert_outcome_result(
        self,
        *,
        survey_code: str,
        outcome_slug: str,
        importance: float,
        satisfaction: float,
        opportunity_score_value: float | None = None,
    ) -> OutcomeScores:
        """
        Upsert one result; the opportunity score is computed when omitted.
        """

        if opportunity_score_value is None:
            scores = OutcomeScores.from_ratings(importance, satisfaction)
        else:
            scores = OutcomeScores(
                importance=importance,
                satisfaction=satisfaction,
                opportunity_score=opportunity_score_value,
            )
        self._write(
            "upsert_outcome_result",
            lambda: self._surveys.upsert_outcome_result(
                survey_code=survey_code,
                outcome_slug=outcome_slug,
                importance=scores.importance,
                satisfaction=scores.satisfaction,
                opportunity_score=scores.opportunity_score,
            ),
        )
        return scores

    def derive_round(
        self,
        *,
        code: str,
        name: str,
        survey_date: date,
        baseline_code: str,
        variation: RoundVariation,
        overrides: Mapping[str, tuple[float, float]] | None = None,
        description: str | None = None,
    ) -> dict[str, OutcomeScores]:
        """
        Create or refresh survey ``code`` from the results of ``baseline_code``.

        Each baseline rating is shifted by ``variation`` and clamped to
        [1, 10]; when ``overrides`` is given its ratings are used instead and
        the baseline is ignored. Scores are recomputed with the opportunity
        formula and written in one transaction.
        """

        if code == baseline_code:
            raise HierarchyConflictError(f"survey '{code}' cannot be derived from itself")
        if baseline_code not in {survey.code for survey in self._surveys.list_surveys()}:
            raise HierarchyNotFoundError("survey", baseline_code)

        baseline = self._surveys.list_outcome_results(
            OutcomeResultFilters(survey_codes=(baseline_code,))
        )
        scores = build_round_scores(
            code,
            {result.outcome_slug: (result.importance, result.satisfaction) for result in baseline},
            {code: variation},
            {code: overrides} if overrides is not None else None,
        )

        def write() -> None:
            self._surveys.upsert_survey(
                code=code,
                name=name,
                survey_date=survey_date,
                description=description,
            )
            for outcome_slug, outcome_scores in scores.items():
                self._surveys.upsert_outcome_result(
                    survey_code=code,
                    outcome_slug=outcome_slug,
                    importance=outcome_scores.importance,
                    satisfaction=outcome_scores.satisfaction,
                    opportunity_score=outcome_scores.opportunity_score,
                )

        self._write("derive_round", write)
        log_event(
            logger,
            logging.INFO,
            "research_round_derived",
            organization=self.org_slug,
            survey_code=code,
            baseline_code=baseline_code,
            outcomes=len(scores),
        )
        return scores

    def list_outcome_results(
        self,
        filters: OutcomeResultFilters | None = None,
    ) -> list[OutcomeResultView]:
        return self._surveys.list_outcome_results(filters)

    def get_research_rounds(self) -> list[ResearchRound]:
        surveys = self._surveys.list_surveys()
        tree = self.get_hierarchy()
        results = self._surveys.list_outcome_results(
            OutcomeResultFilters(survey_codes=tuple(survey.code for survey in surveys))
        )
        return build_research_rounds(surveys, tree, results)

    def _write_hierarchy(self, operation: str, mutate: Callable[[], T]) -> T:
        def run() -> T:
            self._hierarchy.refresh_lookups()
            return mutate()

        return self._write(operation, run)

    def _write(self, operation: str, mutate: Callable[[], T]) -> T:
        with write_transaction(self._session, operation=operation, org_slug=self.org_slug):
            return mutate()
