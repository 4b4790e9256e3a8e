"""
app/services/data_transfer_service.py

Organization snapshot export and import.

Export
------
Active hierarchy tree, every survey and every outcome result (keyed by
survey code and outcome slug, never by database id).

Import
------
Entities are matched by slug (nodes), code (surveys) or
(survey code, outcome slug) (results). Missing entities are created; existing
ones follow ``MergeBehavior``. Results whose survey or outcome cannot be
resolved are skipped. The whole import is one transaction, and ``dry_run``
rolls it back after counting.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.domain.data_transfer import (
    DataImportReport,
    EntityCounts,
    MergeBehavior,
    TransferConflict,
    TransferDocument,
    TransferResult,
)
from app.domain.hierarchy import BigJobNode, LittleJobNode, NodeKind, OutcomeNode, SurveyRecord
from app.logging_utils import log_event
from app.repositories.hierarchy_repository import PARENT_COLUMNS, HierarchyRepository
from app.repositories.organization_repository import OrganizationRepository
from app.repositories.survey_repository import SurveyRepository
from app.services.hierarchy_service import build_tree
from app.services.transaction import write_transaction

logger = logging.getLogger(__name__)

HierarchyNode = BigJobNode | LittleJobNode | OutcomeNode


def node_fields(kind: str, node: Any) -> dict[str, Any]:
    """
    Comparable fields of a hierarchy node, from either an ORM row or a read model.
    """

    fields: dict[str, Any] = {
        "name": node.name,
        "description": node.description,
        "order_index": node.order_index,
    }
    if kind != NodeKind.LITTLE_JOB:
        fields["tags"] = list(node.tags or ())
    return fields


def node_changes(existing: dict[str, Any], incoming: dict[str, Any], merge_behavior: str) -> dict[str, Any]:
    """
    Field updates to apply to an existing node.

    ``overwrite`` takes every non-null incoming value. ``merge`` fills an
    empty description and appends incoming tags the node does not have.
    """

    if merge_behavior == MergeBehavior.OVERWRITE:
        return {
            name: value
            for name, value in incoming.items()
            if value is not None and value != existing.get(name)
        }
    if merge_behavior == MergeBehavior.MERGE:
        changes: dict[str, Any] = {}
        if not existing["description"] and incoming["description"]:
            changes["description"] = incoming["description"]
        if "tags" in incoming:
            added = [tag for tag in incoming["tags"] if tag not in existing["tags"]]
            if added:
                changes["tags"] = existing["tags"] + added
        return changes
    return {}


def survey_fields(record: SurveyRecord) -> dict[str, Any]:
    return {"name": record.name, "date": record.date.isoformat(), "description": record.description}


class DataTransferService:
    """
    Export / import of one organization's hierarchy, surveys and results.
    """

    def __init__(self, *, session: Session, org_slug: str, actor: str | None = None) -> None:
        self._session = session
        organization = OrganizationRepository(session).get_by_slug(org_slug)
        self.org_slug = org_slug
        self._hierarchy = HierarchyRepository(session, org_id=organization.id, actor=actor)
        self._surveys = SurveyRepository(session, org_id=organization.id, actor=actor)

    def export_data(self) -> TransferDocument:
        tree = build_tree(*self._hierarchy.list_nodes())
        surveys = self._surveys.list_surveys()
        results = [
            TransferResult(
                survey_code=view.survey_code,
                outcome_slug=view.outcome_slug,
                importance=view.importance,
                satisfaction=view.satisfaction,
                opportunity_score=view.opportunity_score,
            )
            for view in self._surveys.list_outcome_results()
        ]
        log_event(
            logger,
            logging.INFO,
            "organization_exported",
            organization=self.org_slug,
            big_jobs=len(tree),
            surveys=len(surveys),
            outcome_results=len(results),
        )
        return TransferDocument(
            organization=self.org_slug,
            exported_at=datetime.now(timezone.utc),
            big_jobs=tuple(tree),
            surveys=tuple(surveys),
            outcome_results=tuple(results),
        )

    def import_data(
        self,
        document: TransferDocument,
        *,
        merge_behavior: str = MergeBehavior.SKIP,
        dry_run: bool = False,
    ) -> DataImportReport:
        if merge_behavior not in MergeBehavior.ALL:
            raise ValueError(f"Unknown merge behavior '{merge_behavior}'")

        report = DataImportReport(merge_behavior=merge_behavior, dry_run=dry_run)
        with write_transaction(
            self._session,
            operation="import_data",
            org_slug=self.org_slug,
            dry_run=dry_run,
        ):
            self._hierarchy.refresh_lookups()
            self._import_hierarchy(document.big_jobs, report)
            known_surveys = self._import_surveys(document.surveys, report)
            self._import_results(document.outcome_results, known_surveys, report)

        log_event(
            logger,
            logging.INFO,
            "organization_imported",
            organization=self.org_slug,
            merge_behavior=merge_behavior,
            dry_run=dry_run,
            conflicts=len(report.conflicts),
            **{
                name: asdict(getattr(report, name))
                for name in ("big_jobs", "little_jobs", "outcomes", "surveys", "outcome_results")
            },
        )
        return report

    def _import_hierarchy(self, big_jobs: tuple[BigJobNode, ...], report: DataImportReport) -> None:
        existing_big, existing_little, existing_outcomes = self._hierarchy.list_nodes(status=None)
        existing = {
            NodeKind.BIG_JOB: {node.slug: node for node in existing_big},
            NodeKind.LITTLE_JOB: {node.slug: node for node in existing_little},
            NodeKind.OUTCOME: {node.slug: node for node in existing_outcomes},
        }
        for big_job in big_jobs:
            self._import_node(NodeKind.BIG_JOB, big_job, None, existing, report.big_jobs, report)
            for little_job in big_job.little_jobs:
                self._import_node(NodeKind.LITTLE_JOB, little_job, big_job.slug, existing, report.little_jobs, report)
                for outcome in little_job.outcomes:
                    self._import_node(NodeKind.OUTCOME, outcome, little_job.slug, existing, report.outcomes, report)

    def _import_node(
        self,
        kind: str,
        node: HierarchyNode,
        parent_slug: str | None,
        existing: dict[str, dict[str, Any]],
        counts: EntityCounts,
        report: DataImportReport,
    ) -> None:
        incoming = node_fields(kind, node)
        current = existing[kind].get(node.slug)
        if current is None:
            self._hierarchy.create_node(kind, values={"slug": node.slug, **incoming}, parent_slug=parent_slug)
            counts.created += 1
            return

        before = node_fields(kind, current)
        changes = node_changes(before, incoming, report.merge_behavior)
        reparent = (
            report.merge_behavior == MergeBehavior.OVERWRITE
            and kind in PARENT_COLUMNS
            and parent_slug is not None
            and self._parent_differs(kind, current, parent_slug)
        )
        if changes or reparent:
            self._hierarchy.update_node(
                kind,
                node.slug,
                changes=changes,
                parent_slug=parent_slug if reparent else None,
            )
            counts.updated += 1
        else:
            counts.skipped += 1

        if {**before, **changes} != incoming:
            report.conflicts.append(
                TransferConflict(type=kind, slug=node.slug, existing=before, incoming=incoming)
            )

    def _parent_differs(self, kind: str, current: Any, parent_slug: str) -> bool:
        parent_kind, parent_column = PARENT_COLUMNS[kind]
        return getattr(current, parent_column) != self._hierarchy.require_id(parent_kind, parent_slug)

    def _import_surveys(
        self,
        surveys: tuple[SurveyRecord, ...],
        report: DataImportReport,
    ) -> set[str]:
        existing = {record.code: record for record in self._surveys.list_surveys()}
        for survey in surveys:
            current = existing.get(survey.code)
            if current is None:
                self._upsert_survey(survey)
                existing[survey.code] = survey
                report.surveys.created += 1
                continue

            if report.merge_behavior == MergeBehavior.OVERWRITE:
                target = survey
            elif report.merge_behavior == MergeBehavior.MERGE:
                target = replace(current, description=current.description or survey.description)
            else:
                target = current

            if target != current:
                self._upsert_survey(target)
                existing[survey.code] = target
                report.surveys.updated += 1
            else:
                report.surveys.skipped += 1
            if target != survey:
                report.conflicts.append(
                    TransferConflict(
                        type="survey",
                        slug=survey.code,
                        existing=survey_fields(current),
                        incoming=survey_fields(survey),
                    )
                )
        return set(existing)

    def _import_results(
        self,
        results: tuple[TransferResult, ...],
        known_surveys: set[str],
        report: DataImportReport,
    ) -> None:
        existing = {
            (view.survey_code, view.outcome_slug): (view.importance, view.satisfaction, view.opportunity_score)
            for view in self._surveys.list_outcome_results()
        }
        outcomes = self._hierarchy.lookup(NodeKind.OUTCOME)
        for result in results:
            if result.survey_code not in known_surveys or outcomes.resolve(result.outcome_slug) is None:
                report.outcome_results.skipped += 1
                continue

            incoming = (result.importance, result.satisfaction, result.opportunity_score)
            current = existing.get((result.survey_code, result.outcome_slug))
            if current is None:
                report.outcome_results.created += 1
            elif report.merge_behavior == MergeBehavior.OVERWRITE and current != incoming:
                report.outcome_results.updated += 1
            else:
                report.outcome_results.skipped += 1
                continue

            self._surveys.upsert_outcome_result(
                survey_code=result.survey_code,
                outcome_slug=result.outcome_slug,
                importance=result.importance,
                satisfaction=result.satisfaction,
                opportunity_score=result.opportunity_score,
            )

    def _upsert_survey(self, record: SurveyRecord) -> None:
        self._surveys.upsert_survey(
            code=record.code,
            name=record.name,
            survey_date=record.date,
            description=record.description,
        )
