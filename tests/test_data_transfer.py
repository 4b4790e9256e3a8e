"""
tests/test_data_transfer.py

Organization export / import against repository doubles.
"""

from __future__ import annotations

import unittest
import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from app.domain.data_transfer import MergeBehavior, TransferDocument, TransferResult
from app.domain.hierarchy import (
    BigJobNode,
    LittleJobNode,
    NodeKind,
    OutcomeNode,
    OutcomeResultView,
    SurveyRecord,
)
from app.services.data_transfer_service import DataTransferService, node_changes

BUY_ID = uuid.uuid4()
CHOOSE_ID = uuid.uuid4()
COMPARE_ID = uuid.uuid4()
IDS = {"buy": BUY_ID, "choose": CHOOSE_ID, "compare": COMPARE_ID}


def _document(**overrides) -> TransferDocument:
    values = {
        "organization": "acme",
        "big_jobs": (
            BigJobNode(
                slug="buy",
                name="Buy",
                description="Buying journey",
                tags=("retail", "online"),
                little_jobs=(
                    LittleJobNode(
                        slug="choose",
                        name="Choose",
                        outcomes=(OutcomeNode(slug="compare", name="Compare", order_index=2),),
                    ),
                ),
            ),
        ),
        "surveys": (SurveyRecord(code="R1", name="Round 1", date=date(2025, 1, 15), description="baseline"),),
        "outcome_results": (
            TransferResult("R1", "compare", 9.0, 4.0, 14.0),
            TransferResult("R1", "ghost", 5.0, 5.0, 5.0),
            TransferResult("R9", "compare", 5.0, 5.0, 5.0),
        ),
    }
    values.update(overrides)
    return TransferDocument(**values)


def _big_job(**fields) -> SimpleNamespace:
    values = {
        "id": BUY_ID,
        "slug": "buy",
        "name": "Buy",
        "description": "Buying journey",
        "tags": ["retail", "online"],
        "status": "active",
        "order_index": 0,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def _little_job(**fields) -> SimpleNamespace:
    values = {
        "id": CHOOSE_ID,
        "big_job_id": BUY_ID,
        "slug": "choose",
        "name": "Choose",
        "description": None,
        "status": "active",
        "order_index": 0,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def _outcome(**fields) -> SimpleNamespace:
    values = {
        "id": COMPARE_ID,
        "little_job_id": CHOOSE_ID,
        "slug": "compare",
        "name": "Compare",
        "description": None,
        "tags": [],
        "status": "active",
        "order_index": 2,
    }
    values.update(fields)
    return SimpleNamespace(**values)


def _result_view(importance: float, satisfaction: float, opportunity: float) -> OutcomeResultView:
    return OutcomeResultView(
        survey_code="R1",
        survey_name="Round 1",
        survey_date=date(2025, 1, 15),
        big_job_slug="buy",
        big_job_name="Buy",
        little_job_slug="choose",
        little_job_name="Choose",
        outcome_slug="compare",
        outcome_name="Compare",
        importance=importance,
        satisfaction=satisfaction,
        opportunity_score=opportunity,
    )


class TestNodeChanges(unittest.TestCase):
    def setUp(self) -> None:
        self.existing = {"name": "Buy", "description": None, "order_index": 0, "tags": ["retail"]}
        self.incoming = {"name": "Buy things", "description": "d", "order_index": 3, "tags": ["retail", "online"]}

    def test_skip_changes_nothing(self) -> None:
        self.assertEqual(node_changes(self.existing, self.incoming, MergeBehavior.SKIP), {})

    def test_overwrite_takes_every_incoming_value(self) -> None:
        self.assertEqual(
            node_changes(self.existing, self.incoming, MergeBehavior.OVERWRITE),
            {"name": "Buy things", "description": "d", "order_index": 3, "tags": ["retail", "online"]},
        )

    def test_overwrite_keeps_description_when_incoming_is_empty(self) -> None:
        existing = {**self.existing, "description": "kept"}
        incoming = {**self.incoming, "description": None}

        self.assertNotIn("description", node_changes(existing, incoming, MergeBehavior.OVERWRITE))

    def test_merge_fills_blanks_and_appends_tags(self) -> None:
        self.assertEqual(
            node_changes(self.existing, self.incoming, MergeBehavior.MERGE),
            {"description": "d", "tags": ["retail", "online"]},
        )


class DataTransferServiceCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        patch("app.services.data_transfer_service.OrganizationRepository").start()
        self.hierarchy = patch("app.services.data_transfer_service.HierarchyRepository").start().return_value
        self.surveys = patch("app.services.data_transfer_service.SurveyRepository").start().return_value
        self.addCleanup(patch.stopall)

        self.hierarchy.list_nodes.return_value = ([], [], [])
        self.hierarchy.require_id.side_effect = lambda kind, slug: IDS[slug]
        self.hierarchy.lookup.return_value.resolve.side_effect = IDS.get
        self.surveys.list_surveys.return_value = []
        self.surveys.list_outcome_results.return_value = []
        self.service = DataTransferService(session=self.session, org_slug="acme", actor="admin@example.com")


class TestDataImport(DataTransferServiceCase):
    def test_empty_organization_creates_everything(self) -> None:
        report = self.service.import_data(_document())

        self.hierarchy.refresh_lookups.assert_called_once()
        created = [
            (item.args[0], item.kwargs["values"]["slug"], item.kwargs["parent_slug"])
            for item in self.hierarchy.create_node.call_args_list
        ]
        self.assertEqual(
            created,
            [
                (NodeKind.BIG_JOB, "buy", None),
                (NodeKind.LITTLE_JOB, "choose", "buy"),
                (NodeKind.OUTCOME, "compare", "choose"),
            ],
        )
        self.assertEqual(self.hierarchy.create_node.call_args_list[0].kwargs["values"]["tags"], ["retail", "online"])
        self.assertEqual((report.big_jobs.created, report.little_jobs.created, report.outcomes.created), (1, 1, 1))
        self.assertEqual(report.surveys.created, 1)
        self.assertEqual((report.outcome_results.created, report.outcome_results.skipped), (1, 2))
        self.surveys.upsert_outcome_result.assert_called_once_with(
            survey_code="R1",
            outcome_slug="compare",
            importance=9.0,
            satisfaction=4.0,
            opportunity_score=14.0,
        )
        self.assertEqual(report.conflicts, [])
        self.session.commit.assert_called_once()

    def test_skip_reports_conflicts_without_writing(self) -> None:
        self.hierarchy.list_nodes.return_value = (
            [_big_job(name="Buy groceries")],
            [_little_job()],
            [_outcome()],
        )
        self.surveys.list_surveys.return_value = [SurveyRecord(code="R1", name="Round one", date=date(2025, 1, 15))]
        self.surveys.list_outcome_results.return_value = [_result_view(8.0, 4.0, 12.0)]

        report = self.service.import_data(_document(), merge_behavior=MergeBehavior.SKIP)

        self.hierarchy.create_node.assert_not_called()
        self.hierarchy.update_node.assert_not_called()
        self.surveys.upsert_survey.assert_not_called()
        self.surveys.upsert_outcome_result.assert_not_called()
        self.assertEqual((report.big_jobs.skipped, report.little_jobs.skipped, report.outcomes.skipped), (1, 1, 1))
        self.assertEqual(report.outcome_results.skipped, 3)
        self.assertEqual([(item.type, item.slug) for item in report.conflicts], [("big_job", "buy"), ("survey", "R1")])
        self.assertEqual(report.conflicts[0].existing["name"], "Buy groceries")
        self.assertEqual(report.conflicts[0].incoming["name"], "Buy")

    def test_overwrite_updates_and_reparents(self) -> None:
        other_big_job = uuid.uuid4()
        self.hierarchy.list_nodes.return_value = (
            [_big_job(name="Buy groceries")],
            [_little_job(big_job_id=other_big_job)],
            [_outcome()],
        )
        self.surveys.list_surveys.return_value = [SurveyRecord(code="R1", name="Round one", date=date(2025, 1, 15))]
        self.surveys.list_outcome_results.return_value = [_result_view(8.0, 4.0, 12.0)]

        report = self.service.import_data(_document(), merge_behavior=MergeBehavior.OVERWRITE)

        updates = [
            (item.args, item.kwargs["changes"], item.kwargs["parent_slug"])
            for item in self.hierarchy.update_node.call_args_list
        ]
        self.assertEqual(
            updates,
            [
                ((NodeKind.BIG_JOB, "buy"), {"name": "Buy"}, None),
                ((NodeKind.LITTLE_JOB, "choose"), {}, "buy"),
            ],
        )
        self.assertEqual((report.big_jobs.updated, report.little_jobs.updated, report.outcomes.skipped), (1, 1, 1))
        self.surveys.upsert_survey.assert_called_once_with(
            code="R1",
            name="Round 1",
            survey_date=date(2025, 1, 15),
            description="baseline",
        )
        self.assertEqual(report.surveys.updated, 1)
        self.assertEqual((report.outcome_results.updated, report.outcome_results.skipped), (1, 2))
        self.assertEqual(report.conflicts, [])

    def test_merge_fills_blanks_and_keeps_existing_values(self) -> None:
        self.hierarchy.list_nodes.return_value = (
            [_big_job(name="Buy groceries", description=None, tags=["retail"])],
            [_little_job()],
            [_outcome()],
        )
        self.surveys.list_surveys.return_value = [SurveyRecord(code="R1", name="Round 1", date=date(2025, 1, 15))]
        self.surveys.list_outcome_results.return_value = [_result_view(8.0, 4.0, 12.0)]

        report = self.service.import_data(_document(), merge_behavior=MergeBehavior.MERGE)

        self.hierarchy.update_node.assert_called_once_with(
            NodeKind.BIG_JOB,
            "buy",
            changes={"description": "Buying journey", "tags": ["retail", "online"]},
            parent_slug=None,
        )
        self.surveys.upsert_survey.assert_called_once_with(
            code="R1",
            name="Round 1",
            survey_date=date(2025, 1, 15),
            description="baseline",
        )
        self.surveys.upsert_outcome_result.assert_not_called()
        self.assertEqual([(item.type, item.slug) for item in report.conflicts], [("big_job", "buy")])

    def test_dry_run_rolls_back(self) -> None:
        report = self.service.import_data(_document(), dry_run=True)

        self.assertTrue(report.dry_run)
        self.assertEqual(report.big_jobs.created, 1)
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()

    def test_failed_write_rolls_back(self) -> None:
        self.surveys.upsert_survey.side_effect = RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            self.service.import_data(_document())
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()

    def test_unknown_merge_behavior_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.service.import_data(_document(), merge_behavior="replace")
        self.hierarchy.refresh_lookups.assert_not_called()


class TestDataExport(DataTransferServiceCase):
    def test_export_nests_hierarchy_and_keys_results_by_slug(self) -> None:
        self.hierarchy.list_nodes.return_value = ([_big_job()], [_little_job()], [_outcome()])
        self.surveys.list_surveys.return_value = [SurveyRecord(code="R1", name="Round 1", date=date(2025, 1, 15))]
        self.surveys.list_outcome_results.return_value = [_result_view(8.0, 4.0, 12.0)]

        document = self.service.export_data()

        self.assertEqual(document.organization, "acme")
        self.assertIsNotNone(document.exported_at)
        [big_job] = document.big_jobs
        self.assertEqual(big_job.little_jobs[0].outcomes[0].slug, "compare")
        self.assertEqual(document.outcome_results, (TransferResult("R1", "compare", 8.0, 4.0, 12.0),))
        self.session.commit.assert_not_called()


if __name__ == "__main__":
    unittest.main()
