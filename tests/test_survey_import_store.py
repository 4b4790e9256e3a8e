"""
tests/test_survey_import_store.py

Survey import persistence against a session double. Upsert statements are
compiled with the PostgreSQL dialect so conflict targets can be checked
without a database.
"""

from __future__ import annotations

import unittest
import uuid
from datetime import date
from types import SimpleNamespace
from unittest.mock import MagicMock

from sqlalchemy.dialects import postgresql
from sqlalchemy.dialects.postgresql import Insert
from sqlalchemy.exc import OperationalError

from app.domain.survey_import import SurveyMetadata
from app.errors import OutcomeCatalogError, SurveyImportPersistenceError
from app.repositories.survey_import_repository import SurveyImportRepository
from app.storage.base import SurveyImportPayload, SurveyImportPayloadRow
from app.storage.sqlalchemy_store import SQLAlchemySurveyImportStore
from db.models.change_log import ChangeLog

CHECKOUT_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
PRODUCTS_ID = uuid.UUID("22222222-2222-2222-2222-222222222222")
ACTIVE_OUTCOMES = [
    (CHECKOUT_ID, "reduce-checkout-time", "Reduce the time it takes to check out"),
    (PRODUCTS_ID, "find-matching-products", "Find products that match my needs"),
]


def _payload(*rows: SurveyImportPayloadRow) -> SurveyImportPayload:
    return SurveyImportPayload(
        organization="acme",
        survey=SurveyMetadata(code="R1-2025", name="Round 1", date=date(2025, 3, 1)),
        rows=list(rows),
    )


def _row(outcome: str, importance: float, satisfaction: float) -> SurveyImportPayloadRow:
    return SurveyImportPayloadRow(
        outcome=outcome,
        importance=importance,
        satisfaction=satisfaction,
        opportunity_score=importance + max(importance - satisfaction, 0.0),
    )


def _session_double(*, survey_id: uuid.UUID, existing: list[uuid.UUID]) -> MagicMock:
    session = MagicMock()

    def execute(stmt, *args, **kwargs):
        result = MagicMock()
        result.all.return_value = [] if isinstance(stmt, Insert) else list(ACTIVE_OUTCOMES)
        return result

    session.execute.side_effect = execute
    session.scalar.return_value = survey_id
    session.scalars.return_value.all.return_value = existing
    return session


def _inserts(session: MagicMock) -> list[Insert]:
    return [item.args[0] for item in session.execute.call_args_list if isinstance(item.args[0], Insert)]


def _sql(stmt: Insert) -> str:
    return str(stmt.compile(dialect=postgresql.dialect()))


class TestSurveyImportRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.org_id = uuid.uuid4()
        self.survey_id = uuid.uuid4()
        self.session = _session_double(survey_id=self.survey_id, existing=[CHECKOUT_ID])
        self.repository = SurveyImportRepository(self.session)

    def test_survey_insert_skips_existing_code(self) -> None:
        self.repository.import_survey(org_id=self.org_id, payload=_payload())

        [survey_insert] = _inserts(self.session)
        sql = _sql(survey_insert)
        self.assertIn("INSERT INTO surveys", sql)
        self.assertIn("ON CONFLICT ON CONSTRAINT uq_surveys_org_code DO NOTHING", sql)

    def test_results_upsert_targets_survey_outcome_constraint(self) -> None:
        self.repository.import_survey(
            org_id=self.org_id,
            payload=_payload(_row("reduce-checkout-time", 9.0, 4.0)),
        )

        _, results_insert = _inserts(self.session)
        sql = _sql(results_insert)
        self.assertIn("INSERT INTO outcome_results", sql)
        self.assertIn("ON CONFLICT ON CONSTRAINT uq_outcome_results_survey_outcome DO UPDATE SET", sql)
        for column in ("importance", "satisfaction", "opportunity_score"):
            self.assertIn(f"{column} = excluded.{column}", sql)
        self.assertIn("updated_at = now()", sql)
        self.assertNotIn("survey_id = excluded", sql)

    def test_counts_inserted_updated_and_unresolved_rows(self) -> None:
        response = self.repository.import_survey(
            org_id=self.org_id,
            payload=_payload(
                _row("reduce-checkout-time", 9.0, 4.0),
                _row("Find products that match my needs", 6.0, 6.0),
                _row("unknown outcome", 5.0, 5.0),
                _row("reduce-checkout-time", 7.0, 2.0),
            ),
        )

        self.assertEqual(
            response,
            {
                "survey_id": str(self.survey_id),
                "inserted": 1,
                "updated": 1,
                "errors": 1,
                "error_details": [{"outcome": "unknown outcome", "error": "Outcome not found"}],
            },
        )
        _, results_insert = _inserts(self.session)
        params = results_insert.compile(dialect=postgresql.dialect()).params
        importances = sorted(value for key, value in params.items() if key.startswith("importance"))
        self.assertEqual(importances, [6.0, 7.0])

    def test_no_resolved_rows_skips_results_upsert(self) -> None:
        response = self.repository.import_survey(
            org_id=self.org_id,
            payload=_payload(_row("unknown outcome", 5.0, 5.0)),
        )

        self.assertEqual(len(_inserts(self.session)), 1)
        self.session.scalars.assert_not_called()
        self.assertEqual((response["inserted"], response["updated"], response["errors"]), (0, 0, 1))


class TestSQLAlchemySurveyImportStore(unittest.TestCase):
    def setUp(self) -> None:
        self.org_id = uuid.uuid4()
        self.survey_id = uuid.uuid4()
        self.session = _session_double(survey_id=self.survey_id, existing=[])
        self.session.scalar.side_effect = [SimpleNamespace(id=self.org_id), self.survey_id]
        self.store = SQLAlchemySurveyImportStore(session=self.session, actor="importer@example.com")

    def test_import_records_change_log_and_commits(self) -> None:
        response = self.store.import_survey(_payload(_row("reduce-checkout-time", 9.0, 4.0)))

        self.assertEqual(response["inserted"], 1)
        [entry] = [item.args[0] for item in self.session.add.call_args_list]
        self.assertIsInstance(entry, ChangeLog)
        self.assertEqual(entry.action, "import")
        self.assertEqual(entry.entity_id, str(self.survey_id))
        self.assertEqual(entry.after, {"code": "R1-2025", "inserted": 1, "updated": 0, "errors": 0})
        self.assertEqual(entry.actor, "importer@example.com")
        self.session.commit.assert_called_once()
        self.session.rollback.assert_not_called()

    def test_failed_execute_rolls_back_and_raises(self) -> None:
        self.session.execute.side_effect = OperationalError("INSERT", {}, Exception("connection reset"))

        with self.assertRaises(SurveyImportPersistenceError) as caught:
            self.store.import_survey(_payload(_row("reduce-checkout-time", 9.0, 4.0)))

        self.assertIn("connection reset", str(caught.exception))
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()
        self.session.add.assert_not_called()

    def test_catalog_read_failure_is_wrapped(self) -> None:
        self.session.scalar.side_effect = OperationalError("SELECT", {}, Exception("timeout"))

        with self.assertRaises(OutcomeCatalogError):
            self.store.fetch_active_outcomes("acme")

    def test_catalog_read_returns_entries(self) -> None:
        entries = self.store.fetch_active_outcomes("acme")

        self.assertEqual([entry.slug for entry in entries], ["reduce-checkout-time", "find-matching-products"])
        self.assertEqual(entries[0].id, str(CHECKOUT_ID))


if __name__ == "__main__":
    unittest.main()
