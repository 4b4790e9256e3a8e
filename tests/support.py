"""
tests/support.py

Shared in-memory collaborators for survey import tests. No database.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Mapping

from app.domain.survey_import import OutcomeCatalogEntry
from app.storage.base import SurveyImportPayload, SurveyImportStore

DEFAULT_CATALOG: tuple[OutcomeCatalogEntry, ...] = (
    OutcomeCatalogEntry(
        id="11111111-1111-1111-1111-111111111111",
        slug="reduce-checkout-time",
        name="Reduce the time it takes to check out",
    ),
    OutcomeCatalogEntry(
        id="22222222-2222-2222-2222-222222222222",
        slug="find-matching-products",
        name="Find products that match my needs",
    ),
    OutcomeCatalogEntry(
        id="33333333-3333-3333-3333-333333333333",
        slug="compare-delivery-options",
        name="Compare delivery options quickly",
    ),
)


class InMemorySurveyImportStore(SurveyImportStore):
    """
    Records every call; ``import_survey`` returns ``response`` or raises
    ``error`` when set.
    """

    def __init__(
        self,
        catalog: Sequence[OutcomeCatalogEntry] = DEFAULT_CATALOG,
        *,
        response: Mapping[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.catalog = list(catalog)
        self.response = response
        self.error = error
        self.catalog_reads: list[str] = []
        self.payloads: list[SurveyImportPayload] = []

    def fetch_active_outcomes(self, organization: str) -> Sequence[OutcomeCatalogEntry]:
        self.catalog_reads.append(organization)
        return list(self.catalog)

    def import_survey(self, payload: SurveyImportPayload) -> Mapping[str, Any]:
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        return {
            "survey_id": "99999999-9999-9999-9999-999999999999",
            "inserted": len(payload.rows),
            "updated": 0,
            "errors": 0,
        }
