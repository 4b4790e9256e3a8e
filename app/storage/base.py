"""
Store interfaces used by the survey import pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Mapping

from app.domain.survey_import import OutcomeCatalogEntry, SurveyMetadata


@dataclass(frozen=True)
class SurveyImportPayloadRow:
    """
    One accepted row as submitted to the store; ``outcome`` is a slug or name.
    """

    outcome: str
    importance: float
    satisfaction: float
    opportunity_score: float


@dataclass(frozen=True)
class SurveyImportPayload:
    organization: str
    survey: SurveyMetadata
    rows: list[SurveyImportPayloadRow] = field(default_factory=list)


class SurveyImportStore(ABC):
    """
    Backing store for one organization's outcome catalog and survey results.
    """

    @abstractmethod
    def fetch_active_outcomes(self, organization: str) -> Sequence[OutcomeCatalogEntry]:
        """
        Return every active outcome of ``organization`` in one read.
        """

    @abstractmethod
    def import_survey(self, payload: SurveyImportPayload) -> Mapping[str, Any]:
        """
        Atomically insert the survey when absent and upsert one result per
        outcome keyed by (survey, outcome).

        Returns the raw store response with keys ``survey_id``, ``inserted``,
        ``updated``, ``errors`` and optionally ``error_details``.
        """
