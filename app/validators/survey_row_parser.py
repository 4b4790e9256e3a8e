"""
app/validators/survey_row_parser.py

Extracts and type-coerces the canonical survey fields from decoded rows.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Mapping, Sequence

from app.domain.survey_import import DecodedFile, ParsedRow
from app.errors import MissingColumnError
from app.mappers.survey_header_mapper import (
    CANONICAL_FIELDS,
    IMPORTANCE,
    OPPORTUNITY_SCORE,
    OUTCOME,
    SATISFACTION,
    HeaderMapping,
    SurveyHeaderMapper,
)

IMPORTANCE_RANGE: tuple[float, float] = (0.0, 10.0)
SATISFACTION_RANGE: tuple[float, float] = (0.0, 10.0)
OPPORTUNITY_SCORE_RANGE: tuple[float, float] = (0.0, 99.9)


def parse_numeric(value: Any) -> float:
    """
    Coerce a spreadsheet cell to float.

    Native numbers pass through; text is trimmed and a comma decimal
    separator becomes a period. Anything else yields NaN.
    """

    if isinstance(value, bool):
        return math.nan
    if isinstance(value, Real):
        return float(value)
    if not isinstance(value, str):
        return math.nan

    cleaned = value.strip().replace(",", ".", 1)
    if not cleaned:
        return math.nan
    try:
        return float(cleaned)
    except ValueError:
        return math.nan


def in_range(value: float, bounds: tuple[float, float]) -> bool:
    """
    True when ``value`` is a number inside the inclusive ``bounds``.
    """

    low, high = bounds
    return not math.isnan(value) and low <= value <= high


class SurveyRowParser:
    """
    Turns decoded rows into ``ParsedRow`` objects.
    """

    def __init__(self, *, header_mapper: SurveyHeaderMapper | None = None) -> None:
        self._header_mapper = header_mapper or SurveyHeaderMapper()

    def parse(self, decoded: DecodedFile) -> list[ParsedRow]:
        return self.parse_rows(headers=decoded.headers, rows=decoded.rows)

    def parse_rows(
        self,
        *,
        headers: Sequence[object],
        rows: Sequence[Mapping[str, Any]],
    ) -> list[ParsedRow]:
        """
        Parse all rows; blank-outcome rows are dropped and do not consume
        a ``row_index``.

        Raises ``MissingColumnError`` before any row is read when a
        canonical column cannot be resolved.
        """

        mapping = self._header_mapper.resolve(headers)
        self._require_columns(mapping)

        outcome_column = mapping.canonical_to_source[OUTCOME]
        importance_column = mapping.canonical_to_source[IMPORTANCE]
        satisfaction_column = mapping.canonical_to_source[SATISFACTION]
        score_column = mapping.canonical_to_source[OPPORTUNITY_SCORE]

        parsed: list[ParsedRow] = []
        for row in rows:
            raw_outcome = self._parse_outcome(row.get(outcome_column))
            if not raw_outcome:
                continue
            parsed.append(
                ParsedRow(
                    row_index=len(parsed) + 1,
                    raw_outcome=raw_outcome,
                    importance=parse_numeric(row.get(importance_column)),
                    satisfaction=parse_numeric(row.get(satisfaction_column)),
                    opportunity_score=parse_numeric(row.get(score_column)),
                    original_row=dict(row),
                )
            )
        return parsed

    def _require_columns(self, mapping: HeaderMapping) -> None:
        for canonical_field in CANONICAL_FIELDS:
            if mapping.source_for(canonical_field) is None:
                raise MissingColumnError(
                    canonical_field,
                    accepted_headers=self._header_mapper.aliases_for(canonical_field),
                )

    @staticmethod
    def _parse_outcome(value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()
