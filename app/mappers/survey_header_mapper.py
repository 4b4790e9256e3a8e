"""
app/mappers/survey_header_mapper.py

Maps free-form survey spreadsheet headers onto the four canonical import
fields, accepting English and Portuguese spellings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence

OUTCOME = "outcome"
IMPORTANCE = "importance"
SATISFACTION = "satisfaction"
OPPORTUNITY_SCORE = "opportunity_score"

CANONICAL_FIELDS: tuple[str, ...] = (
    OUTCOME,
    IMPORTANCE,
    SATISFACTION,
    OPPORTUNITY_SCORE,
)

DEFAULT_HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    OUTCOME: ("outcome",),
    IMPORTANCE: ("importancia", "importance"),
    SATISFACTION: ("satisfacao", "satisfaction"),
    OPPORTUNITY_SCORE: ("opportunity_score", "opportunityscore", "oportunidade"),
}


def normalize_header(header: object) -> str:
    """
    Normalize one header cell for alias lookup (trimmed, lower-cased).
    """

    if header is None:
        return ""
    return str(header).strip().lower()


@dataclass(frozen=True)
class HeaderMapping:
    """
    Canonical field -> header text exactly as it appears in the file.
    """

    canonical_to_source: dict[str, str]

    def source_for(self, canonical_field: str) -> str | None:
        return self.canonical_to_source.get(canonical_field)

    @property
    def missing_fields(self) -> tuple[str, ...]:
        return tuple(field for field in CANONICAL_FIELDS if field not in self.canonical_to_source)


class SurveyHeaderMapper:
    """
    Resolves survey headers through per-field alias tables.

    Resolution never fails; an incomplete mapping is reported by the row
    parser as a missing column.
    """

    def __init__(self, *, aliases: Mapping[str, Sequence[str]] | None = None) -> None:
        self._alias_lookup: dict[str, str] = {}
        for canonical, values in (aliases or DEFAULT_HEADER_ALIASES).items():
            for alias in values:
                self._alias_lookup[normalize_header(alias)] = canonical

    def aliases_for(self, canonical_field: str) -> tuple[str, ...]:
        return tuple(
            alias for alias, canonical in self._alias_lookup.items() if canonical == canonical_field
        )

    def resolve(self, headers: Sequence[object]) -> HeaderMapping:
        resolved: dict[str, str] = {}
        for header in headers:
            canonical = self._alias_lookup.get(normalize_header(header))
            if canonical is not None:
                # later duplicates win
                resolved[canonical] = str(header)
        return HeaderMapping(canonical_to_source=resolved)
