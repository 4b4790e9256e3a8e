"""
app/mappers package marker.

``outcome_matcher`` depends on the row parser's range checks and is imported
directly from its module.
"""

from app.mappers.survey_header_mapper import (
    CANONICAL_FIELDS,
    DEFAULT_HEADER_ALIASES,
    HeaderMapping,
    SurveyHeaderMapper,
)

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_HEADER_ALIASES",
    "HeaderMapping",
    "SurveyHeaderMapper",
]
