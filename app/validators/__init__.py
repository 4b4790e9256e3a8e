"""
app/validators package marker.
"""

from app.validators.survey_row_parser import SurveyRowParser, in_range, parse_numeric

__all__ = [
    "SurveyRowParser",
    "in_range",
    "parse_numeric",
]
