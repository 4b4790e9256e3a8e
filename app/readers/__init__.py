"""
app/readers package marker.
"""

from app.readers.survey_file_reader import SUPPORTED_EXTENSIONS, SurveyFileReader, file_extension

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "SurveyFileReader",
    "file_extension",
]
