"""
app/storage package marker.
"""

from app.storage.base import SurveyImportPayload, SurveyImportPayloadRow, SurveyImportStore

__all__ = [
    "SurveyImportPayload",
    "SurveyImportPayloadRow",
    "SurveyImportStore",
]
