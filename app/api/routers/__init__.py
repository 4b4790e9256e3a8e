"""
app/api/routers package marker.
"""

from app.api.routers.data_transfer import router as data_transfer_router
from app.api.routers.hierarchy import router as hierarchy_router
from app.api.routers.members import router as members_router
from app.api.routers.survey_import import router as survey_import_router
from app.api.routers.surveys import router as surveys_router

__all__ = [
    "data_transfer_router",
    "hierarchy_router",
    "members_router",
    "survey_import_router",
    "surveys_router",
]
