"""
app/repositories package marker.
"""

from app.repositories.change_log_repository import ChangeLogRepository
from app.repositories.hierarchy_repository import HierarchyRepository, SlugLookup
from app.repositories.member_repository import MemberRepository
from app.repositories.organization_repository import OrganizationRepository
from app.repositories.survey_import_repository import SurveyImportRepository
from app.repositories.survey_repository import SurveyRepository

__all__ = [
    "ChangeLogRepository",
    "HierarchyRepository",
    "MemberRepository",
    "OrganizationRepository",
    "SlugLookup",
    "SurveyImportRepository",
    "SurveyRepository",
]
