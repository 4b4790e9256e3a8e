"""
app/services package marker.
"""

from app.services.data_transfer_service import DataTransferService
from app.services.hierarchy_service import HierarchyService
from app.services.member_service import MemberService
from app.services.opportunity_service import (
    OutcomeScores,
    RoundVariation,
    build_round_scores,
    opportunity_score,
)
from app.services.survey_import_service import (
    SurveyImportService,
    generate_template,
    get_survey_import_service,
)

__all__ = [
    "DataTransferService",
    "HierarchyService",
    "MemberService",
    "OutcomeScores",
    "RoundVariation",
    "SurveyImportService",
    "build_round_scores",
    "generate_template",
    "get_survey_import_service",
    "opportunity_score",
]
