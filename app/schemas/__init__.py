"""
app/schemas package marker.
"""

from app.schemas.data_transfer import (
    DataImportResponse,
    TransferDocumentModel,
)
from app.schemas.hierarchy import (
    BigJobNodeResponse,
    HierarchyResponse,
    NodeCreateRequest,
    NodeUpdateRequest,
    NodeWriteResponse,
    ResearchRoundResponse,
)
from app.schemas.members import MemberCreateRequest, MemberResponse, MemberRoleUpdateRequest
from app.schemas.survey_import import (
    CommitRequest,
    ImportResultResponse,
    ManualOverrideRequest,
    MatchedRowModel,
    PreviewResponse,
    SurveyImportStoreResponse,
    SurveyMetadataModel,
)
from app.schemas.surveys import (
    OutcomeResultResponse,
    OutcomeResultUpsertRequest,
    OutcomeResultUpsertResponse,
    RatingPair,
    RoundDeriveRequest,
    SurveyResponse,
    SurveyUpsertRequest,
)

__all__ = [
    "BigJobNodeResponse",
    "CommitRequest",
    "DataImportResponse",
    "HierarchyResponse",
    "ImportResultResponse",
    "ManualOverrideRequest",
    "MatchedRowModel",
    "MemberCreateRequest",
    "MemberResponse",
    "MemberRoleUpdateRequest",
    "NodeCreateRequest",
    "NodeUpdateRequest",
    "NodeWriteResponse",
    "OutcomeResultResponse",
    "OutcomeResultUpsertRequest",
    "OutcomeResultUpsertResponse",
    "PreviewResponse",
    "RatingPair",
    "ResearchRoundResponse",
    "RoundDeriveRequest",
    "SurveyImportStoreResponse",
    "SurveyMetadataModel",
    "SurveyResponse",
    "SurveyUpsertRequest",
    "TransferDocumentModel",
]
