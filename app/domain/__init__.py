"""
app/domain package marker.
"""

from app.domain.data_transfer import (
    DataImportReport,
    EntityCounts,
    MergeBehavior,
    TransferConflict,
    TransferDocument,
    TransferResult,
)
from app.domain.hierarchy import (
    BigJobNode,
    LittleJobNode,
    NodeKind,
    OutcomeNode,
    OutcomeResultFilters,
    OutcomeResultView,
    ResearchRound,
    SurveyRecord,
)
from app.domain.survey_import import (
    DecodedFile,
    ImportResult,
    MatchedRow,
    MatchType,
    OutcomeCatalogEntry,
    ParsedRow,
    PreviewSummary,
    RowStatus,
    SurveyMetadata,
)

__all__ = [
    "BigJobNode",
    "DataImportReport",
    "DecodedFile",
    "EntityCounts",
    "ImportResult",
    "LittleJobNode",
    "MatchType",
    "MatchedRow",
    "MergeBehavior",
    "NodeKind",
    "OutcomeCatalogEntry",
    "OutcomeNode",
    "OutcomeResultFilters",
    "OutcomeResultView",
    "ParsedRow",
    "PreviewSummary",
    "ResearchRound",
    "RowStatus",
    "SurveyMetadata",
    "SurveyRecord",
    "TransferConflict",
    "TransferDocument",
    "TransferResult",
]
