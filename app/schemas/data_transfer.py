"""
app/schemas/data_transfer.py

Organization snapshot document and import report schemas. The export
response body is accepted unchanged by the import endpoint.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from app.domain.data_transfer import DataImportReport, TransferDocument, TransferResult
from app.domain.hierarchy import BigJobNode, LittleJobNode, OutcomeNode, SurveyRecord
from app.schemas.hierarchy import SLUG_PATTERN

MergeBehaviorLiteral = Literal["skip", "overwrite", "merge"]


class TransferOutcome(BaseModel):
    slug: str = Field(..., min_length=1, max_length=120, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    order_index: int = 0

    @classmethod
    def from_domain(cls, node: OutcomeNode) -> "TransferOutcome":
        return cls(
            slug=node.slug,
            name=node.name,
            description=node.description,
            tags=list(node.tags),
            order_index=node.order_index,
        )

    def to_domain(self) -> OutcomeNode:
        return OutcomeNode(
            slug=self.slug,
            name=self.name,
            description=self.description,
            tags=tuple(self.tags),
            order_index=self.order_index,
        )


class TransferLittleJob(BaseModel):
    slug: str = Field(..., min_length=1, max_length=120, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    order_index: int = 0
    outcomes: list[TransferOutcome] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, node: LittleJobNode) -> "TransferLittleJob":
        return cls(
            slug=node.slug,
            name=node.name,
            description=node.description,
            order_index=node.order_index,
            outcomes=[TransferOutcome.from_domain(outcome) for outcome in node.outcomes],
        )

    def to_domain(self) -> LittleJobNode:
        return LittleJobNode(
            slug=self.slug,
            name=self.name,
            description=self.description,
            order_index=self.order_index,
            outcomes=tuple(outcome.to_domain() for outcome in self.outcomes),
        )


class TransferBigJob(BaseModel):
    slug: str = Field(..., min_length=1, max_length=120, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    order_index: int = 0
    little_jobs: list[TransferLittleJob] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, node: BigJobNode) -> "TransferBigJob":
        return cls(
            slug=node.slug,
            name=node.name,
            description=node.description,
            tags=list(node.tags),
            order_index=node.order_index,
            little_jobs=[TransferLittleJob.from_domain(child) for child in node.little_jobs],
        )

    def to_domain(self) -> BigJobNode:
        return BigJobNode(
            slug=self.slug,
            name=self.name,
            description=self.description,
            tags=tuple(self.tags),
            order_index=self.order_index,
            little_jobs=tuple(child.to_domain() for child in self.little_jobs),
        )


class TransferSurvey(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    date: date
    description: str | None = None


class TransferOutcomeResult(BaseModel):
    survey_code: str = Field(..., min_length=1, max_length=64)
    outcome_slug: str = Field(..., min_length=1, max_length=120)
    importance: float = Field(..., ge=0.0, le=10.0)
    satisfaction: float = Field(..., ge=0.0, le=10.0)
    opportunity_score: float = Field(..., ge=0.0, le=99.9)


class TransferDocumentModel(BaseModel):
    organization: str | None = None
    exported_at: datetime | None = None
    hierarchy: list[TransferBigJob] = Field(default_factory=list)
    surveys: list[TransferSurvey] = Field(default_factory=list)
    outcome_results: list[TransferOutcomeResult] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, document: TransferDocument) -> "TransferDocumentModel":
        return cls(
            organization=document.organization,
            exported_at=document.exported_at,
            hierarchy=[TransferBigJob.from_domain(node) for node in document.big_jobs],
            surveys=[TransferSurvey(**asdict(record)) for record in document.surveys],
            outcome_results=[TransferOutcomeResult(**asdict(result)) for result in document.outcome_results],
        )

    def to_domain(self, organization: str) -> TransferDocument:
        return TransferDocument(
            organization=organization,
            exported_at=self.exported_at,
            big_jobs=tuple(node.to_domain() for node in self.hierarchy),
            surveys=tuple(
                SurveyRecord(code=item.code, name=item.name, date=item.date, description=item.description)
                for item in self.surveys
            ),
            outcome_results=tuple(TransferResult(**item.model_dump()) for item in self.outcome_results),
        )


class EntityCountsModel(BaseModel):
    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)


class TransferConflictModel(BaseModel):
    type: str
    slug: str
    existing: dict[str, Any]
    incoming: dict[str, Any]


class DataImportResponse(BaseModel):
    merge_behavior: MergeBehaviorLiteral
    dry_run: bool
    big_jobs: EntityCountsModel
    little_jobs: EntityCountsModel
    outcomes: EntityCountsModel
    surveys: EntityCountsModel
    outcome_results: EntityCountsModel
    conflicts: list[TransferConflictModel] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, report: DataImportReport) -> "DataImportResponse":
        return cls(**asdict(report))
