"""
app/schemas/hierarchy.py

Request/response schemas for hierarchy administration and research rounds.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from app.domain.hierarchy import BigJobNode, LittleJobNode, OutcomeNode, ResearchRound

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class OutcomeNodeResponse(BaseModel):
    slug: str
    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    status: str
    order_index: int
    importance: float | None = None
    satisfaction: float | None = None
    opportunity_score: float | None = None

    @classmethod
    def from_domain(cls, node: OutcomeNode) -> "OutcomeNodeResponse":
        return cls(
            slug=node.slug,
            name=node.name,
            description=node.description,
            tags=list(node.tags),
            status=node.status,
            order_index=node.order_index,
            importance=node.importance,
            satisfaction=node.satisfaction,
            opportunity_score=node.opportunity_score,
        )


class LittleJobNodeResponse(BaseModel):
    slug: str
    name: str
    description: str | None = None
    status: str
    order_index: int
    outcomes: list[OutcomeNodeResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, node: LittleJobNode) -> "LittleJobNodeResponse":
        return cls(
            slug=node.slug,
            name=node.name,
            description=node.description,
            status=node.status,
            order_index=node.order_index,
            outcomes=[OutcomeNodeResponse.from_domain(outcome) for outcome in node.outcomes],
        )


class BigJobNodeResponse(BaseModel):
    slug: str
    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    status: str
    order_index: int
    little_jobs: list[LittleJobNodeResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, node: BigJobNode) -> "BigJobNodeResponse":
        return cls(
            slug=node.slug,
            name=node.name,
            description=node.description,
            tags=list(node.tags),
            status=node.status,
            order_index=node.order_index,
            little_jobs=[LittleJobNodeResponse.from_domain(child) for child in node.little_jobs],
        )


class HierarchyResponse(BaseModel):
    organization: str
    big_jobs: list[BigJobNodeResponse] = Field(default_factory=list)


class ResearchRoundResponse(BaseModel):
    code: str
    name: str
    date: date
    description: str
    big_jobs: list[BigJobNodeResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, research_round: ResearchRound) -> "ResearchRoundResponse":
        return cls(
            code=research_round.code,
            name=research_round.name,
            date=research_round.date,
            description=research_round.description,
            big_jobs=[BigJobNodeResponse.from_domain(node) for node in research_round.big_jobs],
        )


class NodeCreateRequest(BaseModel):
    """
    Create payload shared by all three levels. ``parent_slug`` is required
    for Little Jobs (Big Job slug) and Outcomes (Little Job slug).
    """

    slug: str = Field(..., min_length=1, max_length=120, pattern=SLUG_PATTERN)
    name: str = Field(..., min_length=1, max_length=500)
    description: str | None = None
    tags: list[str] | None = None
    order_index: int = 0
    parent_slug: str | None = None

    def values(self) -> dict[str, Any]:
        return self.model_dump(exclude={"parent_slug"}, exclude_none=True)


class NodeUpdateRequest(BaseModel):
    slug: str | None = Field(default=None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    name: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    tags: list[str] | None = None
    order_index: int | None = None
    parent_slug: str | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude={"parent_slug"}, exclude_none=True)


class NodeWriteResponse(BaseModel):
    kind: str
    slug: str
    action: str
