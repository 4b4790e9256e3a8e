"""
app/api/routers/hierarchy.py

Hierarchy administration endpoints (Big Jobs, Little Jobs, Outcomes) and
research rounds.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.dependencies import get_hierarchy_service
from app.domain.hierarchy import NodeKind
from app.errors import HierarchyConflictError, HierarchyNotFoundError
from app.schemas.hierarchy import (
    BigJobNodeResponse,
    HierarchyResponse,
    NodeCreateRequest,
    NodeUpdateRequest,
    NodeWriteResponse,
    ResearchRoundResponse,
)
from app.services.hierarchy_service import HierarchyService
from db.models.change_log import ChangeAction

router = APIRouter(prefix="/organizations/{org_slug}", tags=["hierarchy"])

T = TypeVar("T")


class NodeCollection(str, Enum):
    BIG_JOBS = "big-jobs"
    LITTLE_JOBS = "little-jobs"
    OUTCOMES = "outcomes"


_KIND_BY_COLLECTION = {
    NodeCollection.BIG_JOBS: NodeKind.BIG_JOB,
    NodeCollection.LITTLE_JOBS: NodeKind.LITTLE_JOB,
    NodeCollection.OUTCOMES: NodeKind.OUTCOME,
}


def _run(operation: Callable[[], T]) -> T:
    try:
        return operation()
    except HierarchyNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except HierarchyConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get("/hierarchy", response_model=HierarchyResponse)
def get_hierarchy(service: HierarchyService = Depends(get_hierarchy_service)) -> HierarchyResponse:
    """
    Active Big Job -> Little Job -> Outcome tree, ordered by ``order_index``.
    """

    return HierarchyResponse(
        organization=service.org_slug,
        big_jobs=[BigJobNodeResponse.from_domain(node) for node in service.get_hierarchy()],
    )


@router.get("/research-rounds", response_model=list[ResearchRoundResponse])
def get_research_rounds(
    service: HierarchyService = Depends(get_hierarchy_service),
) -> list[ResearchRoundResponse]:
    return [ResearchRoundResponse.from_domain(item) for item in service.get_research_rounds()]


@router.post(
    "/{collection}",
    response_model=NodeWriteResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_node(
    collection: NodeCollection,
    body: NodeCreateRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> NodeWriteResponse:
    kind = _KIND_BY_COLLECTION[collection]
    _run(lambda: service.create_node(kind, values=body.values(), parent_slug=body.parent_slug))
    return NodeWriteResponse(kind=kind, slug=body.slug, action=ChangeAction.CREATE)


@router.patch("/{collection}/{slug}", response_model=NodeWriteResponse)
def update_node(
    collection: NodeCollection,
    slug: str,
    body: NodeUpdateRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> NodeWriteResponse:
    """
    Edit fields or re-parent a node. Status is only changed through archive.
    """

    kind = _KIND_BY_COLLECTION[collection]
    _run(
        lambda: service.update_node(
            kind,
            slug,
            changes=body.changes(),
            parent_slug=body.parent_slug,
        )
    )
    return NodeWriteResponse(kind=kind, slug=body.slug or slug, action=ChangeAction.UPDATE)


@router.post("/{collection}/{slug}/archive", response_model=NodeWriteResponse)
def archive_node(
    collection: NodeCollection,
    slug: str,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> NodeWriteResponse:
    kind = _KIND_BY_COLLECTION[collection]
    _run(lambda: service.archive_node(kind, slug))
    return NodeWriteResponse(kind=kind, slug=slug, action=ChangeAction.ARCHIVE)


@router.delete("/{collection}/{slug}", status_code=status.HTTP_204_NO_CONTENT)
def delete_node(
    collection: NodeCollection,
    slug: str,
    service: HierarchyService = Depends(get_hierarchy_service),
) -> Response:
    kind = _KIND_BY_COLLECTION[collection]
    _run(lambda: service.delete_node(kind, slug))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
