"""
app/api/routers/members.py

Organization membership endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.dependencies import get_member_service
from app.errors import MemberConflictError, MemberNotFoundError
from app.schemas.members import MemberCreateRequest, MemberResponse, MemberRoleUpdateRequest
from app.services.member_service import MemberService

router = APIRouter(prefix="/organizations/{org_slug}/members", tags=["members"])


@router.get("", response_model=list[MemberResponse])
def list_members(service: MemberService = Depends(get_member_service)) -> list[MemberResponse]:
    """
    Members ordered newest first.
    """

    return [MemberResponse.from_model(member) for member in service.list_members()]


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    body: MemberCreateRequest,
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    try:
        member = service.add_member(user_id=body.user_id, email=body.email, role=body.role)
    except MemberConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return MemberResponse.from_model(member)


@router.patch("/{member_id}", response_model=MemberResponse)
def update_member_role(
    member_id: uuid.UUID,
    body: MemberRoleUpdateRequest,
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    try:
        member = service.update_member_role(member_id, body.role)
    except MemberNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MemberResponse.from_model(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    member_id: uuid.UUID,
    service: MemberService = Depends(get_member_service),
) -> Response:
    try:
        service.remove_member(member_id)
    except MemberNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
