"""
app/schemas/members.py

Schemas for organization membership administration.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from db.models.member import OrgMember

MemberRoleLiteral = Literal["reader", "writer", "admin"]


class MemberResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    email: str
    role: MemberRoleLiteral
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, member: OrgMember) -> "MemberResponse":
        return cls(
            id=member.id,
            user_id=member.user_id,
            email=member.email,
            role=member.role,
            created_at=member.created_at,
        )


class MemberCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    role: MemberRoleLiteral = "reader"


class MemberRoleUpdateRequest(BaseModel):
    role: MemberRoleLiteral
