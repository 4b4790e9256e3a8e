"""
app/services/member_service.py

Organization membership administration.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.orm import Session

from app.repositories.member_repository import MemberRepository
from app.repositories.organization_repository import OrganizationRepository
from app.services.transaction import write_transaction
from db.models.member import OrgMember

T = TypeVar("T")


class MemberService:
    def __init__(self, *, session: Session, org_slug: str, actor: str | None = None) -> None:
        self._session = session
        organization = OrganizationRepository(session).get_by_slug(org_slug)
        self.org_slug = org_slug
        self._members = MemberRepository(session, org_id=organization.id, actor=actor)

    def list_members(self) -> list[OrgMember]:
        return self._members.list_members()

    def add_member(self, *, user_id: str, email: str, role: str) -> OrgMember:
        return self._write(
            "add_member",
            lambda: self._members.add_member(user_id=user_id, email=email, role=role),
        )

    def update_member_role(self, member_id: uuid.UUID, role: str) -> OrgMember:
        return self._write("update_member_role", lambda: self._members.update_member_role(member_id, role))

    def remove_member(self, member_id: uuid.UUID) -> None:
        self._write("remove_member", lambda: self._members.remove_member(member_id))

    def _write(self, operation: str, mutate: Callable[[], T]) -> T:
        with write_transaction(self._session, operation=operation, org_slug=self.org_slug):
            return mutate()
