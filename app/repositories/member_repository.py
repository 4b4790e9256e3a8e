"""
app/repositories/member_repository.py

Organization membership reads and writes. Nothing here commits; the service
owns the transaction.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import MemberConflictError, MemberNotFoundError
from app.logging_utils import log_event
from app.repositories.change_log_repository import ChangeLogRepository
from db.models.change_log import ChangeAction
from db.models.member import OrgMember

logger = logging.getLogger(__name__)

_ENTITY = "org_member"


def _snapshot(member: OrgMember) -> dict[str, Any]:
    return {"user_id": member.user_id, "email": member.email, "role": member.role}


class MemberRepository:
    def __init__(self, session: Session, *, org_id: uuid.UUID, actor: str | None = None) -> None:
        self._session = session
        self._org_id = org_id
        self._actor = actor
        self._change_log = ChangeLogRepository(session)

    def list_members(self) -> list[OrgMember]:
        """
        Members of the organization, newest first.
        """

        stmt = (
            select(OrgMember)
            .where(OrgMember.org_id == self._org_id)
            .order_by(OrgMember.created_at.desc(), OrgMember.email)
        )
        return list(self._session.scalars(stmt).all())

    def get_member(self, member_id: uuid.UUID) -> OrgMember:
        member = self._session.get(OrgMember, member_id)
        if member is None or member.org_id != self._org_id:
            raise MemberNotFoundError(member_id)
        return member

    def add_member(self, *, user_id: str, email: str, role: str) -> OrgMember:
        member = OrgMember(org_id=self._org_id, user_id=user_id, email=email, role=role)
        try:
            with self._session.begin_nested():
                self._session.add(member)
        except IntegrityError as exc:
            raise MemberConflictError(f"user '{user_id}' is already a member") from exc

        self._change_log.record(
            org_id=self._org_id,
            entity=_ENTITY,
            entity_id=user_id,
            action=ChangeAction.CREATE,
            after=_snapshot(member),
            actor=self._actor,
        )
        log_event(logger, logging.INFO, "member_added", user_id=user_id, role=role)
        return member

    def update_member_role(self, member_id: uuid.UUID, role: str) -> OrgMember:
        member = self.get_member(member_id)
        before = _snapshot(member)
        member.role = role
        self._session.flush()
        self._change_log.record(
            org_id=self._org_id,
            entity=_ENTITY,
            entity_id=member.user_id,
            action=ChangeAction.UPDATE,
            before=before,
            after=_snapshot(member),
            actor=self._actor,
        )
        return member

    def remove_member(self, member_id: uuid.UUID) -> None:
        member = self.get_member(member_id)
        before = _snapshot(member)
        self._session.delete(member)
        self._session.flush()
        self._change_log.record(
            org_id=self._org_id,
            entity=_ENTITY,
            entity_id=member.user_id,
            action=ChangeAction.DELETE,
            before=before,
            actor=self._actor,
        )
        log_event(logger, logging.INFO, "member_removed", user_id=member.user_id)
