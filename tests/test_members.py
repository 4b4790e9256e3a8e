from __future__ import annotations

import unittest
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import IntegrityError

from app.errors import MemberConflictError, MemberNotFoundError
from app.repositories.member_repository import MemberRepository
from app.services.member_service import MemberService
from db.models.change_log import ChangeLog
from db.models.member import MemberRole, OrgMember


def _logged(session: MagicMock) -> list[ChangeLog]:
    return [item.args[0] for item in session.add.call_args_list if isinstance(item.args[0], ChangeLog)]


class TestMemberRepository(unittest.TestCase):
    def setUp(self) -> None:
        self.org_id = uuid.uuid4()
        self.member_id = uuid.uuid4()
        self.member = OrgMember(
            id=self.member_id,
            org_id=self.org_id,
            user_id="user-7",
            email="ana@example.com",
            role=MemberRole.READER,
        )
        self.session = MagicMock()
        self.session.get.return_value = self.member
        self.repository = MemberRepository(self.session, org_id=self.org_id, actor="admin@example.com")

    def test_list_members_orders_newest_first(self) -> None:
        self.session.scalars.return_value.all.return_value = [self.member]

        members = self.repository.list_members()

        self.assertEqual(members, [self.member])
        sql = str(self.session.scalars.call_args.args[0])
        self.assertIn("FROM org_members", sql)
        self.assertIn("ORDER BY org_members.created_at DESC", sql)

    def test_add_member_records_creation(self) -> None:
        member = self.repository.add_member(user_id="user-9", email="bo@example.com", role=MemberRole.WRITER)

        self.assertEqual(member.org_id, self.org_id)
        self.assertEqual(member.role, "writer")
        self.assertIs(self.session.add.call_args_list[0].args[0], member)
        [logged] = _logged(self.session)
        self.assertEqual(logged.entity, "org_member")
        self.assertEqual(logged.action, "create")
        self.assertEqual(logged.after, {"user_id": "user-9", "email": "bo@example.com", "role": "writer"})

    def test_duplicate_user_is_a_conflict(self) -> None:
        self.session.add.side_effect = IntegrityError("INSERT", {}, Exception("duplicate key"))

        with self.assertRaises(MemberConflictError):
            self.repository.add_member(user_id="user-7", email="ana@example.com", role=MemberRole.READER)

    def test_update_role_logs_before_and_after(self) -> None:
        updated = self.repository.update_member_role(self.member_id, MemberRole.ADMIN)

        self.assertEqual(updated.role, "admin")
        self.session.flush.assert_called_once()
        [logged] = _logged(self.session)
        self.assertEqual(logged.action, "update")
        self.assertEqual(logged.before["role"], "reader")
        self.assertEqual(logged.after["role"], "admin")
        self.assertEqual(logged.entity_id, "user-7")

    def test_member_of_another_organization_is_not_found(self) -> None:
        self.session.get.return_value = SimpleNamespace(org_id=uuid.uuid4())

        with self.assertRaises(MemberNotFoundError):
            self.repository.update_member_role(self.member_id, MemberRole.ADMIN)

    def test_unknown_member_is_not_found(self) -> None:
        self.session.get.return_value = None

        with self.assertRaises(MemberNotFoundError):
            self.repository.remove_member(uuid.uuid4())
        self.session.delete.assert_not_called()

    def test_remove_member_deletes_and_logs(self) -> None:
        self.repository.remove_member(self.member_id)

        self.session.delete.assert_called_once_with(self.member)
        [logged] = _logged(self.session)
        self.assertEqual(logged.action, "delete")
        self.assertEqual(logged.before["email"], "ana@example.com")
        self.assertIsNone(logged.after)


class TestMemberService(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        patcher_org = patch("app.services.member_service.OrganizationRepository")
        patcher_members = patch("app.services.member_service.MemberRepository")
        patcher_org.start()
        self.members = patcher_members.start().return_value
        self.addCleanup(patch.stopall)
        self.service = MemberService(session=self.session, org_slug="acme")

    def test_add_member_commits(self) -> None:
        self.service.add_member(user_id="user-9", email="bo@example.com", role="writer")

        self.members.add_member.assert_called_once_with(user_id="user-9", email="bo@example.com", role="writer")
        self.session.commit.assert_called_once()

    def test_conflict_rolls_back(self) -> None:
        self.members.add_member.side_effect = MemberConflictError("user 'user-9' is already a member")

        with self.assertRaises(MemberConflictError):
            self.service.add_member(user_id="user-9", email="bo@example.com", role="writer")
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()

    def test_remove_member_commits(self) -> None:
        member_id = uuid.uuid4()

        self.service.remove_member(member_id)

        self.members.remove_member.assert_called_once_with(member_id)
        self.session.commit.assert_called_once()


if __name__ == "__main__":
    unittest.main()
