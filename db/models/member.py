"""
db/models/member.py

Organization membership: which user holds which role in a tenant.
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, OrganizationScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class MemberRole:
    READER = "reader"
    WRITER = "writer"
    ADMIN = "admin"

    ALL = frozenset({READER, WRITER, ADMIN})


class OrgMember(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin, TimestampMixin):
    __tablename__ = "org_members"

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MemberRole.READER,
        comment="reader, writer, admin",
    )

    __table_args__ = (
        UniqueConstraint("org_id", "user_id", name="uq_org_members_org_user"),
        Index("ix_org_members_org_created", "org_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OrgMember id={self.id} user_id={self.user_id!r} role={self.role!r}>"
