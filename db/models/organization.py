"""
db/models/organization.py

Organization model: the tenant that owns a JTBD hierarchy and its surveys.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Organization(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """
    One research tenant. Every hierarchy node, survey and result row is
    scoped to exactly one organization.
    """

    __tablename__ = "organizations"

    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} slug={self.slug!r}>"
