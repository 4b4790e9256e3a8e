"""
db/models/hierarchy.py

JTBD hierarchy models: Big Job -> Little Job -> Outcome.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, OrganizationScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.survey import OutcomeResult


class EntityStatus:
    """Lifecycle of a hierarchy node. Independent from ordering."""

    ACTIVE = "active"
    ARCHIVED = "archived"

    ALL = frozenset({ACTIVE, ARCHIVED})


class BigJob(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin, TimestampMixin):
    __tablename__ = "big_jobs"

    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(64)), nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=EntityStatus.ACTIVE,
        comment="active, archived",
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    little_jobs: Mapped[list["LittleJob"]] = relationship(
        "LittleJob",
        back_populates="big_job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("org_id", "slug", name="uq_big_jobs_org_slug"),
        Index("ix_big_jobs_org_status", "org_id", "status"),
    )


class LittleJob(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin, TimestampMixin):
    __tablename__ = "little_jobs"

    big_job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("big_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=EntityStatus.ACTIVE)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    big_job: Mapped[BigJob] = relationship("BigJob", back_populates="little_jobs")
    outcomes: Mapped[list["Outcome"]] = relationship(
        "Outcome",
        back_populates="little_job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("org_id", "slug", name="uq_little_jobs_org_slug"),
        Index("ix_little_jobs_big_job_id", "big_job_id"),
    )


class Outcome(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin, TimestampMixin):
    """
    Leaf of the hierarchy; the unit that survey results are scored against.
    """

    __tablename__ = "outcomes"

    little_job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("little_jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(String(120), nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(ARRAY(String(64)), nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=EntityStatus.ACTIVE)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    little_job: Mapped[LittleJob] = relationship("LittleJob", back_populates="outcomes")
    results: Mapped[list["OutcomeResult"]] = relationship(
        "OutcomeResult",
        back_populates="outcome",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("org_id", "slug", name="uq_outcomes_org_slug"),
        Index("ix_outcomes_org_status", "org_id", "status"),
        Index("ix_outcomes_little_job_id", "little_job_id"),
    )

    def __repr__(self) -> str:
        return f"<Outcome id={self.id} slug={self.slug!r} status={self.status!r}>"
