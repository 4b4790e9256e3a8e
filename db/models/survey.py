"""
db/models/survey.py

Survey (research round) and per-outcome ODI result models.
"""

import datetime
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Date, Float, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, OrganizationScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from db.models.hierarchy import Outcome


class Survey(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin, TimestampMixin):
    """
    One research round. ``code`` is the operator-facing identifier and is
    unique per organization; re-importing a code targets the same survey.
    """

    __tablename__ = "surveys"

    code: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    results: Mapped[list["OutcomeResult"]] = relationship(
        "OutcomeResult",
        back_populates="survey",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("org_id", "code", name="uq_surveys_org_code"),
        Index("ix_surveys_org_date", "org_id", "date"),
    )


class OutcomeResult(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin, TimestampMixin):
    __tablename__ = "outcome_results"

    survey_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("surveys.id", ondelete="CASCADE"),
        nullable=False,
    )
    outcome_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("outcomes.id", ondelete="CASCADE"),
        nullable=False,
    )
    importance: Mapped[float] = mapped_column(Float, nullable=False)
    satisfaction: Mapped[float] = mapped_column(Float, nullable=False)
    opportunity_score: Mapped[float] = mapped_column(Float, nullable=False)

    survey: Mapped[Survey] = relationship("Survey", back_populates="results")
    outcome: Mapped["Outcome"] = relationship("Outcome", back_populates="results")

    __table_args__ = (
        UniqueConstraint("survey_id", "outcome_id", name="uq_outcome_results_survey_outcome"),
        Index("ix_outcome_results_org_survey", "org_id", "survey_id"),
    )
