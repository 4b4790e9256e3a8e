"""
db/models/change_log.py

Append-only audit trail for hierarchy and survey writes.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, OrganizationScopedMixin, UUIDPrimaryKeyMixin


class ChangeAction:
    CREATE = "create"
    UPDATE = "update"
    ARCHIVE = "archive"
    DELETE = "delete"
    UPSERT = "upsert"
    IMPORT = "import"


class ChangeLog(Base, UUIDPrimaryKeyMixin, OrganizationScopedMixin):
    __tablename__ = "change_logs"

    entity: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="big_job, little_job, outcome, survey, outcome_result, org_member",
    )
    entity_id: Mapped[str] = mapped_column(String(120), nullable=False)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    before: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    after: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    actor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_change_logs_org_entity", "org_id", "entity", "entity_id"),
    )
