"""
app/repositories/change_log_repository.py

Append-only audit trail writes. Entries join the caller's transaction.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.orm import Session

from db.models.change_log import ChangeLog


class ChangeLogRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def record(
        self,
        *,
        org_id: uuid.UUID,
        entity: str,
        entity_id: Any,
        action: str,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        actor: str | None = None,
    ) -> ChangeLog:
        entry = ChangeLog(
            org_id=org_id,
            entity=entity,
            entity_id=str(entity_id),
            action=action,
            before=before,
            after=after,
            actor=actor,
        )
        self._session.add(entry)
        return entry
