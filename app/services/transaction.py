"""
app/services/transaction.py

Commit / rollback scope shared by the organization-scoped write services.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.logging_utils import log_event

logger = logging.getLogger(__name__)


@contextmanager
def write_transaction(
    session: Session,
    *,
    operation: str,
    org_slug: str,
    dry_run: bool = False,
) -> Iterator[None]:
    """
    Commit when the block succeeds, roll back and re-raise when it fails.

    ``dry_run`` rolls back a successful block too, so callers can report what
    a write would have done.
    """

    try:
        yield
        if dry_run:
            session.rollback()
        else:
            session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        log_event(
            logger,
            logging.ERROR,
            "write_failed",
            operation=operation,
            organization=org_slug,
            error=str(exc),
        )
        raise
    except Exception:
        session.rollback()
        raise
