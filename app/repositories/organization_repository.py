"""
app/repositories/organization_repository.py

Organization lookups by slug.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import OrganizationNotFoundError
from db.models.organization import Organization


class OrganizationRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_slug(self, org_slug: str) -> Organization:
        organization = self._session.scalar(
            select(Organization).where(Organization.slug == org_slug)
        )
        if organization is None:
            raise OrganizationNotFoundError(org_slug)
        return organization
