"""
Model package exports.

Import every SQLAlchemy model here so Base.metadata is complete before
the startup schema check runs.
"""

from db.models.change_log import ChangeAction, ChangeLog
from db.models.hierarchy import BigJob, EntityStatus, LittleJob, Outcome
from db.models.member import MemberRole, OrgMember
from db.models.organization import Organization
from db.models.survey import OutcomeResult, Survey

__all__ = [
    "BigJob",
    "ChangeAction",
    "ChangeLog",
    "EntityStatus",
    "LittleJob",
    "MemberRole",
    "OrgMember",
    "Organization",
    "Outcome",
    "OutcomeResult",
    "Survey",
]
